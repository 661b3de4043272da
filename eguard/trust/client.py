"""Async trust service client for eGuard.

One outbound call per ``fetch_trust()``:

    GET {api_base_url}/eguard/trust?sid={session_id}
    Authorization: Bearer {api_key}

Response mapping (each outcome distinct):
  - 2xx            → TrustResponse parsed from the JSON body;
                     undecodable / invalid body → TrustResponseError
  - 404            → NOT an error: synthesized TrustResponse with score 0.0,
                     reason "unknown_session"
  - other status   → TrustStatusError(status_code, body text best-effort)
  - timeout        → TrustTimeoutError (httpx phase timeout OR the overall
                     timeout_ms deadline, whichever fires first)
  - transport fail → TrustUnavailableError (DNS, refused, protocol error)

No retry, no backoff, no caching, no coalescing of identical session ids.

Key design properties:
  - Shared httpx.AsyncClient, never instantiated per call.
  - The API key lives only in the prebuilt Authorization header; it is never
    logged and never part of an error message.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import httpx

from eguard.constants import (
    TRUST_ENDPOINT_PATH,
    TRUST_SESSION_PARAM,
)
from eguard.errors import (
    ConfigError,
    TrustResponseError,
    TrustStatusError,
    TrustTimeoutError,
    TrustUnavailableError,
)
from eguard.models.trust import TrustResponse
from eguard.utils.logger import PerformanceLogger, get_logger, mask_session_id

logger = get_logger(__name__)

# Connection pool sizing for the shared client.
POOL_MAX_CONNECTIONS: int = 100
POOL_MAX_KEEPALIVE: int = 20
POOL_KEEPALIVE_EXPIRY: float = 30.0  # seconds

_VALID_SCHEMES = frozenset({"http", "https"})


# ─── httpx.AsyncClient factory ────────────────────────────────────────────────


def create_http_client(
    timeout_ms: int,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> httpx.AsyncClient:
    """Create the shared httpx.AsyncClient used for trust lookups.

    Created once per guard; NEVER per call. ``transport`` is for tests
    (``httpx.MockTransport``).

    Raises:
        ConfigError: If ``timeout_ms`` is not a positive integer.
    """
    if isinstance(timeout_ms, bool) or not isinstance(timeout_ms, int) or timeout_ms <= 0:
        raise ConfigError(
            f"timeout_ms must be a positive integer, got {timeout_ms!r}",
            field="timeout_ms",
        )
    return httpx.AsyncClient(
        limits=httpx.Limits(
            max_connections=POOL_MAX_CONNECTIONS,
            max_keepalive_connections=POOL_MAX_KEEPALIVE,
            keepalive_expiry=POOL_KEEPALIVE_EXPIRY,
        ),
        timeout=httpx.Timeout(timeout_ms / 1000),
        follow_redirects=False,  # a 3xx is an unexpected status, not a hop
        transport=transport,
    )


def build_trust_url(api_base_url: str) -> str:
    """Return the trust endpoint URL for a base URL.

    Raises:
        ConfigError: If the base URL is not an absolute http(s) URL.
    """
    try:
        base = httpx.URL(api_base_url)
    except httpx.InvalidURL as exc:
        raise ConfigError(
            f"Invalid api_base_url {api_base_url}: {exc}", field="api_base_url"
        ) from exc
    if base.scheme not in _VALID_SCHEMES or not base.host:
        raise ConfigError(
            f"Invalid api_base_url {api_base_url}: expected an absolute http(s) URL",
            field="api_base_url",
        )
    return api_base_url.rstrip("/") + TRUST_ENDPOINT_PATH


class TrustClient:
    """Fetches and normalizes trust scores. Stateless across calls."""

    def __init__(
        self,
        api_base_url: str,
        api_key: str,
        timeout_ms: int,
        http_client: httpx.AsyncClient,
    ) -> None:
        self._url = build_trust_url(api_base_url)
        self._headers = {"Authorization": f"Bearer {api_key}"}
        self._timeout_ms = timeout_ms
        self._http = http_client

    @property
    def url(self) -> str:
        return self._url

    async def fetch_trust(self, session_id: str) -> TrustResponse:
        """Look up the trust score for ``session_id``.

        Raises:
            TrustTimeoutError:     deadline exceeded.
            TrustUnavailableError: connection / transport failure.
            TrustStatusError:      non-2xx, non-404 status.
            TrustResponseError:    malformed 2xx body.
        """
        with PerformanceLogger(
            "trust_lookup",
            logger=logger,
            slow_ms=self._timeout_ms / 2,
            session=mask_session_id(session_id),
        ):
            response = await self._send(session_id)

            if response.is_success:
                return self._parse(response)

            if response.status_code == httpx.codes.NOT_FOUND:
                logger.info("Unknown session, scoring as 0.0", session=mask_session_id(session_id))
                return TrustResponse.unknown_session(session_id)

            raise TrustStatusError(response.status_code, _read_body(response))

    async def _send(self, session_id: str) -> httpx.Response:
        try:
            return await asyncio.wait_for(
                self._http.get(
                    self._url,
                    params={TRUST_SESSION_PARAM: session_id},
                    headers=self._headers,
                ),
                timeout=self._timeout_ms / 1000,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            raise TrustTimeoutError(self._timeout_ms) from exc
        except httpx.TransportError as exc:
            # ConnectError, RemoteProtocolError, ProxyError, ...
            raise TrustUnavailableError(
                f"Trust API unreachable: {type(exc).__name__}: {exc}"
            ) from exc

    @staticmethod
    def _parse(response: httpx.Response) -> TrustResponse:
        try:
            payload = response.json()
        except ValueError as exc:  # JSONDecodeError, UnicodeDecodeError
            raise TrustResponseError(f"Trust API returned invalid JSON: {exc}") from exc
        return TrustResponse.from_payload(payload)


def _read_body(response: httpx.Response) -> str:
    """Best-effort response text for diagnostics; empty string if undecodable."""
    try:
        return response.text
    except (UnicodeDecodeError, LookupError):
        return ""
