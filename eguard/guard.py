"""EGuard — the facade hosts hold for the lifetime of the process.

Construction validates and compiles everything up front:
  1. secure routes are compiled with re2 (invalid pattern → ConfigError)
  2. the trust endpoint URL is validated (invalid base URL → ConfigError)
  3. the shared httpx.AsyncClient is built with timeout_ms
     (unconstructable timeout → ConfigError)

After that the guard is read-only: no setters, no reload. Any number of
coroutines may call it concurrently. To change configuration, build a new
guard.

Usage::

    async with EGuard(config) as guard:
        if guard.is_secure(path, method):
            sid = guard.extract_session_id(cookie_header, ("authorization", value))
            if sid is None:
                ...  # host policy for unauthenticated requests
            decision = await guard.decide(sid)   # may raise TrustServiceError

The guard owns the HTTP client it creates and closes it in ``aclose()``.
A client passed in via ``http_client`` belongs to the caller and is left open.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

import httpx

from eguard.config import EGuardConfig
from eguard.decision.engine import DecisionEngine
from eguard.models.decision import Decision
from eguard.models.trust import TrustResponse
from eguard.routes.matcher import CompiledRoute, RouteMatcher
from eguard.session.extractor import SessionExtractor
from eguard.trust.client import TrustClient, build_trust_url, create_http_client
from eguard.utils.logger import get_logger

logger = get_logger(__name__)


class EGuard:
    """Route matching, session extraction and trust decisions in one object."""

    def __init__(
        self,
        config: EGuardConfig,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config
        self._matcher = RouteMatcher(config.secure_routes)
        self._extractor = SessionExtractor(config.session_extraction)

        # Validate the URL before creating a client we would have to close.
        build_trust_url(config.api_base_url)

        self._owns_client = http_client is None
        self._http = http_client if http_client is not None else create_http_client(config.timeout_ms)
        self._trust_client = TrustClient(
            api_base_url=config.api_base_url,
            api_key=config.api_key,
            timeout_ms=config.timeout_ms,
            http_client=self._http,
        )
        self._engine = DecisionEngine(self._trust_client, config.min_trust_score)

        logger.info(
            "eGuard initialised",
            trust_url=self._trust_client.url,
            secure_routes=len(self._matcher.routes),
            min_trust_score=config.min_trust_score,
            timeout_ms=config.timeout_ms,
        )

    @classmethod
    def from_dict(
        cls,
        raw: Mapping[str, Any],
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> "EGuard":
        """Build a guard straight from a configuration mapping."""
        return cls(EGuardConfig.from_dict(raw), http_client=http_client)

    # ── Read-only views ───────────────────────────────────────────────────────

    @property
    def config(self) -> EGuardConfig:
        return self._config

    @property
    def routes(self) -> tuple[CompiledRoute, ...]:
        return self._matcher.routes

    # ── Public contract ───────────────────────────────────────────────────────

    def is_secure(self, path: str, method: str) -> bool:
        """True iff any configured route protects ``path`` for ``method``."""
        return self._matcher.is_secure(path, method)

    def extract_session_id(
        self,
        cookie_header: Optional[str] = None,
        header: Optional[tuple[str, str]] = None,
    ) -> Optional[str]:
        """Session id from the cookie (first) or the header pair, else None."""
        return self._extractor.extract(cookie_header, header)

    async def fetch_trust(self, session_id: str) -> TrustResponse:
        return await self._trust_client.fetch_trust(session_id)

    async def decide(self, session_id: str) -> Decision:
        """Allow / Deny for ``session_id``. Raises TrustServiceError on failure."""
        return await self._engine.decide(session_id)

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()
            logger.debug("eGuard HTTP client closed")

    async def __aenter__(self) -> "EGuard":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return (
            f"EGuard(api_base_url={self._config.api_base_url!r}, "
            f"secure_routes={len(self._matcher.routes)}, "
            f"min_trust_score={self._config.min_trust_score})"
        )
