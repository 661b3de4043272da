"""Root test configuration for eGuard.

Clears every EGUARD_* environment variable for the whole suite so a
developer's shell cannot leak configuration into load_config() tests, and
provides a mock trust service built on httpx.MockTransport.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, Optional

import httpx
import pytest

from eguard.config import EGuardConfig, SecureRoute, SessionExtraction

_EGUARD_ENV_VARS = (
    "EGUARD_CONFIG",
    "EGUARD_API_BASE_URL",
    "EGUARD_API_KEY",
    "EGUARD_MIN_TRUST_SCORE",
    "EGUARD_TIMEOUT_MS",
)

TRUST_BASE_URL = "https://trust.example.test"
TRUST_API_KEY = "test-api-key-do-not-log"


@pytest.fixture(autouse=True)
def clean_eguard_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _EGUARD_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class MockTrustService:
    """Mock trust service that records requests and returns a configurable response.

    ``scores`` maps session id → trust score; unknown ids get a 404.
    ``status_code`` / ``body`` override the response for every request.
    ``raise_on_send`` raises the given exception instead of responding.
    ``delay_s`` sleeps before responding (async handler) to exercise timeouts.
    """

    def __init__(
        self,
        *,
        scores: Optional[dict[str, float]] = None,
        status_code: Optional[int] = None,
        body: Optional[bytes] = None,
        raise_on_send: Optional[Exception] = None,
        delay_s: float = 0.0,
    ) -> None:
        self.scores = scores or {}
        self.received_requests: list[httpx.Request] = []
        self._status_code = status_code
        self._body = body
        self._raise_on_send = raise_on_send
        self._delay_s = delay_s

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.received_requests.append(request)
        if self._delay_s:
            await asyncio.sleep(self._delay_s)
        if self._raise_on_send is not None:
            raise self._raise_on_send
        if self._status_code is not None:
            return httpx.Response(self._status_code, content=self._body or b"")

        sid = request.url.params.get("sid")
        if sid not in self.scores:
            return httpx.Response(404, content=b"")
        return httpx.Response(
            200,
            content=json.dumps(
                {"session_id": sid, "trust_score": self.scores[sid], "reason": None}
            ).encode(),
            headers={"content-type": "application/json"},
        )

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport)

    @property
    def request_count(self) -> int:
        return len(self.received_requests)

    @property
    def last_request(self) -> httpx.Request:
        return self.received_requests[-1]


def make_config(**overrides: Any) -> EGuardConfig:
    """EGuardConfig with test defaults; any field can be overridden."""
    values: dict[str, Any] = {
        "api_base_url": TRUST_BASE_URL,
        "api_key": TRUST_API_KEY,
        "min_trust_score": 0.5,
        "secure_routes": (
            SecureRoute(path_pattern=r"^/admin"),
            SecureRoute(path_pattern=r"^/api/orders", methods=frozenset({"POST", "DELETE"})),
        ),
        "session_extraction": SessionExtraction(
            cookie_name="sid", header_name="Authorization", header_bearer=True
        ),
    }
    values.update(overrides)
    return EGuardConfig(**values)


@pytest.fixture
def config_factory() -> Callable[..., EGuardConfig]:
    return make_config


@pytest.fixture
def trust_service_factory() -> Callable[..., MockTrustService]:
    return MockTrustService
