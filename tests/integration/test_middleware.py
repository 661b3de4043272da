"""Integration tests for EGuardMiddleware on a Starlette app.

Failure mode separation at the HTTP level:
  - unprotected route           → handler runs, trust service never called
  - protected, no session       → 401 missing_session, trust service never called
  - protected, Allow            → handler runs
  - protected, Deny             → 403 forbidden + detail, handler never runs
  - protected, 404 session      → 403 (score 0.0)
  - trust service error/timeout → 502 trust_service_unavailable (fail-closed)
"""

from __future__ import annotations

from typing import Any

import httpx
import pytest
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from eguard.constants import REQUEST_ID_HEADER
from eguard.guard import EGuard
from eguard.integrations.middleware import EGuardMiddleware


class _Handler:
    """Records whether the downstream handler ran."""

    def __init__(self) -> None:
        self.calls = 0

    async def handle(self, request: Request) -> PlainTextResponse:
        self.calls += 1
        return PlainTextResponse("handler ran")


def _build_app(guard: EGuard, handler: _Handler) -> Starlette:
    methods = ["GET", "POST", "DELETE"]
    application = Starlette(
        routes=[
            Route("/admin/users", handler.handle, methods=methods),
            Route("/api/orders", handler.handle, methods=methods),
            Route("/public", handler.handle, methods=methods),
        ]
    )
    application.add_middleware(EGuardMiddleware, guard=guard)
    return application


@pytest.fixture
def build(config_factory, trust_service_factory):
    def _build(config_overrides: dict[str, Any] | None = None, **service_kwargs: Any):
        service = trust_service_factory(**service_kwargs)
        guard = EGuard(config_factory(**(config_overrides or {})), http_client=service.client())
        handler = _Handler()
        return TestClient(_build_app(guard, handler)), service, handler

    return _build


class TestPassThrough:
    def test_unprotected_route(self, build) -> None:
        client, service, handler = build(scores={})
        response = client.get("/public")
        assert response.status_code == 200
        assert response.text == "handler ran"
        assert handler.calls == 1
        assert service.request_count == 0

    def test_method_not_protected(self, build) -> None:
        client, service, handler = build(scores={})
        response = client.get("/api/orders")
        assert response.status_code == 200
        assert response.text == "handler ran"
        assert handler.calls == 1
        assert service.request_count == 0


class TestMissingSession:
    def test_no_cookie_no_header(self, build) -> None:
        client, service, handler = build(scores={"abc": 0.9})
        response = client.get("/admin/users")
        assert response.status_code == 401
        assert response.json() == {"error": "missing_session"}
        assert handler.calls == 0
        assert service.request_count == 0

    def test_empty_cookie_value(self, build) -> None:
        client, _, handler = build(scores={"abc": 0.9})
        response = client.get("/admin/users", headers={"cookie": "sid="})
        assert response.status_code == 401
        assert handler.calls == 0

    def test_request_id_header(self, build) -> None:
        client, _, _ = build(scores={})
        response = client.get("/admin/users")
        assert len(response.headers[REQUEST_ID_HEADER]) == 26


class TestAllow:
    def test_cookie_session_allowed(self, build) -> None:
        client, service, handler = build(scores={"abc": 0.9})
        response = client.get("/admin/users", headers={"cookie": "theme=dark; sid=abc"})
        assert response.status_code == 200
        assert handler.calls == 1
        assert service.last_request.url.params["sid"] == "abc"

    def test_bearer_header_session_allowed(self, build) -> None:
        client, service, handler = build(scores={"tok": 0.75})
        response = client.post("/api/orders", headers={"authorization": "Bearer tok"})
        assert response.status_code == 200
        assert handler.calls == 1

    def test_cookie_wins_over_header(self, build) -> None:
        client, service, _ = build(scores={"from-cookie": 0.9, "from-header": 0.1})
        response = client.get(
            "/admin/users",
            headers={"cookie": "sid=from-cookie", "authorization": "Bearer from-header"},
        )
        assert response.status_code == 200
        assert service.last_request.url.params["sid"] == "from-cookie"


class TestDeny:
    def test_low_score(self, build) -> None:
        client, _, handler = build(scores={"abc": 0.2})
        response = client.get("/admin/users", headers={"cookie": "sid=abc"})
        assert response.status_code == 403
        assert response.json() == {"error": "forbidden", "detail": "Low trust score: 0.2"}
        assert handler.calls == 0
        assert REQUEST_ID_HEADER in response.headers

    def test_unknown_session(self, build) -> None:
        client, _, handler = build(scores={})
        response = client.get("/admin/users", headers={"cookie": "sid=ghost"})
        assert response.status_code == 403
        assert response.json()["detail"] == "Low trust score: 0.0"
        assert handler.calls == 0


class TestTrustServiceFailure:
    def test_error_status_fails_closed(self, build) -> None:
        client, _, handler = build(status_code=500, body=b"internal details")
        response = client.get("/admin/users", headers={"cookie": "sid=abc"})
        assert response.status_code == 502
        assert response.json() == {"error": "trust_service_unavailable"}
        assert "internal details" not in response.text
        assert handler.calls == 0

    def test_connect_error_fails_closed(self, build) -> None:
        client, _, handler = build(raise_on_send=httpx.ConnectError("refused"))
        response = client.get("/admin/users", headers={"cookie": "sid=abc"})
        assert response.status_code == 502
        assert handler.calls == 0

    def test_timeout_fails_closed(self, build) -> None:
        client, _, handler = build({"timeout_ms": 50}, scores={"abc": 0.9}, delay_s=1.0)
        response = client.get("/admin/users", headers={"cookie": "sid=abc"})
        assert response.status_code == 502
        assert handler.calls == 0

    def test_malformed_body_fails_closed(self, build) -> None:
        client, _, handler = build(status_code=200, body=b"<html>")
        response = client.get("/admin/users", headers={"cookie": "sid=abc"})
        assert response.status_code == 502
        assert handler.calls == 0
