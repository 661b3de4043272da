"""Starlette middleware enforcing eGuard verdicts.

Per request:
  1. ``guard.is_secure(path, method)`` is False → passed through untouched.
  2. Session id extracted from the ``cookie`` header and the configured
     ``session_extraction.header_name`` header.
  3. No session id                → HTTP 401 {"error": "missing_session"}
  4. decide() → Allow            → passed through
                 Deny             → HTTP 403 {"error": "forbidden", "detail": ...}
  5. decide() raises TrustServiceError
                                  → HTTP 502 {"error": "trust_service_unavailable"}
     Fail-closed: a trust-service outage never lets a protected request in.

Registration::

    guard = EGuard(load_config())
    app.add_middleware(EGuardMiddleware, guard=guard)

The middleware does not own the guard; close it in the host's lifespan.
"""

from __future__ import annotations

from typing import Optional

from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from eguard.errors import TrustServiceError
from eguard.guard import EGuard
from eguard.models.decision import Deny
from eguard.models.responses import (
    build_deny_response,
    build_missing_session_response,
    build_trust_unavailable_response,
)
from eguard.utils.logger import clear_request_id, get_logger, set_request_id
from eguard.utils.ulid import generate_ulid

logger = get_logger(__name__)


def session_inputs(
    guard: EGuard, headers: Headers
) -> tuple[Optional[str], Optional[tuple[str, str]]]:
    """Pick the cookie header and the single configured session header.

    Starlette headers are case-insensitive, so the configured header name is
    looked up as-is.
    """
    cookie_header = headers.get("cookie")
    header: Optional[tuple[str, str]] = None
    header_name = guard.config.session_extraction.header_name
    if header_name:
        value = headers.get(header_name)
        if value is not None:
            header = (header_name, value)
    return cookie_header, header


class EGuardMiddleware(BaseHTTPMiddleware):
    """Trust-score gate for the routes the guard marks secure."""

    def __init__(self, app: ASGIApp, guard: EGuard) -> None:
        super().__init__(app)
        self.guard = guard

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        path = request.url.path
        if not self.guard.is_secure(path, request.method):
            return await call_next(request)

        request_id = generate_ulid()
        set_request_id(request_id)
        try:
            cookie_header, header = session_inputs(self.guard, request.headers)
            session_id = self.guard.extract_session_id(cookie_header, header)
            if not session_id:
                logger.warning("Protected route without session", path=path, method=request.method)
                return build_missing_session_response(request_id)

            try:
                decision = await self.guard.decide(session_id)
            except TrustServiceError as exc:
                logger.warning(
                    "Trust service unavailable, failing closed",
                    path=path,
                    error_type=type(exc).__name__,
                    error=exc.message,
                )
                return build_trust_unavailable_response(request_id)

            if isinstance(decision, Deny):
                return build_deny_response(decision, request_id)

            return await call_next(request)
        finally:
            clear_request_id()
