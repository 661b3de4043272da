"""JSON response builders for the eGuard host integrations.

Three distinct short-circuit outcomes, never confused:

  build_missing_session_response():
      HTTP 401 — protected route, no session id could be extracted.

  build_deny_response():
      HTTP <deny.status> (403) — the trust score fell below the threshold.
      Body carries the deny message (safe: names the score only).

  build_trust_unavailable_response():
      HTTP 502 — the trust service timed out, was unreachable, or answered
      with an error / malformed body. Fail-closed: the request is NOT let
      through, but it is also NOT reported as a policy denial.

Every response carries ``X-EGuard-Request-ID`` so the client-visible
failure can be matched with the guard's log entries.
"""

from __future__ import annotations

from starlette.responses import JSONResponse

from eguard.constants import REQUEST_ID_HEADER
from eguard.models.decision import Deny


def build_missing_session_response(request_id: str) -> JSONResponse:
    """Build the HTTP 401 response for a protected route without a session."""
    response = JSONResponse(status_code=401, content={"error": "missing_session"})
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


def build_deny_response(decision: Deny, request_id: str) -> JSONResponse:
    """Build the response for a Deny verdict.

    Body::

        {"error": "forbidden", "detail": "Low trust score: 0.2"}
    """
    response = JSONResponse(
        status_code=decision.status,
        content={"error": "forbidden", "detail": decision.message},
    )
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


def build_trust_unavailable_response(request_id: str) -> JSONResponse:
    """Build the HTTP 502 response for trust-service failures.

    The body deliberately omits the upstream status and body text: those may
    contain trust-service internals. They are logged instead.
    """
    response = JSONResponse(
        status_code=502,
        content={"error": "trust_service_unavailable"},
    )
    response.headers[REQUEST_ID_HEADER] = request_id
    return response
