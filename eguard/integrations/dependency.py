"""FastAPI dependency enforcing eGuard verdicts on individual routes.

For hosts that prefer per-route guards over a global middleware::

    app.state.eguard = EGuard(load_config())

    @app.get("/admin/report")
    async def report(session_id: str = Depends(require_trusted_session)):
        ...

Raises HTTPException BEFORE the handler body runs:
  401 — protected route, no session id
  403 — Deny verdict (detail = deny message)
  502 — trust service failure (fail-closed)

Routes the guard does not mark secure pass with session_id=None.
"""

from __future__ import annotations

from typing import Optional

from fastapi import HTTPException, Request

from eguard.errors import TrustServiceError
from eguard.guard import EGuard
from eguard.integrations.middleware import session_inputs
from eguard.models.decision import Deny
from eguard.utils.logger import get_logger

logger = get_logger(__name__)


def _guard_from_app(request: Request) -> EGuard:
    guard = getattr(request.app.state, "eguard", None)
    if not isinstance(guard, EGuard):
        raise RuntimeError("app.state.eguard is not set to an EGuard instance")
    return guard


async def require_trusted_session(request: Request) -> Optional[str]:
    """Authorize the request against the app's guard; return the session id."""
    guard = _guard_from_app(request)
    path = str(request.url.path)

    if not guard.is_secure(path, request.method):
        return None

    cookie_header, header = session_inputs(guard, request.headers)
    session_id = guard.extract_session_id(cookie_header, header)
    if not session_id:
        logger.warning("Protected route without session", path=path, method=request.method)
        raise HTTPException(status_code=401, detail="missing_session")

    try:
        decision = await guard.decide(session_id)
    except TrustServiceError as exc:
        logger.warning(
            "Trust service unavailable, failing closed",
            path=path,
            error_type=type(exc).__name__,
            error=exc.message,
        )
        raise HTTPException(status_code=502, detail="trust_service_unavailable") from exc

    if isinstance(decision, Deny):
        raise HTTPException(status_code=decision.status, detail=decision.message)

    return session_id
