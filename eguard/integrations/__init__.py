"""eGuard host integrations for ASGI applications.

Public API:
    EGuardMiddleware         — Starlette middleware guarding every request
    require_trusted_session  — FastAPI Depends()-compatible dependency
"""
from eguard.integrations.dependency import require_trusted_session
from eguard.integrations.middleware import EGuardMiddleware

__all__ = ["EGuardMiddleware", "require_trusted_session"]
