"""eGuard — trust-score based request authorization for Python hosts.

Public API:
  - EGuard                 — the guard facade (is_secure / extract_session_id / decide)
  - EGuardConfig           — immutable configuration snapshot
  - SecureRoute            — one path pattern + optional methods
  - SessionExtraction      — cookie / header session id settings
  - load_config()          — YAML + environment configuration loader
  - Allow, Deny, Decision  — verdicts
  - TrustResponse          — trust service answer
  - EGuardError, ConfigError, TrustServiceError (+ subclasses) — errors
"""

from __future__ import annotations

from eguard.config import EGuardConfig, SecureRoute, SessionExtraction, load_config
from eguard.errors import (
    ConfigError,
    EGuardError,
    TrustResponseError,
    TrustServiceError,
    TrustStatusError,
    TrustTimeoutError,
    TrustUnavailableError,
)
from eguard.guard import EGuard
from eguard.models.decision import Allow, Decision, Deny
from eguard.models.trust import TrustResponse

__all__ = [
    "EGuard",
    "EGuardConfig",
    "SecureRoute",
    "SessionExtraction",
    "load_config",
    "Allow",
    "Deny",
    "Decision",
    "TrustResponse",
    "EGuardError",
    "ConfigError",
    "TrustServiceError",
    "TrustTimeoutError",
    "TrustUnavailableError",
    "TrustStatusError",
    "TrustResponseError",
]
