"""Shared constants for eGuard.

Wire-contract values, defaults and numeric caps used across modules are
defined here. No magic numbers in other modules; import from here.
"""

# ─── Trust service wire contract ─────────────────────────────────────────────

# Path appended to api_base_url for every trust lookup.
TRUST_ENDPOINT_PATH: str = "/eguard/trust"

# Query parameter carrying the session identifier.
TRUST_SESSION_PARAM: str = "sid"

# Reason attached to the synthesized response when the service returns 404.
UNKNOWN_SESSION_REASON: str = "unknown_session"

# Score assigned to sessions the trust service does not know.
UNKNOWN_SESSION_SCORE: float = 0.0

# ─── Decisions ───────────────────────────────────────────────────────────────

# Status carried by every Deny verdict.
DENY_STATUS_CODE: int = 403

# ─── Timeouts ────────────────────────────────────────────────────────────────

# Upper bound on a single trust call when timeout_ms is omitted.
DEFAULT_TIMEOUT_MS: int = 1500

# ─── Session extraction ──────────────────────────────────────────────────────

# Literal prefix stripped from header values when header_bearer is enabled.
BEARER_PREFIX: str = "Bearer "

# Characters of a session id kept when it appears in a log field.
SESSION_ID_LOG_PREFIX_CHARS: int = 4

# ─── Host integration ────────────────────────────────────────────────────────

# Correlation header set on every response short-circuited by the middleware.
REQUEST_ID_HEADER: str = "X-EGuard-Request-ID"
