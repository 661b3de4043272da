"""Exception taxonomy for eGuard.

Two families, never confused:

  ConfigError:
      Construction-time, fatal to startup. Invalid route pattern, missing or
      mistyped configuration field, unconstructable HTTP client. A guard is
      never produced in a partially-valid state.

  TrustServiceError (and subclasses):
      Per-call, transient. Raised by the trust client and propagated unchanged
      through decide(). eGuard performs no retry and no fallback verdict;
      fail-open vs fail-closed belongs to the host.

      TrustTimeoutError      — deadline (timeout_ms) exceeded
      TrustUnavailableError  — connection / transport failure
      TrustStatusError       — non-2xx, non-404 status
      TrustResponseError     — 2xx with a malformed body

A trust-service 404 is NOT an error (degrades to a zero score), and a missing
session id is None, not an exception.
"""

from __future__ import annotations


class EGuardError(Exception):
    """Base class for every error raised by eGuard."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigError(EGuardError, ValueError):
    """Raised when the configuration cannot produce a working guard.

    ``field`` names the offending configuration key (e.g.
    ``"secure_routes[2].path_pattern"``) when one is known.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class TrustServiceError(EGuardError):
    """A trust lookup failed; no verdict could be produced.

    HTTP mapping (host integrations): 502 trust_service_unavailable
    """

    code: str = "trust_service_error"


class TrustTimeoutError(TrustServiceError):
    """The trust service did not answer within timeout_ms."""

    code = "trust_timeout"

    def __init__(self, timeout_ms: int) -> None:
        super().__init__(f"Trust API timed out after {timeout_ms}ms")
        self.timeout_ms = timeout_ms


class TrustUnavailableError(TrustServiceError):
    """The trust service could not be reached (DNS, refused, protocol error)."""

    code = "trust_unavailable"


class TrustStatusError(TrustServiceError):
    """The trust service answered with an unexpected status.

    ``body`` is the response text, best-effort (empty when unreadable).
    """

    code = "trust_status"

    def __init__(self, status_code: int, body: str = "") -> None:
        super().__init__(f"Trust API error {status_code}: {body}")
        self.status_code = status_code
        self.body = body


class TrustResponseError(TrustServiceError):
    """The trust service answered 2xx but the body is not a valid TrustResponse."""

    code = "trust_bad_response"
