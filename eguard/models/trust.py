"""TrustResponse — the trust service's answer for one session.

Wire format (2xx body)::

    {"session_id": "abc123", "trust_score": 0.82, "reason": null}

``reason`` may be omitted or null. ``trust_score`` must be a JSON number
(``true``/``false`` are rejected even though Python treats bool as int).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from eguard.constants import UNKNOWN_SESSION_REASON, UNKNOWN_SESSION_SCORE
from eguard.errors import TrustResponseError


@dataclass(frozen=True)
class TrustResponse:
    session_id: str
    trust_score: float
    reason: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "TrustResponse":
        """Validate a decoded JSON body.

        Raises:
            TrustResponseError: If the body is not an object or a field is
                                missing / mistyped.
        """
        if not isinstance(payload, dict):
            raise TrustResponseError(
                f"Trust API returned a non-object body ({type(payload).__name__})"
            )

        session_id = payload.get("session_id")
        if not isinstance(session_id, str):
            raise TrustResponseError("Trust API body has no string 'session_id'")

        score = payload.get("trust_score")
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            raise TrustResponseError("Trust API body has no numeric 'trust_score'")

        reason = payload.get("reason")
        if reason is not None and not isinstance(reason, str):
            raise TrustResponseError("Trust API body 'reason' must be a string or null")

        return cls(session_id=session_id, trust_score=float(score), reason=reason)

    @classmethod
    def unknown_session(cls, session_id: str) -> "TrustResponse":
        """Synthesized response for a session the trust service returned 404 for."""
        return cls(
            session_id=session_id,
            trust_score=UNKNOWN_SESSION_SCORE,
            reason=UNKNOWN_SESSION_REASON,
        )
