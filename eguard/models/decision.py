"""Verdicts produced by the decision engine.

A Decision is exactly one of two shapes:

  Allow()                    — no payload
  Deny(status, message)      — HTTP-style status (always 403) and a
                               client-safe message naming the failing score

Hosts branch with ``isinstance(decision, Deny)`` (or ``decision.allowed``);
the deny-only fields simply do not exist on Allow.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from eguard.constants import DENY_STATUS_CODE


@dataclass(frozen=True)
class Allow:
    """The session met the trust threshold."""

    @property
    def allowed(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        return {"allow": True, "status": None, "message": None}


@dataclass(frozen=True)
class Deny:
    """The session fell below the trust threshold.

    ``message`` never contains secret material and is safe to return to the
    client.
    """

    status: int
    message: str

    @property
    def allowed(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        return {"allow": False, "status": self.status, "message": self.message}

    @classmethod
    def low_trust(cls, trust_score: float) -> "Deny":
        return cls(status=DENY_STATUS_CODE, message=f"Low trust score: {trust_score}")


Decision = Union[Allow, Deny]
