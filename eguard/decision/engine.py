"""Threshold decisions for eGuard.

``trust_score >= min_trust_score`` → Allow, otherwise
Deny(403, "Low trust score: <score>"). The boundary is inclusive.

Errors from the trust client propagate unchanged; there is no local
recovery and no fallback verdict.
"""

from __future__ import annotations

from eguard.models.decision import Allow, Decision, Deny
from eguard.models.trust import TrustResponse
from eguard.trust.client import TrustClient
from eguard.utils.logger import get_logger, mask_session_id

logger = get_logger(__name__)


def evaluate(trust: TrustResponse, min_trust_score: float) -> Decision:
    if trust.trust_score >= min_trust_score:
        return Allow()
    return Deny.low_trust(trust.trust_score)


class DecisionEngine:
    def __init__(self, trust_client: TrustClient, min_trust_score: float) -> None:
        self._trust_client = trust_client
        self._min_trust_score = min_trust_score

    async def decide(self, session_id: str) -> Decision:
        """Fetch the session's trust score exactly once and compare it."""
        trust = await self._trust_client.fetch_trust(session_id)
        decision = evaluate(trust, self._min_trust_score)

        if isinstance(decision, Deny):
            logger.info(
                "Deny: trust score below threshold",
                session=mask_session_id(session_id),
                trust_score=trust.trust_score,
                min_trust_score=self._min_trust_score,
                reason=trust.reason,
            )
        else:
            logger.debug(
                "Allow",
                session=mask_session_id(session_id),
                trust_score=trust.trust_score,
            )
        return decision
