"""Tests for eguard/decision/engine.py and eguard/models/decision.py.

Tests:
  - Inclusive threshold boundary (0.5 vs 0.5 → Allow, 0.4999 → Deny 403)
  - Deny message names the score
  - Trust client called exactly once; its errors propagate unchanged
  - Allow has no deny-only fields
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from eguard.decision.engine import DecisionEngine, evaluate
from eguard.errors import TrustTimeoutError
from eguard.models.decision import Allow, Deny
from eguard.models.trust import TrustResponse


def _trust(score: float) -> TrustResponse:
    return TrustResponse(session_id="s", trust_score=score)


def _engine(result, min_trust_score: float = 0.5) -> tuple[DecisionEngine, AsyncMock]:
    client = AsyncMock()
    if isinstance(result, Exception):
        client.fetch_trust.side_effect = result
    else:
        client.fetch_trust.return_value = result
    return DecisionEngine(client, min_trust_score), client


class TestEvaluate:
    def test_equal_to_threshold_allows(self) -> None:
        assert evaluate(_trust(0.5), 0.5) == Allow()

    def test_just_below_threshold_denies(self) -> None:
        decision = evaluate(_trust(0.4999), 0.5)
        assert isinstance(decision, Deny)
        assert decision.status == 403

    def test_above_threshold_allows(self) -> None:
        assert isinstance(evaluate(_trust(0.99), 0.5), Allow)

    def test_deny_message_names_score(self) -> None:
        decision = evaluate(_trust(0.25), 0.5)
        assert decision == Deny(status=403, message="Low trust score: 0.25")

    def test_zero_threshold_allows_unknown_session(self) -> None:
        unknown = TrustResponse.unknown_session("ghost")
        assert isinstance(evaluate(unknown, 0.0), Allow)

    def test_unknown_session_denied_for_positive_threshold(self) -> None:
        unknown = TrustResponse.unknown_session("ghost")
        decision = evaluate(unknown, 0.01)
        assert decision == Deny(status=403, message="Low trust score: 0.0")


class TestDecisionShapes:
    def test_allow_has_no_deny_fields(self) -> None:
        allow = Allow()
        assert allow.allowed is True
        assert not hasattr(allow, "status")
        assert not hasattr(allow, "message")

    def test_deny_allowed_false(self) -> None:
        assert Deny(status=403, message="x").allowed is False

    def test_to_dict(self) -> None:
        assert Allow().to_dict() == {"allow": True, "status": None, "message": None}
        assert Deny(status=403, message="m").to_dict() == {
            "allow": False,
            "status": 403,
            "message": "m",
        }

    def test_decisions_are_immutable(self) -> None:
        deny = Deny(status=403, message="m")
        with pytest.raises(AttributeError):
            deny.status = 200  # type: ignore[misc]


@pytest.mark.asyncio
class TestDecisionEngine:
    async def test_calls_trust_client_once(self) -> None:
        engine, client = _engine(_trust(0.8))
        await engine.decide("abc")
        client.fetch_trust.assert_awaited_once_with("abc")

    async def test_allow(self) -> None:
        engine, _ = _engine(_trust(0.8))
        assert await engine.decide("abc") == Allow()

    async def test_deny(self) -> None:
        engine, _ = _engine(_trust(0.1))
        decision = await engine.decide("abc")
        assert decision == Deny(status=403, message="Low trust score: 0.1")

    async def test_trust_error_propagates_unchanged(self) -> None:
        error = TrustTimeoutError(1500)
        engine, _ = _engine(error)
        with pytest.raises(TrustTimeoutError) as exc_info:
            await engine.decide("abc")
        assert exc_info.value is error
