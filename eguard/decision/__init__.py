"""eGuard decision engine.

Public API:
    DecisionEngine — trust lookup + threshold comparison → Allow / Deny
    evaluate       — the pure threshold comparison
"""
from eguard.decision.engine import DecisionEngine, evaluate

__all__ = ["DecisionEngine", "evaluate"]
