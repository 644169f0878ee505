"""
Reward model for a classified customer turn.

reward = base(type) * confidence + appropriateness adjustment
"""
from __future__ import annotations

from typing import Dict

from ..types import ClassifiedIntent, ImpactType

BASE_REWARDS: Dict[ImpactType, float] = {
    ImpactType.POSITIVE: 1.0,
    ImpactType.NEGATIVE: -0.7,
    ImpactType.NEUTRAL: 0.1,
}

DEFAULT_CONFIDENCE = 0.5

HIGH_SEVERITY = 0.6
LOW_SEVERITY = 0.4
MISMATCH_PENALTY = -0.2
APPROPRIATE_BONUS = 0.1


def severity_ratio(action: int, strategy_count: int) -> float:
    """Position of ``action`` on the escalation scale, in [0, 1]."""
    return action / max(strategy_count - 1, 1)


def appropriateness(impact, ratio: float) -> float:
    """
    Penalise escalating against a cooperative customer and staying soft
    with a hostile one; otherwise a small bonus.
    """
    if impact == ImpactType.POSITIVE and ratio > HIGH_SEVERITY:
        return MISMATCH_PENALTY
    if impact == ImpactType.NEGATIVE and ratio < LOW_SEVERITY:
        return MISMATCH_PENALTY
    return APPROPRIATE_BONUS


class RewardModel:
    """Pure, deterministic reward computation."""

    def __init__(self, base_rewards: Dict[ImpactType, float] = None):
        self.base_rewards = dict(base_rewards or BASE_REWARDS)

    def reward(
        self,
        intent: ClassifiedIntent,
        current_action: int,
        strategy_count: int,
    ) -> float:
        base = self.base_rewards.get(intent.type, 0.0) if intent.type else 0.0
        confidence = intent.confidence or DEFAULT_CONFIDENCE
        ratio = severity_ratio(current_action, strategy_count)
        return base * confidence + appropriateness(intent.type, ratio)
