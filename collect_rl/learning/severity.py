"""
Initial strategy estimate from parameter severity.

Runs once when an agent is built; the live learning loop never
recomputes it.
"""
from __future__ import annotations

import logging
import math
from typing import Sequence, Tuple

from ..types import ImpactType, Parameter
from ..util import clamp
from .state_encoder import (
    GENERIC_SEVERITY_CAP,
    GENERIC_WEIGHT,
    lookup_category,
)

logger = logging.getLogger(__name__)

MAX_SEVERITY = 2.0
POSITIVE_RELIEF = 0.5


def weighted_severity(param: Parameter) -> Tuple[float, float]:
    """
    Severity and weight of a single parameter.
    
    Returns:
        (severity in [0, 2], category weight)
    """
    category = lookup_category(param.name)
    if category is None:
        return min(abs(param.value) / GENERIC_SEVERITY_CAP, MAX_SEVERITY), GENERIC_WEIGHT
    severity = clamp(param.value / category.severity_cap, 0.0, MAX_SEVERITY)
    return severity, category.weight


class SeverityEstimator:
    """Maps a parameter set to a starting strategy index."""

    def __init__(self, strategy_count: int):
        self.strategy_count = max(1, strategy_count)

    def average_severity(self, parameters: Sequence[Parameter]) -> float:
        score = 0.0
        total_weight = 0.0
        for param in parameters:
            severity, weight = weighted_severity(param)
            if param.type == ImpactType.NEGATIVE:
                score += severity * weight
            elif param.type == ImpactType.POSITIVE:
                score -= severity * weight * POSITIVE_RELIEF
            total_weight += weight
        return score / max(total_weight, 1.0)

    def initial_strategy(self, parameters: Sequence[Parameter]) -> int:
        avg = self.average_severity(parameters)
        index = math.floor(avg * self.strategy_count / 2)
        index = int(clamp(index, 0, self.strategy_count - 1))
        logger.debug(f"Severity estimate {avg:.2f} -> strategy index {index}")
        return index
