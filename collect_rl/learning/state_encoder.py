"""
State encoding from risk parameters.

Each parameter is normalized by its category, signed by its impact type
and bucketed into one of five ordinal bins ('0' very favorable .. '4'
very unfavorable). The bins are concatenated in parameter order to form
the state key used by the Q-table.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence, Tuple

from ..types import ImpactType, Parameter
from ..util import clamp


@dataclass(frozen=True)
class ParameterCategory:
    """
    A known risk parameter family.
    
    Attributes:
        key: Canonical category name
        aliases: Lowercase names that select this category
        state_divisor: Divisor that maps the raw value to [0, 1] for state bins
        weight: Importance in the initial severity estimate
        severity_cap: Divisor that maps the raw value to [0, 2] for severity
    """
    key: str
    aliases: Tuple[str, ...]
    state_divisor: float
    weight: float
    severity_cap: float


CATEGORIES: Tuple[ParameterCategory, ...] = (
    ParameterCategory(
        key="missed_payments",
        aliases=("number of missed payments", "missed payments"),
        state_divisor=6.0,
        weight=3.0,
        severity_cap=3.0,
    ),
    ParameterCategory(
        key="amount_due",
        aliases=("instalment amount due", "installment amount due", "amount due"),
        state_divisor=10000.0,
        weight=2.0,
        severity_cap=5000.0,
    ),
    ParameterCategory(
        key="overdue_days",
        aliases=("days past due", "overdue days"),
        state_divisor=90.0,
        weight=2.5,
        severity_cap=30.0,
    ),
    ParameterCategory(
        key="interest",
        aliases=("outstanding interest", "interest"),
        state_divisor=1000.0,
        weight=1.5,
        severity_cap=500.0,
    ),
)

_BY_ALIAS: Dict[str, ParameterCategory] = {
    alias: category for category in CATEGORIES for alias in category.aliases
}

# Unmatched names: min(|v| / 100, 1) for state, min(|v| / 50, 2) for severity
GENERIC_STATE_DIVISOR = 100.0
GENERIC_SEVERITY_CAP = 50.0
GENERIC_WEIGHT = 1.0

IMPACT_MULTIPLIERS: Dict[ImpactType, float] = {
    ImpactType.NEGATIVE: 1.0,
    ImpactType.POSITIVE: -0.5,
    ImpactType.NEUTRAL: 0.0,
}

# (upper bound inclusive, bin symbol); anything above the last bound is '4'
BIN_THRESHOLDS: Tuple[Tuple[float, str], ...] = (
    (-0.3, "0"),
    (-0.1, "1"),
    (0.1, "2"),
    (0.5, "3"),
)
TOP_BIN = "4"


def lookup_category(name: str) -> Optional[ParameterCategory]:
    """Match a parameter name against the known categories (case-insensitive)."""
    return _BY_ALIAS.get(name.strip().lower())


def normalize(param: Parameter) -> float:
    """Magnitude of a parameter in [0, 1], before the impact multiplier."""
    category = lookup_category(param.name)
    if category is None:
        return min(abs(param.value) / GENERIC_STATE_DIVISOR, 1.0)
    return clamp(param.value / category.state_divisor, 0.0, 1.0)


def impact_multiplier(impact: Optional[ImpactType]) -> float:
    return IMPACT_MULTIPLIERS.get(impact, 0.0) if impact else 0.0


def to_bin(signed_value: float) -> str:
    for upper, symbol in BIN_THRESHOLDS:
        if signed_value <= upper:
            return symbol
    return TOP_BIN


class StateEncoder:
    """
    Converts an ordered parameter list into a discrete state key.
    
    Pure: the same parameters in the same order always give the same key.
    
    Example:
        >>> StateEncoder().encode([Parameter("1", "Missed Payments", 6, ImpactType.NEGATIVE)])
        '4'
    """

    def encode(self, parameters: Sequence[Parameter]) -> str:
        return "".join(self.bins(parameters))

    def bins(self, parameters: Iterable[Parameter]) -> Tuple[str, ...]:
        return tuple(
            to_bin(normalize(p) * impact_multiplier(p.type)) for p in parameters
        )


def encode_state(parameters: Sequence[Parameter]) -> str:
    """Module-level shortcut for StateEncoder().encode()."""
    return StateEncoder().encode(parameters)
