"""
Tabular Q-value store.

Keys are "<state>#<action>" strings. Unknown keys read as 0.0 and are
never inserted by a read.
"""
from __future__ import annotations

import math
import random
from typing import Dict, List, Optional


def q_key(state: str, action: int) -> str:
    return f"{state}#{action}"


class QTable:
    """
    Lazily-growing mapping from (state, action) to a value estimate.
    
    Lifetime equals the owning agent's; nothing is persisted.
    """

    JITTER = 0.05
    BIAS_SCALE = 0.1
    BIAS_WIDTH = 2.0

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self.values: Dict[str, float] = {}

    def initialize(self, state: str, initial_action: int, strategy_count: int) -> None:
        """
        Seed every action of ``state`` with small jitter biased toward
        actions near ``initial_action``.
        """
        for i in range(strategy_count):
            bias = math.exp(-abs(i - initial_action) / self.BIAS_WIDTH) * self.BIAS_SCALE
            self.values[q_key(state, i)] = self.rng.uniform(0.0, self.JITTER) + bias

    def get(self, state: str, action: int) -> float:
        return self.values.get(q_key(state, action), 0.0)

    def set(self, state: str, action: int, value: float) -> None:
        self.values[q_key(state, action)] = value

    def row(self, state: str, strategy_count: int) -> List[float]:
        """Values of every action for ``state`` in index order."""
        return [self.get(state, a) for a in range(strategy_count)]

    def max_value(self, state: str, strategy_count: int) -> float:
        return max(self.row(state, strategy_count), default=0.0)

    def __len__(self) -> int:
        return len(self.values)

    def __contains__(self, key: str) -> bool:
        return key in self.values
