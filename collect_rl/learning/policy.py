"""
Epsilon-greedy strategy selection with time-decayed exploration.
"""
from __future__ import annotations

import math
import random
from typing import Optional

from .q_table import QTable


def decayed_epsilon(epsilon0: float, episode: int, decay_episodes: float = 100.0) -> float:
    """epsilon0 * exp(-episode / decay_episodes)."""
    return epsilon0 * math.exp(-episode / max(decay_episodes, 1.0))


class PolicySelector:
    """
    Chooses the next strategy for a state.
    
    With the decayed exploration probability a uniformly random action is
    returned; otherwise the first action holding the maximal Q-value.
    Never performs I/O.
    """

    def __init__(
        self,
        q_table: QTable,
        strategy_count: int,
        epsilon: float = 0.3,
        decay_episodes: float = 100.0,
        rng: Optional[random.Random] = None,
    ):
        self.q_table = q_table
        self.strategy_count = max(1, strategy_count)
        self.epsilon = max(0.0, min(1.0, epsilon))
        self.decay_episodes = decay_episodes
        self.rng = rng or random.Random()

    def exploration_rate(self, episode: int) -> float:
        return decayed_epsilon(self.epsilon, episode, self.decay_episodes)

    def greedy_action(self, state: str) -> int:
        # first max wins: strict comparison keeps the lowest index on ties
        best_action = 0
        best_value = -math.inf
        for action in range(self.strategy_count):
            value = self.q_table.get(state, action)
            if value > best_value:
                best_value = value
                best_action = action
        return best_action

    def select_action(self, state: str, episode: int) -> int:
        if self.rng.random() < self.exploration_rate(episode):
            return self.rng.randrange(self.strategy_count)
        return self.greedy_action(state)
