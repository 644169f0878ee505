"""
Learning layer for the collection agent.

Tabular Q-learning over a single static state per session:
- StateEncoder turns risk parameters into a discrete state key
- SeverityEstimator picks the starting strategy
- QTable holds value estimates, seeded near the starting strategy
- PolicySelector is epsilon-greedy with decaying exploration
- RewardModel scores a classified customer turn
"""

from .learning_config import AgentConfig, AgentPresets
from .state_encoder import (
    StateEncoder,
    ParameterCategory,
    CATEGORIES,
    encode_state,
    lookup_category,
)
from .severity import SeverityEstimator
from .q_table import QTable, q_key
from .policy import PolicySelector, decayed_epsilon
from .reward import RewardModel, BASE_REWARDS


__all__ = [
    # Configuration
    "AgentConfig",
    "AgentPresets",

    # State
    "StateEncoder",
    "ParameterCategory",
    "CATEGORIES",
    "encode_state",
    "lookup_category",
    "SeverityEstimator",

    # Values and policy
    "QTable",
    "q_key",
    "PolicySelector",
    "decayed_epsilon",

    # Reward
    "RewardModel",
    "BASE_REWARDS",
]
