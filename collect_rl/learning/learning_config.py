"""
Hyperparameters for the collection agent's Q-learner.

All values are clamped to safe ranges on construction.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass
class AgentConfig:
    """
    Configuration for the Q-learning engine.
    
    Attributes:
        learning_rate: Base step size, decayed as lr / (1 + episode / lr_decay_episodes)
        epsilon: Base exploration rate, decayed as eps * exp(-episode / epsilon_decay_episodes)
        discount: Weight of the best next-state value in the Q update
        epsilon_decay_episodes: Time constant of the exploration decay
        lr_decay_episodes: Time constant of the learning-rate decay
        prng_seed: Seed for exploration, Q-table jitter and response choice (None = random)
    """
    learning_rate: float = 0.1
    epsilon: float = 0.3
    discount: float = 0.9
    epsilon_decay_episodes: float = 100.0
    lr_decay_episodes: float = 50.0
    prng_seed: Optional[int] = None

    def __post_init__(self):
        """Clamp all parameters to safe ranges."""
        self.learning_rate = max(0.0, min(1.0, self.learning_rate))
        self.epsilon = max(0.0, min(1.0, self.epsilon))
        self.discount = max(0.0, min(1.0, self.discount))
        self.epsilon_decay_episodes = max(1.0, self.epsilon_decay_episodes)
        self.lr_decay_episodes = max(1.0, self.lr_decay_episodes)

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {
            "learning_rate": self.learning_rate,
            "epsilon": self.epsilon,
            "discount": self.discount,
            "epsilon_decay_episodes": self.epsilon_decay_episodes,
            "lr_decay_episodes": self.lr_decay_episodes,
            "prng_seed": self.prng_seed,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AgentConfig":
        """Deserialize from dictionary, ignoring unknown keys."""
        return cls(**{k: v for k, v in data.items() if k in cls.__annotations__})


class AgentPresets:
    """Pre-configured hyperparameter sets."""

    @staticmethod
    def default() -> AgentConfig:
        return AgentConfig()

    @staticmethod
    def exploratory() -> AgentConfig:
        """Explore longer before settling on a strategy."""
        return AgentConfig(epsilon=0.5, epsilon_decay_episodes=200.0)

    @staticmethod
    def greedy() -> AgentConfig:
        """No exploration; always take the best known strategy."""
        return AgentConfig(epsilon=0.0)

    @staticmethod
    def deterministic_test(seed: int = 42) -> AgentConfig:
        """Seeded configuration for reproducible runs."""
        return AgentConfig(prng_seed=seed)
