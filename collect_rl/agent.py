"""
Collection agent: the learning and decision engine.

One agent instance owns its Q-table and episode counter for the whole
session. Each customer turn runs, strictly in order:

    episode += 1 -> classify -> reward -> Q update -> select next strategy

The state key is computed once from the parameters at construction, so
the "next state" of every update is the current state.
"""
from __future__ import annotations

import asyncio
import logging
import random
from typing import Dict, Optional, Sequence, Tuple

from .intent_classifier import IntentClassifier
from .learning import (
    AgentConfig,
    PolicySelector,
    QTable,
    RewardModel,
    SeverityEstimator,
    StateEncoder,
)
from .strategies import STRATEGIES, generate_response
from .types import AgentStats, Intent, Parameter, ProcessingResult

logger = logging.getLogger(__name__)


class CollectionAgent:
    """
    Q-learning strategy selector for a single debt-collection conversation.
    
    Turns are serialized by an asyncio lock: while one turn awaits the
    classification service, no other turn can touch the Q-table or the
    episode counter.
    
    Example:
        >>> agent = CollectionAgent(parameters, intents)
        >>> result = await agent.process_turn("I can pay half next week")
        >>> result.new_strategy
        'Payment Plan Offer'
    """

    def __init__(
        self,
        parameters: Sequence[Parameter],
        intents: Sequence[Intent],
        classifier: Optional[IntentClassifier] = None,
        config: Optional[AgentConfig] = None,
        strategies: Sequence[str] = STRATEGIES,
        session_id: Optional[str] = None,
    ):
        """
        Build the agent and seed its Q-table.
        
        Callers must reject empty parameter or intent lists beforehand
        (see ``config.SessionConfig.validate``).
        
        Args:
            parameters: Ordered risk parameters, fixed for the session
            intents: Intent catalog, fixed for the session
            classifier: Intent classifier (defaults to one over ``intents``)
            config: Learning hyperparameters
            strategies: Ordered strategy catalog, mildest first
            session_id: Identifier attached to log records
        """
        self.parameters: Tuple[Parameter, ...] = tuple(parameters)
        self.intents: Tuple[Intent, ...] = tuple(intents)
        self.strategies: Tuple[str, ...] = tuple(strategies)
        self.config = config or AgentConfig()
        self.session_id = session_id

        self.rng = random.Random(self.config.prng_seed)
        self.classifier = classifier or IntentClassifier(self.intents)
        self.encoder = StateEncoder()
        self.reward_model = RewardModel()
        self.q_table = QTable(rng=self.rng)
        self.policy = PolicySelector(
            self.q_table,
            self.strategy_count,
            epsilon=self.config.epsilon,
            decay_episodes=self.config.epsilon_decay_episodes,
            rng=self.rng,
        )

        self.episode_count = 0
        self.current_state = self.encoder.encode(self.parameters)

        estimator = SeverityEstimator(self.strategy_count)
        self.current_action = estimator.initial_strategy(self.parameters)
        self.q_table.initialize(self.current_state, self.current_action, self.strategy_count)

        self._turn_lock = asyncio.Lock()

        logger.info(
            f"Initialized strategy: {self.current_strategy} "
            f"(severity: {estimator.average_severity(self.parameters):.2f}, "
            f"state: {self.current_state})",
            extra=self._log_extra(),
        )

    @property
    def strategy_count(self) -> int:
        return max(1, len(self.strategies))

    @property
    def current_strategy(self) -> str:
        return self.strategies[self.current_action]

    @property
    def learning_rate(self) -> float:
        return self.config.learning_rate

    def effective_learning_rate(self, episode: Optional[int] = None) -> float:
        """lr0 / (1 + episode / lr_decay_episodes)."""
        episode = self.episode_count if episode is None else episode
        return self.config.learning_rate * (1.0 / (1.0 + episode / self.config.lr_decay_episodes))

    def exploration_rate(self, episode: Optional[int] = None) -> float:
        episode = self.episode_count if episode is None else episode
        return self.policy.exploration_rate(episode)

    def update_q_value(
        self,
        state: str,
        action: int,
        reward: float,
        next_state: str,
        learning_rate: float,
    ) -> float:
        """
        One Q-learning step; returns the new Q[state, action].
        
        Q += lr * (reward + discount * max_a Q[next_state, a] - Q)
        """
        current = self.q_table.get(state, action)
        best_next = self.q_table.max_value(next_state, self.strategy_count)
        target = reward + self.config.discount * best_next
        updated = current + learning_rate * (target - current)
        self.q_table.set(state, action, updated)
        return updated

    async def process_turn(self, text: str) -> ProcessingResult:
        """
        Learn from one customer reply and pick the next strategy.
        
        Args:
            text: Raw customer utterance
            
        Returns:
            ProcessingResult describing the classification, reward and new strategy
        """
        async with self._turn_lock:
            self.episode_count += 1
            episode = self.episode_count

            intent = await self.classifier.classify(text)
            reward = self.reward_model.reward(intent, self.current_action, self.strategy_count)

            next_state = self.current_state
            lr = self.effective_learning_rate(episode)
            self.update_q_value(self.current_state, self.current_action, reward, next_state, lr)

            previous = self.current_action
            self.current_action = self.policy.select_action(next_state, episode)
            changed = previous != self.current_action

            result = ProcessingResult(
                classified_intent=intent,
                reward=reward,
                strategy_changed=changed,
                new_strategy=self.current_strategy,
                new_action=self.current_action,
                q_value=self.q_table.get(self.current_state, self.current_action),
                epsilon=self.exploration_rate(episode),
                episode=episode,
            )

        logger.debug(
            f"Turn {episode}: intent={intent.name} ({intent.confidence:.2f}) "
            f"reward={reward:.3f} lr={lr:.4f}",
            extra=self._log_extra(episode),
        )
        if changed:
            logger.info(
                f"Strategy changed: {self.strategies[previous]} -> {self.current_strategy}",
                extra=self._log_extra(episode),
            )
        return result

    def generate_response(self, strategy: Optional[str] = None) -> str:
        """Canned bot line for ``strategy`` (default: the current one)."""
        return generate_response(strategy or self.current_strategy, self.rng)

    def q_values(self, state: Optional[str] = None) -> Dict[str, float]:
        """Q-values of every strategy for ``state`` (default: current state)."""
        row = self.q_table.row(state or self.current_state, self.strategy_count)
        return dict(zip(self.strategies, row))

    def get_stats(self) -> AgentStats:
        """Get current learning statistics."""
        return AgentStats(
            learning_rate=self.learning_rate,
            effective_learning_rate=self.effective_learning_rate(),
            q_value=self.q_table.get(self.current_state, self.current_action),
            epsilon=self.exploration_rate(),
            episodes=self.episode_count,
            current_state=self.current_state,
            current_strategy=self.current_strategy,
            q_values=self.q_values(),
        )

    def _log_extra(self, episode: Optional[int] = None) -> dict:
        return {
            "subsystem": "agent",
            "session_id": self.session_id,
            "episode": self.episode_count if episode is None else episode,
            "strategy": self.current_strategy,
        }
