"""
Collaborator-side session wrapper.

The agent only keeps its Q-table and episode counter. Running totals
(cumulative reward, strategy changes) and the chat transcript are the
session's responsibility, accumulated from per-turn results.
"""
from __future__ import annotations

import logging
import time
import uuid
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Deque, Dict, List, Literal, Optional

from .agent import CollectionAgent
from .config import SessionConfig
from .intent_classifier import IntentClassifier
from .types import ProcessingResult

logger = logging.getLogger(__name__)


@dataclass
class Turn:
    role: Literal["user", "bot", "system"]
    content: str
    time: str


class CollectionSession:
    """
    One configured collection conversation.
    
    Validates the configuration before any agent exists, then wires a
    classifier and an agent together and tracks cumulative statistics.
    """

    def __init__(
        self,
        config: SessionConfig,
        session_id: Optional[str] = None,
        classifier: Optional[IntentClassifier] = None,
        max_transcript: int = 200,
    ):
        """
        Args:
            config: Session configuration
            session_id: Identifier (random when omitted)
            classifier: Override the classifier built from ``config``
            max_transcript: Maximum transcript entries kept
            
        Raises:
            EmptyConfigurationError: If parameters or intents are empty
        """
        config.validate()
        self.config = config
        self.session_id = session_id or uuid.uuid4().hex

        self._owns_classifier = classifier is None
        self.classifier = classifier or IntentClassifier(
            config.intents,
            base_url=config.classifier_url,
            timeout=config.classifier_timeout,
            use_remote=config.use_remote_classifier,
        )
        self.agent = CollectionAgent(
            config.parameters,
            config.intents,
            classifier=self.classifier,
            config=config.agent,
            session_id=self.session_id,
        )

        self.total_reward = 0.0
        self.last_reward = 0.0
        self.strategy_changes = 0
        self.transcript: Deque[Turn] = deque(maxlen=max_transcript)

        self.add_message(
            "system",
            f"Session started. Initial strategy: {self.agent.current_strategy} "
            f"(State: {self.agent.current_state})",
        )

    def add_message(self, role: Literal["user", "bot", "system"], content: str) -> None:
        ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        self.transcript.append(Turn(role=role, content=content, time=ts))

    def opening_message(self) -> str:
        """First bot line, spoken with the initial strategy."""
        text = self.agent.generate_response()
        self.add_message("bot", text)
        return text

    async def send(self, text: str) -> Dict[str, Any]:
        """
        Process a customer message and produce the bot's reply.
        
        Returns:
            Dict with the turn result, the reply and the cumulative stats
        """
        self.add_message("user", text)

        t0 = time.time()
        result = await self.agent.process_turn(text)
        latency_ms = (time.time() - t0) * 1000

        self._accumulate(result)
        reply = self.agent.generate_response(result.new_strategy)
        self.add_message("bot", reply)

        logger.debug(
            f"Turn processed with intent {result.classified_intent.name}",
            extra={
                "subsystem": "session",
                "session_id": self.session_id,
                "episode": result.episode,
                "latency_ms": latency_ms,
            },
        )

        return {
            "result": result.to_dict(),
            "reply": reply,
            "latency_ms": latency_ms,
            "stats": self.stats(),
        }

    def _accumulate(self, result: ProcessingResult) -> None:
        self.last_reward = result.reward
        self.total_reward += result.reward
        if result.strategy_changed:
            self.strategy_changes += 1

    async def close(self) -> None:
        """Release the classifier's HTTP session if this session built it."""
        if self._owns_classifier:
            await self.classifier.close()

    def stats(self) -> Dict[str, Any]:
        """Cumulative session totals merged with the agent's learning snapshot."""
        data = self.agent.get_stats().to_dict()
        data.update({
            "session_id": self.session_id,
            "current_reward": self.last_reward,
            "total_reward": self.total_reward,
            "strategy_changes": self.strategy_changes,
            "classifier": self.classifier.stats,
        })
        return data

    def last_n(self, n: int) -> List[Turn]:
        turns = list(self.transcript)
        return turns[-n:] if n > 0 else []
