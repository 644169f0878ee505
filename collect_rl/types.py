from __future__ import annotations
from dataclasses import dataclass, asdict, field, replace
from enum import Enum
from typing import Optional, Dict, Any

from .util import to_float


class ImpactType(str, Enum):
    """Direction in which a parameter or intent pushes the collection case."""
    POSITIVE = "Positive"
    NEGATIVE = "Negative"
    NEUTRAL = "Neutral"

    @classmethod
    def parse(cls, raw: Any) -> Optional["ImpactType"]:
        """Case-insensitive lookup. Returns None for unrecognised values."""
        if isinstance(raw, ImpactType):
            return raw
        if not isinstance(raw, str):
            return None
        wanted = raw.strip().lower()
        for member in cls:
            if member.value.lower() == wanted:
                return member
        return None


def _impact_from(data: Dict[str, Any]) -> Optional[ImpactType]:
    # older configs store the impact under "impact"
    return ImpactType.parse(data.get("type", data.get("impact")))


@dataclass(frozen=True)
class Parameter:
    """
    A numeric risk parameter describing the debtor's account.
    
    Attributes:
        id: Collaborator-assigned identifier
        name: Free text, matched case-insensitively against known categories
        value: Raw magnitude (e.g. 3 missed payments, 5000 due)
        type: Whether a high value helps or hurts the case
    """
    id: str
    name: str
    value: float
    type: Optional[ImpactType] = ImpactType.NEUTRAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "value": self.value,
            "type": self.type.value if self.type else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Parameter":
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            value=to_float(data.get("value", 0.0)),
            type=_impact_from(data),
        )


@dataclass(frozen=True)
class Intent:
    """
    A customer intent from the configured catalog.
    
    ``value`` is informational only; the engine never reads it.
    """
    id: str
    name: str
    type: Optional[ImpactType] = ImpactType.NEUTRAL
    description: str = ""
    value: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type.value if self.type else None,
            "description": self.description,
            "value": self.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Intent":
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            type=_impact_from(data),
            description=str(data.get("description", "")),
            value=to_float(data.get("value", 0.0)),
        )

    def with_confidence(self, confidence: float) -> "ClassifiedIntent":
        return ClassifiedIntent(
            id=self.id,
            name=self.name,
            type=self.type,
            description=self.description,
            value=self.value,
            confidence=confidence,
        )


@dataclass(frozen=True)
class ClassifiedIntent(Intent):
    """An Intent resolved from free text, with classifier confidence in [0, 1]."""
    confidence: float = 0.0
    source: str = "remote"

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["confidence"] = self.confidence
        data["source"] = self.source
        return data


UNKNOWN_INTENT = Intent(
    id="unknown",
    name="Unknown",
    type=ImpactType.NEUTRAL,
    description="Could not classify intent",
    value=0.0,
)


def unknown_intent(
    confidence: float = 0.0,
    source: str = "fallback",
    label: Optional[str] = None,
) -> ClassifiedIntent:
    """Build the synthetic neutral intent used when nothing in the catalog matches."""
    intent = UNKNOWN_INTENT.with_confidence(confidence)
    if label:
        intent = replace(intent, description=f"Unrecognised intent label: {label}")
    return replace(intent, source=source)


@dataclass
class ProcessingResult:
    """Outcome of one processed customer turn."""
    classified_intent: ClassifiedIntent
    reward: float
    strategy_changed: bool
    new_strategy: str
    new_action: int
    q_value: float
    epsilon: float
    episode: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "classified_intent": self.classified_intent.to_dict(),
            "reward": self.reward,
            "strategy_changed": self.strategy_changed,
            "new_strategy": self.new_strategy,
            "new_action": self.new_action,
            "q_value": self.q_value,
            "epsilon": self.epsilon,
            "episode": self.episode,
        }


@dataclass
class AgentStats:
    """Point-in-time view of the agent's learning state."""
    learning_rate: float
    effective_learning_rate: float
    q_value: float
    epsilon: float
    episodes: int
    current_state: str
    current_strategy: str
    q_values: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
