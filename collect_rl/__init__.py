"""
Collection agent: online Q-learning over debt-collection strategies,
driven by a remote intent classifier with a keyword fallback.
"""

from .agent import CollectionAgent
from .config import SessionConfig, EmptyConfigurationError, get_preset, list_presets
from .intent_classifier import IntentClassifier, ClassificationError, fallback_classify
from .session import CollectionSession
from .strategies import STRATEGIES, generate_response
from .types import (
    AgentStats,
    ClassifiedIntent,
    ImpactType,
    Intent,
    Parameter,
    ProcessingResult,
)

__version__ = "0.1.0"

__all__ = [
    "CollectionAgent",
    "CollectionSession",
    "SessionConfig",
    "EmptyConfigurationError",
    "get_preset",
    "list_presets",
    "IntentClassifier",
    "ClassificationError",
    "fallback_classify",
    "STRATEGIES",
    "generate_response",
    "AgentStats",
    "ClassifiedIntent",
    "ImpactType",
    "Intent",
    "Parameter",
    "ProcessingResult",
]
