"""
Session configuration for the collection agent.

A session is defined by its risk parameters, its intent catalog, the
learning hyperparameters and the classification service location.
Configurations can be loaded from JSON or YAML files, with environment
variables overriding the service settings.
"""
from __future__ import annotations

import os
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from .intent_classifier import DEFAULT_CLASSIFIER_URL, DEFAULT_TIMEOUT
from .learning import AgentConfig
from .types import ImpactType, Intent, Parameter
from .util import to_float

logger = logging.getLogger(__name__)

ENV_CLASSIFIER_URL = "COLLECT_RL_CLASSIFIER_URL"
ENV_CLASSIFIER_TIMEOUT = "COLLECT_RL_CLASSIFIER_TIMEOUT"


class EmptyConfigurationError(ValueError):
    """A session needs at least one parameter and one intent."""


@dataclass
class SessionConfig:
    """
    Everything needed to start a collection session.
    
    Attributes:
        parameters: Ordered risk parameters
        intents: Intent catalog
        agent: Learning hyperparameters
        classifier_url: Root URL of the intent classification service
        classifier_timeout: Seconds before a classification request counts as failed
        use_remote_classifier: False to classify with keywords only
    """
    parameters: List[Parameter] = field(default_factory=list)
    intents: List[Intent] = field(default_factory=list)
    agent: AgentConfig = field(default_factory=AgentConfig)
    classifier_url: str = DEFAULT_CLASSIFIER_URL
    classifier_timeout: float = DEFAULT_TIMEOUT
    use_remote_classifier: bool = True

    def validate(self) -> "SessionConfig":
        """
        Reject configurations the engine cannot run.
        
        Raises:
            EmptyConfigurationError: If parameters or intents are empty
        """
        if not self.parameters:
            raise EmptyConfigurationError("At least one parameter is required")
        if not self.intents:
            raise EmptyConfigurationError("At least one intent is required")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parameters": [p.to_dict() for p in self.parameters],
            "intents": [i.to_dict() for i in self.intents],
            "agent": self.agent.to_dict(),
            "classifier_url": self.classifier_url,
            "classifier_timeout": self.classifier_timeout,
            "use_remote_classifier": self.use_remote_classifier,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionConfig":
        return cls(
            parameters=[Parameter.from_dict(p) for p in data.get("parameters") or []],
            intents=[Intent.from_dict(i) for i in data.get("intents") or []],
            agent=AgentConfig.from_dict(data.get("agent") or {}),
            classifier_url=str(data.get("classifier_url", DEFAULT_CLASSIFIER_URL)),
            classifier_timeout=to_float(data.get("classifier_timeout"), DEFAULT_TIMEOUT),
            use_remote_classifier=bool(data.get("use_remote_classifier", True)),
        )

    def apply_env(self, environ: Optional[Dict[str, str]] = None) -> "SessionConfig":
        """Override classifier settings from the environment."""
        env = os.environ if environ is None else environ
        if env.get(ENV_CLASSIFIER_URL):
            self.classifier_url = env[ENV_CLASSIFIER_URL]
        if env.get(ENV_CLASSIFIER_TIMEOUT):
            self.classifier_timeout = to_float(env[ENV_CLASSIFIER_TIMEOUT], self.classifier_timeout)
        return self

    def save(self, path: str) -> None:
        """Save config to a JSON or YAML file (by extension)."""
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            if path.endswith((".yaml", ".yml")):
                yaml.safe_dump(self.to_dict(), f, sort_keys=False)
            else:
                json.dump(self.to_dict(), f, indent=2)

    @classmethod
    def load(cls, path: str) -> Optional["SessionConfig"]:
        """Load config from JSON or YAML file. Returns None if unreadable."""
        if not os.path.exists(path):
            return None

        try:
            with open(path, "r", encoding="utf-8") as f:
                content = f.read()

            if path.endswith((".yaml", ".yml")):
                data = yaml.safe_load(content)
            else:
                data = json.loads(content)

            if not isinstance(data, dict):
                logger.warning(f"Config file {path} does not contain a mapping")
                return None
            return cls.from_dict(data)

        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config from {path}: {e}")
            return None


DEFAULT_PARAMETERS: List[Parameter] = [
    Parameter("1", "Number of Missed Payments", 3, ImpactType.NEGATIVE),
    Parameter("2", "Instalment Amount Due", 5000, ImpactType.NEGATIVE),
    Parameter("3", "Days Past Due", 15, ImpactType.NEGATIVE),
    Parameter("4", "Outstanding Interest", 250, ImpactType.NEGATIVE),
]

DEFAULT_INTENTS: List[Intent] = [
    Intent(
        "1",
        "Immediate Payment",
        ImpactType.POSITIVE,
        "Customer expresses a clear willingness to pay immediately and has the "
        "funds available, e.g. 'I will pay right now' or 'I can transfer today.'",
        1.0,
    ),
    Intent(
        "2",
        "Financial Hardship",
        ImpactType.NEGATIVE,
        "Customer explains difficulties in meeting the payment due to financial "
        "constraints such as job loss, unexpected expenses or low cash flow.",
        -0.5,
    ),
    Intent(
        "3",
        "Refusal to Pay",
        ImpactType.NEGATIVE,
        "Customer explicitly refuses to pay or denies responsibility, e.g. "
        "'I will not pay' or 'This is not my obligation.'",
        -1.0,
    ),
]

EXTENDED_INTENTS: List[Intent] = DEFAULT_INTENTS + [
    Intent(
        "4",
        "Promise to Pay",
        ImpactType.POSITIVE,
        "Customer commits to paying on a specific later date, e.g. 'next week' or 'by Friday.'",
        0.7,
    ),
    Intent(
        "5",
        "Partial Payment",
        ImpactType.NEUTRAL,
        "Customer offers to pay part of the outstanding amount now.",
        0.3,
    ),
    Intent(
        "6",
        "Loan Dispute",
        ImpactType.NEGATIVE,
        "Customer disputes the debt, claiming it is wrong or not theirs.",
        -0.7,
    ),
    Intent(
        "7",
        "Request for Extension",
        ImpactType.NEUTRAL,
        "Customer asks for more time or a delay before paying.",
        -0.2,
    ),
]


def _preset(intents: List[Intent]) -> SessionConfig:
    return SessionConfig(parameters=list(DEFAULT_PARAMETERS), intents=list(intents))


PRESETS = {
    "default": lambda: _preset(DEFAULT_INTENTS),
    "extended": lambda: _preset(EXTENDED_INTENTS),
}


def get_preset(name: str) -> Optional[SessionConfig]:
    """Get a fresh copy of a built-in session preset by name."""
    factory = PRESETS.get(name.lower())
    return factory() if factory else None


def list_presets() -> List[str]:
    """List available preset names."""
    return list(PRESETS.keys())
