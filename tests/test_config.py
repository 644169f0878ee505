"""
Tests for the session configuration system.
"""
import json
import os
import tempfile

import pytest

from collect_rl.config import (
    DEFAULT_INTENTS,
    DEFAULT_PARAMETERS,
    ENV_CLASSIFIER_TIMEOUT,
    ENV_CLASSIFIER_URL,
    EmptyConfigurationError,
    SessionConfig,
    get_preset,
    list_presets,
)
from collect_rl.intent_classifier import DEFAULT_CLASSIFIER_URL, DEFAULT_TIMEOUT
from collect_rl.types import ImpactType


class TestSessionConfig:
    """Test SessionConfig dataclass."""

    def test_default_values(self):
        config = SessionConfig()
        assert config.parameters == []
        assert config.intents == []
        assert config.classifier_url == DEFAULT_CLASSIFIER_URL
        assert config.classifier_timeout == DEFAULT_TIMEOUT
        assert config.use_remote_classifier is True

    def test_validate_rejects_empty_parameters(self):
        with pytest.raises(EmptyConfigurationError):
            SessionConfig(intents=list(DEFAULT_INTENTS)).validate()

    def test_validate_rejects_empty_intents(self):
        with pytest.raises(EmptyConfigurationError):
            SessionConfig(parameters=list(DEFAULT_PARAMETERS)).validate()

    def test_validate_returns_self(self):
        config = get_preset("default")
        assert config.validate() is config

    def test_from_dict_accepts_ui_shapes(self):
        """Lowercase 'impact' keys and string values from the UI are accepted."""
        config = SessionConfig.from_dict({
            "parameters": [{"id": "1", "name": "Days Past Due", "value": "45", "type": "Negative"}],
            "intents": [{"id": "1", "name": "Refusal to Pay", "impact": "negative"}],
            "agent": {"epsilon": 0.1},
            "classifier_timeout": "2.5",
        })

        assert config.parameters[0].value == 45.0
        assert config.intents[0].type == ImpactType.NEGATIVE
        assert config.agent.epsilon == 0.1
        assert config.classifier_timeout == 2.5

    def test_to_dict_roundtrip(self):
        original = get_preset("extended")
        original.agent.prng_seed = 4
        restored = SessionConfig.from_dict(original.to_dict())

        assert restored.parameters == original.parameters
        assert restored.intents == original.intents
        assert restored.agent.prng_seed == 4


class TestFiles:
    """Loading and saving config files."""

    @pytest.mark.parametrize("ext", [".json", ".yaml", ".yml"])
    def test_save_and_load(self, ext):
        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, f"session{ext}")
            original = get_preset("default")
            original.classifier_url = "http://nlp:9000"
            original.save(path)

            loaded = SessionConfig.load(path)
            assert loaded is not None
            assert loaded.parameters == original.parameters
            assert loaded.intents == original.intents
            assert loaded.classifier_url == "http://nlp:9000"

    def test_load_missing_file(self):
        assert SessionConfig.load("/nonexistent/session.json") is None

    def test_load_malformed_file(self):
        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, "broken.json")
            with open(path, "w") as f:
                f.write("{not json")
            assert SessionConfig.load(path) is None

    def test_load_non_mapping(self):
        with tempfile.TemporaryDirectory() as d:
            path = os.path.join(d, "list.json")
            with open(path, "w") as f:
                json.dump([1, 2, 3], f)
            assert SessionConfig.load(path) is None


class TestEnvironment:
    """Environment overrides for the classifier service."""

    def test_apply_env(self):
        config = SessionConfig().apply_env({
            ENV_CLASSIFIER_URL: "http://bert:5000",
            ENV_CLASSIFIER_TIMEOUT: "1.5",
        })
        assert config.classifier_url == "http://bert:5000"
        assert config.classifier_timeout == 1.5

    def test_bad_timeout_is_ignored(self):
        config = SessionConfig().apply_env({ENV_CLASSIFIER_TIMEOUT: "soon"})
        assert config.classifier_timeout == DEFAULT_TIMEOUT

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv(ENV_CLASSIFIER_URL, "http://from-env:1234")
        assert SessionConfig().apply_env().classifier_url == "http://from-env:1234"


class TestPresets:
    """Built-in presets."""

    def test_list_presets(self):
        assert list_presets() == ["default", "extended"]

    def test_unknown_preset(self):
        assert get_preset("nonexistent") is None

    def test_case_insensitive(self):
        assert get_preset("DEFAULT") is not None

    def test_presets_are_fresh_copies(self):
        a = get_preset("default")
        a.parameters.clear()
        a.agent.epsilon = 0.9
        b = get_preset("default")
        assert len(b.parameters) == 4
        assert b.agent.epsilon == 0.3

    def test_extended_contains_default_intents(self):
        names = {i.name for i in get_preset("extended").intents}
        assert {i.name for i in DEFAULT_INTENTS} <= names
        assert len(names) == 7
