"""Tests for the strategy catalog and canned responses."""
import random

from collect_rl.strategies import (
    RESPONSES,
    STRATEGIES,
    STRATEGY_COUNT,
    generate_response,
)


def test_catalog_is_ordered_by_severity():
    assert STRATEGY_COUNT == 7
    assert STRATEGIES[0] == "Friendly Reminder"
    assert STRATEGIES[-1] == "Legal Notification"


def test_every_strategy_has_responses():
    for name in STRATEGIES:
        assert len(RESPONSES[name]) == 3


def test_generate_response_uses_strategy_lines():
    rng = random.Random(7)
    for _ in range(10):
        assert generate_response("Firm Reminder", rng) in RESPONSES["Firm Reminder"]


def test_unknown_strategy_falls_back_to_friendly_reminder():
    line = generate_response("Send Flowers", random.Random(1))
    assert line in RESPONSES["Friendly Reminder"]


