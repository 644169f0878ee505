"""
Strategy catalog for the collection dialogue.

Strategies are ordered by escalation severity: index 0 is the mildest
approach and the last index the most severe. Learned Q-values are keyed
by index, so the order must never change within a session.
"""
from __future__ import annotations

import random
from typing import Dict, List, Optional, Tuple

STRATEGIES: Tuple[str, ...] = (
    "Friendly Reminder",
    "Payment Plan Offer",
    "Firm Reminder",
    "Manager Escalation",
    "Assign to Agent",
    "Assign to Telecaller",
    "Legal Notification",
)

STRATEGY_COUNT = len(STRATEGIES)

RESPONSES: Dict[str, List[str]] = {
    "Friendly Reminder": [
        "Thank you for your response. We understand your situation and want to help find a solution.",
        "We appreciate your communication. Let's work together to resolve this matter.",
        "I understand. How can we make this easier for you?",
    ],
    "Payment Plan Offer": [
        "Would you be interested in setting up a payment plan that works better for your budget?",
        "We can offer flexible payment options. Let's discuss what might work for you.",
        "Perhaps we can arrange a more manageable payment schedule?",
    ],
    "Firm Reminder": [
        "This is a firm reminder that your payment is overdue. Please settle immediately.",
        "Your account requires immediate attention. Payment must be made today.",
        "We need to resolve this matter urgently. Please make payment arrangements now.",
    ],
    "Manager Escalation": [
        "I'm escalating this to my manager who will contact you directly.",
        "A senior team member will be in touch within 24 hours.",
        "This matter is being escalated to our management team.",
    ],
    "Assign to Agent": [
        "I'm connecting you with a specialized agent who can provide more assistance.",
        "Let me transfer you to an agent with additional authorization.",
        "A senior agent will handle your case from here.",
    ],
    "Assign to Telecaller": [
        "Our telecaller will contact you within 2 hours to discuss options.",
        "You will receive a priority call shortly to arrange payment.",
        "We're scheduling an urgent follow-up call.",
    ],
    "Legal Notification": [
        "Legal action will be initiated if payment is not received within 48 hours.",
        "This matter is being referred to our legal department immediately.",
        "Legal proceedings will commence unless this is resolved today.",
    ],
}


def generate_response(strategy: str, rng: Optional[random.Random] = None) -> str:
    """
    Pick a canned bot line for a strategy.
    
    Unknown strategy names use the Friendly Reminder lines.
    """
    lines = RESPONSES.get(strategy, RESPONSES[STRATEGIES[0]])
    return (rng or random).choice(lines)
