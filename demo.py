#!/usr/bin/env python3
"""
Collection Agent Demo Script

Plays two scripted customer conversations against the agent:
1. A cooperative customer who commits to paying
2. A hostile customer who keeps refusing

Run with:
    python demo.py

No classification service required - uses the keyword fallback.
"""
import asyncio
from typing import List

from collect_rl.config import get_preset
from collect_rl.session import CollectionSession


def print_header(text: str):
    """Print a styled header."""
    print(f"\n{'='*60}")
    print(f"  {text}")
    print(f"{'='*60}\n")


def print_q_values(session: CollectionSession):
    current = session.agent.current_strategy
    for name, value in session.agent.q_values().items():
        marker = "▶" if name == current else " "
        print(f"   {marker} {name:<22} {value:+.3f}")


async def play(title: str, lines: List[str], seed: int):
    print_header(title)

    config = get_preset("extended")
    config.use_remote_classifier = False
    config.agent.prng_seed = seed
    session = CollectionSession(config)

    print(f"🧮 State: {session.agent.current_state}")
    print(f"🤖 Bot: {session.opening_message()}")
    print(f"   Strategy: {session.agent.current_strategy}")

    for line in lines:
        out = await session.send(line)
        result = out["result"]
        intent = result["classified_intent"]
        changed = " (changed)" if result["strategy_changed"] else ""

        print(f"\n👤 Customer: {line}")
        print(f"   Intent: {intent['name']} ({intent['confidence']:.0%}) | Reward: {result['reward']:+.2f}")
        print(f"🤖 Bot: {out['reply']}")
        print(f"   Strategy: {result['new_strategy']}{changed}")

    stats = session.stats()
    print(f"\n📊 Total reward {stats['total_reward']:+.2f}, "
          f"{stats['strategy_changes']} strategy changes, epsilon {stats['epsilon']:.3f}")
    print_q_values(session)


def main():
    asyncio.run(play(
        "Demo 1: Cooperative Customer",
        [
            "Sorry, I lost my job last month",
            "I can pay half now",
            "I will pay the rest next week, I promise",
            "I can pay today",
        ],
        seed=1,
    ))
    asyncio.run(play(
        "Demo 2: Hostile Customer",
        [
            "This loan is not mine",
            "I refuse, I'm not paying",
            "I won't pay, never",
            "Call me later",
        ],
        seed=2,
    ))


if __name__ == "__main__":
    main()
