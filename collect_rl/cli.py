from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Optional

from .config import EmptyConfigurationError, SessionConfig, get_preset, list_presets
from .logging_config import configure_logging
from .session import CollectionSession


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="Collection agent - Q-learning strategy selection with intent classification"
    )

    # Session configuration
    ap.add_argument("--config", help="Path to a JSON/YAML session config")
    ap.add_argument("--preset", default="default",
                    help=f"Built-in session preset ({', '.join(list_presets())})")

    # Classifier
    ap.add_argument("--classifier-url", help="Root URL of the intent classification service")
    ap.add_argument("--timeout", type=float, help="Classification timeout in seconds")
    ap.add_argument("--offline", action="store_true",
                    help="Skip the classification service and use keyword matching only")

    # Learning
    ap.add_argument("--seed", type=int, help="Seed for reproducible exploration")

    # Logging
    ap.add_argument("--log-level", default="WARNING", help="Log level")
    ap.add_argument("--log-dir", help="Directory for rotating log files")
    return ap


def load_session_config(args: argparse.Namespace) -> Optional[SessionConfig]:
    """Resolve the session config from file or preset, then apply overrides."""
    if args.config:
        config = SessionConfig.load(args.config)
        if config is None:
            print(f"[Could not load config: {args.config}]")
            return None
    else:
        config = get_preset(args.preset)
        if config is None:
            print(f"[Unknown preset: {args.preset}]")
            return None

    config.apply_env()
    if args.classifier_url:
        config.classifier_url = args.classifier_url
    if args.timeout is not None:
        config.classifier_timeout = args.timeout
    if args.offline:
        config.use_remote_classifier = False
    if args.seed is not None:
        config.agent.prng_seed = args.seed
    return config


def print_status(session: CollectionSession) -> None:
    stats = session.stats()
    print("\n[Session Status]")
    print(f"  State: {stats['current_state']}")
    print(f"  Strategy: {stats['current_strategy']}")
    print(f"  Episodes: {stats['episodes']}")
    print(f"  Total reward: {stats['total_reward']:.2f} (last {stats['current_reward']:.2f})")
    print(f"  Strategy changes: {stats['strategy_changes']}")
    print(f"  Epsilon: {stats['epsilon']:.3f}  LR: {stats['effective_learning_rate']:.4f}")
    print(f"  Classifier remote rate: {stats['classifier']['remote_rate']:.1%}")
    print()


def print_q_table(session: CollectionSession) -> None:
    current = session.agent.current_strategy
    print(f"\n[Q-values for state {session.agent.current_state}]")
    for name, value in session.agent.q_values().items():
        marker = "*" if name == current else " "
        print(f" {marker} {name:<22} {value:+.4f}")
    print()


async def run(session: CollectionSession) -> None:
    print(f"Bot: {session.opening_message()}\n     (Strategy: {session.agent.current_strategy})\n")
    print("Commands: quit | status | qtable\n")

    while True:
        try:
            user_in = (await asyncio.to_thread(input, "Customer: ")).strip()
        except (EOFError, KeyboardInterrupt):
            print("\n[Goodbye]")
            break

        if not user_in:
            continue

        cmd = user_in.lower()
        if cmd == "quit":
            break
        if cmd == "status":
            print_status(session)
            continue
        if cmd == "qtable":
            print_q_table(session)
            continue

        out = await session.send(user_in)
        result = out["result"]
        intent = result["classified_intent"]
        print(
            f"[Intent: {intent['name']} ({intent['type']}) | "
            f"Confidence: {intent['confidence'] * 100:.1f}% | "
            f"Reward: {result['reward']:.2f} | Q-Value: {result['q_value']:.3f}]"
        )
        changed = " (Changed!)" if result["strategy_changed"] else ""
        print(f"Bot: {out['reply']}\n     (Strategy: {result['new_strategy']}{changed})\n")


async def serve(session: CollectionSession) -> None:
    try:
        await run(session)
    finally:
        await session.close()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(level=args.log_level, log_dir=args.log_dir)

    config = load_session_config(args)
    if config is None:
        return 1

    try:
        session = CollectionSession(config)
    except EmptyConfigurationError as e:
        print(f"[Cannot start session: {e}]")
        return 1

    print(
        f"[Session {session.session_id[:8]} started: state {session.agent.current_state}, "
        f"classifier {config.classifier_url if config.use_remote_classifier else 'offline'}]"
    )
    asyncio.run(serve(session))
    return 0


if __name__ == "__main__":
    sys.exit(main())
