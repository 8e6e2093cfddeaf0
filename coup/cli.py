"""
Coup CLI - Command-line helpers for the engine.

Usage:
    coup rules     Print the card and action reference
    coup config    Print the effective engine configuration
"""

import argparse
import sys

from pydantic import ValidationError


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Coup - social deduction card game rules engine",
        prog="coup",
    )
    parser.add_argument("--log-level", help="Override COUP_LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("rules", help="Print the card and action reference")
    subparsers.add_parser("config", help="Print the effective configuration")

    args = parser.parse_args(argv)

    if args.command == "rules":
        return cmd_rules(args)
    elif args.command == "config":
        return cmd_config(args)
    else:
        parser.print_help()
        return 1


def _load_config(args):
    from .engine_core.config import EngineConfig, configure_logging

    config = EngineConfig.from_env()
    if args.log_level:
        config = EngineConfig(**{**config.model_dump(), "log_level": args.log_level})
    configure_logging(config.log_level)
    return config


def cmd_rules(args):
    """Print cards, actions, costs and who may respond."""
    from .engine_core import rules
    from .engine_core.cards import ActionKind, CARD_DEFINITIONS

    print("Cards")
    print("=" * 40)
    for definition in CARD_DEFINITIONS.values():
        blocks = ", ".join(sorted(a.value for a in definition.blockable_actions)) or "-"
        action = definition.primary_action.value if definition.primary_action else "-"
        print(f"{definition.name:<11} action: {action:<12} blocks: {blocks}")
        print(f"            {definition.description}")

    print()
    print("Actions")
    print("=" * 40)
    for kind in ActionKind:
        claim = rules.required_card(kind).value if rules.can_be_challenged(kind) else "-"
        blockers = ", ".join(card.value for card in rules.blocking_cards(kind)) or "-"
        print(
            f"{kind.value:<12} cost: {rules.action_cost(kind)}  "
            f"gain: {rules.action_gain(kind)}  claims: {claim:<11} "
            f"blocked by: {blockers}  target: {'yes' if rules.requires_target(kind) else 'no'}"
        )

    print()
    print(f"Players: {rules.MIN_PLAYERS}-{rules.MAX_PLAYERS}, "
          f"starting coins: {rules.STARTING_COINS}, "
          f"forced coup at {rules.FORCED_COUP_THRESHOLD} coins")
    return 0


def cmd_config(args):
    """Print configuration from COUP_* environment variables."""
    try:
        config = _load_config(args)
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}", file=sys.stderr)
        return 2

    for key, value in config.model_dump().items():
        print(f"{key}: {value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
