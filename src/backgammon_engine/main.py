"""Command-line entrypoint for backgammon-engine.

Subcommands:
    new      Print a fresh game state as JSON (``--seed`` starts a game)
    replay   Rebuild a game from a JSON action log and print it
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from backgammon_engine import __version__
from backgammon_engine.core.history import summarize_game
from backgammon_engine.core.reducer import replay
from backgammon_engine.core.serialization import actions_from_list, dumps, game_state_to_dict
from backgammon_engine.core.types import GameOptions
from backgammon_engine.errors import BackgammonError
from backgammon_engine.session import GameSession

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser."""
    parser = argparse.ArgumentParser(
        prog="backgammon",
        description="Backgammon rules engine CLI",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"backgammon-engine {__version__}",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command")

    new = subparsers.add_parser("new", help="Print a new game state as JSON")
    new.add_argument("--seed", type=int, default=None, help="Start a game with this dice seed")
    new.add_argument("--cube", action="store_true", help="Play with the doubling cube")

    replay_cmd = subparsers.add_parser("replay", help="Replay a JSON action log")
    replay_cmd.add_argument("file", help="JSON file: a list of actions or a state with 'actionHistory'")
    replay_cmd.add_argument("--summary", action="store_true", help="Print a text summary instead of JSON")

    return parser


def _cmd_new(args: argparse.Namespace) -> int:
    session = GameSession(seed=args.seed, options=GameOptions(enable_doubling_cube=args.cube))
    if args.seed is not None:
        result = session.start_game()
        if not result.ok:
            print(result.message, file=sys.stderr)
            return 1
    print(session.to_json())
    return 0


def _cmd_replay(args: argparse.Namespace) -> int:
    try:
        with open(args.file, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Cannot read {args.file}: {e}", file=sys.stderr)
        return 1

    if isinstance(data, dict):
        data = data.get("actionHistory", [])

    try:
        state = replay(actions_from_list(data))
    except BackgammonError as e:
        logger.error("Replay failed: %s", e)
        print(f"Replay failed: {e}", file=sys.stderr)
        return 1

    if args.summary:
        print(summarize_game(state))
    else:
        print(dumps(game_state_to_dict(state)))
    return 0


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint used by the `backgammon` console script."""
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "new":
        return _cmd_new(args)
    if args.command == "replay":
        return _cmd_replay(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
