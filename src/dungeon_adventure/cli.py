from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace

from . import __version__
from .config import GenerationSettings, load_generation_settings
from .dungeon import Dungeon
from .errors import DungeonError
from .logging_config import configure_logging

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="dungeon-adventure",
        description="Generate a Dungeon Adventure maze and print it",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible generation")
    parser.add_argument("--config", default=None, help="YAML generation settings file")
    parser.add_argument("--rooms", action="store_true", help="Also print every room's tile grid")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level name or number (default: $DUNGEON_LOG_LEVEL or WARNING)",
    )
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> GenerationSettings:
    settings = GenerationSettings.from_env(load_generation_settings(args.config))
    if args.seed is not None:
        settings = replace(settings, seed=args.seed)
    return settings


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        configure_logging(args.log_level, debug=args.debug)
        dungeon = Dungeon(settings=build_settings(args))
    except DungeonError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    print(dungeon, end="")
    if args.rooms:
        for room in dungeon.iter_rooms():
            x, y = room.location
            print(f"\n({x},{y}) {room.grid_token.strip()}")
            print(room, end="")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
