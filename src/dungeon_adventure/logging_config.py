from __future__ import annotations

import logging
import os
import sys
from typing import Union

from .errors import ConfigError

LEVEL_ENV = "DUNGEON_LOG_LEVEL"
LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"

DEFAULT_LEVEL = logging.WARNING


def resolve_level(level: Union[int, str, None] = None, *, debug: bool = False) -> int:
    """Pick the package log level.

    --debug wins, then an explicit level (name or number), then the
    DUNGEON_LOG_LEVEL environment variable, then WARNING.
    """
    if debug:
        return logging.DEBUG
    if level is None or level == "":
        level = os.getenv(LEVEL_ENV) or None
    if level is None:
        return DEFAULT_LEVEL
    if isinstance(level, int):
        return level
    name = str(level).strip().upper()
    if name.isdigit():
        return int(name)
    value = logging.getLevelName(name)
    if not isinstance(value, int):
        raise ConfigError(f"Unknown log level: {level!r}")
    return value


def configure_logging(level: Union[int, str, None] = None, *, debug: bool = False) -> int:
    """Send dungeon_adventure logs to stderr at the resolved level; returns that level."""
    resolved = resolve_level(level, debug=debug)
    logging.basicConfig(level=resolved, format=LOG_FORMAT, stream=sys.stderr)
    logging.getLogger("dungeon_adventure").setLevel(resolved)
    return resolved
