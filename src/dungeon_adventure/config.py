from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from importlib.resources import files as resource_files
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .errors import ConfigError
from .tiles import WEIGHTED_TILES

logger = logging.getLogger(__name__)

ENV_PREFIX = "DUNGEON_"


def _default_weights() -> Dict[str, float]:
    return {"empty": 0.7, "pit": 0.1, "healing_potion": 0.1, "vision_potion": 0.1}


@dataclass(frozen=True)
class GenerationSettings:
    """Knobs for dungeon and room generation.

    - maze_width/maze_height: placement grid size in rooms
    - room_width/room_height: tile grid size of every room, border walls included
    - tile_weights: relative odds of each interior tile in a freshly generated room
    - filler_extra_walls: extra interior walls added to every filler room
    - door_probability: chance to carve a door between two grid neighbours;
      1.0 connects every neighbouring pair
    - max_attempts: generation attempts before giving up on connectivity
    - pit_damage: inclusive (min, max) health lost when falling into a pit
    """

    maze_width: int = 6
    maze_height: int = 6
    room_width: int = 7
    room_height: int = 5
    tile_weights: Dict[str, float] = field(default_factory=_default_weights)
    filler_extra_walls: int = 1
    door_probability: float = 1.0
    max_attempts: int = 10
    pit_damage: Tuple[int, int] = (1, 20)
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        # Private copy so the caller cannot change the weights of a frozen instance
        object.__setattr__(self, "tile_weights", dict(self.tile_weights))
        self.validate()

    def __hash__(self) -> int:
        values = tuple(getattr(self, f.name) for f in fields(self) if f.name != "tile_weights")
        return hash((values, tuple(sorted(self.tile_weights.items()))))

    def validate(self) -> None:
        if self.maze_width < 1 or self.maze_height < 1:
            raise ConfigError("Maze dimensions must be positive")
        if self.maze_width * self.maze_height < 6:
            raise ConfigError(
                f"A {self.maze_width}x{self.maze_height} maze cannot hold the six essential rooms"
            )
        if self.room_width < 3 or self.room_height < 3:
            raise ConfigError("Rooms must be at least 3x3 to keep a wall border")
        unknown = set(self.tile_weights) - set(WEIGHTED_TILES)
        if unknown:
            raise ConfigError(f"Unknown tile weight keys: {sorted(unknown)}")
        if any(w < 0 for w in self.tile_weights.values()):
            raise ConfigError("Tile weights must be non-negative")
        if not any(w > 0 for w in self.tile_weights.values()):
            raise ConfigError("At least one tile weight must be positive")
        if self.filler_extra_walls < 0:
            raise ConfigError("filler_extra_walls must be >= 0")
        if not 0.0 <= self.door_probability <= 1.0:
            raise ConfigError(f"door_probability must be within [0, 1], got {self.door_probability}")
        if self.max_attempts < 1:
            raise ConfigError("max_attempts must be >= 1")
        lo, hi = self.pit_damage
        if lo < 0 or lo > hi:
            raise ConfigError(f"Invalid pit damage range: {self.pit_damage}")

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "GenerationSettings":
        """Build settings from a parsed mapping; missing keys keep their defaults."""
        known = set(cls.__dataclass_fields__)
        extra = set(raw) - known
        if extra:
            raise ConfigError(f"Unknown generation settings: {sorted(extra)}")
        kwargs: Dict[str, Any] = {}
        try:
            for key in ("maze_width", "maze_height", "room_width", "room_height", "filler_extra_walls", "max_attempts"):
                if key in raw:
                    kwargs[key] = int(raw[key])
            if "door_probability" in raw:
                kwargs["door_probability"] = float(raw["door_probability"])
            if "tile_weights" in raw:
                kwargs["tile_weights"] = {str(k): float(v) for k, v in dict(raw["tile_weights"]).items()}
            if "pit_damage" in raw:
                lo, hi = raw["pit_damage"]
                kwargs["pit_damage"] = (int(lo), int(hi))
            if raw.get("seed") is not None:
                kwargs["seed"] = int(raw["seed"])
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Malformed generation settings: {exc}") from exc
        return cls(**kwargs)

    @classmethod
    def from_env(cls, base: Optional["GenerationSettings"] = None) -> "GenerationSettings":
        """Apply DUNGEON_* environment overrides on top of base (or the defaults)."""
        settings = base or cls()
        casts = {
            "maze_width": int,
            "maze_height": int,
            "room_width": int,
            "room_height": int,
            "door_probability": float,
            "max_attempts": int,
            "seed": int,
        }
        overrides: Dict[str, Any] = {}
        for name, cast in casts.items():
            value = os.getenv(ENV_PREFIX + name.upper())
            if value is None or value == "":
                continue
            try:
                overrides[name] = cast(value)
            except ValueError as exc:
                raise ConfigError(f"{ENV_PREFIX}{name.upper()}={value!r} is not a valid {cast.__name__}") from exc
        if overrides:
            logger.debug("Environment overrides for generation settings: %s", overrides)
            settings = replace(settings, **overrides)
        return settings


def load_generation_settings(path: Optional[str] = None) -> GenerationSettings:
    """Load generation settings from YAML.

    If path is None, loads the embedded default resource at
    dungeon_adventure/defaults.yaml.
    """
    if path is None:
        data = resource_files("dungeon_adventure").joinpath("defaults.yaml").read_text(encoding="utf-8")
        logger.debug("Loaded embedded generation settings resource")
    else:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = f.read()
        except OSError as exc:
            raise ConfigError(f"Cannot read settings file {path}: {exc}") from exc
        logger.debug("Loaded generation settings from path: %s", path)

    try:
        raw = yaml.safe_load(data) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in generation settings: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigError("Generation settings must be a mapping")
    settings = GenerationSettings.from_dict(raw)
    logger.info(
        "Generation settings: maze=%dx%d room=%dx%d door_probability=%.2f",
        settings.maze_width,
        settings.maze_height,
        settings.room_width,
        settings.room_height,
        settings.door_probability,
    )
    return settings
