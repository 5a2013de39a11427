"""
Dungeon Adventure dungeon core.

Generates a fixed-size maze of rooms, each with its own tile grid, wires
matching doors between neighbouring rooms and keeps enough room state for
memento-style save/restore. Presentation and combat live elsewhere and only
talk to this package through the read/query API and the event bus.
"""
from importlib.metadata import version, PackageNotFoundError

from .characters import CanChangeHealth, HasDisplayChar, Health, Monster, Player, create_monster
from .directions import Direction
from .dungeon import Dungeon, MoveResult, generate_pillar_rooms
from .events import Event, EventBus, EventType
from .hazards import PitTrap
from .pillars import PillarKind
from .room import Room, RoomMemento
from .rng import RandomSource

__all__ = [
    "__version__",
    "CanChangeHealth",
    "Direction",
    "Dungeon",
    "Event",
    "EventBus",
    "EventType",
    "HasDisplayChar",
    "Health",
    "Monster",
    "MoveResult",
    "PillarKind",
    "PitTrap",
    "Player",
    "RandomSource",
    "Room",
    "RoomMemento",
    "create_monster",
    "generate_pillar_rooms",
]

try:
    __version__ = version("dungeon-adventure")
except PackageNotFoundError:  # pragma: no cover - during tests without packaging
    __version__ = "0.0.0"
