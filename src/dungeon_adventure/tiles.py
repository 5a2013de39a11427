from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, Optional

from .pillars import PillarKind

PLAYER_CHAR = "@"


class TileKind(Enum):
    """Basic room tile types.

    - WALL: non-walkable obstacle, also the room border
    - DOOR: passage on the border shared with a neighbouring room
    - ENTRANCE / EXIT / PILLAR: markers for the essential rooms
    """

    EMPTY = auto()
    WALL = auto()
    DOOR = auto()
    PIT = auto()
    ENTRANCE = auto()
    EXIT = auto()
    ITEM = auto()
    PILLAR = auto()


class DoorOrientation(Enum):
    HORIZONTAL = "-"  # north and south walls
    VERTICAL = "|"  # east and west walls


class ItemKind(Enum):
    HEALING_POTION = "H"
    VISION_POTION = "V"


_STRUCTURAL = {TileKind.DOOR, TileKind.ENTRANCE, TileKind.EXIT, TileKind.PILLAR}


@dataclass(frozen=True)
class Tile:
    """An immutable cell value, identified by its display character."""

    kind: TileKind
    char: str
    orientation: Optional[DoorOrientation] = None
    item: Optional[ItemKind] = None
    pillar: Optional[PillarKind] = None

    @property
    def is_walkable(self) -> bool:
        return self.kind is not TileKind.WALL

    @property
    def is_structural(self) -> bool:
        """Doors and essential markers; augmentation never overwrites these."""
        return self.kind in _STRUCTURAL

    @property
    def is_door(self) -> bool:
        return self.kind is TileKind.DOOR

    @staticmethod
    def from_char(char: str) -> "Tile":
        try:
            return _BY_CHAR[char]
        except KeyError:
            raise ValueError(f"Unknown tile character: {char!r}") from None

    def __str__(self) -> str:
        return self.char


EMPTY = Tile(TileKind.EMPTY, ".")
WALL = Tile(TileKind.WALL, "#")
PIT = Tile(TileKind.PIT, "O")
ENTRANCE = Tile(TileKind.ENTRANCE, "i")
EXIT = Tile(TileKind.EXIT, "o")
HORIZONTAL_DOOR = Tile(TileKind.DOOR, DoorOrientation.HORIZONTAL.value, orientation=DoorOrientation.HORIZONTAL)
VERTICAL_DOOR = Tile(TileKind.DOOR, DoorOrientation.VERTICAL.value, orientation=DoorOrientation.VERTICAL)

_ITEMS: Dict[ItemKind, Tile] = {k: Tile(TileKind.ITEM, k.value, item=k) for k in ItemKind}
_PILLARS: Dict[PillarKind, Tile] = {k: Tile(TileKind.PILLAR, k.display_char, pillar=k) for k in PillarKind}


def door(orientation: DoorOrientation) -> Tile:
    return HORIZONTAL_DOOR if orientation is DoorOrientation.HORIZONTAL else VERTICAL_DOOR


def item(kind: ItemKind) -> Tile:
    return _ITEMS[kind]


def pillar(kind: PillarKind) -> Tile:
    return _PILLARS[kind]


_BY_CHAR: Dict[str, Tile] = {
    t.char: t
    for t in (EMPTY, WALL, PIT, ENTRANCE, EXIT, HORIZONTAL_DOOR, VERTICAL_DOOR, *_ITEMS.values(), *_PILLARS.values())
}

# Keys accepted in the tile weight table of GenerationSettings
WEIGHTED_TILES: Dict[str, Tile] = {
    "empty": EMPTY,
    "pit": PIT,
    "healing_potion": item(ItemKind.HEALING_POTION),
    "vision_potion": item(ItemKind.VISION_POTION),
}
