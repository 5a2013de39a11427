from __future__ import annotations

from enum import Enum


class Direction(Enum):
    """Cardinal directions on both the placement grid and a room's tile grid.

    y grows downward, so NORTH is (0, -1).
    """

    NORTH = (0, -1)
    EAST = (1, 0)
    SOUTH = (0, 1)
    WEST = (-1, 0)

    @property
    def dx(self) -> int:
        return self.value[0]

    @property
    def dy(self) -> int:
        return self.value[1]

    @property
    def opposite(self) -> "Direction":
        return _OPPOSITES[self]

    @property
    def is_vertical_wall(self) -> bool:
        """True for the east and west walls of a room."""
        return self in (Direction.EAST, Direction.WEST)

    @classmethod
    def parse(cls, text: str) -> "Direction":
        key = text.strip().upper()
        for d in cls:
            if key in (d.name, d.name[0]):
                return d
        raise ValueError(f"Unknown direction: {text!r}")


_OPPOSITES = {
    Direction.NORTH: Direction.SOUTH,
    Direction.SOUTH: Direction.NORTH,
    Direction.EAST: Direction.WEST,
    Direction.WEST: Direction.EAST,
}
