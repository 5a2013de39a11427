from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence, Set, Tuple

from .directions import Direction
from .tiles import Tile

if TYPE_CHECKING:
    from .dungeon import Dungeon
    from .room import Room

Position = Tuple[int, int]


def walkable_region(
    tiles: Sequence[Sequence[Tile]],
    start: Position,
    blocked: Optional[Position] = None,
) -> Set[Position]:
    """Return the 4-connected walkable tiles reachable from start.

    tiles is indexed tiles[y][x]. A position given as blocked is treated as a
    wall, which lets callers test a candidate wall before writing it.
    """
    height = len(tiles)
    width = len(tiles[0]) if height else 0
    sx, sy = start
    if start == blocked or not tiles[sy][sx].is_walkable:
        return set()

    seen = {start}
    q = deque([start])
    while q:
        x, y = q.popleft()
        for d in Direction:
            nx, ny = x + d.dx, y + d.dy
            if not (0 <= nx < width and 0 <= ny < height):
                continue
            if (nx, ny) in seen or (nx, ny) == blocked:
                continue
            if tiles[ny][nx].is_walkable:
                seen.add((nx, ny))
                q.append((nx, ny))
    return seen


def reachable_rooms(start: "Room") -> Set["Room"]:
    """Breadth-first search over door links; returns every room reachable from start."""
    seen = {start}
    q = deque([start])
    while q:
        room = q.popleft()
        for neighbor in room.neighbors.values():
            if neighbor not in seen:
                seen.add(neighbor)
                q.append(neighbor)
    return seen


def missing_essentials(dungeon: "Dungeon") -> List["Room"]:
    """Essential rooms that cannot be reached from the entrance."""
    reached = reachable_rooms(dungeon.starting_room)
    return [room for room in dungeon.essential_rooms if room not in reached]


def door_asymmetries(rooms: Iterable["Room"]) -> List[Tuple["Room", Direction]]:
    """Return (room, side) pairs whose door is not mirrored by the neighbour.

    A side is consistent when the room has a door tile and a neighbour there,
    and that neighbour has a door tile on the opposite side pointing back.
    """
    problems: List[Tuple["Room", Direction]] = []
    for room in rooms:
        for d in Direction:
            neighbor = room.get_adjacent_room(d)
            has_tile = room.find_door_on_wall(d) is not None
            if neighbor is None:
                if has_tile:
                    problems.append((room, d))
                continue
            back = neighbor.get_adjacent_room(d.opposite)
            if not has_tile or back is not room or neighbor.find_door_on_wall(d.opposite) is None:
                problems.append((room, d))
    return problems
