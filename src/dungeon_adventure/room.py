from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from . import tiles as t
from .config import GenerationSettings
from .connectivity import walkable_region
from .directions import Direction
from .errors import InvalidRoomConfigurationError, MementoMismatchError, PlayerNotInRoomError
from .pillars import PillarKind
from .rng import RandomSource
from .tiles import DoorOrientation, Tile, TileKind

logger = logging.getLogger(__name__)

Position = Tuple[int, int]
TileGrid = List[List[Tile]]
TileQuery = Union[Tile, str, Callable[[Tile], bool]]


def _check_flags(is_entrance: bool, is_exit: bool, pillar: Optional[PillarKind]) -> None:
    if sum((bool(is_entrance), bool(is_exit), pillar is not None)) > 1:
        raise InvalidRoomConfigurationError(
            "A room can be at most one of entrance, exit or pillar room "
            f"(is_entrance={is_entrance}, is_exit={is_exit}, pillar={pillar})"
        )


def generate_random_tile_set(
    is_entrance: bool,
    is_exit: bool,
    pillar: Optional[PillarKind],
    rng: RandomSource,
    width: int = 7,
    height: int = 5,
    tile_weights: Optional[Mapping[str, float]] = None,
) -> TileGrid:
    """Build a fresh tile grid for one room.

    The border is all walls (doors are carved later), every interior cell is
    drawn from the tile weight table, and at most one essential marker is
    dropped on a random interior cell.
    """
    _check_flags(is_entrance, is_exit, pillar)
    if width < 3 or height < 3:
        raise InvalidRoomConfigurationError(f"Room must be at least 3x3, got {width}x{height}")

    weights_by_name = tile_weights if tile_weights is not None else GenerationSettings().tile_weights
    weights: Dict[Tile, float] = {t.WEIGHTED_TILES[name]: w for name, w in weights_by_name.items()}

    grid: TileGrid = []
    for y in range(height):
        row: List[Tile] = []
        for x in range(width):
            if x in (0, width - 1) or y in (0, height - 1):
                row.append(t.WALL)
            else:
                row.append(rng.weighted_choice(weights))
        grid.append(row)

    marker: Optional[Tile] = None
    if is_entrance:
        marker = t.ENTRANCE
    elif is_exit:
        marker = t.EXIT
    elif pillar is not None:
        marker = t.pillar(pillar)
    if marker is not None:
        mx = rng.randint(1, width - 2)
        my = rng.randint(1, height - 2)
        grid[my][mx] = marker
    return grid


class StepOutcome(Enum):
    MOVED = auto()
    BLOCKED = auto()
    DOOR = auto()


@dataclass(frozen=True)
class StepResult:
    """Result of a single in-room step.

    position is where the player stands afterwards; tile is the tile that was
    stepped on (MOVED) or the one that stopped the step (BLOCKED, DOOR).
    """

    outcome: StepOutcome
    direction: Direction
    position: Position
    tile: Tile

    @property
    def moved(self) -> bool:
        return self.outcome is StepOutcome.MOVED


@dataclass(frozen=True)
class RoomMemento:
    """Opaque snapshot of a room's mutable state.

    Only the Room that created it reads it back; tiles are immutable values so
    the nested tuples are an independent copy of the grid. The door links are
    recorded so a restore cannot bring back door tiles the links disagree with.
    """

    _owner: str = field(repr=False)
    _tiles: Tuple[Tuple[Tile, ...], ...] = field(repr=False)
    _player: Optional[Position] = field(repr=False)
    _links: Tuple[Tuple[Direction, "Room"], ...] = field(default=(), repr=False, compare=False)


class Room:
    """One cell of the dungeon: a tile grid plus its door links and markers.

    Tiles are indexed tiles[y][x] with (0, 0) at the top-left corner. Doors
    sit at the midpoint of a side and are always carved in pairs through
    add_door, so a door on side S exists iff the neighbour on S has one
    on the opposite side pointing back.
    """

    def __init__(
        self,
        is_entrance: bool = False,
        is_exit: bool = False,
        pillar: Optional[PillarKind] = None,
        *,
        rng: Optional[RandomSource] = None,
        settings: Optional[GenerationSettings] = None,
    ) -> None:
        _check_flags(is_entrance, is_exit, pillar)
        settings = settings or GenerationSettings()
        grid = generate_random_tile_set(
            is_entrance,
            is_exit,
            pillar,
            rng or RandomSource(),
            settings.room_width,
            settings.room_height,
            settings.tile_weights,
        )
        self._setup(grid, is_entrance, is_exit, pillar)

    @classmethod
    def from_tiles(cls, tiles: Sequence[Sequence[Union[Tile, str]]]) -> "Room":
        """Build a room around a pre-made grid; flags are read from its markers."""
        height = len(tiles)
        width = len(tiles[0]) if height else 0
        if height < 3 or width < 3:
            raise InvalidRoomConfigurationError(f"Room must be at least 3x3, got {width}x{height}")
        if any(len(row) != width for row in tiles):
            raise InvalidRoomConfigurationError("Room tile rows must all have the same length")
        grid: TileGrid = [[c if isinstance(c, Tile) else Tile.from_char(c) for c in row] for row in tiles]

        flat = [tile for row in grid for tile in row]
        entrances = sum(1 for tile in flat if tile.kind is TileKind.ENTRANCE)
        exits = sum(1 for tile in flat if tile.kind is TileKind.EXIT)
        pillars = [tile.pillar for tile in flat if tile.kind is TileKind.PILLAR]
        if entrances > 1 or exits > 1 or len(pillars) > 1:
            raise InvalidRoomConfigurationError("A room may hold at most one marker of each kind")
        pillar = pillars[0] if pillars else None
        _check_flags(entrances == 1, exits == 1, pillar)

        room = cls.__new__(cls)
        room._setup(grid, entrances == 1, exits == 1, pillar)
        return room

    def _setup(self, grid: TileGrid, is_entrance: bool, is_exit: bool, pillar: Optional[PillarKind]) -> None:
        self._tiles = grid
        self._is_entrance = bool(is_entrance)
        self._is_exit = bool(is_exit)
        self._pillar = pillar
        self._neighbors: Dict[Direction, Room] = {}
        self._player: Optional[Position] = None
        self._token = uuid.uuid4().hex
        # Cell on the dungeon's placement grid, assigned on placement
        self.location: Optional[Position] = None

    # ---- Flags / dimensions ----------------------------------------------
    @property
    def is_entrance(self) -> bool:
        return self._is_entrance

    @property
    def is_exit(self) -> bool:
        return self._is_exit

    @property
    def pillar(self) -> Optional[PillarKind]:
        return self._pillar

    @property
    def is_essential(self) -> bool:
        return self._is_entrance or self._is_exit or self._pillar is not None

    @property
    def width(self) -> int:
        return len(self._tiles[0])

    @property
    def height(self) -> int:
        return len(self._tiles)

    @property
    def tiles(self) -> Tuple[Tuple[Tile, ...], ...]:
        return tuple(tuple(row) for row in self._tiles)

    @property
    def grid_token(self) -> str:
        """Fixed 4-character token for the dungeon grid view."""
        if self._is_entrance:
            return "ENTR"
        if self._is_exit:
            return "EXIT"
        if self._pillar is not None:
            return f" {self._pillar.display_char}  "
        return "ROOM"

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def tile_at(self, x: int, y: int) -> Tile:
        if not self.in_bounds(x, y):
            raise IndexError(f"Tile out of bounds: ({x},{y}) not in [0,{self.width})x[0,{self.height})")
        return self._tiles[y][x]

    # ---- Queries ----------------------------------------------------------
    def find(self, query: TileQuery) -> List[Position]:
        return [
            (x, y)
            for y, row in enumerate(self._tiles)
            for x, tile in enumerate(row)
            if _matches(tile, query)
        ]

    def count(self, query: TileQuery) -> int:
        return len(self.find(query))

    def contains(self, query: TileQuery) -> bool:
        return any(_matches(tile, query) for row in self._tiles for tile in row)

    # ---- Doors ------------------------------------------------------------
    @property
    def neighbors(self) -> Dict[Direction, "Room"]:
        return dict(self._neighbors)

    def get_adjacent_room(self, direction: Direction) -> Optional["Room"]:
        return self._neighbors.get(direction)

    def has_door(self, direction: Direction) -> bool:
        return direction in self._neighbors

    def door_position(self, direction: Direction) -> Position:
        """Midpoint of the given wall, where that side's door goes."""
        w, h = self.width, self.height
        return {
            Direction.NORTH: (w // 2, 0),
            Direction.SOUTH: (w // 2, h - 1),
            Direction.WEST: (0, h // 2),
            Direction.EAST: (w - 1, h // 2),
        }[direction]

    def entry_position(self, direction: Direction) -> Position:
        """Interior tile just inside the door on the given side."""
        x, y = self.door_position(direction)
        return x - direction.dx, y - direction.dy

    def find_door_on_wall(self, direction: Direction) -> Optional[Position]:
        w, h = self.width, self.height
        if direction is Direction.NORTH:
            wall = [(x, 0) for x in range(w)]
        elif direction is Direction.SOUTH:
            wall = [(x, h - 1) for x in range(w)]
        elif direction is Direction.WEST:
            wall = [(0, y) for y in range(h)]
        else:
            wall = [(w - 1, y) for y in range(h)]
        for x, y in wall:
            if self._tiles[y][x].is_door:
                return x, y
        return None

    def add_door(self, direction: Direction, other: "Room") -> None:
        """Connect this room to other through a door pair.

        Writes the door tile on this room's side and on the opposite side of
        other, and records each room as the other's neighbour.
        """
        if other is self:
            raise InvalidRoomConfigurationError("A room cannot have a door to itself")
        existing = self._neighbors.get(direction)
        back = other._neighbors.get(direction.opposite)
        if existing is other and back is self:
            return
        if existing is not None or back is not None:
            raise InvalidRoomConfigurationError(
                f"Side {direction.name} of {self!r} or side {direction.opposite.name} of {other!r} already has a door"
            )
        self._carve_door(direction)
        other._carve_door(direction.opposite)
        self._neighbors[direction] = other
        other._neighbors[direction.opposite] = self

    def clear_doors(self) -> None:
        """Remove every door of this room, on both ends."""
        for direction, neighbor in list(self._neighbors.items()):
            neighbor._set_wall_tile(direction.opposite, t.WALL)
            del neighbor._neighbors[direction.opposite]
            self._set_wall_tile(direction, t.WALL)
        self._neighbors.clear()

    def _carve_door(self, direction: Direction) -> None:
        orientation = DoorOrientation.VERTICAL if direction.is_vertical_wall else DoorOrientation.HORIZONTAL
        self._set_wall_tile(direction, t.door(orientation))

    def _set_wall_tile(self, direction: Direction, tile: Tile) -> None:
        x, y = self.door_position(direction)
        self._tiles[y][x] = tile

    # ---- Augmentation -----------------------------------------------------
    def add_extra_walls(self, rng: RandomSource, count: int = 1) -> int:
        """Turn up to count interior tiles into walls; returns how many were added.

        Markers, doors, the tiles just inside each door and the player's tile
        are left alone, and a wall is only placed where it keeps the walkable
        interior in one piece.
        """
        protected = {self.entry_position(d) for d in Direction}
        if self._player is not None:
            protected.add(self._player)

        added = 0
        for _ in range(count):
            candidates = [
                (x, y)
                for y in range(1, self.height - 1)
                for x in range(1, self.width - 1)
                if (x, y) not in protected
                and self._tiles[y][x].kind is not TileKind.WALL
                and not self._tiles[y][x].is_structural
            ]
            rng.shuffle(candidates)
            for pos in candidates:
                if self._keeps_connected(pos):
                    x, y = pos
                    self._tiles[y][x] = t.WALL
                    added += 1
                    break
            else:
                break
        if added < count:
            logger.debug("Room %s: only %d of %d extra walls fit", self.location, added, count)
        return added

    def _keeps_connected(self, pos: Position) -> bool:
        anchor = next(
            (
                p
                for p in [self.entry_position(d) for d in Direction] + self.find(lambda tile: tile.is_walkable)
                if p != pos and self._tiles[p[1]][p[0]].is_walkable
            ),
            None,
        )
        if anchor is None:
            return True
        before = walkable_region(self._tiles, anchor)
        if pos not in before:
            return False
        after = walkable_region(self._tiles, anchor, blocked=pos)
        return len(after) == len(before) - 1

    # ---- Player -----------------------------------------------------------
    @property
    def player_position(self) -> Optional[Position]:
        return self._player

    def set_player_location(self, x: int, y: int) -> None:
        if not self.in_bounds(x, y):
            raise ValueError(f"Player position ({x},{y}) is outside the room")
        if not self._tiles[y][x].is_walkable:
            raise ValueError(f"Player cannot stand on a wall at ({x},{y})")
        self._player = (x, y)

    def clear_player(self) -> None:
        self._player = None

    def move_player(self, direction: Direction) -> StepResult:
        """Step the player one tile; walls block and doors stop the step."""
        if self._player is None:
            raise PlayerNotInRoomError(f"Player is not in room {self.location}")
        x, y = self._player
        nx, ny = x + direction.dx, y + direction.dy
        if not self.in_bounds(nx, ny):
            return StepResult(StepOutcome.BLOCKED, direction, self._player, t.WALL)
        tile = self._tiles[ny][nx]
        if tile.is_door:
            return StepResult(StepOutcome.DOOR, direction, self._player, tile)
        if not tile.is_walkable:
            return StepResult(StepOutcome.BLOCKED, direction, self._player, tile)
        self._player = (nx, ny)
        return StepResult(StepOutcome.MOVED, direction, self._player, tile)

    # ---- Memento ----------------------------------------------------------
    def create_memento(self) -> RoomMemento:
        links = tuple(sorted(self._neighbors.items(), key=lambda item: item[0].name))
        return RoomMemento(self._token, self.tiles, self._player, links)

    def check_memento(self, memento: RoomMemento) -> None:
        """Raise MementoMismatchError unless memento can be restored into this room.

        Door tiles are part of the snapshot, so the room's door links must be
        the same ones it had when the memento was taken.
        """
        if not isinstance(memento, RoomMemento):
            raise MementoMismatchError(f"Expected a RoomMemento, got {type(memento).__name__}")
        if memento._owner != self._token:
            raise MementoMismatchError("Memento was produced by a different room")
        saved = dict(memento._links)
        if saved.keys() != self._neighbors.keys() or any(
            self._neighbors[d] is not room for d, room in saved.items()
        ):
            raise MementoMismatchError(
                f"Doors of {self!r} changed since the memento was taken "
                f"({sorted(d.name for d in saved)} -> {sorted(d.name for d in self._neighbors)})"
            )

    def restore_from_memento(self, memento: RoomMemento) -> None:
        self.check_memento(memento)
        self._tiles = [list(row) for row in memento._tiles]
        self._player = memento._player

    # ---- Rendering --------------------------------------------------------
    def __str__(self) -> str:
        lines = []
        for y, row in enumerate(self._tiles):
            chars = [
                t.PLAYER_CHAR if self._player == (x, y) else tile.char
                for x, tile in enumerate(row)
            ]
            lines.append(" ".join(chars) + "\n")
        return "".join(lines)

    def __repr__(self) -> str:
        return f"Room({self.grid_token.strip()}, location={self.location})"


def _matches(tile: Tile, query: TileQuery) -> bool:
    if isinstance(query, Tile):
        return tile == query
    if isinstance(query, str):
        return tile.char == query
    return bool(query(tile))
