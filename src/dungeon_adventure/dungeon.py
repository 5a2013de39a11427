from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple

from . import tiles as t
from .config import GenerationSettings
from .connectivity import reachable_rooms
from .directions import Direction
from .errors import GenerationError, InvalidRoomConfigurationError, MementoMismatchError
from .events import EventBus, EventType
from .pillars import PillarKind
from .rng import RandomSource
from .room import Room, RoomMemento, StepOutcome
from .tiles import TileKind

logger = logging.getLogger(__name__)

Position = Tuple[int, int]

NO_PASSAGE = "no passage"
BLOCKED = "blocked"

# Grid neighbours visited when carving, so each adjacent pair is handled once
_FORWARD = (Direction.EAST, Direction.SOUTH)


@dataclass(frozen=True)
class MoveResult:
    """Outcome of a movement request.

    A rejected move (moved is False) carries a reason and leaves the dungeon
    untouched. room and position always describe where the player is now.
    """

    moved: bool
    direction: Direction
    room: Room
    position: Optional[Position]
    reason: Optional[str] = None
    changed_room: bool = False
    fell_into_pit: bool = False

    @property
    def rejected(self) -> bool:
        return not self.moved


@dataclass(frozen=True)
class DungeonMemento:
    """Opaque snapshot of every room plus the player's cell."""

    _owner: str = field(repr=False)
    _rooms: Tuple[Tuple[RoomMemento, ...], ...] = field(repr=False)
    _location: Position = field(repr=False)


def generate_pillar_rooms(
    rng: Optional[RandomSource] = None,
    settings: Optional[GenerationSettings] = None,
) -> List[Room]:
    """One freshly generated room per pillar kind."""
    rng = rng or RandomSource()
    return [Room(pillar=kind, rng=rng, settings=settings) for kind in PillarKind]


class Dungeon:
    """
    A randomly generated maze of rooms.

    Every cell of the placement grid holds exactly one room, the six essential
    rooms (entrance, exit and one per pillar) sit in distinct random cells and
    every pair of grid neighbours shares a door, so everything is reachable
    from the entrance. With settings.door_probability below 1.0 doors are
    carved sparsely and the layout is regenerated until the exit and pillars
    are reachable, up to settings.max_attempts times.
    """

    def __init__(
        self,
        starting_room: Optional[Room] = None,
        exit_room: Optional[Room] = None,
        pillar_rooms: Optional[Sequence[Room]] = None,
        *,
        rng: Optional[RandomSource] = None,
        settings: Optional[GenerationSettings] = None,
        bus: Optional[EventBus] = None,
    ) -> None:
        self.settings = settings or GenerationSettings()
        self.rng = rng or RandomSource(self.settings.seed)
        self.bus = bus or EventBus()
        self.attempts = 0
        self._maze: List[List[Optional[Room]]] = []
        self._essentials: List[Room] = []
        self._location: Optional[Room] = None
        self._token = ""

        if starting_room is None:
            starting_room = Room(is_entrance=True, rng=self.rng, settings=self.settings)
        if exit_room is None:
            exit_room = Room(is_exit=True, rng=self.rng, settings=self.settings)
        if pillar_rooms is None:
            pillar_rooms = generate_pillar_rooms(self.rng, self.settings)
        self.generate(starting_room, exit_room, pillar_rooms)

    # ---- Generation -------------------------------------------------------
    def generate(self, starting_room: Room, exit_room: Room, pillar_rooms: Sequence[Room]) -> None:
        """Lay out a new maze around the given essential rooms.

        Replaces any previous layout. Raises InvalidRoomConfigurationError for
        bad essential rooms and GenerationError if no attempt connects the
        entrance to the exit and every pillar; in both cases the previous
        layout, its doors and the player's position are left as they were.
        """
        pillar_rooms = list(pillar_rooms)
        self._validate_essentials(starting_room, exit_room, pillar_rooms)
        essentials = [starting_room, exit_room, *pillar_rooms]

        previous_links = [(room, d, other) for room in self.iter_rooms() for d, other in room.neighbors.items()]
        previous_locations = [(room, room.location) for room in self.iter_rooms()]

        for attempt in range(1, self.settings.max_attempts + 1):
            for room in essentials:
                room.clear_doors()
            maze = self._place_rooms(essentials)
            doors = self._carve_doors(maze)
            reached = reachable_rooms(starting_room)
            missing = [room for room in essentials if room not in reached]
            if not missing:
                break
            logger.warning(
                "Generation attempt %d/%d left %d essential rooms unreachable; regenerating",
                attempt,
                self.settings.max_attempts,
                len(missing),
            )
        else:
            self._rollback(essentials, previous_links, previous_locations)
            raise GenerationError(
                f"Could not connect the entrance to the exit and all pillars in {self.settings.max_attempts} attempts"
            )

        for room in self.iter_rooms():
            room.clear_player()
        for room in essentials:
            room.clear_player()

        self._maze = maze
        self._essentials = essentials
        self.attempts = attempt
        self._token = uuid.uuid4().hex

        ex, ey = starting_room.find(t.ENTRANCE)[0]
        starting_room.set_player_location(ex, ey)
        self._location = starting_room

        logger.info(
            "Generated %dx%d dungeon in %d attempt(s) with %d doors",
            self.width,
            self.height,
            attempt,
            doors,
        )
        self.bus.publish(
            EventType.DUNGEON_GENERATED,
            {"attempts": attempt, "width": self.width, "height": self.height, "doors": doors},
        )

    def _rollback(
        self,
        essentials: List[Room],
        links: List[Tuple[Room, Direction, Room]],
        locations: List[Tuple[Room, Optional[Position]]],
    ) -> None:
        """Undo a failed generation: drop the attempt's doors and re-carve the old ones."""
        for room in essentials:
            room.clear_doors()
            room.location = None
        for room, location in locations:
            room.location = location
        for room, d, other in links:
            room.add_door(d, other)
        if links or locations:
            logger.info("Kept the previous %dx%d layout after failed generation", self.width, self.height)

    def _validate_essentials(self, starting_room: Room, exit_room: Room, pillar_rooms: List[Room]) -> None:
        if not starting_room.is_entrance:
            raise InvalidRoomConfigurationError("The starting room must be an entrance room")
        if not exit_room.is_exit:
            raise InvalidRoomConfigurationError("The exit room must be an exit room")
        if len(pillar_rooms) != len(PillarKind):
            raise InvalidRoomConfigurationError(
                f"Expected {len(PillarKind)} pillar rooms, got {len(pillar_rooms)}"
            )
        kinds = [room.pillar for room in pillar_rooms]
        if None in kinds:
            raise InvalidRoomConfigurationError("Every pillar room must hold a pillar")
        if len(set(kinds)) != len(PillarKind):
            raise InvalidRoomConfigurationError(f"Pillar kinds must be distinct, got {[k.name for k in kinds]}")
        essentials = [starting_room, exit_room, *pillar_rooms]
        if len({id(room) for room in essentials}) != len(essentials):
            raise InvalidRoomConfigurationError("The same room was passed as more than one essential room")
        for room in essentials:
            for d in Direction:
                x, y = room.entry_position(d)
                if not room.tile_at(x, y).is_walkable:
                    raise InvalidRoomConfigurationError(f"{room!r} has a wall just inside its {d.name} door")

    def _place_rooms(self, essentials: List[Room]) -> List[List[Optional[Room]]]:
        width, height = self.settings.maze_width, self.settings.maze_height
        maze: List[List[Optional[Room]]] = [[None] * width for _ in range(height)]

        queue = list(essentials)
        self.rng.shuffle(queue)
        cells = [(x, y) for y in range(height) for x in range(width)]
        self.rng.shuffle(cells)

        free = len(cells)
        for x, y in cells:
            # Weighted so every essential room is placed by the time cells run out
            if queue and self.rng.random() < len(queue) / free:
                room = queue.pop()
                logger.debug("Placed %s at (%d,%d)", room.grid_token.strip(), x, y)
            else:
                room = Room(rng=self.rng, settings=self.settings)
                if self.settings.filler_extra_walls:
                    room.add_extra_walls(self.rng, self.settings.filler_extra_walls)
            room.location = (x, y)
            maze[y][x] = room
            free -= 1
        return maze

    def _carve_doors(self, maze: List[List[Optional[Room]]]) -> int:
        p = self.settings.door_probability
        doors = 0
        for y, row in enumerate(maze):
            for x, room in enumerate(row):
                for d in _FORWARD:
                    nx, ny = x + d.dx, y + d.dy
                    if nx >= len(row) or ny >= len(maze):
                        continue
                    if p < 1.0 and self.rng.random() >= p:
                        continue
                    room.add_door(d, maze[ny][nx])
                    doors += 1
        logger.debug("Carved %d door pairs (door_probability=%.2f)", doors, p)
        return doors

    # ---- Queries ----------------------------------------------------------
    @property
    def width(self) -> int:
        return len(self._maze[0]) if self._maze else 0

    @property
    def height(self) -> int:
        return len(self._maze)

    @property
    def starting_room(self) -> Room:
        return self._essentials[0]

    @property
    def exit_room(self) -> Room:
        return self._essentials[1]

    @property
    def pillar_rooms(self) -> Tuple[Room, ...]:
        return tuple(self._essentials[2:])

    @property
    def essential_rooms(self) -> Tuple[Room, ...]:
        return tuple(self._essentials)

    def get_rooms(self) -> List[List[Optional[Room]]]:
        return [list(row) for row in self._maze]

    def get_room_at(self, x: int, y: int) -> Room:
        """Room in column x, row y of the placement grid."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Room out of bounds: ({x},{y}) not in [0,{self.width})x[0,{self.height})")
        return self._maze[y][x]

    def get_character_location(self) -> Room:
        return self._location

    def locate(self, room: Room) -> Position:
        loc = room.location
        if loc is None or not (0 <= loc[0] < self.width and 0 <= loc[1] < self.height):
            raise ValueError(f"{room!r} is not part of this dungeon")
        if self._maze[loc[1]][loc[0]] is not room:
            raise ValueError(f"{room!r} is not part of this dungeon")
        return loc

    def iter_rooms(self) -> Iterator[Room]:
        for row in self._maze:
            for room in row:
                if room is not None:
                    yield room

    # ---- Movement ---------------------------------------------------------
    def move(self, direction: Direction) -> MoveResult:
        """Walk through the door on the given side of the current room."""
        current = self._location
        neighbor = current.get_adjacent_room(direction)
        if neighbor is None:
            return self._reject(direction, NO_PASSAGE)

        current.clear_player()
        x, y = neighbor.entry_position(direction.opposite)
        neighbor.set_player_location(x, y)
        self._location = neighbor
        logger.debug("Player moved %s from %s to %s", direction.name, current.location, neighbor.location)
        self.bus.publish(
            EventType.ROOM_ENTERED,
            {"room": neighbor, "location": neighbor.location, "position": (x, y), "direction": direction},
        )
        fell = self._check_pit(neighbor)
        return MoveResult(True, direction, neighbor, (x, y), changed_room=True, fell_into_pit=fell)

    def step(self, direction: Direction) -> MoveResult:
        """Take one tile step inside the current room, passing through doors."""
        current = self._location
        result = current.move_player(direction)
        if result.outcome is StepOutcome.DOOR:
            return self.move(direction)
        if result.outcome is StepOutcome.BLOCKED:
            return self._reject(direction, BLOCKED)
        fell = self._check_pit(current)
        return MoveResult(True, direction, current, result.position, fell_into_pit=fell)

    def _reject(self, direction: Direction, reason: str) -> MoveResult:
        current = self._location
        logger.debug("Move %s rejected in %s: %s", direction.name, current.location, reason)
        self.bus.publish(
            EventType.MOVE_REJECTED,
            {"direction": direction, "reason": reason, "location": current.location},
        )
        return MoveResult(False, direction, current, current.player_position, reason=reason)

    def _check_pit(self, room: Room) -> bool:
        x, y = room.player_position
        if room.tile_at(x, y).kind is not TileKind.PIT:
            return False
        logger.debug("Player fell into a pit at %s in room %s", (x, y), room.location)
        self.bus.publish(EventType.PLAYER_PIT, {"room": room, "location": room.location, "position": (x, y)})
        return True

    # ---- Memento ----------------------------------------------------------
    def create_memento(self) -> DungeonMemento:
        rooms = tuple(tuple(room.create_memento() for room in row) for row in self._maze)
        return DungeonMemento(self._token, rooms, self.locate(self._location))

    def restore_from_memento(self, memento: DungeonMemento) -> None:
        if not isinstance(memento, DungeonMemento):
            raise MementoMismatchError(f"Expected a DungeonMemento, got {type(memento).__name__}")
        if memento._owner != self._token:
            raise MementoMismatchError("Memento was produced by a different dungeon layout")
        # All rooms are checked before any is touched so a rejection leaves the dungeon as it was
        for row, saved_row in zip(self._maze, memento._rooms):
            for room, saved in zip(row, saved_row):
                room.check_memento(saved)
        for row, saved_row in zip(self._maze, memento._rooms):
            for room, saved in zip(row, saved_row):
                room.restore_from_memento(saved)
        x, y = memento._location
        self._location = self._maze[y][x]

    # ---- Rendering --------------------------------------------------------
    def __str__(self) -> str:
        lines = []
        for row in self._maze:
            lines.append(" ".join("null" if room is None else room.grid_token for room in row) + "\n")
        return "".join(lines)
