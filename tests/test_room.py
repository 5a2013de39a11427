import pytest

from dungeon_adventure import tiles as t
from dungeon_adventure.config import GenerationSettings
from dungeon_adventure.connectivity import walkable_region
from dungeon_adventure.directions import Direction
from dungeon_adventure.errors import (
    InvalidRoomConfigurationError,
    MementoMismatchError,
    PlayerNotInRoomError,
)
from dungeon_adventure.pillars import PillarKind
from dungeon_adventure.room import Room, StepOutcome, generate_random_tile_set
from dungeon_adventure.tiles import TileKind

SMALL = [
    "####",
    "#..#",
    "#O.#",
    "####",
]

OPEN_5X5 = [
    "#####",
    "#...#",
    "#.#.#",
    "#...#",
    "#####",
]


def is_pillar(tile):
    return tile.kind is TileKind.PILLAR


def test_entrance_room_has_exactly_one_entrance_marker(rng):
    room = Room(is_entrance=True, rng=rng)
    assert room.is_entrance and not room.is_exit and room.pillar is None
    assert room.count(t.ENTRANCE) == 1
    assert room.count(t.EXIT) == 0
    assert not room.contains(is_pillar)


def test_exit_room_has_exactly_one_exit_marker(rng):
    room = Room(is_exit=True, rng=rng)
    assert room.count(t.EXIT) == 1
    assert room.count(t.ENTRANCE) == 0


@pytest.mark.parametrize("kind", list(PillarKind))
def test_pillar_room_has_its_marker(rng, kind):
    room = Room(pillar=kind, rng=rng)
    assert room.pillar is kind
    assert room.count(t.pillar(kind)) == 1
    assert room.count(is_pillar) == 1
    assert room.grid_token == f" {kind.display_char}  "


@pytest.mark.parametrize(
    "flags",
    [
        dict(is_entrance=True, is_exit=True),
        dict(is_entrance=True, pillar=PillarKind.ABSTRACTION),
        dict(is_exit=True, pillar=PillarKind.POLYMORPHISM),
    ],
)
def test_conflicting_flags_fail_fast(rng, flags):
    with pytest.raises(InvalidRoomConfigurationError):
        Room(rng=rng, **flags)


def test_generate_random_tile_set_rejects_entrance_and_exit(rng):
    with pytest.raises(ValueError):
        generate_random_tile_set(True, True, None, rng)


def test_fresh_room_has_wall_border_and_weighted_interior(rng):
    room = Room(rng=rng, settings=GenerationSettings(room_width=9, room_height=6))
    assert (room.width, room.height) == (9, 6)
    for y in range(room.height):
        for x in range(room.width):
            tile = room.tile_at(x, y)
            if x in (0, room.width - 1) or y in (0, room.height - 1):
                assert tile == t.WALL
            else:
                assert tile.kind in (TileKind.EMPTY, TileKind.PIT, TileKind.ITEM)


def test_tile_weights_drive_interior(rng):
    room = Room(rng=rng, settings=GenerationSettings(tile_weights={"pit": 1.0}))
    interior = [room.tile_at(x, y) for y in range(1, room.height - 1) for x in range(1, room.width - 1)]
    assert set(interior) == {t.PIT}


def test_add_extra_walls_adds_walls_and_keeps_markers(rng):
    room = Room(is_exit=True, rng=rng)
    before = room.count(t.WALL)

    added = room.add_extra_walls(rng, 3)

    assert added >= 1
    assert room.count(t.WALL) == before + added
    assert room.count(t.EXIT) == 1
    for d in Direction:
        x, y = room.entry_position(d)
        assert room.tile_at(x, y).is_walkable


def test_add_extra_walls_never_splits_the_room(rng):
    room = Room(pillar=PillarKind.ENCAPSULATION, rng=rng)
    room.add_extra_walls(rng, 100)

    walkable = set(room.find(lambda tile: tile.is_walkable))
    region = walkable_region(room.tiles, room.entry_position(Direction.NORTH))
    assert region == walkable
    assert room.count(is_pillar) == 1
    # Saturated: nothing else can be walled off without splitting the room
    assert room.add_extra_walls(rng, 5) == 0
    assert set(room.find(lambda tile: tile.is_walkable)) == walkable


def test_add_door_wires_both_rooms_in_one_call(rng):
    room1 = Room(rng=rng)
    room2 = Room(rng=rng)

    room1.add_door(Direction.SOUTH, room2)

    assert room1.get_adjacent_room(Direction.SOUTH) is room2
    assert room2.get_adjacent_room(Direction.NORTH) is room1
    assert room1.find_door_on_wall(Direction.SOUTH) == room1.door_position(Direction.SOUTH)
    assert room2.find_door_on_wall(Direction.NORTH) == room2.door_position(Direction.NORTH)
    assert room1.tile_at(*room1.door_position(Direction.SOUTH)) == t.HORIZONTAL_DOOR
    assert room2.tile_at(*room2.door_position(Direction.NORTH)) == t.HORIZONTAL_DOOR
    assert any(tile.is_door for tile in room1.tiles[room1.height - 1])
    assert any(tile.is_door for tile in room2.tiles[0])


def test_east_west_doors_are_vertical(rng):
    west = Room(rng=rng)
    east = Room(rng=rng)
    west.add_door(Direction.EAST, east)
    assert west.tile_at(*west.door_position(Direction.EAST)) == t.VERTICAL_DOOR
    assert east.tile_at(*east.door_position(Direction.WEST)) == t.VERTICAL_DOOR
    assert east.has_door(Direction.WEST) and not east.has_door(Direction.EAST)


def test_add_door_is_idempotent_and_rejects_conflicts(rng):
    a, b, c = Room(rng=rng), Room(rng=rng), Room(rng=rng)
    a.add_door(Direction.EAST, b)
    a.add_door(Direction.EAST, b)
    b.add_door(Direction.WEST, a)
    assert a.count(t.VERTICAL_DOOR) == 1

    with pytest.raises(InvalidRoomConfigurationError):
        a.add_door(Direction.EAST, c)
    with pytest.raises(InvalidRoomConfigurationError):
        c.add_door(Direction.EAST, b)
    with pytest.raises(InvalidRoomConfigurationError):
        a.add_door(Direction.NORTH, a)


def test_clear_doors_restores_walls_on_both_sides(rng):
    a, b = Room(rng=rng), Room(rng=rng)
    a.add_door(Direction.NORTH, b)
    a.clear_doors()
    assert a.neighbors == {} and b.neighbors == {}
    assert a.tile_at(*a.door_position(Direction.NORTH)) == t.WALL
    assert b.tile_at(*b.door_position(Direction.SOUTH)) == t.WALL


def test_contains_on_prebuilt_tiles():
    room = Room.from_tiles(SMALL)
    assert room.contains("O")
    assert room.contains(t.PIT)
    assert not room.contains(t.HORIZONTAL_DOOR)
    assert (room.width, room.height) == (4, 4)
    assert not room.is_essential


def test_from_tiles_reads_flags_from_markers():
    room = Room.from_tiles(["#####", "#.i.#", "#####"])
    assert room.is_entrance and room.grid_token == "ENTR"

    with pytest.raises(InvalidRoomConfigurationError):
        Room.from_tiles(["#####", "#.io#", "#####"])
    with pytest.raises(InvalidRoomConfigurationError):
        Room.from_tiles(["#####", "#AE.#", "#####"])
    with pytest.raises(InvalidRoomConfigurationError):
        Room.from_tiles(["####", "#..", "####"])
    with pytest.raises(InvalidRoomConfigurationError):
        Room.from_tiles(["##", "##"])


def test_set_player_location():
    room = Room.from_tiles(OPEN_5X5)
    room.set_player_location(1, 1)
    assert room.player_position == (1, 1)
    with pytest.raises(ValueError):
        room.set_player_location(2, 2)
    with pytest.raises(ValueError):
        room.set_player_location(9, 9)
    room.clear_player()
    assert room.player_position is None


def test_move_player_walks_blocks_and_stops_at_doors(rng):
    room = Room.from_tiles(OPEN_5X5)
    with pytest.raises(PlayerNotInRoomError):
        room.move_player(Direction.EAST)

    room.set_player_location(1, 1)
    step = room.move_player(Direction.EAST)
    assert step.outcome is StepOutcome.MOVED and step.moved
    assert room.player_position == (2, 1)

    step = room.move_player(Direction.SOUTH)
    assert step.outcome is StepOutcome.BLOCKED
    assert step.tile == t.WALL
    assert room.player_position == (2, 1)

    room.add_door(Direction.NORTH, Room(rng=rng))
    step = room.move_player(Direction.NORTH)
    assert step.outcome is StepOutcome.DOOR
    assert step.tile == t.HORIZONTAL_DOOR
    assert room.player_position == (2, 1)


def test_memento_round_trip_after_mutation(rng):
    room = Room(is_entrance=True, rng=rng)
    room.add_door(Direction.WEST, Room(rng=rng))
    ex, ey = room.find(t.ENTRANCE)[0]
    room.set_player_location(ex, ey)
    tiles_before = room.tiles
    memento = room.create_memento()

    room.add_extra_walls(rng, 4)
    room.set_player_location(*room.entry_position(Direction.WEST))
    assert room.tiles != tiles_before

    room.restore_from_memento(memento)
    assert room.tiles == tiles_before
    assert room.player_position == (ex, ey)


def test_memento_is_rejected_once_doors_change(rng):
    room = Room(rng=rng)
    west = Room(rng=rng)
    memento = room.create_memento()

    room.add_door(Direction.WEST, west)
    tiles = room.tiles
    with pytest.raises(MementoMismatchError):
        room.restore_from_memento(memento)
    assert room.tiles == tiles
    assert room.tile_at(*room.door_position(Direction.WEST)) == t.VERTICAL_DOOR

    linked = room.create_memento()
    room.clear_doors()
    with pytest.raises(MementoMismatchError):
        room.restore_from_memento(linked)
    assert not room.has_door(Direction.WEST)


def test_memento_is_rejected_when_the_same_side_leads_elsewhere(rng):
    room, first, second = Room(rng=rng), Room(rng=rng), Room(rng=rng)
    room.add_door(Direction.SOUTH, first)
    memento = room.create_memento()
    room.clear_doors()
    room.add_door(Direction.SOUTH, second)
    with pytest.raises(MementoMismatchError):
        room.restore_from_memento(memento)


def test_memento_does_not_alias_live_room(rng):
    room = Room(rng=rng)
    memento = room.create_memento()
    original = room.tiles

    room.restore_from_memento(memento)
    room.add_extra_walls(rng, 3)
    room.restore_from_memento(memento)

    assert room.tiles == original


def test_memento_from_another_room_is_rejected(rng):
    room = Room(rng=rng)
    other = Room(rng=rng)
    with pytest.raises(MementoMismatchError):
        room.restore_from_memento(other.create_memento())
    with pytest.raises(ValueError):
        room.restore_from_memento(object())


def test_str_renders_rows_with_spaces():
    room = Room.from_tiles(SMALL)
    assert str(room) == "# # # #\n# . . #\n# O . #\n# # # #\n"

    room.set_player_location(1, 1)
    assert str(room).splitlines()[1] == "# @ . #"


def test_tile_at_is_bounds_checked():
    room = Room.from_tiles(SMALL)
    with pytest.raises(IndexError):
        room.tile_at(4, 0)
