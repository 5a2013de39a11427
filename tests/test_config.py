from pathlib import Path

import pytest

from dungeon_adventure.config import GenerationSettings, load_generation_settings
from dungeon_adventure.errors import ConfigError


def test_embedded_defaults_match_dataclass_defaults():
    assert load_generation_settings() == GenerationSettings()


def test_load_from_yaml_file(tmp_path: Path):
    path = tmp_path / "gen.yaml"
    path.write_text(
        "maze_width: 8\nmaze_height: 4\nroom_width: 9\ntile_weights:\n  empty: 1\n  pit: 0\n"
        "door_probability: 0.5\npit_damage: [2, 4]\nseed: 77\n",
        encoding="utf-8",
    )
    settings = load_generation_settings(str(path))
    assert (settings.maze_width, settings.maze_height, settings.room_width) == (8, 4, 9)
    assert settings.room_height == 5
    assert settings.tile_weights == {"empty": 1.0, "pit": 0.0}
    assert settings.door_probability == 0.5
    assert settings.pit_damage == (2, 4)
    assert settings.seed == 77


@pytest.mark.parametrize(
    "text",
    [
        "maze_width: 2\nmaze_height: 2\n",
        "room_width: 2\n",
        "door_probability: 1.5\n",
        "max_attempts: 0\n",
        "tile_weights:\n  lava: 1\n",
        "tile_weights:\n  empty: 0\n",
        "pit_damage: [5, 1]\n",
        "unknown_key: 1\n",
        "maze_width: wide\n",
        "- just\n- a list\n",
        "maze_width: [unclosed\n",
    ],
)
def test_invalid_settings_raise_config_error(tmp_path: Path, text):
    path = tmp_path / "bad.yaml"
    path.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_generation_settings(str(path))


def test_missing_file_raises_config_error(tmp_path: Path):
    with pytest.raises(ConfigError):
        load_generation_settings(str(tmp_path / "nope.yaml"))


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("DUNGEON_MAZE_WIDTH", "5")
    monkeypatch.setenv("DUNGEON_DOOR_PROBABILITY", "0.9")
    monkeypatch.setenv("DUNGEON_SEED", "123")
    settings = GenerationSettings.from_env()
    assert settings.maze_width == 5
    assert settings.maze_height == 6
    assert settings.door_probability == 0.9
    assert settings.seed == 123


def test_bad_env_value(monkeypatch):
    monkeypatch.setenv("DUNGEON_MAX_ATTEMPTS", "lots")
    with pytest.raises(ConfigError):
        GenerationSettings.from_env()
    monkeypatch.setenv("DUNGEON_MAX_ATTEMPTS", "0")
    with pytest.raises(ValueError):
        GenerationSettings.from_env()


def test_settings_are_hashable_and_own_their_weights():
    weights = {"empty": 0.5, "pit": 0.5}
    a = GenerationSettings(tile_weights=weights, seed=3)
    b = GenerationSettings(tile_weights={"pit": 0.5, "empty": 0.5}, seed=3)
    assert a == b
    assert hash(a) == hash(b)
    assert len({a, b, GenerationSettings()}) == 2

    weights["pit"] = 0.0
    assert a.tile_weights == {"empty": 0.5, "pit": 0.5}
