import sys
from pathlib import Path

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))

from dungeon_adventure.config import GenerationSettings  # noqa: E402
from dungeon_adventure.rng import RandomSource  # noqa: E402


@pytest.fixture
def rng() -> RandomSource:
    return RandomSource(1234)


@pytest.fixture
def settings() -> GenerationSettings:
    return GenerationSettings(seed=2023)
