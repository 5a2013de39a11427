from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Protocol, Tuple, runtime_checkable

from .rng import RandomSource

logger = logging.getLogger(__name__)


@runtime_checkable
class HasDisplayChar(Protocol):
    @property
    def display_char(self) -> str: ...


@runtime_checkable
class CanChangeHealth(Protocol):
    def change_health(self, delta: int) -> None: ...


HealthHook = Callable[["Health", int], None]


@dataclass
class Health:
    """Hit points clamped to [0, maximum] with post-change hooks.

    Hooks run after every change_health call with the pool and the delta that
    was requested. restore() adds hit points without running hooks.
    """

    maximum: int
    current: int = -1
    hooks: List[HealthHook] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        if self.maximum <= 0:
            raise ValueError("maximum health must be positive")
        if self.current < 0:
            self.current = self.maximum
        self.current = min(self.current, self.maximum)

    @property
    def is_alive(self) -> bool:
        return self.current > 0

    def change(self, delta: int) -> int:
        before = self.current
        self.current = max(0, min(self.maximum, self.current + delta))
        for hook in list(self.hooks):
            hook(self, delta)
        return self.current - before

    def restore(self, amount: int) -> int:
        before = self.current
        self.current = min(self.maximum, self.current + max(0, amount))
        return self.current - before


@dataclass
class Player:
    name: str
    health: Health
    display_char: str = "@"

    def change_health(self, delta: int) -> None:
        self.health.change(delta)

    @property
    def is_alive(self) -> bool:
        return self.health.is_alive


@dataclass
class Monster:
    """A monster that may regenerate after taking a hit it survived."""

    name: str
    display_char: str
    health: Health
    heal_chance: float
    min_heal: int
    max_heal: int
    rng: RandomSource = field(default_factory=RandomSource, repr=False)

    def __post_init__(self) -> None:
        if not 0.0 <= self.heal_chance <= 1.0:
            raise ValueError(f"heal_chance must be within [0, 1], got {self.heal_chance}")
        if self.min_heal > self.max_heal:
            raise ValueError("min_heal cannot exceed max_heal")
        self.health.hooks.append(self._heal_check)

    def change_health(self, delta: int) -> None:
        self.health.change(delta)

    @property
    def is_alive(self) -> bool:
        return self.health.is_alive

    def _heal_check(self, health: Health, delta: int) -> None:
        if health.current > 0:
            self.heal()

    def heal(self) -> int:
        if self.rng.random() >= self.heal_chance:
            return 0
        healed = self.health.restore(self.rng.randint(self.min_heal, self.max_heal))
        logger.debug("%s healed %d (now %d/%d)", self.name, healed, self.health.current, self.health.maximum)
        return healed


# name -> (display char, max health, heal chance, (min heal, max heal))
MONSTER_TEMPLATES: Dict[str, Tuple[str, int, float, Tuple[int, int]]] = {
    "Ogre": ("O", 200, 0.1, (30, 60)),
    "Gremlin": ("G", 70, 0.4, (20, 40)),
    "Skeleton": ("S", 100, 0.3, (30, 50)),
}


def create_monster(name: str, rng: RandomSource) -> Monster:
    char, max_hp, chance, (lo, hi) = MONSTER_TEMPLATES[name]
    return Monster(
        name=name,
        display_char=char,
        health=Health(max_hp),
        heal_chance=chance,
        min_heal=lo,
        max_heal=hi,
        rng=rng,
    )
