from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, MutableSequence, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RandomSource:
    """
    The single source of randomness for dungeon generation.

    - wraps a private random.Random so no global random state is touched
    - a fixed seed makes every generation decision reproducible under test
    - provides a weighted choice over a mapping of weights
    """

    seed: int | None = None
    _rng: random.Random = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.seed is not None:
            self._rng = random.Random(self.seed)
            logger.debug("Initialized RandomSource with deterministic seed=%s", self.seed)
        else:
            self._rng = random.Random()
            logger.debug("Initialized RandomSource with non-deterministic seed")

    def randint(self, a: int, b: int) -> int:
        return self._rng.randint(a, b)

    def randrange(self, n: int) -> int:
        return self._rng.randrange(n)

    def random(self) -> float:
        return self._rng.random()

    def choice(self, seq: Sequence[T]) -> T:
        if not seq:
            raise ValueError("RandomSource.choice() received an empty sequence")
        return seq[self._rng.randrange(0, len(seq))]

    def shuffle(self, items: MutableSequence[Any]) -> None:
        self._rng.shuffle(items)

    def sample(self, population: Sequence[T], k: int) -> List[T]:
        return self._rng.sample(population, k)

    def weighted_choice(self, weights: Dict[T, float]) -> T:
        """
        Select a key from a mapping of non-negative weights.
        Zero-weight keys are never chosen; an empty or all-zero mapping raises ValueError.
        """
        if not weights:
            raise ValueError("weighted_choice requires a non-empty weights mapping")

        keys: List[T] = []
        cumulative: List[float] = []
        total = 0.0
        for k, w in weights.items():
            if w < 0:
                raise ValueError(f"Weight for {k!r} must be non-negative, got {w}")
            if w == 0:
                continue
            total += w
            keys.append(k)
            cumulative.append(total)

        if total == 0:
            raise ValueError("All weights are zero; cannot make a weighted choice")

        r = self._rng.random() * total
        for i, c in enumerate(cumulative):
            if r < c:
                return keys[i]
        return keys[-1]


__all__ = ["RandomSource"]
