from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Tuple

from .characters import CanChangeHealth
from .events import Event, EventBus, EventType
from .rng import RandomSource

if TYPE_CHECKING:
    from .dungeon import Dungeon

logger = logging.getLogger(__name__)


class PitTrap:
    """Applies pit damage to a character whenever the dungeon reports a pit.

    This is the hand-off between the dungeon core and the combat side: the
    dungeon only publishes player.pit, the trap turns it into a health change.
    """

    def __init__(
        self,
        bus: EventBus,
        target: CanChangeHealth,
        rng: RandomSource,
        damage: Tuple[int, int] = (1, 20),
    ) -> None:
        lo, hi = damage
        if lo < 0 or lo > hi:
            raise ValueError(f"Invalid pit damage range: {damage}")
        self.bus = bus
        self.target = target
        self.rng = rng
        self.damage = (lo, hi)
        self.bus.subscribe(EventType.PLAYER_PIT, self._on_pit)

    @classmethod
    def attach(cls, dungeon: "Dungeon", target: CanChangeHealth, rng: Optional[RandomSource] = None) -> "PitTrap":
        """Trap on the dungeon's bus dealing its settings.pit_damage; rolls with the dungeon's rng by default."""
        return cls(dungeon.bus, target, rng or dungeon.rng, dungeon.settings.pit_damage)

    def _on_pit(self, event: Event) -> None:
        amount = self.rng.randint(*self.damage)
        logger.info("Pit at %s in room %s deals %d damage", event.payload.get("position"), event.payload.get("location"), amount)
        self.target.change_health(-amount)

    def detach(self) -> None:
        self.bus.unsubscribe(EventType.PLAYER_PIT, self._on_pit)
