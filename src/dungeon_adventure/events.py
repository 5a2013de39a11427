from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, DefaultDict, Dict, List

logger = logging.getLogger(__name__)


class EventType:
    """Event names published by the dungeon core."""

    # A dungeon finished generating; payload: attempts, width, height
    DUNGEON_GENERATED = "dungeon.generated"

    # The player walked through a door; payload: room, location, position, direction
    ROOM_ENTERED = "room.entered"

    # A move found no passage; payload: direction, reason, location
    MOVE_REJECTED = "move.rejected"

    # The player's tile is a pit; payload: room, location, position
    PLAYER_PIT = "player.pit"


@dataclass(frozen=True)
class Event:
    """Generic event container.

    Attributes:
        name: Event type/name string, typically from EventType.
        payload: Arbitrary payload associated with the event.
    """

    name: str
    payload: Dict[str, Any]


Subscriber = Callable[[Event], None]


class EventBus:
    """A lightweight publish/subscribe event bus.

    Subscribers register callbacks per event name and are invoked in
    registration order. Collaborators outside the dungeon core (combat,
    presentation) hook in here instead of being called directly.
    """

    def __init__(self) -> None:
        self._subs: DefaultDict[str, List[Subscriber]] = defaultdict(list)

    def subscribe(self, event_name: str, callback: Subscriber) -> None:
        if not callable(callback):
            raise TypeError("callback must be callable")
        self._subs[event_name].append(callback)
        logger.debug("Subscribed %s to '%s'", getattr(callback, "__name__", str(callback)), event_name)

    def unsubscribe(self, event_name: str, callback: Subscriber) -> None:
        if callback in self._subs.get(event_name, []):
            self._subs[event_name].remove(callback)
            logger.debug("Unsubscribed %s from '%s'", getattr(callback, "__name__", str(callback)), event_name)

    def subscriber_count(self, event_name: str) -> int:
        return len(self._subs.get(event_name, []))

    def publish(self, event_name: str, payload: Dict[str, Any]) -> None:
        event = Event(name=event_name, payload=payload)
        subs = list(self._subs.get(event_name, []))
        logger.debug("Publishing event '%s' to %d subscribers", event_name, len(subs))
        for cb in subs:
            try:
                cb(event)
            except Exception:
                logger.exception("Unhandled exception in event subscriber for '%s'", event_name)
