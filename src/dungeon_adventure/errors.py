class DungeonError(Exception):
    """Base exception for the Dungeon Adventure project."""


class InvalidRoomConfigurationError(DungeonError, ValueError):
    """Raised when a room or dungeon is built from conflicting flags or wiring."""


class GenerationError(DungeonError):
    """Raised when a playable dungeon could not be produced within the retry budget."""


class MementoMismatchError(DungeonError, ValueError):
    """Raised when restoring from a memento that was not produced by the same owner."""


class PlayerNotInRoomError(DungeonError):
    """Raised for player-relative room operations while the player is elsewhere."""


class ConfigError(DungeonError, ValueError):
    """Raised when generation settings are missing or out of range."""
