"""Error types raised by the game core."""


class GameError(Exception):
    """Base class for all game errors."""


class ValidationError(GameError, ValueError):
    """Input rejected before any state change (empty or duplicate name, bad counts)."""


class NotFoundError(GameError, LookupError):
    """A profile the operation needs does not exist."""


class StorageError(GameError):
    """The persisted document could not be written; nothing was applied."""
