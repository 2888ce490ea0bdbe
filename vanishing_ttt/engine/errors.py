"""Error types raised by the rule engine and the session layer."""


class GameError(Exception):
    """Base class for recoverable game errors."""


class InvalidMove(GameError):
    """A move targeted an occupied or out-of-range cell, or came out of turn."""


class UnknownRoom(GameError):
    """A message referenced a room that no longer exists."""


class DoubleResolution(GameError):
    """A match that is already finished was resolved again."""
