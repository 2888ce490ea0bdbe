"""Game engine - board rules and turn timing. ``LocalGame`` is in ``engine.game``."""

from .board import MatchState, Reason, Symbol, apply_move, available_cells, check_win
from .errors import DoubleResolution, GameError, InvalidMove, UnknownRoom
from .timer import TurnTimer

__all__ = [
    "MatchState",
    "Reason",
    "Symbol",
    "apply_move",
    "available_cells",
    "check_win",
    "DoubleResolution",
    "GameError",
    "InvalidMove",
    "UnknownRoom",
    "TurnTimer",
]
