"""Computer opponent: move planner and player wrapper."""

from .planner import Difficulty, choose_move
from .player import ComputerPlayer

__all__ = ["Difficulty", "choose_move", "ComputerPlayer"]
