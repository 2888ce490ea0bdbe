"""Difficulty-tiered move selection for the computer opponent."""

import random
from enum import Enum
from typing import Optional

from ..engine.board import CENTER, MatchState, Symbol, available_cells
from .tactics import find_line_completion, find_surviving_threat

EASY_BLOCK_CHANCE = 1 / 3


class Difficulty(Enum):
    """Computer opponent strength."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


def _random_cell(state: MatchState, rng: random.Random) -> Optional[int]:
    cells = available_cells(state.board)
    return rng.choice(cells) if cells else None


def _vanish_lookahead(state: MatchState, own: Symbol, opponent: Symbol) -> Optional[int]:
    """One-ply look at the board after the opponent's oldest mark vanishes.

    Only meaningful when the opponent holds exactly three live marks, i.e.
    their next move will cost them their oldest one.
    """
    if state.live_marks(opponent) != 3:
        return None
    oldest = state.oldest_mark(opponent)

    threat = find_surviving_threat(state.board, opponent, oldest)
    if threat is not None:
        return threat

    after_vanish = list(state.board)
    after_vanish[oldest] = None
    strike = find_line_completion(after_vanish, own)
    if strike is not None and state.board[strike] is None:
        return strike
    return None


def choose_move(
    state: MatchState,
    own: Symbol,
    opponent: Symbol,
    difficulty: Difficulty,
    rng: Optional[random.Random] = None,
) -> Optional[int]:
    """Pick a cell for ``own`` to play.

    Args:
        state: Current match state. Not modified.
        own: The planner's symbol.
        opponent: The other symbol.
        difficulty: Strength tier.
        rng: Random source; a fresh generator when omitted.

    Returns:
        An empty cell index, or None if the board is full.
    """
    rng = rng or random.Random()
    board = state.board

    if difficulty is Difficulty.EASY:
        if rng.random() < EASY_BLOCK_CHANCE:
            block = find_line_completion(board, opponent)
            if block is not None:
                return block
        return _random_cell(state, rng)

    if difficulty is Difficulty.MEDIUM:
        for move in (find_line_completion(board, own), find_line_completion(board, opponent)):
            if move is not None:
                return move
        if board[CENTER] is None:
            return CENTER
        return _random_cell(state, rng)

    if difficulty is Difficulty.HARD:
        # Order is fixed: win, then vanish lookahead, then plain block.
        move = find_line_completion(board, own)
        if move is not None:
            return move
        move = _vanish_lookahead(state, own, opponent)
        if move is not None:
            return move
        move = find_line_completion(board, opponent)
        if move is not None:
            return move
        if board[CENTER] is None:
            return CENTER
        return _random_cell(state, rng)

    raise ValueError(f"Unknown difficulty: {difficulty}")
