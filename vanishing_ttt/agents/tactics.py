"""
Line motifs used by the planner: immediate wins/blocks and threats that
survive a forced vanish.
"""
from typing import Optional

from ..engine.board import WINNING_LINES, Board, Symbol


def find_line_completion(board: Board, symbol: Symbol) -> Optional[int]:
    """First cell (in line scan order) that completes a line for ``symbol``.

    Used both to take a win (own symbol) and to block one (opponent symbol).
    """
    for line in WINNING_LINES:
        cells = [board[i] for i in line]
        if cells.count(symbol) == 2 and None in cells:
            return line[cells.index(None)]
    return None


def find_surviving_threat(board: Board, symbol: Symbol, oldest: int) -> Optional[int]:
    """Like ``find_line_completion`` but ignores lines through ``oldest``.

    A threat that uses the owner's oldest mark dissolves when that mark
    vanishes, so only the remaining ones are worth blocking early.
    """
    for line in WINNING_LINES:
        cells = [board[i] for i in line]
        if cells.count(symbol) == 2 and None in cells:
            if oldest in line:
                continue
            return line[cells.index(None)]
    return None
