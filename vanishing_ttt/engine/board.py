"""Board state, move application, vanish policy and win detection."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from .errors import DoubleResolution, InvalidMove


class Symbol(Enum):
    """The two mark symbols. X always opens a match."""
    X = "X"
    O = "O"

    @property
    def opponent(self) -> "Symbol":
        return Symbol.O if self is Symbol.X else Symbol.X

    def __str__(self) -> str:
        return self.value


BOARD_SIZE = 9
CENTER = 4

# Scan order matters: rows, then columns, then diagonals.
WINNING_LINES = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),
    (0, 3, 6), (1, 4, 7), (2, 5, 8),
    (0, 4, 8), (2, 4, 6),
)

# Vanishing starts once this symbol has this many live marks.
ARMING_SYMBOL = Symbol.O
ARMING_COUNT = 3

Board = list[Optional[Symbol]]


def opposite(symbol: Symbol) -> Symbol:
    """Get the other symbol."""
    return symbol.opponent


@dataclass
class MatchState:
    """Authoritative state of one round.

    Owned by whoever arbitrates the round: the local game in local modes,
    the room in multiplayer.
    """
    board: Board = field(default_factory=lambda: [None] * BOARD_SIZE)
    move_queues: dict[Symbol, list[int]] = field(
        default_factory=lambda: {Symbol.X: [], Symbol.O: []}
    )
    armed: bool = False
    active_player: Symbol = Symbol.X
    turn_count: int = 1
    is_active: bool = True
    last_evicted: Optional[int] = None

    def copy(self) -> "MatchState":
        """Return a deep enough copy for simulation."""
        return replace(
            self,
            board=list(self.board),
            move_queues={s: list(q) for s, q in self.move_queues.items()},
        )

    def live_marks(self, symbol: Symbol) -> int:
        """Number of marks ``symbol`` currently has on the board."""
        return len(self.move_queues[symbol])

    def oldest_mark(self, symbol: Symbol) -> Optional[int]:
        """Cell index of ``symbol``'s oldest live mark, if any."""
        queue = self.move_queues[symbol]
        return queue[0] if queue else None


def new_match(first: Symbol = Symbol.X) -> MatchState:
    """Create a fresh, active match state."""
    return MatchState(active_player=first)


def apply_move(state: MatchState, index: int, symbol: Symbol) -> MatchState:
    """Place ``symbol`` at ``index`` and apply the vanish policy.

    Arming is keyed to ``ARMING_SYMBOL`` reaching ``ARMING_COUNT`` live marks,
    not to the mover. Once armed, every move evicts the oldest live mark of
    the non-mover, so live counts alternate between (2, 3) and (3, 2) instead of
    being capped at three per player.

    Args:
        state: Current match state. Not modified.
        index: Target cell, 0-8 in row-major order.
        symbol: Symbol being placed.

    Returns:
        The new match state.

    Raises:
        InvalidMove: If the index is out of range or the cell is occupied.
    """
    if isinstance(index, bool) or not isinstance(index, int):
        raise InvalidMove(f"Cell index must be an integer, got {index!r}")
    if not 0 <= index < BOARD_SIZE:
        raise InvalidMove(f"Cell index {index} is off the board")
    if state.board[index] is not None:
        raise InvalidMove(f"Cell {index} is already occupied by {state.board[index]}")

    new_state = state.copy()
    new_state.last_evicted = None
    new_state.board[index] = symbol
    new_state.move_queues[symbol].append(index)

    if not new_state.armed and len(new_state.move_queues[ARMING_SYMBOL]) == ARMING_COUNT:
        new_state.armed = True

    if new_state.armed:
        other_queue = new_state.move_queues[opposite(symbol)]
        if other_queue:
            evicted = other_queue.pop(0)
            new_state.board[evicted] = None
            new_state.last_evicted = evicted

    return new_state


def check_win(board: Board) -> Optional[Symbol]:
    """Return the symbol owning the first complete line, or None."""
    for a, b, c in WINNING_LINES:
        if board[a] is not None and board[a] == board[b] == board[c]:
            return board[a]
    return None


def available_cells(board: Board) -> list[int]:
    """All empty cells in ascending order."""
    return [i for i, cell in enumerate(board) if cell is None]


def next_turn(state: MatchState) -> MatchState:
    """Hand the move to the other symbol and count the new turn."""
    state.active_player = opposite(state.active_player)
    state.turn_count += 1
    return state


def finish(state: MatchState) -> MatchState:
    """Mark the match as over.

    Raises:
        DoubleResolution: If the match was already over.
    """
    if not state.is_active:
        raise DoubleResolution("Match is already finished")
    state.is_active = False
    return state


class Reason(str, Enum):
    """Why a round ended."""
    WIN = "win"
    TIMEOUT = "timeout"
    FORFEIT = "forfeit"
    DISCONNECT = "disconnect"
