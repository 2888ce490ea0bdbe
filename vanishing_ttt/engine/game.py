"""Local game engine: two humans on one screen, or a human against the computer."""

import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..agents.planner import Difficulty
from ..agents.player import ComputerPlayer
from .board import (
    MatchState,
    Reason,
    Symbol,
    apply_move,
    check_win,
    finish,
    new_match,
    next_turn,
)
from .errors import InvalidMove
from .timer import DEFAULT_TURN_MS, TurnTimer


class GameMode(Enum):
    """Local play modes."""
    TWO_PLAYER = "two_player"
    SINGLE_PLAYER = "single_player"


@dataclass
class GameConfig:
    """Configuration for a local game."""
    mode: GameMode = GameMode.TWO_PLAYER
    difficulty: Difficulty = Difficulty.EASY
    turn_timeout_ms: int = DEFAULT_TURN_MS
    computer_delay: float = 0.7  # seconds


class LocalGame:
    """A game arbitrated in-process.

    This engine only enforces rules - the board logic lives in ``board`` and
    the computer's choices come from the planner. In single-player mode the
    human plays X and the computer plays O; on the hard tier the human also
    plays against a clock once they have a mark on the board.
    """

    HUMAN = Symbol.X
    COMPUTER = Symbol.O

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        rng: Optional[random.Random] = None,
        on_timeout: Optional[Callable[[], None]] = None,
    ):
        """Initialize the game.

        Args:
            config: Game configuration.
            rng: Random source for the computer player.
            on_timeout: Called once when the clock ends a round, so a UI
                waiting on input can announce the result right away.
        """
        self.config = config or GameConfig()
        self.on_timeout = on_timeout
        self.computer: Optional[ComputerPlayer] = None
        if self.config.mode == GameMode.SINGLE_PLAYER:
            self.computer = ComputerPlayer(
                symbol=self.COMPUTER,
                difficulty=self.config.difficulty,
                think_delay=self.config.computer_delay,
                rng=rng or random.Random(),
            )
        self.clock = TurnTimer(self._clock_expired, duration_ms=self.config.turn_timeout_ms)

        self.state: MatchState = new_match()
        self.winner: Optional[Symbol] = None
        self.reason: Optional[Reason] = None

    @property
    def current_player(self) -> Symbol:
        return self.state.active_player

    @property
    def is_over(self) -> bool:
        return not self.state.is_active

    @property
    def is_computer_turn(self) -> bool:
        return (
            self.computer is not None
            and self.state.is_active
            and self.current_player == self.COMPUTER
        )

    @property
    def clock_running(self) -> bool:
        return self.clock.running

    def restart(self) -> None:
        """Reset the board and all round state."""
        self.clock.cancel()
        self.state = new_match()
        self.winner = None
        self.reason = None

    async def human_move(self, index: int) -> bool:
        """Play a human move for the side to move.

        Returns:
            False if the move was rejected (game over, not the human's turn,
            occupied or off-board cell).
        """
        if not self.state.is_active or self.is_computer_turn:
            return False
        try:
            self.state = apply_move(self.state, index, self.current_player)
        except InvalidMove:
            return False
        self.clock.cancel()
        self._after_move()
        return True

    async def computer_move(self) -> Optional[int]:
        """Let the computer play its turn.

        Returns:
            The cell played, or None if it was not the computer's turn.
        """
        if not self.is_computer_turn:
            return None
        index = await self.computer.choose(self.state)
        if index is None or not self.state.is_active:
            return None
        self.state = apply_move(self.state, index, self.COMPUTER)
        self._after_move()
        return index

    def _after_move(self) -> None:
        winner = check_win(self.state.board)
        if winner is not None:
            self._end(winner, Reason.WIN)
            return
        next_turn(self.state)
        self._maybe_start_clock()

    def _maybe_start_clock(self) -> None:
        if (
            self.computer is not None
            and self.config.difficulty is Difficulty.HARD
            and self.state.is_active
            and self.current_player == self.HUMAN
            and self.state.live_marks(self.HUMAN) > 0
        ):
            self.clock.start()

    async def _clock_expired(self, generation: int) -> None:
        if not self.clock.is_current(generation) or not self.state.is_active:
            return
        self._end(self.COMPUTER, Reason.TIMEOUT)
        if self.on_timeout is not None:
            self.on_timeout()

    def _end(self, winner: Symbol, reason: Reason) -> None:
        finish(self.state)
        self.clock.cancel()
        self.winner = winner
        self.reason = reason
