"""Computer player for local single-player games."""

import asyncio
import random
from dataclasses import dataclass, field
from typing import Optional

from ..engine.board import MatchState, Symbol
from .planner import Difficulty, choose_move


@dataclass
class ComputerPlayer:
    """A planner-driven opponent."""

    symbol: Symbol
    difficulty: Difficulty = Difficulty.EASY
    think_delay: float = 0.7  # seconds
    rng: random.Random = field(default_factory=random.Random)

    @property
    def opponent(self) -> Symbol:
        return self.symbol.opponent

    def pick(self, state: MatchState) -> Optional[int]:
        """Choose a cell immediately."""
        return choose_move(state, self.symbol, self.opponent, self.difficulty, self.rng)

    async def choose(self, state: MatchState) -> Optional[int]:
        """Choose a cell after a short pause, so the move reads as a reply.

        Args:
            state: Current match state.

        Returns:
            The chosen cell, or None if the board is full.
        """
        if self.think_delay > 0:
            await asyncio.sleep(self.think_delay)
        return self.pick(state)
