"""
Shared pytest fixtures.

Game-state fixtures are function-scoped so every test starts from a clean
board.
"""

import random
from typing import Callable, Optional

import pytest

from vanishing_ttt.engine.board import MatchState, Symbol, apply_move, new_match


class FixedRandom(random.Random):
    """Random source with a pinned ``random()`` and a predictable ``choice``."""

    def __init__(self, value: float, pick_last: bool = False):
        super().__init__(0)
        self.value = value
        self.pick_last = pick_last

    def random(self) -> float:
        return self.value

    def choice(self, seq):
        return seq[-1] if self.pick_last else seq[0]


@pytest.fixture
def fixed_rng() -> Callable[..., FixedRandom]:
    """Factory for pinned random sources."""
    return FixedRandom


def play(moves: list[int], state: Optional[MatchState] = None) -> MatchState:
    """Apply alternating moves starting with X."""
    state = state or new_match()
    symbol = Symbol.X
    for index in moves:
        state = apply_move(state, index, symbol)
        symbol = symbol.opponent
    return state


@pytest.fixture
def play_moves() -> Callable[..., MatchState]:
    return play
