import asyncio
from argparse import Namespace

import pytest

from vanishing_ttt.agents.planner import Difficulty
from vanishing_ttt.engine.board import Reason, Symbol
from vanishing_ttt.engine.game import GameConfig, GameMode, LocalGame
from vanishing_ttt.main import build_game_config, build_session_config

X, O = Symbol.X, Symbol.O


def single_player(difficulty: Difficulty, rng=None, timeout_ms: int = 3000) -> LocalGame:
    config = GameConfig(
        mode=GameMode.SINGLE_PLAYER,
        difficulty=difficulty,
        turn_timeout_ms=timeout_ms,
        computer_delay=0,
    )
    return LocalGame(config, rng=rng)


class TestTwoPlayer:

    @pytest.mark.asyncio
    async def test_turns_alternate(self):
        game = LocalGame()
        assert await game.human_move(4)
        assert game.current_player is O
        assert game.state.turn_count == 2
        assert await game.human_move(0)
        assert game.current_player is X

    @pytest.mark.asyncio
    async def test_win_ends_the_round(self):
        game = LocalGame()
        for index in (0, 3, 1, 4, 2):
            assert await game.human_move(index)
        assert game.is_over
        assert game.winner is X
        assert game.reason is Reason.WIN
        assert not await game.human_move(8)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("index", [-1, 9])
    async def test_off_board_is_rejected(self, index):
        game = LocalGame()
        assert not await game.human_move(index)
        assert game.current_player is X

    @pytest.mark.asyncio
    async def test_occupied_is_rejected(self):
        game = LocalGame()
        await game.human_move(4)
        assert not await game.human_move(4)
        assert game.current_player is O

    @pytest.mark.asyncio
    async def test_no_clock_and_no_computer(self):
        game = LocalGame()
        await game.human_move(4)
        await game.human_move(0)
        assert not game.clock_running
        assert not game.is_computer_turn
        assert await game.computer_move() is None

    @pytest.mark.asyncio
    async def test_restart_resets_round(self):
        game = LocalGame()
        for index in (0, 3, 1, 4, 2):
            await game.human_move(index)
        game.restart()
        assert not game.is_over
        assert game.winner is None and game.reason is None
        assert game.state.board == [None] * 9
        assert game.current_player is X


class TestSinglePlayer:

    @pytest.mark.asyncio
    async def test_human_cannot_move_for_computer(self):
        game = single_player(Difficulty.MEDIUM)
        await game.human_move(0)
        assert game.is_computer_turn
        assert not await game.human_move(1)

    @pytest.mark.asyncio
    async def test_computer_answers(self, fixed_rng):
        game = single_player(Difficulty.EASY, rng=fixed_rng(0.9, pick_last=True))
        await game.human_move(0)
        assert await game.computer_move() == 8
        assert game.state.board[8] is O
        assert game.current_player is X

    @pytest.mark.asyncio
    async def test_computer_move_out_of_turn_is_none(self):
        game = single_player(Difficulty.MEDIUM)
        assert await game.computer_move() is None

    @pytest.mark.asyncio
    async def test_computer_can_win(self, fixed_rng):
        game = single_player(Difficulty.MEDIUM, rng=fixed_rng(0.5))
        # X: 0, 8, 6 / O: 4, 1. Own win at 7 beats blocking 3.
        for human in (0, 8):
            await game.human_move(human)
            await game.computer_move()
        assert game.state.board[4] is O
        await game.human_move(6)
        assert await game.computer_move() == 7
        assert game.winner is O
        assert game.reason is Reason.WIN

    @pytest.mark.asyncio
    async def test_medium_has_no_clock(self):
        game = single_player(Difficulty.MEDIUM)
        await game.human_move(0)
        await game.computer_move()
        assert not game.clock_running


class TestHardClock:

    @pytest.mark.asyncio
    async def test_first_move_is_untimed(self):
        game = single_player(Difficulty.HARD, timeout_ms=20)
        assert not game.clock_running
        await asyncio.sleep(0.05)
        assert not game.is_over

    @pytest.mark.asyncio
    async def test_clock_starts_after_computer_reply(self):
        game = single_player(Difficulty.HARD, timeout_ms=20)
        await game.human_move(0)
        assert not game.clock_running
        assert await game.computer_move() == 4
        assert game.clock_running

    @pytest.mark.asyncio
    async def test_running_out_of_time_loses(self):
        game = single_player(Difficulty.HARD, timeout_ms=20)
        await game.human_move(0)
        await game.computer_move()
        await asyncio.sleep(0.1)
        assert game.is_over
        assert game.winner is O
        assert game.reason is Reason.TIMEOUT
        assert not await game.human_move(8)

    @pytest.mark.asyncio
    async def test_timeout_is_announced_without_waiting_for_input(self):
        announced = []
        game = single_player(Difficulty.HARD, timeout_ms=20)
        game.on_timeout = lambda: announced.append((game.winner, game.reason))
        await game.human_move(0)
        await game.computer_move()
        await asyncio.sleep(0.1)
        assert announced == [(O, Reason.TIMEOUT)]

    @pytest.mark.asyncio
    async def test_win_does_not_trigger_timeout_callback(self):
        announced = []
        game = LocalGame(on_timeout=lambda: announced.append(game.reason))
        for index in (0, 3, 1, 4, 2):
            await game.human_move(index)
        assert game.reason is Reason.WIN
        assert announced == []

    @pytest.mark.asyncio
    async def test_moving_in_time_stops_the_clock(self):
        game = single_player(Difficulty.HARD, timeout_ms=50)
        await game.human_move(0)
        await game.computer_move()
        assert await game.human_move(8)
        assert not game.clock_running
        await asyncio.sleep(0.1)
        assert not game.is_over

    @pytest.mark.asyncio
    async def test_restart_cancels_the_clock(self):
        game = single_player(Difficulty.HARD, timeout_ms=20)
        await game.human_move(0)
        await game.computer_move()
        game.restart()
        await asyncio.sleep(0.05)
        assert not game.is_over


def test_cli_flags_override_config():
    config_data = {
        "match": {"turn_timeout_ms": 2500, "log_dir": "records"},
        "local": {"mode": "single_player", "difficulty": "medium", "computer_delay_ms": 200},
    }
    game_config = build_game_config(config_data, Namespace(two_player=False, difficulty="hard"))
    assert game_config.mode is GameMode.SINGLE_PLAYER
    assert game_config.difficulty is Difficulty.HARD
    assert game_config.turn_timeout_ms == 2500
    assert game_config.computer_delay == pytest.approx(0.2)

    assert build_game_config(config_data, Namespace(two_player=True)).mode is GameMode.TWO_PLAYER
    assert build_game_config({}, Namespace()).difficulty is Difficulty.EASY

    session_config = build_session_config(config_data)
    assert session_config.turn_timeout_ms == 2500
    assert session_config.log_dir == "records"
