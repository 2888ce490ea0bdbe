"""Main entry point for Vanishing Tic-Tac-Toe."""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import uvicorn
import yaml
from dotenv import load_dotenv
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .agents.planner import Difficulty
from .engine.board import Reason, Symbol
from .engine.game import GameConfig, GameMode, LocalGame
from .server import create_app
from .session.manager import SessionConfig

console = Console()

DEFAULT_CONFIG = "config/game.yaml"
SYMBOL_STYLES = {Symbol.X: "bold red", Symbol.O: "bold blue"}


def load_config(config_path: str = DEFAULT_CONFIG) -> dict:
    """Load game configuration from YAML file."""
    path = Path(config_path)
    if not path.exists():
        console.print(f"[red]Config file not found: {config_path}[/red]")
        sys.exit(1)

    with open(path) as f:
        return yaml.safe_load(f) or {}


def build_game_config(config_data: dict, args: argparse.Namespace) -> GameConfig:
    """Local game settings from the yaml ``local`` section and CLI flags."""
    local = config_data.get("local", {})
    mode = GameMode(local.get("mode", GameMode.SINGLE_PLAYER.value))
    if getattr(args, "two_player", False):
        mode = GameMode.TWO_PLAYER
    difficulty = Difficulty(getattr(args, "difficulty", None) or local.get("difficulty", Difficulty.EASY.value))
    return GameConfig(
        mode=mode,
        difficulty=difficulty,
        turn_timeout_ms=int(config_data.get("match", {}).get("turn_timeout_ms", 3000)),
        computer_delay=int(local.get("computer_delay_ms", 700)) / 1000.0,
    )


def build_session_config(config_data: dict) -> SessionConfig:
    """Server match settings from the yaml ``match`` section."""
    match = config_data.get("match", {})
    return SessionConfig(
        turn_timeout_ms=int(match.get("turn_timeout_ms", 3000)),
        log_dir=match.get("log_dir"),
    )


def display_welcome():
    """Display welcome message."""
    console.print(Panel.fit(
        "[bold red]VANISHING[/bold red] [bold blue]TIC-TAC-TOE[/bold blue]\n"
        "[dim]Once O has three marks down, every move erases the opponent's oldest[/dim]",
        border_style="magenta",
    ))
    console.print()


def display_board(game: LocalGame):
    """Render the board; the mark that vanishes next is dimmed."""
    state = game.state
    next_to_vanish: Optional[int] = None
    if state.armed and state.is_active:
        next_to_vanish = state.oldest_mark(state.active_player.opponent)

    table = Table(show_header=False, show_lines=True, box=box.SQUARE, padding=(0, 2))
    for _ in range(3):
        table.add_column(justify="center")
    for row in range(3):
        cells = []
        for index in range(row * 3, row * 3 + 3):
            mark = state.board[index]
            if mark is None:
                cells.append(f"[dim]{index + 1}[/dim]")
            elif index == next_to_vanish:
                cells.append(f"[dim strike]{mark}[/dim strike]")
            else:
                cells.append(f"[{SYMBOL_STYLES[mark]}]{mark}[/{SYMBOL_STYLES[mark]}]")
        table.add_row(*cells)

    console.print(Panel(table, title=f"Turn {state.turn_count}", expand=False))
    if state.last_evicted is not None:
        console.print(f"[dim]Cell {state.last_evicted + 1} vanished.[/dim]")


def display_result(game: LocalGame):
    """Display how the round ended."""
    if game.reason is Reason.TIMEOUT:
        text = f"Time's up! {game.winner} wins!"
    else:
        text = f"Player {game.winner} has won!"
    console.print(Panel(f"[bold]{text}[/bold]", border_style=SYMBOL_STYLES[game.winner]))


def announce_timeout(game: LocalGame):
    """Shown as soon as the clock runs out, while input is still pending."""
    console.print()
    display_result(game)
    console.print("[dim]Press Enter to continue.[/dim]")


async def ask(prompt: str) -> str:
    """Read a line without blocking the event loop, so the clock keeps ticking."""
    return await asyncio.to_thread(console.input, prompt)


async def play_local(game: LocalGame):
    """Run a local game in the terminal until the user quits."""
    display_board(game)
    while True:
        if game.is_over:
            if game.reason is not Reason.TIMEOUT:
                display_result(game)
            answer = await ask("Play again? (y/N) ")
            if answer.strip().lower() != "y":
                return
            game.restart()
            display_board(game)
            continue

        if game.is_computer_turn:
            with console.status("[cyan]Computer is thinking...[/cyan]"):
                await game.computer_move()
            display_board(game)
            continue

        prompt = f"[{SYMBOL_STYLES[game.current_player]}]{game.current_player}[/] to move (1-9, r=restart, q=quit)"
        if game.clock_running:
            prompt += f" [yellow]{game.clock.duration_ms // 1000}s![/yellow]"
        raw = (await ask(prompt + ": ")).strip().lower()

        if game.is_over:
            # The clock ran out while we were waiting for input.
            continue
        if raw == "q":
            return
        if raw == "r":
            game.restart()
            display_board(game)
            continue
        if not raw.isdigit() or not await game.human_move(int(raw) - 1):
            console.print("[red]That cell is not available.[/red]")
            continue
        display_board(game)


def serve(session_config: SessionConfig, host: str, port: int):
    """Run the multiplayer websocket server."""
    console.print(f"[green]Server is listening on {host}:{port}[/green]")
    uvicorn.run(create_app(session_config), host=host, port=port, log_level="info")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vanishing-ttt", description="Vanishing tic-tac-toe")
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="Path to the yaml config")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="cmd")

    p_play = sub.add_parser("play", help="Play locally in the terminal")
    p_play.add_argument("--two-player", action="store_true", help="Two humans, one keyboard")
    p_play.add_argument(
        "--difficulty",
        choices=[d.value for d in Difficulty],
        default=None,
        help="Computer strength in single-player mode",
    )

    p_serve = sub.add_parser("serve", help="Run the multiplayer server")
    p_serve.add_argument("--host", default=None)
    p_serve.add_argument("--port", type=int, default=None)
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    load_dotenv()
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    config_data = load_config(args.config)

    if args.cmd == "serve":
        server = config_data.get("server", {})
        host = args.host or os.getenv("HOST") or server.get("host", "0.0.0.0")
        port = args.port or int(os.getenv("PORT") or server.get("port", 10000))
        serve(build_session_config(config_data), host, port)
        return 0

    display_welcome()
    game = LocalGame(build_game_config(config_data, args))
    game.on_timeout = lambda: announce_timeout(game)
    try:
        asyncio.run(play_local(game))
    except KeyboardInterrupt:
        console.print("\n[yellow]Game interrupted by user.[/yellow]")
    return 0


def run():
    """Entry point for the CLI."""
    sys.exit(main())


if __name__ == "__main__":
    run()
