"""Markdown logger for match records."""

from datetime import datetime
from pathlib import Path
from typing import Optional


class MarkdownLogger:
    """Writes one markdown record per room: players, moves, and outcomes."""

    def __init__(self, base_dir: str = "matches"):
        """Initialize the logger.

        Args:
            base_dir: Base directory for match records.
        """
        self.base_dir = Path(base_dir)

    def match_file(self, room_id: str) -> Path:
        """Path of the record for ``room_id``."""
        return self.base_dir / room_id / "match.md"

    def _append(self, room_id: str, text: str) -> None:
        path = self.match_file(room_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "a") as f:
            f.write(text)

    def start_match(
        self,
        room_id: str,
        players: dict[str, str],
        round_number: int = 1,
    ) -> Path:
        """Start a new round in the room's record.

        Args:
            room_id: Room identifier.
            players: Mapping of symbol to participant id.
            round_number: 1 for the first round, higher for rematches.

        Returns:
            Path to the match record.
        """
        lines = []
        if round_number == 1:
            lines.append(f"# Match - {room_id}\n\n")
        lines.append(f"## Round {round_number}\n\n")
        lines.append(f"Started: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n\n")
        lines.append("| Symbol | Participant |\n")
        lines.append("|--------|-------------|\n")
        for symbol, participant_id in sorted(players.items()):
            lines.append(f"| {symbol} | {participant_id} |\n")
        lines.append("\n| Turn | Symbol | Cell | Vanished |\n")
        lines.append("|------|--------|------|----------|\n")
        self._append(room_id, "".join(lines))
        return self.match_file(room_id)

    def log_move(
        self,
        room_id: str,
        turn: int,
        symbol: str,
        index: int,
        vanished: Optional[int] = None,
    ) -> None:
        """Log one applied move.

        Args:
            room_id: Room identifier.
            turn: Turn number the move was made on.
            symbol: Symbol placed.
            index: Cell played.
            vanished: Cell cleared by the vanish rule, if any.
        """
        cleared = "-" if vanished is None else str(vanished)
        self._append(room_id, f"| {turn} | {symbol} | {index} | {cleared} |\n")

    def log_game_over(
        self,
        room_id: str,
        winner_id: Optional[str],
        loser_id: Optional[str],
        reason: str,
    ) -> None:
        """Log how a round ended."""
        lines = ["\n### Result\n\n"]
        if winner_id:
            lines.append(f"**{winner_id}** won ({reason}).\n")
        else:
            lines.append(f"*No winner ({reason}).*\n")
        if loser_id:
            lines.append(f"*{loser_id} lost.*\n")
        lines.append(f"\nEnded: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n\n")
        self._append(room_id, "".join(lines))

    def log_room_closed(self, room_id: str, departed: str) -> None:
        """Log that the room was torn down after a departure."""
        self._append(room_id, f"---\n\n*Room closed: {departed} left.*\n")
