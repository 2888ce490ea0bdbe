"""Room model: two paired participants and their shared match."""

import asyncio
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from ..engine.board import MatchState, Symbol, new_match
from ..engine.timer import TurnTimer


class RoomPhase(Enum):
    """Lifecycle of a pairing. Rooms only exist once paired."""
    WAITING = auto()   # In the matchmaking queue, no room yet
    ACTIVE = auto()    # A round is being played
    FINISHED = auto()  # Round over; restart means rematch


def room_name(first: str, second: str) -> str:
    """Room identifier for a pairing, newest arrival first."""
    return f"room_{second}_{first}"


@dataclass
class Room:
    """Authoritative state for one pairing.

    Only the session manager mutates a room, and only while holding
    ``lock``.
    """

    room_id: str
    players: list[str]
    symbols: dict[str, Symbol]
    timer: TurnTimer
    match: MatchState = field(default_factory=new_match)
    current_turn_holder: Optional[str] = None
    last_actor: Optional[str] = None
    round_number: int = 1
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @classmethod
    def pair(
        cls, first: str, second: str, timer: TurnTimer, room_id: Optional[str] = None
    ) -> "Room":
        """Create a room; the first-queued participant plays X."""
        return cls(
            room_id=room_id or room_name(first, second),
            players=[first, second],
            symbols={first: Symbol.X, second: Symbol.O},
            timer=timer,
        )

    @property
    def phase(self) -> RoomPhase:
        return RoomPhase.ACTIVE if self.match.is_active else RoomPhase.FINISHED

    def holder_of(self, symbol: Symbol) -> str:
        """Participant currently assigned ``symbol``."""
        return next(pid for pid, s in self.symbols.items() if s is symbol)

    def opponent_of(self, participant_id: str) -> Optional[str]:
        """The other member of the room, or None if not a member."""
        if participant_id not in self.players:
            return None
        return next((p for p in self.players if p != participant_id), None)

    def swap_symbols(self) -> None:
        """Exchange which participant plays X and which plays O."""
        self.symbols = {pid: symbol.opponent for pid, symbol in self.symbols.items()}

    def symbol_map(self) -> dict[str, str]:
        """Symbol name to participant id, for logging."""
        return {symbol.value: pid for pid, symbol in self.symbols.items()}
