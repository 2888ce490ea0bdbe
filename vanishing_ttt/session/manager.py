"""
Session manager: matchmaking, room lifecycle, turn timing and resolution.

Every event touching a room runs under that room's lock, and the matchmaking
queue has its own lock. When both are needed the queue lock is taken first.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from functools import partial
from typing import Any, Optional

from pydantic import ValidationError

from ..communication.channels import Channel, ChannelManager
from ..communication.markdown_logger import MarkdownLogger
from ..communication.messages import (
    GameOver,
    GameStart,
    MakeMoveRequest,
    MoveMade,
    NewTurn,
    RestartGame,
    RestartRequest,
    RoomClosed,
    StartTimer,
    UpdatePlayerCount,
    WaitingForOpponent,
    WireModel,
)
from ..engine.board import Reason, Symbol, apply_move, check_win, finish, new_match, next_turn
from ..engine.errors import DoubleResolution, GameError, InvalidMove, UnknownRoom
from ..engine.timer import DEFAULT_TURN_MS, TurnTimer
from .room import Room, RoomPhase, room_name

logger = logging.getLogger(__name__)


@dataclass
class SessionConfig:
    """Configuration for the multiplayer server."""
    turn_timeout_ms: int = DEFAULT_TURN_MS
    log_dir: Optional[str] = None


class SessionManager:
    """Authoritative arbiter for remote matches."""

    def __init__(
        self,
        config: Optional[SessionConfig] = None,
        channels: Optional[ChannelManager] = None,
        logger: Optional[MarkdownLogger] = None,
        rng: Optional[random.Random] = None,
    ):
        """Initialize the session manager.

        Args:
            config: Session configuration.
            channels: Channel registry; a fresh one when omitted.
            logger: Optional markdown match logger. Falls back to one under
                ``config.log_dir`` if that is set, otherwise nothing is written.
            rng: Random source for rematch symbol swaps.
        """
        self.config = config or SessionConfig()
        self.channels = channels or ChannelManager()
        if logger is None and self.config.log_dir:
            logger = MarkdownLogger(base_dir=self.config.log_dir)
        self.logger = logger
        self.rng = rng or random.Random()

        self.rooms: dict[str, Room] = {}
        self.waiting: Optional[str] = None
        self._membership: dict[str, str] = {}
        self._queue_lock = asyncio.Lock()
        self._room_serial = 0

    # --- Lookups ---

    def room_of(self, participant_id: str) -> Optional[Room]:
        """The room a participant currently belongs to."""
        room_id = self._membership.get(participant_id)
        return self.rooms.get(room_id) if room_id else None

    def phase_of(self, participant_id: str) -> Optional[RoomPhase]:
        """Where a participant is in the lifecycle, None if idle."""
        if self.waiting == participant_id:
            return RoomPhase.WAITING
        room = self.room_of(participant_id)
        return room.phase if room else None

    def _require_room(self, room_id: str) -> Room:
        room = self.rooms.get(room_id)
        if room is None:
            raise UnknownRoom(f"No room {room_id!r}")
        return room

    def _unique_room_id(self, base: str) -> str:
        # Ids containing "_" can produce the same name for different pairings.
        room_id = base
        while room_id in self.rooms:
            self._room_serial += 1
            room_id = f"{base}_{self._room_serial}"
        return room_id

    # --- Connection lifecycle ---

    async def connect(self, channel: Channel) -> None:
        """Register a participant's channel and announce the new head count."""
        self.channels.register(channel)
        logger.info("Participant connected: %s", channel.participant_id)
        await self.channels.broadcast_all(UpdatePlayerCount(count=self.channels.count))

    async def disconnect(self, participant_id: str) -> None:
        """Handle an abrupt transport drop: same as leaving, then unregister."""
        logger.info("Participant disconnected: %s", participant_id)
        await self.leave(participant_id)
        self.channels.unregister(participant_id)
        await self.channels.broadcast_all(UpdatePlayerCount(count=self.channels.count))

    # --- Matchmaking ---

    async def find_game(self, participant_id: str) -> Optional[Room]:
        """Queue a participant, or pair them with the one already waiting.

        Returns:
            The new room if a pairing happened, otherwise None.
        """
        if participant_id in self._membership:
            await self._leave_room(participant_id, self._membership[participant_id])

        async with self._queue_lock:
            if self.waiting is None or self.waiting == participant_id:
                self.waiting = participant_id
                logger.info("Participant %s is waiting for an opponent", participant_id)
                await self.channels.send_to(participant_id, WaitingForOpponent())
                return None

            first, self.waiting = self.waiting, None
            room_id = self._unique_room_id(room_name(first, participant_id))
            timer = TurnTimer(
                partial(self._expire_turn, room_id),
                duration_ms=self.config.turn_timeout_ms,
            )
            room = Room.pair(first, participant_id, timer, room_id=room_id)
            self.rooms[room_id] = room
            self._membership[first] = room_id
            self._membership[participant_id] = room_id

            async with room.lock:
                logger.info("Game started in room %s", room_id)
                await self._start_round(room, rematch=False)
        return room

    # --- Gameplay ---

    async def make_move(self, participant_id: str, room_id: str, index: Any) -> bool:
        """Apply a move from the current turn holder.

        Anything invalid (unknown room, finished match, wrong player, bad
        cell) is dropped without changing state or broadcasting.

        Returns:
            True if the move was applied.
        """
        try:
            room = self._require_room(room_id)
        except UnknownRoom as exc:
            logger.debug("Ignoring move from %s: %s", participant_id, exc)
            return False

        async with room.lock:
            try:
                self._check_live(room)
                if not room.match.is_active:
                    raise InvalidMove("Match is not active")
                if participant_id != room.current_turn_holder:
                    raise InvalidMove(f"Not {participant_id}'s turn")
                symbol = room.symbols[participant_id]
                room.match = apply_move(room.match, index, symbol)
            except GameError as exc:
                logger.debug("Ignoring move from %s in %s: %s", participant_id, room_id, exc)
                return False

            room.last_actor = participant_id
            await self._broadcast(room, MoveMade(
                index=index,
                symbol=symbol.value,
                vanished=room.match.last_evicted,
            ))
            if self.logger:
                self.logger.log_move(
                    room_id, room.match.turn_count, symbol.value, index, room.match.last_evicted
                )

            if check_win(room.match.board) is not None:
                await self._resolve(
                    room,
                    Reason.WIN,
                    winner=room.last_actor,
                    loser=room.opponent_of(room.last_actor),
                )
            else:
                await self._new_turn(room)
        return True

    async def restart_request(self, participant_id: str, room_id: str) -> Optional[Reason]:
        """Forfeit an active match, or start a rematch of a finished one.

        Returns:
            ``Reason.FORFEIT`` if the request forfeited, None if it restarted
            or was ignored.
        """
        try:
            room = self._require_room(room_id)
        except UnknownRoom as exc:
            logger.debug("Ignoring restart from %s: %s", participant_id, exc)
            return None

        async with room.lock:
            try:
                self._check_live(room)
                if participant_id not in room.players:
                    raise InvalidMove(f"{participant_id} is not in {room_id}")
            except GameError as exc:
                logger.debug("Ignoring restart from %s: %s", participant_id, exc)
                return None

            if room.match.is_active:
                await self._resolve(
                    room,
                    Reason.FORFEIT,
                    winner=room.opponent_of(participant_id),
                    loser=participant_id,
                )
                return Reason.FORFEIT

            room.timer.cancel()
            if self.rng.random() < 0.5:
                room.swap_symbols()
            room.round_number += 1
            logger.info("Rematch in room %s (round %d)", room_id, room.round_number)
            await self._start_round(room, rematch=True)
        return None

    async def leave(self, participant_id: str) -> None:
        """Explicit departure: leave the queue and/or the current room."""
        async with self._queue_lock:
            if self.waiting == participant_id:
                self.waiting = None
                logger.info("The waiting participant %s has left", participant_id)

        room_id = self._membership.get(participant_id)
        if room_id is not None:
            await self._leave_room(participant_id, room_id)

    async def handle(self, participant_id: str, event: str, data: Optional[dict] = None) -> None:
        """Dispatch one raw inbound wire message."""
        data = data or {}
        try:
            if event == "findGame":
                await self.find_game(participant_id)
            elif event == MakeMoveRequest.EVENT:
                request = MakeMoveRequest.model_validate(data)
                await self.make_move(participant_id, request.room, request.move.index)
            elif event == RestartRequest.EVENT:
                request = RestartRequest.model_validate(data)
                await self.restart_request(participant_id, request.room)
            elif event == "leaveGame":
                await self.leave(participant_id)
            else:
                logger.warning("Unknown event %r from %s", event, participant_id)
        except ValidationError as exc:
            logger.info("Dropping malformed %s from %s: %s", event, participant_id, exc)

    # --- Internals (callers hold room.lock) ---

    def _check_live(self, room: Room) -> None:
        # The room may have been torn down while we waited for its lock.
        if self.rooms.get(room.room_id) is not room:
            raise UnknownRoom(f"Room {room.room_id} was closed")

    async def _broadcast(self, room: Room, message: WireModel) -> None:
        await self.channels.broadcast(room.players, message)

    async def _start_round(self, room: Room, rematch: bool) -> None:
        room.match = new_match(Symbol.X)
        room.last_actor = None
        room.current_turn_holder = room.holder_of(Symbol.X)

        for pid in room.players:
            symbol = room.symbols[pid].value
            if rematch:
                await self.channels.send_to(pid, RestartGame(symbol=symbol))
            else:
                await self.channels.send_to(pid, GameStart(symbol=symbol, room=room.room_id))
        if self.logger:
            self.logger.start_match(room.room_id, room.symbol_map(), room.round_number)

        # First turn of a round is untimed.
        await self._broadcast(room, NewTurn(
            current_player_id=room.current_turn_holder,
            symbol=Symbol.X.value,
        ))

    async def _new_turn(self, room: Room) -> None:
        room.timer.cancel()
        next_turn(room.match)
        room.current_turn_holder = room.opponent_of(room.current_turn_holder)
        await self._broadcast(room, NewTurn(
            current_player_id=room.current_turn_holder,
            symbol=room.match.active_player.value,
        ))
        if room.match.turn_count > 1:
            room.timer.start()
            await self.channels.send_to(
                room.current_turn_holder, StartTimer(duration=room.timer.duration_ms)
            )

    async def _resolve(
        self,
        room: Room,
        reason: Reason,
        winner: Optional[str],
        loser: Optional[str],
    ) -> bool:
        """End the round and announce it once.

        Returns:
            False if the round had already been resolved.
        """
        try:
            finish(room.match)
        except DoubleResolution:
            logger.debug("Room %s already resolved; dropping %s", room.room_id, reason.value)
            return False

        room.timer.cancel()
        logger.info(
            "Room %s over: winner=%s loser=%s reason=%s", room.room_id, winner, loser, reason.value
        )
        await self._broadcast(room, GameOver(winner_id=winner, loser_id=loser, reason=reason.value))
        if self.logger:
            self.logger.log_game_over(room.room_id, winner, loser, reason.value)
        return True

    async def _expire_turn(self, room_id: str, generation: int) -> None:
        room = self.rooms.get(room_id)
        if room is None:
            return
        async with room.lock:
            if self.rooms.get(room_id) is not room or not room.timer.is_current(generation):
                return
            loser = room.current_turn_holder
            await self._resolve(room, Reason.TIMEOUT, winner=room.opponent_of(loser), loser=loser)

    async def _leave_room(self, participant_id: str, room_id: str) -> None:
        room = self.rooms.get(room_id)
        if room is None:
            self._membership.pop(participant_id, None)
            return

        async with room.lock:
            if self.rooms.get(room_id) is not room:
                return
            other = room.opponent_of(participant_id)
            if room.match.is_active:
                await self._resolve(room, Reason.DISCONNECT, winner=other, loser=participant_id)
            elif other is not None:
                await self.channels.send_to(other, RoomClosed(room=room_id))

            room.timer.cancel()
            del self.rooms[room_id]
            for pid in room.players:
                if self._membership.get(pid) == room_id:
                    del self._membership[pid]
            if self.logger:
                self.logger.log_room_closed(room_id, participant_id)
            logger.info("Cleaned up room %s after %s left", room_id, participant_id)
