"""Participant channels and room broadcast."""

from dataclasses import dataclass, field
from typing import Iterable, Optional

from .messages import WireModel


@dataclass
class Envelope:
    """One outbound message as it goes over the wire."""
    event: str
    data: dict

    def to_wire(self) -> dict:
        return {"event": self.event, "data": self.data}


@dataclass
class Channel:
    """Outbound channel to a single participant.

    The base class keeps the messages in memory only; transports subclass it
    and override ``deliver``.
    """

    participant_id: str
    messages: list[Envelope] = field(default_factory=list)
    max_history: Optional[int] = None

    async def send(self, message: WireModel) -> Envelope:
        """Record and deliver a message."""
        envelope = Envelope(event=message.EVENT, data=message.to_wire())
        self.messages.append(envelope)
        if self.max_history is not None and len(self.messages) > self.max_history:
            self.messages = self.messages[-self.max_history:]
        await self.deliver(envelope)
        return envelope

    async def deliver(self, envelope: Envelope) -> None:
        """Hand the envelope to the transport. No-op for in-memory channels."""

    def get_messages(self, event: Optional[str] = None) -> list[Envelope]:
        """Get messages, optionally filtered by event name."""
        if event is None:
            return self.messages
        return [m for m in self.messages if m.event == event]

    def events(self) -> list[str]:
        """Event names in the order they were sent."""
        return [m.event for m in self.messages]


class ChannelManager:
    """Registry of connected participants' channels."""

    def __init__(self):
        self._channels: dict[str, Channel] = {}

    def register(self, channel: Channel) -> None:
        self._channels[channel.participant_id] = channel

    def unregister(self, participant_id: str) -> Optional[Channel]:
        return self._channels.pop(participant_id, None)

    def get(self, participant_id: str) -> Optional[Channel]:
        return self._channels.get(participant_id)

    def __contains__(self, participant_id: str) -> bool:
        return participant_id in self._channels

    @property
    def count(self) -> int:
        """Number of connected participants."""
        return len(self._channels)

    async def send_to(self, participant_id: str, message: WireModel) -> None:
        """Send to one participant. Participants that are gone are skipped."""
        channel = self._channels.get(participant_id)
        if channel is not None:
            await channel.send(message)

    async def broadcast(self, participant_ids: Iterable[str], message: WireModel) -> None:
        """Send the same message to every listed participant still connected.

        Args:
            participant_ids: Room members (or any audience).
            message: Payload to send.
        """
        for participant_id in list(participant_ids):
            await self.send_to(participant_id, message)

    async def broadcast_all(self, message: WireModel) -> None:
        """Send a message to every connected participant."""
        await self.broadcast(self._channels.keys(), message)
