"""Websocket transport for the session manager.

Each connection gets a participant id and a channel; inbound frames are
``{"event": ..., "data": {...}}`` objects handed to ``SessionManager.handle``.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from .communication.channels import Channel, Envelope
from .session.manager import SessionConfig, SessionManager

logger = logging.getLogger(__name__)


def generate_id() -> str:
    """Generate a short participant id."""
    return uuid4().hex[:8]


@dataclass
class WebSocketChannel(Channel):
    """Channel that writes envelopes to a websocket as JSON text."""

    websocket: Optional[WebSocket] = None
    max_history: Optional[int] = 50

    async def deliver(self, envelope: Envelope) -> None:
        try:
            await self.websocket.send_text(json.dumps(envelope.to_wire()))
        except (WebSocketDisconnect, RuntimeError) as exc:
            # The receive loop of that socket handles the departure.
            logger.debug("Could not deliver %s to %s: %s", envelope.event, self.participant_id, exc)


def create_app(
    config: Optional[SessionConfig] = None,
    manager: Optional[SessionManager] = None,
) -> FastAPI:
    """Build the FastAPI app around a session manager.

    Args:
        config: Session configuration, used when no manager is given.
        manager: Existing session manager to serve.

    Returns:
        The configured app. The manager is available as ``app.state.sessions``.
    """
    sessions = manager or SessionManager(config=config)
    app = FastAPI(title="Vanishing Tic-Tac-Toe")
    app.state.sessions = sessions

    @app.get("/health")
    async def health() -> dict:
        return {
            "ok": True,
            "players": sessions.channels.count,
            "rooms": len(sessions.rooms),
        }

    @app.websocket("/ws")
    async def ws_endpoint(websocket: WebSocket):
        await websocket.accept()
        participant_id = generate_id()
        await sessions.connect(WebSocketChannel(participant_id=participant_id, websocket=websocket))
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                text = message.get("text")
                if text is None:
                    logger.info("Dropping binary frame from %s", participant_id)
                    continue
                try:
                    frame = json.loads(text)
                except json.JSONDecodeError:
                    logger.info("Dropping non-JSON frame from %s", participant_id)
                    continue
                if not isinstance(frame, dict) or not isinstance(frame.get("event"), str):
                    logger.info("Dropping frame without an event from %s", participant_id)
                    continue
                try:
                    await sessions.handle(participant_id, frame["event"], frame.get("data"))
                except Exception:
                    # A fault in one room must not take the connection down.
                    logger.exception("Handler error for %s on %s", participant_id, frame["event"])
        except WebSocketDisconnect:
            pass
        finally:
            await sessions.disconnect(participant_id)

    return app
