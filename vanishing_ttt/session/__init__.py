"""Multiplayer session management."""

from .manager import SessionConfig, SessionManager
from .room import Room, RoomPhase

__all__ = ["SessionConfig", "SessionManager", "Room", "RoomPhase"]
