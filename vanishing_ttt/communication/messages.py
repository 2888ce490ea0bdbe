"""Wire payloads exchanged between participants and the session manager."""

from typing import ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base payload: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    EVENT: ClassVar[str] = ""

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


# --- Inbound ---

class MovePayload(WireModel):
    index: int
    symbol: Optional[str] = None  # client's claim; the server uses the assigned symbol


class MakeMoveRequest(WireModel):
    EVENT: ClassVar[str] = "makeMove"
    room: str
    move: MovePayload


class RestartRequest(WireModel):
    EVENT: ClassVar[str] = "restartRequest"
    room: str


# --- Outbound ---

class WaitingForOpponent(WireModel):
    EVENT: ClassVar[str] = "waitingForOpponent"


class GameStart(WireModel):
    EVENT: ClassVar[str] = "gameStart"
    symbol: str
    room: str


class NewTurn(WireModel):
    EVENT: ClassVar[str] = "newTurn"
    current_player_id: str
    symbol: str


class StartTimer(WireModel):
    EVENT: ClassVar[str] = "startTimer"
    duration: int = Field(description="Milliseconds the turn holder has to move")


class MoveMade(WireModel):
    EVENT: ClassVar[str] = "moveMade"
    index: int
    symbol: str
    vanished: Optional[int] = None


class GameOver(WireModel):
    EVENT: ClassVar[str] = "gameOver"
    winner_id: Optional[str]
    loser_id: Optional[str]
    reason: str


class RestartGame(WireModel):
    EVENT: ClassVar[str] = "restartGame"
    symbol: str


class RoomClosed(WireModel):
    EVENT: ClassVar[str] = "roomClosed"
    room: str


class UpdatePlayerCount(WireModel):
    EVENT: ClassVar[str] = "updatePlayerCount"
    count: int
