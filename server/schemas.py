"""
Websocket message and HTTP response models.
"""

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class ClientMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CreateRoom(ClientMessage):
    type: Literal["create-room"]
    name: str = ""
    client_id: str = Field(default="", alias="clientId")
    avatar: Optional[int] = None


class JoinRoom(ClientMessage):
    type: Literal["join-room"]
    code: str
    name: str = ""
    client_id: str = Field(default="", alias="clientId")
    avatar: Optional[int] = None


class ResumeRoom(ClientMessage):
    type: Literal["resume-room"]
    code: str
    client_id: str = Field(default="", alias="clientId")


class StartGame(ClientMessage):
    type: Literal["start-game"]
    map_id: str = Field(default="classic", alias="mapId")


class GameAction(ClientMessage):
    type: Literal["game-action"]
    action: Dict[str, Any]


class KickPlayer(ClientMessage):
    type: Literal["kick-player"]
    player_id: str = Field(alias="playerId")


class Chat(ClientMessage):
    type: Literal["chat"]
    message: str


InboundMessage = Annotated[
    Union[CreateRoom, JoinRoom, ResumeRoom, StartGame, GameAction, KickPlayer, Chat],
    Field(discriminator="type"),
]

inbound_adapter: TypeAdapter = TypeAdapter(InboundMessage)


class Participant(BaseModel):
    name: str
    client_id: str
    connected: bool
    is_host: bool
    player_id: Optional[str] = None
    seat_index: Optional[int] = None
    avatar: Optional[int] = None


class HealthResponse(BaseModel):
    status: str
    rooms: int


class RoomStatusResponse(BaseModel):
    code: str
    status: str
    players: List[str]
    participants: List[Participant]


class LegalActionsResponse(BaseModel):
    code: str
    player_id: str
    actions: List[str]
