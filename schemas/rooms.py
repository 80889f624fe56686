from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class CreateRoomRequest(_WireModel):
    room_id: str = Field(alias="roomId", min_length=1)
    password: Optional[str] = None
    player_id: str = Field(alias="playerId", min_length=1)

class JoinRoomRequest(_WireModel):
    room_id: str = Field(alias="roomId", min_length=1)
    password: Optional[str] = None
    player_id: str = Field(alias="playerId", min_length=1)

class MovePayload(_WireModel):
    from_square: str = Field(alias="from")
    to_square: str = Field(alias="to")

class MoveRequest(_WireModel):
    room_id: str = Field(alias="roomId", min_length=1)
    move: MovePayload

class RoomSummary(_WireModel):
    room_id: str = Field(alias="roomId")
    has_password: bool = Field(alias="hasPassword")
    player_count: int = Field(alias="playerCount")

class RoomDetailsResponse(RoomSummary):
    fen: str

class HealthResponse(BaseModel):
    status: str
    rooms: int
