from typing import List, Optional

from fastapi import APIRouter, Header, HTTPException, Request
from fastapi.responses import JSONResponse

from errors import RoomNotFound
from logging_config import get_logger
from schemas.rooms import RoomDetailsResponse, RoomSummary

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])


def _summary(room) -> dict:
    return {
        "roomId": room.room_id,
        "hasPassword": room.has_password,
        "playerCount": room.player_count,
    }


@rooms_router.get("", response_model=List[RoomSummary])
async def list_rooms(request: Request):
    store = request.app.state.gateway.store
    logger.debug(f"Room list requested, {len(store)} rooms")
    return [RoomSummary(**_summary(room)) for room in store]


@rooms_router.get(
    "/{room_id}",
    response_model=RoomDetailsResponse,
    responses={404: {"description": "Room not found"}},
)
async def get_room_details(room_id: str, request: Request):
    room = request.app.state.gateway.store.find(room_id)
    if room is None:
        logger.warning(f"Room details failed: Room {room_id} not found")
        return JSONResponse(status_code=404, content={"error": "Room not found"})
    return RoomDetailsResponse(**_summary(room), fen=room.fen)


@rooms_router.delete("/{room_id}")
async def close_room(room_id: str, request: Request, x_admin_token: Optional[str] = Header(None)):
    admin_token = request.app.state.admin_token
    client_host = request.client.host if request.client else "unknown"
    if not admin_token or x_admin_token != admin_token:
        logger.warning(f"Close room {room_id} refused for {client_host}: bad admin token")
        raise HTTPException(status_code=403, detail="Admin token required")

    try:
        await request.app.state.gateway.close_room(room_id)
    except RoomNotFound:
        raise HTTPException(status_code=404, detail="Room not found")

    logger.info(f"Room {room_id} closed by admin from {client_host}")
    return {"message": "Room closed successfully"}
