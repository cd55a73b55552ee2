from fastapi import APIRouter, HTTPException, Request

from logging_config import get_logger
from schemas.rooms import RoomDetailsResponse, RoomSummary

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])


@rooms_router.get("/", response_model=list[RoomSummary])
async def list_rooms(request: Request):
    """Same snapshot the GET_ROOMS frame returns, for clients not yet on the socket."""
    rooms = request.app.state.chat_backend.rooms.list_rooms()
    logger.debug(f"Room list request from {request.client.host if request.client else 'unknown'}: {len(rooms)} rooms")
    return rooms


@rooms_router.get("/{room_id}", response_model=RoomDetailsResponse)
async def get_room_details(room_id: str, request: Request):
    """
    Get room details including the current members.

    Returns:
    - id, name, creator: room identity
    - current_size / max_size / is_full: capacity
    - created_at: epoch milliseconds
    - members: id, nickname, avatar and creator flag of every member
    """
    details = request.app.state.chat_backend.rooms.details(room_id)
    if details is None:
        logger.warning(f"Room details failed: Room {room_id} not found")
        raise HTTPException(status_code=404, detail="Room not found")
    logger.info(f"Room details retrieved for {room_id}: {details.current_size}/{details.max_size} members")
    return details
