from typing import Optional

from schemas.base import CamelModel
from schemas.users import RoomMember


class RoomSummary(CamelModel):
    """One row of the public room list."""

    id: str
    name: str
    current_size: int
    max_size: int
    created_at: int


class RoomInfo(CamelModel):
    id: str
    name: str
    creator: str
    max_size: int


class RoomDetailsResponse(CamelModel):
    id: str
    name: str
    creator: str
    current_size: int
    max_size: int
    created_at: int
    is_full: bool
    members: Optional[list[RoomMember]] = None
