import math
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from constants import ROOM_DEFAULT_SIZE, ROOM_MAX_SIZE, ROOM_MIN_SIZE, ROOM_NAME_MAX_LENGTH
from logging_config import get_logger
from schemas.base import now_ms
from schemas.messages import RoomJoined, RoomList, RoomListUpdate, RoomMessageReceived, UserJoined, UserLeft
from schemas.rooms import RoomDetailsResponse, RoomInfo, RoomSummary
from schemas.users import RoomMember, UserInfo
from services.broadcaster import Broadcaster
from services.connections import ConnectionRegistry
from services.errors import AlreadyInRoom, InvalidRoomName, RoomFull, RoomNotFound

logger = get_logger(__name__)


def validate_room_name(raw_name: Any) -> str:
    """Return the trimmed name; the trimmed length is what gets checked."""
    if not isinstance(raw_name, str):
        raise InvalidRoomName()
    name = raw_name.strip()
    if not name or len(name) > ROOM_NAME_MAX_LENGTH:
        raise InvalidRoomName()
    return name


def clamp_room_size(raw_max_size: Any) -> int:
    """Clamp a requested capacity into [ROOM_MIN_SIZE, ROOM_MAX_SIZE].

    Missing, zero, boolean and non-numeric requests get the default size.
    Out of range numbers are clamped, never rejected.
    """
    size = raw_max_size
    if isinstance(size, str):
        try:
            size = float(size.strip())
        except ValueError:
            size = None
    if isinstance(size, bool) or not isinstance(size, (int, float)) or not size or math.isnan(size):
        size = ROOM_DEFAULT_SIZE
    return int(min(max(size, ROOM_MIN_SIZE), ROOM_MAX_SIZE))


@dataclass
class Room:
    id: str
    name: str
    creator_id: str
    max_size: int
    created_at: int = field(default_factory=now_ms)
    # insertion ordered, creator first
    members: list[str] = field(default_factory=list)

    @property
    def current_size(self) -> int:
        return len(self.members)

    @property
    def is_full(self) -> bool:
        return len(self.members) >= self.max_size

    def summary(self) -> RoomSummary:
        return RoomSummary(
            id=self.id,
            name=self.name,
            current_size=self.current_size,
            max_size=self.max_size,
            created_at=self.created_at,
        )

    def info(self) -> RoomInfo:
        return RoomInfo(id=self.id, name=self.name, creator=self.creator_id, max_size=self.max_size)


class RoomRegistry:
    """Rooms, their members, and the connection -> room index.

    A room exists exactly as long as it has at least one member.
    """

    def __init__(self):
        self._rooms: Dict[str, Room] = {}
        self._user_rooms: Dict[str, str] = {}

    def create(self, creator_id: str, raw_name: Any, raw_max_size: Any = None) -> Room:
        if creator_id in self._user_rooms:
            raise AlreadyInRoom()
        name = validate_room_name(raw_name)
        room = Room(
            id=uuid.uuid4().hex,
            name=name,
            creator_id=creator_id,
            max_size=clamp_room_size(raw_max_size),
            members=[creator_id],
        )
        self._rooms[room.id] = room
        self._user_rooms[creator_id] = room.id
        logger.info(f"Room {room.id} created by {creator_id}: name={name}, max_size={room.max_size}")
        return room

    def join(self, connection_id: str, room_id: str) -> Room:
        if connection_id in self._user_rooms:
            raise AlreadyInRoom()
        room = self._rooms.get(room_id)
        if not room:
            logger.info(f"Join rejected: room {room_id} not found")
            raise RoomNotFound()
        if room.is_full:
            logger.info(f"Join rejected: room {room_id} is full ({room.current_size}/{room.max_size})")
            raise RoomFull()
        room.members.append(connection_id)
        self._user_rooms[connection_id] = room_id
        logger.info(f"Connection {connection_id} joined room {room_id} ({room.current_size}/{room.max_size})")
        return room

    def leave(self, connection_id: str) -> Optional[Room]:
        """Remove ``connection_id`` from its room and return that room.

        The returned room has already been destroyed when it has no members
        left.
        """
        room_id = self._user_rooms.pop(connection_id, None)
        if room_id is None:
            return None
        room = self._rooms.get(room_id)
        if room is None:
            return None
        if connection_id in room.members:
            room.members.remove(connection_id)
        logger.info(f"Connection {connection_id} left room {room_id} ({room.current_size}/{room.max_size})")
        if not room.members:
            del self._rooms[room_id]
            logger.info(f"Room {room_id} is empty, destroyed")
        return room

    def get_room(self, room_id: str) -> Optional[Room]:
        return self._rooms.get(room_id)

    def room_of(self, connection_id: str) -> Optional[Room]:
        room_id = self._user_rooms.get(connection_id)
        return self._rooms.get(room_id) if room_id else None

    def list_rooms(self) -> list[RoomSummary]:
        return [room.summary() for room in self._rooms.values()]

    def clear(self):
        self._rooms.clear()
        self._user_rooms.clear()

    def __contains__(self, room_id: str) -> bool:
        return room_id in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)


class RoomService:
    """Room operations plus the notifications each of them raises."""

    def __init__(self, connections: ConnectionRegistry, broadcaster: Broadcaster, registry: RoomRegistry):
        self.connections = connections
        self.broadcaster = broadcaster
        self.registry = registry

    def list_rooms(self) -> list[RoomSummary]:
        return self.registry.list_rooms()

    def send_room_list(self, connection_id: str):
        self.broadcaster.send_to(connection_id, RoomList(rooms=self.list_rooms()))

    def broadcast_room_list(self):
        self.broadcaster.send_to_all(RoomListUpdate(rooms=self.list_rooms()))

    def room_of(self, connection_id: str) -> Optional[Room]:
        return self.registry.room_of(connection_id)

    def members(self, room: Room) -> list[RoomMember]:
        members = []
        for member_id in room.members:
            member = self._member(room, member_id)
            if member:
                members.append(member)
        return members

    def details(self, room_id: str) -> Optional[RoomDetailsResponse]:
        room = self.registry.get_room(room_id)
        if not room:
            return None
        return RoomDetailsResponse(
            id=room.id,
            name=room.name,
            creator=room.creator_id,
            current_size=room.current_size,
            max_size=room.max_size,
            created_at=room.created_at,
            is_full=room.is_full,
            members=self.members(room),
        )

    def create_room(self, creator_id: str, raw_name: Any, raw_max_size: Any = None) -> Room:
        room = self.registry.create(creator_id, raw_name, raw_max_size)
        self.broadcaster.send_to(creator_id, RoomJoined(room=room.info(), members=self.members(room)))
        self.broadcast_room_list()
        return room

    def join_room(self, connection_id: str, room_id: str) -> Room:
        room = self.registry.join(connection_id, room_id)
        self.broadcaster.send_to(connection_id, RoomJoined(room=room.info(), members=self.members(room)))
        joiner = self._member(room, connection_id)
        if joiner:
            self.broadcaster.send_to_room(room.id, UserJoined(user=joiner), exclude_id=connection_id)
        self.broadcast_room_list()
        return room

    def leave_room(self, connection_id: str) -> Optional[Room]:
        room = self.registry.leave(connection_id)
        if room is None:
            return None
        if room.members:
            profile = self.connections.resolve(connection_id)
            nickname = profile.nickname if profile else "Unknown"
            self.broadcaster.send_to_room(room.id, UserLeft(user_id=connection_id, nickname=nickname))
        self.broadcast_room_list()
        return room

    def send_room_message(self, connection_id: str, text: str):
        room = self.registry.room_of(connection_id)
        profile = self.connections.resolve(connection_id)
        if room is None or profile is None:
            logger.debug(f"Dropping room message from {connection_id}: not in a room")
            return
        # Echoed to the sender too so every member sees the same order
        message = RoomMessageReceived(
            sender_id=connection_id,
            sender=UserInfo.from_profile(connection_id, profile),
            text=text,
        )
        self.broadcaster.send_to_room(room.id, message)

    def reset(self):
        self.registry.clear()

    def _member(self, room: Room, connection_id: str) -> Optional[RoomMember]:
        profile = self.connections.resolve(connection_id)
        if profile is None:
            return None
        return RoomMember(
            id=connection_id,
            nickname=profile.nickname,
            avatar=profile.avatar,
            is_creator=connection_id == room.creator_id,
        )
