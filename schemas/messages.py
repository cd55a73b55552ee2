"""Frames exchanged over the chat socket.

Inbound frames are validated through ``inbound_adapter``; a frame whose
``type`` is unknown or whose fields do not validate is rejected as a whole.
Outbound frames are plain models with a fixed ``type`` and camelCase aliases.
"""
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from constants import MESSAGE_MAX_LENGTH
from schemas.base import CamelModel, now_ms
from schemas.rooms import RoomInfo, RoomSummary
from schemas.users import RoomMember, UserInfo


# Client -> server

class RegisterFrame(CamelModel):
    type: Literal["REGISTER"]
    nickname: Optional[str] = None
    avatar: Optional[str] = None


class StartMatchingFrame(CamelModel):
    type: Literal["START_MATCHING"]


class StopMatchingFrame(CamelModel):
    type: Literal["STOP_MATCHING"]


class SendMessageFrame(CamelModel):
    type: Literal["SEND_MESSAGE"]
    text: str = Field(min_length=1, max_length=MESSAGE_MAX_LENGTH)


class DisconnectChatFrame(CamelModel):
    type: Literal["DISCONNECT_CHAT"]


class GetRoomsFrame(CamelModel):
    type: Literal["GET_ROOMS"]


class CreateRoomFrame(CamelModel):
    type: Literal["CREATE_ROOM"]
    # Validated by the room registry so bad values become ERROR replies
    name: Any = None
    max_size: Any = None


class JoinRoomFrame(CamelModel):
    type: Literal["JOIN_ROOM"]
    room_id: str


class LeaveRoomFrame(CamelModel):
    type: Literal["LEAVE_ROOM"]


class SendRoomMessageFrame(CamelModel):
    type: Literal["SEND_ROOM_MESSAGE"]
    text: str = Field(min_length=1, max_length=MESSAGE_MAX_LENGTH)


InboundFrame = Annotated[
    Union[
        RegisterFrame,
        StartMatchingFrame,
        StopMatchingFrame,
        SendMessageFrame,
        DisconnectChatFrame,
        GetRoomsFrame,
        CreateRoomFrame,
        JoinRoomFrame,
        LeaveRoomFrame,
        SendRoomMessageFrame,
    ],
    Field(discriminator="type"),
]

inbound_adapter = TypeAdapter(InboundFrame)


# Server -> client

class Registered(CamelModel):
    type: Literal["REGISTERED"] = "REGISTERED"
    id: str


class OnlineCount(CamelModel):
    type: Literal["ONLINE_COUNT"] = "ONLINE_COUNT"
    count: int


class MatchFound(CamelModel):
    type: Literal["MATCH_FOUND"] = "MATCH_FOUND"
    partner: UserInfo


class MessageReceived(CamelModel):
    type: Literal["MESSAGE_RECEIVED"] = "MESSAGE_RECEIVED"
    sender_id: str
    text: str
    timestamp: int = Field(default_factory=now_ms)


class PartnerDisconnected(CamelModel):
    type: Literal["PARTNER_DISCONNECTED"] = "PARTNER_DISCONNECTED"


class RoomList(CamelModel):
    type: Literal["ROOM_LIST"] = "ROOM_LIST"
    rooms: list[RoomSummary]


class RoomListUpdate(CamelModel):
    type: Literal["ROOM_LIST_UPDATE"] = "ROOM_LIST_UPDATE"
    rooms: list[RoomSummary]


class RoomJoined(CamelModel):
    type: Literal["ROOM_JOINED"] = "ROOM_JOINED"
    room: RoomInfo
    members: list[RoomMember]


class UserJoined(CamelModel):
    type: Literal["USER_JOINED"] = "USER_JOINED"
    user: RoomMember


class UserLeft(CamelModel):
    type: Literal["USER_LEFT"] = "USER_LEFT"
    user_id: str
    nickname: str


class RoomMessageReceived(CamelModel):
    type: Literal["ROOM_MESSAGE_RECEIVED"] = "ROOM_MESSAGE_RECEIVED"
    sender_id: str
    sender: UserInfo
    text: str
    timestamp: int = Field(default_factory=now_ms)


class Error(CamelModel):
    type: Literal["ERROR"] = "ERROR"
    message: str


# REST

class HealthResponse(CamelModel):
    status: str
    online_count: int
