"""Routes inbound socket frames to the matchmaking and room services.

The dispatcher is also where the cross-service rule lives: a connection is
either in random matchmaking (waiting or paired) or in a room, never both.
The services do not check this themselves, so every route that could break
it checks first.
"""
import json
from typing import Callable, Dict, Optional, Union

from pydantic import ValidationError

from backend import ChatBackend
from logging_config import get_logger
from schemas.messages import (
    CreateRoomFrame,
    Error,
    JoinRoomFrame,
    RegisterFrame,
    Registered,
    SendMessageFrame,
    SendRoomMessageFrame,
    inbound_adapter,
)
from services.connections import Deliver
from services.errors import MatchmakingActive, RoomError
from services.matchmaking import MatchState

logger = get_logger(__name__)


class ClientSession:
    """Transport side state of one socket.

    ``connection_id`` stays None until the client sends REGISTER.
    """

    def __init__(self, deliver: Deliver, peer: Optional[str] = None):
        self.deliver = deliver
        self.peer = peer or "unknown"
        self.connection_id: Optional[str] = None

    def __repr__(self):
        return f"<ClientSession {self.connection_id or 'unregistered'} from {self.peer}>"


class Dispatcher:
    def __init__(self, backend: ChatBackend):
        self.backend = backend
        self.handlers: Dict[str, Callable] = {
            "START_MATCHING": self.handle_start_matching,
            "STOP_MATCHING": self.handle_stop_matching,
            "SEND_MESSAGE": self.handle_send_message,
            "DISCONNECT_CHAT": self.handle_disconnect_chat,
        }
        # Without a room service the room frames are simply unknown types
        if backend.rooms is not None:
            self.handlers.update({
                "GET_ROOMS": self.handle_get_rooms,
                "CREATE_ROOM": self.handle_create_room,
                "JOIN_ROOM": self.handle_join_room,
                "LEAVE_ROOM": self.handle_leave_room,
                "SEND_ROOM_MESSAGE": self.handle_send_room_message,
            })

    def dispatch(self, session: ClientSession, raw: Union[str, bytes]):
        """Process one frame. Malformed frames are logged and dropped."""
        try:
            data = json.loads(raw)
        except (ValueError, RecursionError, TypeError) as e:
            logger.warning(f"Ignoring unparseable frame from {session}: {e}")
            return
        if not isinstance(data, dict):
            logger.warning(f"Ignoring non-object frame from {session}")
            return

        frame_type = data.get("type")
        if not isinstance(frame_type, str) or (frame_type != "REGISTER" and frame_type not in self.handlers):
            logger.warning(f"Ignoring frame with unknown type {frame_type!r} from {session}")
            return

        try:
            frame = inbound_adapter.validate_python(data)
        except ValidationError as e:
            logger.warning(f"Ignoring invalid {frame_type} frame from {session}: {e.error_count()} errors")
            return

        if isinstance(frame, RegisterFrame):
            self.handle_register(session, frame)
            return

        connection_id = session.connection_id
        if connection_id is None or connection_id not in self.backend.connections:
            logger.debug(f"Ignoring {frame_type} from unregistered {session}")
            return

        logger.debug(f"Dispatching {frame_type} from {connection_id}")
        try:
            self.handlers[frame_type](connection_id, frame)
        except RoomError as e:
            logger.info(f"Rejected {frame_type} from {connection_id}: {e.message}")
            self.backend.broadcaster.send_to(connection_id, Error(message=e.message))
        except Exception as e:
            logger.error(f"Error handling {frame_type} from {connection_id}: {e}", exc_info=True)

    def close(self, session: ClientSession):
        """Socket closed: leave everything the connection was part of."""
        connection_id, session.connection_id = session.connection_id, None
        self.backend.disconnect(connection_id)

    def handle_register(self, session: ClientSession, frame: RegisterFrame):
        if session.connection_id is not None and session.connection_id in self.backend.connections:
            # Profiles are immutable, repeat the existing id
            logger.warning(f"Connection {session.connection_id} sent REGISTER twice")
            self.backend.broadcaster.send_to(session.connection_id, Registered(id=session.connection_id))
            return
        session.connection_id = self.backend.register(frame.nickname, frame.avatar, session.deliver)

    def handle_start_matching(self, connection_id: str, frame):
        if self._in_room(connection_id):
            logger.debug(f"Ignoring START_MATCHING from {connection_id}: in a room")
            return
        self.backend.matchmaking.start_matching(connection_id)

    def handle_stop_matching(self, connection_id: str, frame):
        self.backend.matchmaking.stop_matching(connection_id)

    def handle_send_message(self, connection_id: str, frame: SendMessageFrame):
        self.backend.matchmaking.send_direct_message(connection_id, frame.text)

    def handle_disconnect_chat(self, connection_id: str, frame):
        self.backend.matchmaking.breakup(connection_id)

    def handle_get_rooms(self, connection_id: str, frame):
        self.backend.rooms.send_room_list(connection_id)

    def handle_create_room(self, connection_id: str, frame: CreateRoomFrame):
        self._ensure_not_matching(connection_id)
        self.backend.rooms.create_room(connection_id, frame.name, frame.max_size)

    def handle_join_room(self, connection_id: str, frame: JoinRoomFrame):
        self._ensure_not_matching(connection_id)
        self.backend.rooms.join_room(connection_id, frame.room_id)

    def handle_leave_room(self, connection_id: str, frame):
        self.backend.rooms.leave_room(connection_id)

    def handle_send_room_message(self, connection_id: str, frame: SendRoomMessageFrame):
        self.backend.rooms.send_room_message(connection_id, frame.text)

    def _in_room(self, connection_id: str) -> bool:
        return self.backend.rooms is not None and self.backend.rooms.room_of(connection_id) is not None

    def _ensure_not_matching(self, connection_id: str):
        if self.backend.matchmaking.state_of(connection_id) is not MatchState.IDLE:
            raise MatchmakingActive()
