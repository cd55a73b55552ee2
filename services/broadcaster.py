from typing import Iterable, Optional

from logging_config import get_logger
from schemas.base import CamelModel
from services.connections import ConnectionRegistry

logger = get_logger(__name__)


class Broadcaster:
    """Pure delivery on top of the connection registry.

    Connections can disappear between lookup and send, so a missing
    recipient is dropped silently and a failing one never stops the rest of
    a broadcast.
    """

    def __init__(self, connections: ConnectionRegistry, rooms=None):
        self.connections = connections
        # RoomRegistry, read-only; None when rooms are disabled
        self.rooms = rooms

    def send_to(self, connection_id: str, message: CamelModel) -> bool:
        return self._deliver(connection_id, message.to_wire())

    def send_to_all(self, message: CamelModel) -> int:
        return self._deliver_many(self.connections.ids(), message)

    def send_to_room(self, room_id: str, message: CamelModel, exclude_id: Optional[str] = None) -> int:
        if self.rooms is None:
            return 0
        room = self.rooms.get_room(room_id)
        if not room:
            logger.debug(f"Dropping broadcast to unknown room {room_id}")
            return 0
        recipients = [member_id for member_id in room.members if member_id != exclude_id]
        return self._deliver_many(recipients, message)

    def _deliver_many(self, connection_ids: Iterable[str], message: CamelModel) -> int:
        payload = message.to_wire()
        delivered = 0
        for connection_id in connection_ids:
            if self._deliver(connection_id, payload):
                delivered += 1
        logger.debug(f"Broadcasted {payload.get('type')} to {delivered} connections")
        return delivered

    def _deliver(self, connection_id: str, payload: dict) -> bool:
        connection = self.connections.get(connection_id)
        if connection is None:
            logger.debug(f"Dropping {payload.get('type')} for closed connection {connection_id}")
            return False
        try:
            connection.deliver(payload)
        except Exception as e:
            logger.warning(f"Error sending {payload.get('type')} to connection {connection_id}: {e}")
            return False
        return True
