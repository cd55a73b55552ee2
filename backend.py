from typing import Optional

from logging_config import get_logger
from schemas.messages import OnlineCount, Registered
from services.broadcaster import Broadcaster
from services.connections import ConnectionRegistry, Deliver
from services.matchmaking import MatchmakingService
from services.rooms import RoomRegistry, RoomService

logger = get_logger(__name__)


class ChatBackend:
    """Owns every in-memory registry of one server process.

    All methods are synchronous and never await, so when they are called
    from a single event loop each call is one atomic unit of work. Keeping
    matchmaking and room membership mutually exclusive is the dispatcher's
    job; the registries do not know about each other.
    """

    def __init__(self, enable_rooms: bool = True):
        self.connections = ConnectionRegistry()
        self.room_registry: Optional[RoomRegistry] = RoomRegistry() if enable_rooms else None
        self.broadcaster = Broadcaster(self.connections, self.room_registry)
        self.matchmaking = MatchmakingService(self.connections, self.broadcaster)
        self.rooms: Optional[RoomService] = None
        if self.room_registry is not None:
            self.rooms = RoomService(self.connections, self.broadcaster, self.room_registry)
        logger.info(f"ChatBackend initialized (rooms {'enabled' if enable_rooms else 'disabled'})")

    @property
    def online_count(self) -> int:
        return self.connections.count

    def register(self, nickname: Optional[str], avatar: Optional[str], deliver: Deliver) -> str:
        connection_id = self.connections.register(nickname, avatar, deliver)
        self.broadcaster.send_to(connection_id, Registered(id=connection_id))
        self.broadcast_online_count()
        return connection_id

    def disconnect(self, connection_id: Optional[str]):
        """Drop every piece of state held for ``connection_id``.

        Safe to call any number of times and for ids that never registered;
        only the first call for a live connection notifies anyone.
        """
        if not connection_id or connection_id not in self.connections:
            return
        self.matchmaking.disconnect(connection_id)
        if self.rooms is not None:
            self.rooms.leave_room(connection_id)
        self.connections.unregister(connection_id)
        self.broadcast_online_count()

    def broadcast_online_count(self):
        self.broadcaster.send_to_all(OnlineCount(count=self.connections.count))

    def shutdown(self):
        logger.info(f"Shutting down ChatBackend with {self.connections.count} live connections")
        self.matchmaking.reset()
        if self.rooms is not None:
            self.rooms.reset()
        self.connections.clear()
