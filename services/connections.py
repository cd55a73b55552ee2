import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from constants import NICKNAME_MAX_LENGTH
from logging_config import get_logger
from schemas.users import Profile

logger = get_logger(__name__)

# Hands one serialized frame to the socket's outbox; must not block
Deliver = Callable[[dict], None]


def build_profile(connection_id: str, nickname: Optional[str], avatar: Optional[str]) -> Profile:
    nickname = (nickname or "").strip()[:NICKNAME_MAX_LENGTH].strip()
    if not nickname:
        nickname = f"User_{connection_id[:8]}"
    return Profile(nickname=nickname, avatar=(avatar or "").strip())


@dataclass
class Connection:
    id: str
    profile: Profile
    deliver: Deliver
    connected_at: float = field(default_factory=time.time)


class ConnectionRegistry:
    """Live, registered connections keyed by their server generated id."""

    def __init__(self):
        self._connections: Dict[str, Connection] = {}

    def register(self, nickname: Optional[str], avatar: Optional[str], deliver: Deliver) -> str:
        connection_id = str(uuid.uuid4())
        while connection_id in self._connections:
            connection_id = str(uuid.uuid4())
        profile = build_profile(connection_id, nickname, avatar)
        self._connections[connection_id] = Connection(id=connection_id, profile=profile, deliver=deliver)
        logger.info(f"Registered connection {connection_id} as '{profile.nickname}' (online: {len(self._connections)})")
        return connection_id

    def unregister(self, connection_id: str) -> Optional[Connection]:
        connection = self._connections.pop(connection_id, None)
        if connection:
            logger.info(f"Unregistered connection {connection_id} (online: {len(self._connections)})")
        return connection

    def get(self, connection_id: str) -> Optional[Connection]:
        return self._connections.get(connection_id)

    def resolve(self, connection_id: str) -> Optional[Profile]:
        connection = self._connections.get(connection_id)
        return connection.profile if connection else None

    def ids(self) -> list[str]:
        return list(self._connections)

    def clear(self):
        self._connections.clear()

    @property
    def count(self) -> int:
        return len(self._connections)

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._connections

    def __len__(self) -> int:
        return len(self._connections)
