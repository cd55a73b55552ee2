"""Random 1-on-1 matchmaking.

A connection is in exactly one of three states: idle, waiting in the queue,
or paired. Pairing pops the two oldest waiters, links them in both
directions and notifies both before returning; no await happens in between
so no other frame can observe half a pair.
"""
from enum import Enum
from typing import Dict, Optional, Tuple

from logging_config import get_logger
from schemas.messages import MatchFound, MessageReceived, PartnerDisconnected
from schemas.users import UserInfo
from services.broadcaster import Broadcaster
from services.connections import ConnectionRegistry

logger = get_logger(__name__)


class MatchState(str, Enum):
    IDLE = "idle"
    WAITING = "waiting"
    PAIRED = "paired"


class MatchmakingQueue:
    """Arrival-ordered waiting list without duplicates."""

    def __init__(self):
        # dict keeps insertion order and gives O(1) removal
        self._waiting: Dict[str, None] = {}

    def push(self, connection_id: str) -> bool:
        if connection_id in self._waiting:
            return False
        self._waiting[connection_id] = None
        return True

    def remove(self, connection_id: str) -> bool:
        if connection_id not in self._waiting:
            return False
        del self._waiting[connection_id]
        return True

    def pop_pair(self) -> Optional[Tuple[str, str]]:
        if len(self._waiting) < 2:
            return None
        first = next(iter(self._waiting))
        del self._waiting[first]
        second = next(iter(self._waiting))
        del self._waiting[second]
        return first, second

    def snapshot(self) -> list[str]:
        return list(self._waiting)

    def clear(self):
        self._waiting.clear()

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._waiting

    def __len__(self) -> int:
        return len(self._waiting)


class PairingTable:
    """Symmetric partner relation: A -> B exists iff B -> A exists."""

    def __init__(self):
        self._partners: Dict[str, str] = {}

    def pair(self, first: str, second: str):
        if first == second:
            raise ValueError("A connection cannot be paired with itself")
        if first in self._partners or second in self._partners:
            raise ValueError(f"{first} or {second} is already paired")
        self._partners[first] = second
        self._partners[second] = first

    def partner_of(self, connection_id: str) -> Optional[str]:
        return self._partners.get(connection_id)

    def unpair(self, connection_id: str) -> Optional[str]:
        """Remove both directions and return the former partner, if any."""
        partner_id = self._partners.pop(connection_id, None)
        if partner_id is not None:
            self._partners.pop(partner_id, None)
        return partner_id

    def clear(self):
        self._partners.clear()

    def __contains__(self, connection_id: str) -> bool:
        return connection_id in self._partners

    def __len__(self) -> int:
        return len(self._partners) // 2


class MatchmakingService:
    def __init__(
        self,
        connections: ConnectionRegistry,
        broadcaster: Broadcaster,
        queue: Optional[MatchmakingQueue] = None,
        pairs: Optional[PairingTable] = None,
    ):
        self.connections = connections
        self.broadcaster = broadcaster
        self.queue = queue if queue is not None else MatchmakingQueue()
        self.pairs = pairs if pairs is not None else PairingTable()

    def state_of(self, connection_id: str) -> MatchState:
        if connection_id in self.pairs:
            return MatchState.PAIRED
        if connection_id in self.queue:
            return MatchState.WAITING
        return MatchState.IDLE

    def start_matching(self, connection_id: str):
        """Queue ``connection_id`` unless it is already waiting or paired.

        Room membership is checked by the dispatcher before calling this.
        """
        state = self.state_of(connection_id)
        if state is not MatchState.IDLE:
            logger.debug(f"Ignoring start matching for {connection_id}: already {state.value}")
            return
        self.queue.push(connection_id)
        logger.info(f"Connection {connection_id} is waiting for a partner (queue: {len(self.queue)})")
        self._pair_waiting()

    def stop_matching(self, connection_id: str):
        if self.queue.remove(connection_id):
            logger.info(f"Connection {connection_id} stopped matching (queue: {len(self.queue)})")

    def send_direct_message(self, connection_id: str, text: str):
        # The sender renders its own copy, only the partner is notified
        partner_id = self.pairs.partner_of(connection_id)
        if partner_id is None or partner_id not in self.connections:
            logger.debug(f"Dropping direct message from {connection_id}: no partner")
            return
        self.broadcaster.send_to(partner_id, MessageReceived(sender_id=connection_id, text=text))

    def breakup(self, connection_id: str):
        partner_id = self.pairs.partner_of(connection_id)
        if partner_id is None:
            return
        self.broadcaster.send_to(partner_id, PartnerDisconnected())
        self.pairs.unpair(connection_id)
        logger.info(f"Pair {connection_id} <-> {partner_id} ended")

    def disconnect(self, connection_id: str):
        self.breakup(connection_id)
        self.queue.remove(connection_id)

    def reset(self):
        self.queue.clear()
        self.pairs.clear()

    def _pair_waiting(self):
        while len(self.queue) >= 2:
            first, second = self.queue.pop_pair()
            self.pairs.pair(first, second)
            logger.info(f"Matched {first} <-> {second}")
            self._notify_match(first, second)
            self._notify_match(second, first)

    def _notify_match(self, connection_id: str, partner_id: str):
        profile = self.connections.resolve(partner_id)
        if profile is None:
            return
        self.broadcaster.send_to(connection_id, MatchFound(partner=UserInfo.from_profile(partner_id, profile)))
