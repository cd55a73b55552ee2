import pytest

from backend import ChatBackend
from dispatcher import ClientSession, Dispatcher


class Inbox(list):
    """Collects every frame delivered to one connection."""

    def types(self):
        return [message["type"] for message in self]

    def of_type(self, message_type):
        return [message for message in self if message["type"] == message_type]

    def last(self, message_type):
        matching = self.of_type(message_type)
        assert matching, f"no {message_type} received, got {self.types()}"
        return matching[-1]


@pytest.fixture
def backend():
    chat_backend = ChatBackend()
    yield chat_backend
    chat_backend.shutdown()


@pytest.fixture
def connect(backend):
    """Register a connection directly on the backend, returning (id, inbox)."""

    def _connect(nickname="anon", avatar="https://example.com/avatar.svg"):
        inbox = Inbox()
        connection_id = backend.register(nickname, avatar, inbox.append)
        inbox.clear()
        return connection_id, inbox

    return _connect


@pytest.fixture
def dispatcher(backend):
    return Dispatcher(backend)


@pytest.fixture
def session_factory():
    def _session():
        inbox = Inbox()
        return ClientSession(inbox.append, peer="test"), inbox

    return _session
