from constants import NICKNAME_MAX_LENGTH
from services.connections import ConnectionRegistry


def test_register_generates_unique_ids():
    registry = ConnectionRegistry()
    ids = {registry.register(f"user{i}", "", lambda message: None) for i in range(50)}
    assert len(ids) == 50
    assert registry.count == 50


def test_resolve_and_unregister():
    registry = ConnectionRegistry()
    connection_id = registry.register("  Neon  ", " https://example.com/a.svg ", lambda message: None)

    profile = registry.resolve(connection_id)
    assert profile.nickname == "Neon"
    assert profile.avatar == "https://example.com/a.svg"

    assert registry.unregister(connection_id) is not None
    assert registry.unregister(connection_id) is None
    assert registry.resolve(connection_id) is None
    assert registry.count == 0


def test_blank_nickname_gets_default():
    registry = ConnectionRegistry()
    connection_id = registry.register("   ", None, lambda message: None)
    assert registry.resolve(connection_id).nickname == f"User_{connection_id[:8]}"
    assert registry.resolve(connection_id).avatar == ""


def test_long_nickname_is_truncated():
    registry = ConnectionRegistry()
    connection_id = registry.register("x" * 100, "", lambda message: None)
    assert len(registry.resolve(connection_id).nickname) == NICKNAME_MAX_LENGTH


def test_backend_register_replies_and_broadcasts_online_count(backend, connect):
    first_id, first_inbox = connect("first")

    second_inbox = []
    second_id = backend.register("second", "", second_inbox.append)

    assert second_inbox[0] == {"type": "REGISTERED", "id": second_id}
    assert second_inbox[1] == {"type": "ONLINE_COUNT", "count": 2}
    assert first_inbox == [{"type": "ONLINE_COUNT", "count": 2}]
    assert backend.online_count == 2


def test_disconnect_broadcasts_online_count_once(backend, connect):
    first_id, first_inbox = connect("first")
    second_id, _ = connect("second")
    first_inbox.clear()

    backend.disconnect(second_id)
    backend.disconnect(second_id)
    backend.disconnect("never-registered")
    backend.disconnect(None)

    assert first_inbox.types() == ["ONLINE_COUNT"]
    assert first_inbox[0]["count"] == 1
    assert backend.online_count == 1
