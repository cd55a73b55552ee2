import random

import pytest

from services.matchmaking import MatchmakingQueue, MatchState, PairingTable


def test_queue_keeps_arrival_order_without_duplicates():
    queue = MatchmakingQueue()
    assert queue.push("a")
    assert queue.push("b")
    assert not queue.push("a")
    assert queue.snapshot() == ["a", "b"]
    assert queue.pop_pair() == ("a", "b")
    assert queue.pop_pair() is None


def test_queue_remove():
    queue = MatchmakingQueue()
    queue.push("a")
    assert queue.remove("a")
    assert not queue.remove("a")
    assert len(queue) == 0


def test_pairing_table_is_symmetric():
    pairs = PairingTable()
    pairs.pair("a", "b")
    assert pairs.partner_of("a") == "b"
    assert pairs.partner_of("b") == "a"
    assert len(pairs) == 1

    assert pairs.unpair("b") == "a"
    assert "a" not in pairs
    assert "b" not in pairs
    assert pairs.unpair("a") is None


def test_pairing_table_rejects_double_pairing():
    pairs = PairingTable()
    pairs.pair("a", "b")
    with pytest.raises(ValueError):
        pairs.pair("a", "c")
    with pytest.raises(ValueError):
        pairs.pair("c", "c")


def test_fifo_pairing(backend, connect):
    ids = [connect(name)[0] for name in "ABCD"]
    a, b, c, d = ids
    for connection_id in ids:
        backend.matchmaking.start_matching(connection_id)

    pairs = backend.matchmaking.pairs
    assert pairs.partner_of(a) == b
    assert pairs.partner_of(c) == d
    assert len(backend.matchmaking.queue) == 0


def test_match_found_references_partner(backend, connect):
    a, a_inbox = connect("Alice")
    b, b_inbox = connect("Bob")

    backend.matchmaking.start_matching(a)
    assert "MATCH_FOUND" not in a_inbox.types()

    backend.matchmaking.start_matching(b)
    assert a_inbox.last("MATCH_FOUND")["partner"] == {"id": b, "nickname": "Bob", "avatar": "https://example.com/avatar.svg"}
    assert b_inbox.last("MATCH_FOUND")["partner"]["id"] == a


def test_pairing_symmetry_over_random_sequences(backend, connect):
    rng = random.Random(7)
    ids = [connect(f"user{i}")[0] for i in range(12)]
    matchmaking = backend.matchmaking

    for _ in range(200):
        connection_id = rng.choice(ids)
        action = rng.choice(["start", "start", "stop", "breakup"])
        if action == "start":
            matchmaking.start_matching(connection_id)
        elif action == "stop":
            matchmaking.stop_matching(connection_id)
        else:
            matchmaking.breakup(connection_id)

        for candidate in ids:
            partner = matchmaking.pairs.partner_of(candidate)
            if partner is not None:
                assert matchmaking.pairs.partner_of(partner) == candidate
                assert candidate not in matchmaking.queue
        assert len(matchmaking.queue) < 2


def test_start_matching_is_noop_when_waiting_or_paired(backend, connect):
    a, _ = connect()
    b, _ = connect()
    matchmaking = backend.matchmaking

    matchmaking.start_matching(a)
    matchmaking.start_matching(a)
    assert matchmaking.queue.snapshot() == [a]
    assert matchmaking.state_of(a) is MatchState.WAITING

    matchmaking.start_matching(b)
    matchmaking.start_matching(a)
    assert matchmaking.state_of(a) is MatchState.PAIRED
    assert len(matchmaking.queue) == 0


def test_stop_matching(backend, connect):
    a, _ = connect()
    backend.matchmaking.start_matching(a)
    backend.matchmaking.stop_matching(a)
    backend.matchmaking.stop_matching(a)
    assert backend.matchmaking.state_of(a) is MatchState.IDLE


def test_direct_message_goes_to_partner_only(backend, connect):
    a, a_inbox = connect()
    b, b_inbox = connect()
    backend.matchmaking.start_matching(a)
    backend.matchmaking.start_matching(b)
    a_inbox.clear()
    b_inbox.clear()

    backend.matchmaking.send_direct_message(a, "hi")

    assert a_inbox == []
    message = b_inbox.last("MESSAGE_RECEIVED")
    assert message["senderId"] == a
    assert message["text"] == "hi"
    assert isinstance(message["timestamp"], int)


def test_direct_message_without_partner_is_noop(backend, connect):
    a, a_inbox = connect()
    b, b_inbox = connect()
    a_inbox.clear()
    backend.matchmaking.send_direct_message(a, "anyone?")
    assert a_inbox == []
    assert b_inbox == []


def test_breakup_notifies_partner_and_is_idempotent(backend, connect):
    a, a_inbox = connect()
    b, b_inbox = connect()
    backend.matchmaking.start_matching(a)
    backend.matchmaking.start_matching(b)
    a_inbox.clear()
    b_inbox.clear()

    backend.matchmaking.breakup(a)
    backend.matchmaking.breakup(a)
    backend.matchmaking.breakup(b)

    assert b_inbox.types() == ["PARTNER_DISCONNECTED"]
    assert a_inbox == []
    assert backend.matchmaking.state_of(a) is MatchState.IDLE
    assert backend.matchmaking.state_of(b) is MatchState.IDLE


def test_disconnect_cleans_pair_and_queue(backend, connect):
    a, _ = connect()
    b, b_inbox = connect()
    c, _ = connect()
    backend.matchmaking.start_matching(a)
    backend.matchmaking.start_matching(b)
    backend.matchmaking.start_matching(c)

    backend.disconnect(a)
    backend.disconnect(c)

    assert "PARTNER_DISCONNECTED" in b_inbox.types()
    assert b not in backend.matchmaking.pairs
    assert c not in backend.matchmaking.queue
    assert len(backend.matchmaking.pairs) == 0
