import pytest

from exceptions import DuplicateCode, RoomNotFound
from tests.fakes import FakeConnection


def test_create_and_get(registry):
    sender = FakeConnection("a")
    room = registry.create("1234", sender, now=10.0)

    assert registry.get("1234") is room
    assert room.sender is sender
    assert room.receiver is None
    assert room.metadata is None
    assert room.created_at == room.last_activity == 10.0
    assert len(registry) == 1
    assert "1234" in registry


def test_create_duplicate_keeps_original(registry):
    first = FakeConnection("a")
    registry.create("1234", first, now=0.0)

    with pytest.raises(DuplicateCode):
        registry.create("1234", FakeConnection("b"), now=1.0)

    assert registry.get("1234").sender is first
    assert len(registry) == 1


def test_get_missing_room(registry):
    with pytest.raises(RoomNotFound):
        registry.get("0000")


def test_find_by_connection_for_both_roles(registry):
    sender, receiver, stranger = FakeConnection("a"), FakeConnection("b"), FakeConnection("c")
    room = registry.create("1234", sender, now=0.0)
    registry.assign_receiver(room, receiver)

    assert registry.find_by_connection(sender) is room
    assert registry.find_by_connection(receiver) is room
    assert registry.find_by_connection(stranger) is None


def test_remove_clears_connection_index(registry):
    sender, receiver = FakeConnection("a"), FakeConnection("b")
    room = registry.create("1234", sender, now=0.0)
    registry.assign_receiver(room, receiver)

    assert registry.remove("1234") is room
    assert registry.find_by_connection(sender) is None
    assert registry.find_by_connection(receiver) is None
    assert "1234" not in registry
    assert registry.remove("1234") is None


def test_connections_are_matched_by_identity(registry):
    # Two handles with the same id are still different connections
    registry.create("1234", FakeConnection("same"), now=0.0)

    assert registry.find_by_connection(FakeConnection("same")) is None


def test_peer_of(registry):
    sender, receiver = FakeConnection("a"), FakeConnection("b")
    room = registry.create("1234", sender, now=0.0)
    assert room.peer_of(sender) is None

    registry.assign_receiver(room, receiver)
    assert room.peer_of(sender) is receiver
    assert room.peer_of(receiver) is sender
    assert room.peer_of(FakeConnection("c")) is None
