import pytest
from fastapi.testclient import TestClient

from backend import RoomRegistry
from relay import RelayEngine
from tests.fakes import FakeClock, FakeConnection


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry():
    return RoomRegistry()


@pytest.fixture
def engine(registry, clock):
    return RelayEngine(registry=registry, clock=clock)


@pytest.fixture
def sender():
    return FakeConnection("sender")


@pytest.fixture
def receiver():
    return FakeConnection("receiver")


@pytest.fixture
def paired(engine, sender, receiver):
    """A room "1234" with both occupants present and their inboxes emptied."""
    engine.register(sender, "1234")
    engine.join(receiver, "1234")
    sender.pop()
    receiver.pop()
    return engine.registry.get("1234")


@pytest.fixture
def client():
    from app import app

    app.state.relay_engine = RelayEngine()
    with TestClient(app) as test_client:
        yield test_client
