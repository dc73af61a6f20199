import asyncio

import pytest

from backend import JsonFileTeamStore
from chat_service import ChatRelay
from registry import TeamRegistry


class FakeConnection:
    """Records frames the relay sends; stands in for a WebSocket."""

    def __init__(self, yielding: bool = False):
        self.frames = []
        self.broken = False
        self.yielding = yielding

    async def send_json(self, data):
        if self.yielding:
            # Hand control back to the loop like a real socket write would
            await asyncio.sleep(0)
        if self.broken:
            raise RuntimeError("connection lost")
        self.frames.append(data)

    def events(self, name):
        return [frame["data"] for frame in self.frames if frame["event"] == name]

    def messages(self):
        return self.events("message")


@pytest.fixture
def teams_path(tmp_path):
    return str(tmp_path / "teams.json")


@pytest.fixture
def team_registry(teams_path):
    registry = TeamRegistry(JsonFileTeamStore(teams_path))
    registry.load()
    return registry


@pytest.fixture
def relay(team_registry):
    return ChatRelay(team_registry)


@pytest.fixture
def connect(relay):
    """Open a session on the relay backed by a FakeConnection."""
    def _connect(yielding: bool = False):
        connection = FakeConnection(yielding=yielding)
        return relay.open_session(connection), connection
    return _connect
