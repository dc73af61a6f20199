import asyncio
from collections import deque
from typing import Any, Dict, Iterable

from logging_config import get_logger

logger = get_logger(__name__)


class Outbox:
    """
    Ordered frame queue for one connection.

    Frames are queued synchronously, so their order is the order in which the
    server processed the events. Only the flusher holding the lock pops and
    sends, so frames reach the connection in queue order even when several
    coroutines flush at once.
    """

    def __init__(self, connection_id: str, connection):
        self.connection_id = connection_id
        self.connection = connection
        self.pending = deque()
        self.lock = asyncio.Lock()

    def put(self, frame: dict):
        self.pending.append(frame)

    async def flush(self):
        async with self.lock:
            while self.pending:
                frame = self.pending.popleft()
                try:
                    await self.connection.send_json(frame)
                except Exception as e:
                    logger.warning(f"Error sending {frame.get('event')} to connection {self.connection_id}: {e}")


class Broadcaster:
    """
    Fan-out of server events to the connections joined to a room.

    A connection is anything with an async send_json(dict), normally a
    FastAPI WebSocket. Delivery is at most once: a failed send is logged and
    dropped, never retried. Membership is owned by the sessions, so a failing
    connection stays attached until its session disconnects.
    """

    def __init__(self):
        self.outboxes: Dict[str, Outbox] = {}
        # Format: {team_code: {connection_id: outbox}}
        self.room_connections: Dict[str, Dict[str, Outbox]] = {}

    def register(self, connection_id: str, connection) -> Outbox:
        outbox = self.outboxes[connection_id] = Outbox(connection_id, connection)
        return outbox

    def unregister(self, connection_id: str):
        self.outboxes.pop(connection_id, None)

    def attach(self, team_code: str, connection_id: str):
        self.room_connections.setdefault(team_code, {})[connection_id] = self.outboxes[connection_id]
        logger.debug(f"Attached connection {connection_id} to room {team_code} (connections: {len(self.room_connections[team_code])})")

    def detach(self, team_code: str, connection_id: str):
        connections = self.room_connections.get(team_code)
        if not connections:
            return
        connections.pop(connection_id, None)
        if not connections:
            del self.room_connections[team_code]
        logger.debug(f"Detached connection {connection_id} from room {team_code}")

    def connection_count(self, team_code: str) -> int:
        return len(self.room_connections.get(team_code, {}))

    def post(self, connection_id: str, frame: dict):
        """Queue a frame for one connection without sending it."""
        outbox = self.outboxes.get(connection_id)
        if outbox is not None:
            outbox.put(frame)

    def publish(self, team_code: str, event: str, data: Any):
        """Queue an event for every connection in the room without sending it."""
        frame = {"event": event, "data": data}
        for outbox in self.room_connections.get(team_code, {}).values():
            outbox.put(frame)

    async def flush(self, connection_ids: Iterable[str]):
        outboxes = [self.outboxes[cid] for cid in connection_ids if cid in self.outboxes]
        if outboxes:
            await asyncio.gather(*(outbox.flush() for outbox in outboxes))

    async def flush_room(self, team_code: str):
        await self.flush(list(self.room_connections.get(team_code, {})))

    async def send_to(self, connection_id: str, frame: dict):
        self.post(connection_id, frame)
        await self.flush([connection_id])

    async def emit(self, team_code: str, event: str, data: Any):
        # Queue everywhere first so attach/detach during the sends can't change the targets
        targets = list(self.room_connections.get(team_code, {}))
        self.publish(team_code, event, data)
        await self.flush(targets)
        logger.debug(f"Broadcasted {event} to {len(targets)} connections in room {team_code}")
