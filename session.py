"""
Per-connection state machine.

    UNJOINED --join--> JOINED --disconnect--> CLOSED
    UNJOINED --disconnect--------------------> CLOSED

There is no way back to UNJOINED and the team code never changes once set.
Every operation finishes its state mutation and queues its outgoing frames
before its first await, so on a single event loop two operations never
interleave mid-mutation and every connection sees frames in processing order.
"""
import enum
from typing import Optional

from constants import MAX_NAME_LENGTH
from exceptions import (
    AlreadyJoined,
    EmptyMessage,
    MessageNotFound,
    MissingField,
    MissingId,
    NotJoined,
    SessionClosed,
    UnknownTeam,
)
from logging_config import get_logger
from registry import normalize_code
from rooms import RoomState

logger = get_logger(__name__)


class SessionState(str, enum.Enum):
    UNJOINED = "unjoined"
    JOINED = "joined"
    CLOSED = "closed"


class RoomSession:
    def __init__(self, connection_id: str, connection, registry, rooms, broadcaster):
        self.connection_id = connection_id
        self.connection = connection
        self.registry = registry
        self.rooms = rooms
        self.broadcaster = broadcaster
        self.state = SessionState.UNJOINED
        self.team_code: Optional[str] = None
        self.user_name: Optional[str] = None

    async def join(self, team_code: Optional[str], name: Optional[str]):
        if self.state is SessionState.JOINED:
            raise AlreadyJoined()
        if self.state is SessionState.CLOSED:
            raise SessionClosed()
        if not team_code or not name:
            raise MissingField()

        code = normalize_code(team_code)
        name = str(name).strip()[:MAX_NAME_LENGTH]
        if not code or not name:
            raise MissingField()
        if not self.registry.exists(code):
            logger.info(f"Join rejected for connection {self.connection_id}: team {code} not found")
            raise UnknownTeam(code)

        self.state = SessionState.JOINED
        self.team_code = code
        self.user_name = name
        self.broadcaster.attach(code, self.connection_id)
        room = self.rooms.attach(code)
        history = room.history()
        notice = room.system_notice(f"{name} joined the chat")
        room.append(notice)
        logger.info(f"User {name} ({self.connection_id}) joined room {code} (members: {room.member_count})")

        # History goes to the joiner only, the notice to everyone including the joiner.
        # Both are queued before the first await.
        self.broadcaster.post(self.connection_id, {"event": "room-history", "data": [m.model_dump() for m in history]})
        self.broadcaster.publish(code, "message", notice.model_dump())
        await self.broadcaster.flush_room(code)

    async def send(self, text: Optional[str]):
        room = self._joined_room()
        text = (text or "").strip()
        if not text:
            raise EmptyMessage()

        message = room.chat_message(self.user_name, text)
        room.append(message)
        logger.debug(f"Message {message.id} from {self.user_name} in room {room.code}")
        await self.broadcaster.emit(room.code, "message", message.model_dump())

    async def delete(self, message_id: Optional[str]):
        room = self._joined_room(NotJoined("Not in room"))
        if not message_id:
            raise MissingId()
        if room.remove(message_id) is None:
            raise MessageNotFound(message_id)

        logger.debug(f"Message {message_id} deleted by {self.user_name} in room {room.code}")
        await self.broadcaster.emit(room.code, "delete-message", {"id": message_id})

    async def disconnect(self):
        previous = self.state
        self.state = SessionState.CLOSED
        if previous is not SessionState.JOINED:
            return

        self.broadcaster.detach(self.team_code, self.connection_id)
        room = self.rooms.detach(self.team_code)
        if room is None:
            return
        logger.info(f"User {self.user_name} ({self.connection_id}) left room {self.team_code} (members: {room.member_count})")
        if room.member_count > 0:
            notice = room.system_notice(f"{self.user_name or 'A user'} left the chat")
            room.append(notice)
            await self.broadcaster.emit(room.code, "message", notice.model_dump())

    def _joined_room(self, error: NotJoined = None) -> RoomState:
        if self.state is not SessionState.JOINED:
            raise error or NotJoined()
        return self.rooms.get(self.team_code)
