import json
import uuid
from typing import Any, Optional

from pydantic import ValidationError

from broadcaster import Broadcaster
from exceptions import InvalidEvent, TeamChatError
from logging_config import get_logger
from registry import TeamRegistry, normalize_code
from rooms import RoomDirectory
from schemas.events import Ack, ClientEvent, PAYLOAD_MODELS
from session import RoomSession

logger = get_logger(__name__)

INTERNAL_ERROR = "Internal server error"


class ChatRelay:
    """
    Owns all chat state of one process: the team registry, the room
    directory and the broadcaster. Build one per app (or per test).
    """

    def __init__(self, registry: TeamRegistry, rooms: RoomDirectory = None, broadcaster: Broadcaster = None):
        self.registry = registry
        self.rooms = rooms or RoomDirectory()
        self.broadcaster = broadcaster or Broadcaster()

    def open_session(self, connection) -> RoomSession:
        connection_id = str(uuid.uuid4())
        self.broadcaster.register(connection_id, connection)
        logger.debug(f"Opened session {connection_id}")
        return RoomSession(connection_id, connection, self.registry, self.rooms, self.broadcaster)

    async def dispatch(self, session: RoomSession, event: ClientEvent) -> Ack:
        """Run one validated client event and turn its outcome into an ack."""
        try:
            payload = PAYLOAD_MODELS[event.event].model_validate(event.data or {})
        except ValidationError as e:
            logger.warning(f"Invalid {event.event} payload from {session.connection_id}: {e}")
            return Ack(ok=False, error=InvalidEvent.message)

        try:
            if event.event == "join-room":
                await session.join(payload.teamCode, payload.name)
            elif event.event == "send-message":
                await session.send(payload.text)
            elif event.event == "delete-message":
                await session.delete(payload.id)
        except TeamChatError as e:
            logger.debug(f"{event.event} from {session.connection_id} failed: {e.message}")
            return Ack(ok=False, error=e.message)
        except Exception as e:
            logger.error(f"Error handling {event.event} from {session.connection_id}: {e}", exc_info=True)
            return Ack(ok=False, error=INTERNAL_ERROR)
        return Ack(ok=True)

    async def handle_frame(self, session: RoomSession, raw: Optional[str]) -> dict:
        """Decode one WebSocket text frame and return the ack frame to send back.

        raw is None for binary frames, which are rejected like undecodable text.
        """
        ack_id: Optional[Any] = None
        if raw is None:
            logger.warning(f"Rejected binary frame from {session.connection_id}")
            return {"event": "ack", "ack": None, "data": Ack(ok=False, error=InvalidEvent.message).model_dump(exclude_none=True)}
        try:
            data = json.loads(raw)
            if isinstance(data, dict):
                ack_id = data.get("ack")
            event = ClientEvent.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Rejected frame from {session.connection_id}: {e}")
            ack = Ack(ok=False, error=InvalidEvent.message)
        else:
            ack = await self.dispatch(session, event)
        return {"event": "ack", "ack": ack_id, "data": ack.model_dump(exclude_none=True)}

    async def reply(self, session: RoomSession, frame: dict):
        """Send a frame to the session's connection behind anything already queued for it."""
        await self.broadcaster.send_to(session.connection_id, frame)

    async def close_session(self, session: RoomSession):
        try:
            await session.disconnect()
        except Exception as e:
            logger.error(f"Error disconnecting {session.connection_id}: {e}", exc_info=True)
        finally:
            self.broadcaster.unregister(session.connection_id)

    def room_snapshot(self, code: str) -> dict:
        code = normalize_code(code)
        team = self.registry.lookup(code)
        room = self.rooms.get(code)
        return {
            "teamCode": code,
            "createdAt": team.createdAt,
            "memberCount": room.member_count if room else 0,
            "messageCount": len(room.messages) if room else 0,
        }
