import random
import time
from datetime import datetime, timezone
from typing import Dict, List, Optional

from logging_config import get_logger
from schemas.events import Message

logger = get_logger(__name__)


class RoomState:
    """In-memory log and member count for one team code."""

    def __init__(self, code: str):
        self.code = code
        self.messages: List[Message] = []
        self.member_count = 0

    def has_message(self, message_id: str) -> bool:
        return any(m.id == message_id for m in self.messages)

    def new_message_id(self, prefix: str, spread: int) -> str:
        """
        `<prefix>-<epoch ms>-<random>` ids, redrawn while one is still in the log.

        Not monotonic and not collision-proof across rooms, only unique within
        this room's current log.
        """
        message_id = f"{prefix}-{int(time.time() * 1000)}-{random.randrange(spread)}"
        while self.has_message(message_id):
            message_id = f"{prefix}-{int(time.time() * 1000)}-{random.randrange(spread)}"
        return message_id

    def chat_message(self, name: str, text: str) -> Message:
        return Message(id=self.new_message_id("m", 10000), name=name, text=text, ts=_now())

    def system_notice(self, text: str) -> Message:
        return Message(id=self.new_message_id("sys", 1000), text=text, ts=_now(), system=True)

    def append(self, message: Message):
        self.messages.append(message)

    def remove(self, message_id: str) -> Optional[Message]:
        for index, message in enumerate(self.messages):
            if message.id == message_id:
                return self.messages.pop(index)
        return None

    def history(self) -> List[Message]:
        return list(self.messages)

    def clear(self):
        self.messages.clear()


class RoomDirectory:
    """All RoomStates of one relay, created lazily on first join."""

    def __init__(self):
        self.rooms: Dict[str, RoomState] = {}

    def get(self, code: str) -> Optional[RoomState]:
        return self.rooms.get(code)

    def attach(self, code: str) -> RoomState:
        room = self.rooms.get(code)
        if room is None:
            room = self.rooms[code] = RoomState(code)
            logger.debug(f"Created room state for {code}")
        room.member_count += 1
        return room

    def detach(self, code: str) -> Optional[RoomState]:
        room = self.rooms.get(code)
        if room is None:
            return None
        room.member_count = max(0, room.member_count - 1)
        if room.member_count == 0:
            room.clear()
            logger.info(f"Room {code} is empty, message log cleared")
        return room


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()
