from pydantic import BaseModel, field_validator
from typing import Any, Literal, Optional, Union

ClientEventName = Literal["join-room", "send-message", "delete-message"]


class Message(BaseModel):
    id: str
    name: Optional[str] = None
    text: str
    ts: str
    system: bool = False


class EventPayload(BaseModel):
    """Base for client payloads: every field is an optional string."""

    @field_validator("*", mode="before")
    @classmethod
    def coerce_scalars(cls, value: Any) -> Any:
        # Clients may send numbers for codes or ids; objects and lists still fail
        if isinstance(value, (int, float, bool)):
            return str(value)
        return value


class JoinRoomPayload(EventPayload):
    teamCode: Optional[str] = None
    name: Optional[str] = None

class SendMessagePayload(EventPayload):
    text: Optional[str] = None

class DeleteMessagePayload(EventPayload):
    id: Optional[str] = None


class ClientEvent(BaseModel):
    """Envelope of every frame a client sends over the WebSocket."""
    event: ClientEventName
    data: Optional[dict] = None
    ack: Optional[Union[int, str]] = None


class Ack(BaseModel):
    ok: bool
    error: Optional[str] = None


PAYLOAD_MODELS = {
    "join-room": JoinRoomPayload,
    "send-message": SendMessagePayload,
    "delete-message": DeleteMessagePayload,
}
