"""
Error taxonomy for the chat relay.

Validation errors are reported only to the connection (or HTTP caller) that
caused them, never broadcast. The message text is what ends up in the ack.
"""


class TeamChatError(Exception):
    """Base class for every error the relay reports back to a caller."""
    message = "Request failed"

    def __init__(self, message: str = None):
        self.message = message or self.message
        super().__init__(self.message)


# ============ Registry ============

class CodeConflict(TeamChatError):
    message = "Code already exists"

    def __init__(self, code: str):
        self.code = code
        super().__init__()


class UnknownTeam(TeamChatError):
    message = "Team code not found"

    def __init__(self, code: str):
        self.code = code
        super().__init__()


class PersistenceFailure(TeamChatError):
    """The team document could not be written. Logged, never fatal."""
    message = "Failed to save teams"


# ============ Session ============

class MissingField(TeamChatError):
    message = "Missing teamCode or name"


class AlreadyJoined(TeamChatError):
    message = "Already in a room"


class SessionClosed(TeamChatError):
    message = "Connection is closed"


class NotJoined(TeamChatError):
    message = "You are not in a room"


class EmptyMessage(TeamChatError):
    message = "Empty message"


class MissingId(TeamChatError):
    message = "No id"


class MessageNotFound(TeamChatError):
    message = "Message not found"

    def __init__(self, message_id: str):
        self.message_id = message_id
        super().__init__()


# ============ Wire ============

class InvalidEvent(TeamChatError):
    message = "Invalid event"
