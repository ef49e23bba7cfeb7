from enum import Enum


class SessionState(Enum):
    """Lifecycle states of a live (WebSocket) session"""

    IDLE = "idle"  # Created, handshake not attempted yet
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSING = "closing"  # close() in progress
    CLOSED = "closed"  # Terminal; a new session must be created

    def __str__(self) -> str:
        """Return the string value for easy comparison"""
        return self.value

    @property
    def is_open(self) -> bool:
        """Check if commands may be written in this state"""
        return self is SessionState.CONNECTED

    @property
    def is_terminal(self) -> bool:
        return self is SessionState.CLOSED


class SessionKind(Enum):
    """The three live endpoints and their fixed path segments"""

    LISTEN = "listen"
    SPEAK = "speak"
    AGENT = "agent"

    def __str__(self) -> str:
        return self.value
