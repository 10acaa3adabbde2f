"""WebSocket session data models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class SessionState(str, Enum):
    """Lifecycle state of a WebSocket session."""

    ACCEPTED = "accepted"
    ACTIVE = "active"
    CLOSED = "closed"


class SessionInfo(BaseModel):
    """Session information for monitoring."""

    session_id: str
    state: SessionState
    connected_at: datetime
    elapsed_seconds: float
    messages_sent: int
