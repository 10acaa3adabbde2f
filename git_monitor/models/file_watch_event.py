"""File watch event data models."""

import time
from enum import Enum

from pydantic import BaseModel, Field


def _now_ms() -> int:
    return int(time.time() * 1000)


class FileWatchEventType(str, Enum):
    """Kind of filesystem change."""

    CREATED = "created"
    MODIFIED = "modified"
    DELETED = "deleted"


class FileWatchEvent(BaseModel):
    """Filesystem change pushed to WebSocket subscribers."""

    type: FileWatchEventType
    path: str  # relative to the watched root, POSIX separators
    timestamp: int = Field(default_factory=_now_ms)  # epoch milliseconds
