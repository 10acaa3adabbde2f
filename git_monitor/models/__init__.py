"""Data models for Git Monitor."""

from .api_response import (
    ApiResponse,
    CommitRequest,
    DiffResult,
    MutationResult,
    StageRequest,
)
from .file_watch_event import FileWatchEvent, FileWatchEventType
from .git_status import CommitInfo, FileChange, GitStatus
from .session import SessionInfo, SessionState

__all__ = [
    # Git models
    "FileChange",
    "GitStatus",
    "CommitInfo",
    # File watch models
    "FileWatchEvent",
    "FileWatchEventType",
    # Session models
    "SessionState",
    "SessionInfo",
    # API models
    "ApiResponse",
    "StageRequest",
    "CommitRequest",
    "DiffResult",
    "MutationResult",
]
