"""API request and response data models."""

import time
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

from .git_status import GitStatus

T = TypeVar("T")


def _now_ms() -> int:
    return int(time.time() * 1000)


class ApiResponse(BaseModel, Generic[T]):
    """Uniform envelope for every synchronous API reply."""

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    timestamp: int = Field(default_factory=_now_ms)


class StageRequest(BaseModel):
    """Body of /api/stage and /api/unstage."""

    files: List[str]


class CommitRequest(BaseModel):
    """Body of /api/commit."""

    message: str


class DiffResult(BaseModel):
    """Raw diff text."""

    diff: str


class MutationResult(BaseModel):
    """Outcome of a stage, unstage or commit request."""

    message: str
    output: str = ""
    status: Optional[GitStatus] = None
