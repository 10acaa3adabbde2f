"""Git working tree data models."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class FileChange(BaseModel):
    """A changed path with its two-character porcelain status code.

    The first character is the index state, the second the worktree state.
    """

    model_config = ConfigDict(frozen=True)

    status: str
    file: str


class GitStatus(BaseModel):
    """Point-in-time snapshot of the working tree."""

    branch: str
    staged: List[FileChange] = []
    unstaged: List[FileChange] = []
    untracked: List[str] = []
    ahead: int = Field(default=0, ge=0)
    behind: int = Field(default=0, ge=0)


class CommitInfo(BaseModel):
    """One commit from the history, as reported by `git log`."""

    model_config = ConfigDict(frozen=True)

    hash: str
    author: str
    date: str
    message: str
