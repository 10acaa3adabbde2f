"""
Git Repository component.

Derives structured snapshots (status, log, branches, diffs) of a working tree
by running git through the Command Runner and parsing its text output, and
applies the stage / unstage / commit mutations.
"""

import asyncio
import re
from typing import List, Sequence, Tuple

from git_monitor.models.git_status import CommitInfo, FileChange, GitStatus
from git_monitor.services.command_runner import CommandResult, CommandRunner
from git_monitor.utils.logging import get_logger


logger = get_logger(__name__)

AHEAD_PATTERN = re.compile(r"ahead (\d+)")
BEHIND_PATTERN = re.compile(r"behind (\d+)")

LOG_FORMAT = "--pretty=format:%H|%an|%ad|%s"


def parse_porcelain_status(output: str) -> Tuple[List[FileChange], List[FileChange], List[str]]:
    """
    Classify `git status --porcelain` lines.

    The first two characters of a line are the status code (index, worktree)
    and the path starts at index 3. Branch headers (``##``) and empty lines
    are skipped. A line with an index change is staged even if the worktree
    also differs; the second code character still shows the worktree side.

    Args:
        output: Raw porcelain output

    Returns:
        Tuple of (staged, unstaged, untracked)
    """
    staged: List[FileChange] = []
    unstaged: List[FileChange] = []
    untracked: List[str] = []

    for line in output.splitlines():
        if not line or line.startswith("##"):
            continue

        code = line[:2]
        path = line[3:]

        if code == "??":
            untracked.append(path)
            continue

        index_state = code[0] if len(code) > 0 else " "
        worktree_state = code[1] if len(code) > 1 else " "

        if index_state not in (" ", "?"):
            staged.append(FileChange(status=code, file=path))
        elif worktree_state not in (" ", "?"):
            unstaged.append(FileChange(status=code, file=path))

    return staged, unstaged, untracked


def parse_tracking_info(output: str) -> Tuple[int, int]:
    """
    Extract ahead/behind counts from the first line of `git status -sb`.

    A branch without an upstream has no ``[...]`` suffix; both counts are
    then 0.

    Args:
        output: Raw `git status -sb` output

    Returns:
        Tuple of (ahead, behind)
    """
    lines = output.splitlines()
    first_line = lines[0] if lines else ""

    ahead_match = AHEAD_PATTERN.search(first_line)
    behind_match = BEHIND_PATTERN.search(first_line)

    ahead = int(ahead_match.group(1)) if ahead_match else 0
    behind = int(behind_match.group(1)) if behind_match else 0
    return ahead, behind


def parse_log(output: str) -> List[CommitInfo]:
    """
    Parse `git log` output produced with LOG_FORMAT.

    A line with fewer than four ``|``-separated fields is kept as a commit
    with empty hash/author/date and the raw line as its message.

    Args:
        output: Raw log output

    Returns:
        Commits, newest first
    """
    commits: List[CommitInfo] = []

    for line in output.splitlines():
        if not line:
            continue

        parts = line.split("|", 3)
        if len(parts) >= 4:
            commits.append(
                CommitInfo(hash=parts[0], author=parts[1], date=parts[2], message=parts[3])
            )
        else:
            commits.append(CommitInfo(hash="", author="", date="", message=line))

    return commits


def parse_branches(output: str) -> List[str]:
    """Return one trimmed entry per non-empty line of `git branch -a`."""
    return [line.strip() for line in output.splitlines() if line.strip()]


class GitRepository:
    """Reads and mutates the state of one git working tree."""

    def __init__(self, runner: CommandRunner):
        """
        Initialize Git Repository.

        Args:
            runner: Command Runner bound to the repository directory
        """
        self.runner = runner

    async def get_status(self) -> GitStatus:
        """
        Take a snapshot of the working tree.

        Returns:
            Current GitStatus
        """
        branch_output, porcelain_output, tracking_output = await asyncio.gather(
            self.runner.execute(["branch", "--show-current"]),
            self.runner.execute(["status", "--porcelain", "-b"]),
            self.runner.execute(["status", "-sb"]),
        )

        staged, unstaged, untracked = parse_porcelain_status(porcelain_output)
        ahead, behind = parse_tracking_info(tracking_output)

        return GitStatus(
            branch=branch_output.strip(),
            staged=staged,
            unstaged=unstaged,
            untracked=untracked,
            ahead=ahead,
            behind=behind,
        )

    async def get_log(self, limit: int = 20) -> List[CommitInfo]:
        """
        Get the most recent commits.

        Args:
            limit: Maximum number of commits

        Returns:
            Commits, newest first
        """
        output = await self.runner.execute(
            ["log", "--oneline", LOG_FORMAT, "--date=short", f"-{limit}"]
        )
        return parse_log(output)

    async def get_diff(self, staged: bool = False) -> str:
        """Raw `git diff` (or `git diff --staged`) output."""
        args = ["diff", "--staged"] if staged else ["diff"]
        return await self.runner.execute(args)

    async def get_branches(self) -> List[str]:
        """Local and remote branch names as printed by `git branch -a`."""
        output = await self.runner.execute(["branch", "-a"])
        return parse_branches(output)

    async def stage(self, files: Sequence[str]) -> List[CommandResult]:
        """
        Stage files one at a time, in the given order.

        Args:
            files: Paths relative to the repository root

        Returns:
            One CommandResult per file
        """
        results = []
        for path in files:
            results.append(await self.runner.run(["add", path]))
        logger.info(f"Staged {len(files)} file(s)")
        return results

    async def unstage(self, files: Sequence[str]) -> List[CommandResult]:
        """
        Unstage files one at a time, in the given order.

        Args:
            files: Paths relative to the repository root

        Returns:
            One CommandResult per file
        """
        results = []
        for path in files:
            results.append(await self.runner.run(["reset", "HEAD", path]))
        logger.info(f"Unstaged {len(files)} file(s)")
        return results

    async def commit(self, message: str) -> CommandResult:
        """
        Commit the index.

        Args:
            message: Commit message

        Returns:
            CommandResult of `git commit`
        """
        result = await self.runner.run(["commit", "-m", message])
        if result.succeeded:
            logger.info("Commit created")
        return result
