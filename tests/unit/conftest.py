"""
Shared fixtures for unit tests.
"""

import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Sequence, Tuple, Union

import pytest

from git_monitor.services.command_runner import CommandResult


requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git executable not available")


class FakeRunner:
    """Stands in for CommandRunner: records every invocation and replays canned results."""

    def __init__(self, responses: Dict[Tuple[str, ...], Union[str, CommandResult]] = None):
        self.responses = dict(responses or {})
        self.calls: List[List[str]] = []

    async def run(self, args: Sequence[str], cwd=None) -> CommandResult:
        args = list(args)
        self.calls.append(args)
        response = self.responses.get(tuple(args))
        if response is None:
            return CommandResult(args=args)
        if isinstance(response, str):
            return CommandResult(args=args, stdout=response)
        return response

    async def execute(self, args: Sequence[str], cwd=None) -> str:
        result = await self.run(args, cwd=cwd)
        return result.output


STATUS_RESPONSES = {
    ("branch", "--show-current"): "main\n",
    ("status", "--porcelain", "-b"): (
        "## main...origin/main [ahead 2, behind 1]\n"
        "M  staged.txt\n"
        " M unstaged.txt\n"
        "MM both.txt\n"
        "?? new.txt\n"
    ),
    ("status", "-sb"): (
        "## main...origin/main [ahead 2, behind 1]\n"
        "M  staged.txt\n"
    ),
}


@pytest.fixture
def fake_runner() -> FakeRunner:
    """Runner preloaded with a typical status snapshot."""
    return FakeRunner(STATUS_RESPONSES)


def git(cwd: Path, *args: str) -> str:
    """Run git synchronously for test setup."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        check=True,
        capture_output=True,
        text=True,
    )
    return result.stdout


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Create an empty git repository with a committer identity."""
    if shutil.which("git") is None:
        pytest.skip("git executable not available")

    repo = tmp_path / "repo"
    repo.mkdir()
    git(repo, "init", "-q")
    git(repo, "config", "user.email", "dev@example.com")
    git(repo, "config", "user.name", "Dev Example")
    git(repo, "config", "commit.gpgsign", "false")
    return repo
