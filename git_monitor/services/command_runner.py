"""
Command Runner component.

Invokes the external git executable as an asyncio subprocess and captures its
output. Failures never escape: a process that cannot be spawned, or that is
killed after a timeout, is reported as a descriptive string result.
"""

import asyncio
from pathlib import Path
from typing import List, Optional, Sequence, Union

from pydantic import BaseModel

from git_monitor.utils.logging import get_logger
from git_monitor.utils.metrics import CommandMetrics, track_command


logger = get_logger(__name__)

# Exit code reported when git never ran to completion
SPAWN_FAILURE_EXIT_CODE = -1


class CommandResult(BaseModel):
    """Detailed result of one git invocation."""

    args: List[str]
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    @property
    def output(self) -> str:
        """
        Lenient single-string view of the result.

        stdout on success; stderr when git exited non-zero and wrote
        something to it; stdout otherwise.
        """
        if self.exit_code != 0 and self.stderr:
            return self.stderr
        return self.stdout


class CommandRunner:
    """
    Runs git commands inside a repository.

    Each invocation is its own subprocess awaited on the event loop, so a slow
    git call never stalls unrelated requests.
    """

    def __init__(
        self,
        repo_path: Union[str, Path],
        git_binary: str = "git",
        timeout_seconds: Optional[float] = None,
        metrics: Optional[CommandMetrics] = None,
    ):
        """
        Initialize Command Runner.

        Args:
            repo_path: Default working directory for git invocations
            git_binary: Name or path of the git executable
            timeout_seconds: Kill git after this many seconds (None waits forever)
            metrics: Optional metrics collector
        """
        self.repo_path = Path(repo_path)
        self.git_binary = git_binary
        self.timeout_seconds = timeout_seconds
        self.metrics = metrics

    async def execute(self, args: Sequence[str], cwd: Optional[Union[str, Path]] = None) -> str:
        """
        Run git and return its output as a single string.

        Args:
            args: Arguments passed to git
            cwd: Working directory (defaults to the repository)

        Returns:
            stdout on success, stderr if git failed and wrote to it, otherwise
            stdout; a descriptive message if git could not be run at all
        """
        result = await self.run(args, cwd=cwd)
        return result.output

    async def run(self, args: Sequence[str], cwd: Optional[Union[str, Path]] = None) -> CommandResult:
        """
        Run git and return the detailed result.

        Args:
            args: Arguments passed to git
            cwd: Working directory (defaults to the repository)

        Returns:
            CommandResult with both streams and the exit code
        """
        args = list(args)
        workdir = Path(cwd) if cwd is not None else self.repo_path

        async with track_command(self.metrics, args, logger) as outcome:
            result = await self._spawn(args, workdir)
            outcome["exit_code"] = result.exit_code
            if not result.succeeded:
                outcome["error"] = result.stderr or None

        return result

    async def _spawn(self, args: List[str], workdir: Path) -> CommandResult:
        try:
            process = await asyncio.create_subprocess_exec(
                self.git_binary,
                *args,
                cwd=str(workdir),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (OSError, ValueError) as e:
            message = f"Error executing git command: {e}"
            logger.error(message, extra={"command": args[0] if args else ""})
            return CommandResult(
                args=args,
                stderr=message,
                exit_code=SPAWN_FAILURE_EXIT_CODE,
            )

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            message = (
                f"Error executing git command: timed out after {self.timeout_seconds}s"
            )
            logger.warning(message, extra={"command": args[0] if args else ""})
            return CommandResult(
                args=args,
                stderr=message,
                exit_code=SPAWN_FAILURE_EXIT_CODE,
            )
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
            raise

        return CommandResult(
            args=args,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            exit_code=process.returncode,
        )
