"""Async git runner implementing the CommandRunner port."""

import asyncio
import logging
import os
import time
from pathlib import Path

from strata.ports.runner import CommandResult

logger = logging.getLogger(__name__)

# Environment overrides applied to every git invocation
_GIT_ENV = {
    # Readers must not take the index lock away from the user's own git
    "GIT_OPTIONAL_LOCKS": "0",
    "GIT_TERMINAL_PROMPT": "0",
    "GIT_PAGER": "cat",
}


class AsyncGitRunner:
    """Runs git as an asyncio subprocess.

    Args:
        git_executable: Name or path of the git binary.
        timeout: Seconds before a command is killed.
    """

    def __init__(self, git_executable: str = "git", timeout: float = 30.0) -> None:
        self.git_executable = git_executable
        self.timeout = timeout
        self._env = {**os.environ, **_GIT_ENV}

    async def run(self, args: list[str], cwd: Path) -> CommandResult:
        """Run git and capture its output.

        Args:
            args: Git arguments (without the executable).
            cwd: Working directory.

        Returns:
            CommandResult; a non-zero exit code is returned, not raised.

        Raises:
            OSError: If git cannot be started.
            TimeoutError: If git runs longer than the timeout.
        """
        start = time.monotonic()
        proc = await asyncio.create_subprocess_exec(
            self.git_executable,
            *args,
            cwd=str(cwd),
            env=self._env,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise TimeoutError(
                f"git {' '.join(args)} timed out after {self.timeout:g}s"
            ) from None

        duration_ms = (time.monotonic() - start) * 1000
        return CommandResult(
            code=proc.returncode if proc.returncode is not None else -1,
            stdout=_decode_lines(stdout),
            stderr=_decode_lines(stderr),
            duration_ms=duration_ms,
        )


def _decode_lines(data: bytes) -> list[str]:
    return data.decode("utf-8", errors="replace").splitlines()


def find_git_root(start_path: Path | None = None, git_executable: str = "git") -> Path | None:
    """Find the working tree root containing start_path.

    Args:
        start_path: Directory to start from. Defaults to CWD.
        git_executable: Name or path of the git binary.

    Returns:
        Absolute working tree root, or None if not inside a working tree.
    """
    if start_path is None:
        start_path = Path.cwd()

    async def show_toplevel() -> CommandResult:
        runner = AsyncGitRunner(git_executable, timeout=10.0)
        return await runner.run(["rev-parse", "--show-toplevel"], start_path)

    try:
        result = asyncio.run(show_toplevel())
    except (OSError, TimeoutError) as e:
        logger.debug("git rev-parse failed in %s: %s", start_path, e)
        return None
    if not result.ok or not result.stdout:
        return None
    return Path(result.stdout[0].strip()).resolve()
