"""Command runner port interface.

Defines the abstract interface for running git commands asynchronously.
The snapshot builder only ever talks to git through this port, so tests can
substitute a scripted fake.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one command invocation.

    Attributes:
        code: Process exit code.
        stdout: Standard output split into lines (no trailing newlines).
        stderr: Standard error split into lines.
        duration_ms: Wall-clock run time in milliseconds.
    """

    code: int
    stdout: list[str] = field(default_factory=list)
    stderr: list[str] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.code == 0


class CommandRunner(Protocol):
    """Protocol for running git commands."""

    async def run(self, args: list[str], cwd: Path) -> CommandResult:
        """Run git with the given arguments.

        Args:
            args: Git arguments, without the executable name.
            cwd: Working directory for the command.

        Returns:
            CommandResult with exit code and captured output. A non-zero exit
            code is returned, not raised.

        Raises:
            OSError: If the executable cannot be started.
            TimeoutError: If the command exceeds the configured timeout.
        """
        ...
