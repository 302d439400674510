"""File System port interface.

Defines the read-only file access the sequencer reader needs. Enables
testing against in-memory sequencer artifacts.
"""

from pathlib import Path
from typing import Protocol


class FileSystem(Protocol):
    """Protocol for file system operations."""

    def exists(self, path: Path) -> bool:
        """Check if path exists.

        Args:
            path: Path to check.

        Returns:
            True if path exists, False otherwise.
        """
        ...

    def read_text_lines(self, path: Path) -> list[str] | None:
        """Read file and return lines as strings.

        Args:
            path: Absolute path to file.

        Returns:
            List of lines (without trailing newlines), or None if file
            doesn't exist or can't be read.
        """
        ...
