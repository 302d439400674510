"""Local file system adapter.

Implements the FileSystem port using the standard library pathlib.
"""

from pathlib import Path


class LocalFileSystem:
    """Read-only local file access for sequencer artifacts."""

    def exists(self, path: Path) -> bool:
        """Check if path exists.

        Args:
            path: Path to check.

        Returns:
            True if path exists, False otherwise.
        """
        return path.exists()

    def read_text_lines(self, path: Path) -> list[str] | None:
        """Read file and return lines as strings.

        Args:
            path: Absolute path to file.

        Returns:
            List of lines (without trailing newlines), or None if file
            doesn't exist or can't be read.
        """
        if not path.is_file():
            return None
        try:
            return path.read_text(errors="replace").splitlines()
        except OSError:
            # Sequencer files can vanish between the check and the read
            return None
