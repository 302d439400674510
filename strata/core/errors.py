"""CLI error handling with actionable hints.

Provides consistent error formatting and common error factory functions
for all strata CLI commands.
"""

from pathlib import Path
from typing import NoReturn

import click


class StrataCliError(click.ClickException):
    """CLI error with actionable hint for users.

    Provides consistent error formatting across all strata commands with
    optional hints that guide users toward resolving the issue.

    Attributes:
        message: The primary error message.
        hint: Optional actionable suggestion for the user.

    Example:
        raise StrataCliError(
            "Not a git repository: /tmp",
            hint="Run strata from inside a git working tree, or pass --repo"
        )
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        """Initialize the error with message and optional hint.

        Args:
            message: The primary error message.
            hint: Optional actionable suggestion for the user.
        """
        super().__init__(message)
        self.hint = hint

    def format_message(self) -> str:
        """Format the error message with hint if present.

        Returns:
            Formatted error message, with hint on a new line if provided.
        """
        msg = self.message
        if self.hint:
            msg += f"\nHint: {self.hint}"
        return msg


def not_a_repository_error(path: Path) -> NoReturn:
    """Raise error when the start directory is not inside a git working tree.

    Args:
        path: Directory that was searched.

    Raises:
        StrataCliError: Always raises with a --repo hint.
    """
    raise StrataCliError(
        f"Not a git repository: {path}",
        hint="Run strata from inside a git working tree, or pass --repo",
    )


def config_exists_error(path: Path) -> NoReturn:
    """Raise error when config init would overwrite an existing file.

    Args:
        path: Existing config file.

    Raises:
        StrataCliError: Always raises with a --force hint.
    """
    raise StrataCliError(
        f"Config file already exists: {path}",
        hint="Use --force to overwrite it",
    )
