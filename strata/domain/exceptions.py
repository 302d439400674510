"""Domain exceptions for strata.

These exceptions represent failures to gather or interpret repository state.
They should be caught at the application boundary (CLI, TUI) and converted
to appropriate user-facing error messages.
"""


class StrataError(Exception):
    """Base exception for all domain errors.

    Attributes:
        message: User-facing error message.
        hint: Optional actionable suggestion.
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint


class CommandFailure(StrataError):
    """A git sub-fetch exited non-zero or could not be run.

    Recovered locally by the snapshot builder: the failure is recorded on the
    snapshot and the affected section renders empty.

    Attributes:
        args_list: Git arguments that were run (without the executable).
        code: Exit code, or None if the process never started.
        stderr: Captured standard error lines.
    """

    def __init__(
        self,
        args_list: list[str],
        code: int | None,
        stderr: list[str] | tuple[str, ...] = (),
        message: str | None = None,
    ) -> None:
        detail = "\n".join(line for line in stderr if line.strip())
        if message is None:
            message = f"git {' '.join(args_list)} failed (exit code {code})"
            if detail:
                message += f": {detail}"
        super().__init__(message)
        self.args_list = list(args_list)
        self.code = code
        self.stderr = tuple(stderr)


class RefreshError(StrataError):
    """The primary status fetch failed; the previous document is kept."""

    pass
