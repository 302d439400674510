"""Error formatting and logging shared by the hosts.

Design principles:
1. KeyboardInterrupt and SystemExit are always re-raised (never caught)
2. StrataError subclasses are domain errors with user-friendly messages
3. Unexpected exceptions are logged and converted to generic error messages
"""

import logging

from strata.domain.exceptions import StrataError

logger = logging.getLogger(__name__)


def format_error_message(exception: Exception, operation_name: str) -> str:
    """Format an exception into a user-friendly error message.

    Handles different exception types appropriately:
    - StrataError: Uses the error's message directly
    - OSError: Adds context about git and filesystem access
    - ValueError/RuntimeError: Includes exception message with operation context
    - Other exceptions: Returns a generic "internal error" message

    Args:
        exception: The exception that was caught.
        operation_name: Name of the operation for error messages (e.g., "refresh").

    Returns:
        User-friendly error message string.
    """
    if isinstance(exception, StrataError):
        return exception.message
    elif isinstance(exception, OSError):
        return f"I/O error: {exception}. Check that git is installed and the repository is readable."
    elif isinstance(exception, (ValueError, RuntimeError)):
        return f"{operation_name.capitalize()} error: {exception}"
    else:
        return f"Internal error during {operation_name}. Check logs for details."


def log_use_case_error(exception: Exception, operation_name: str) -> None:
    """Log an exception with appropriate severity.

    - StrataError: ERROR level (expected domain errors)
    - OSError/ValueError/RuntimeError: ERROR level
    - Other exceptions: EXCEPTION level (includes traceback)

    Args:
        exception: The exception that was caught.
        operation_name: Name of the operation for log messages.
    """
    if isinstance(exception, StrataError):
        logger.error(str(exception))
    elif isinstance(exception, OSError):
        logger.error("I/O error during %s: %s", operation_name, exception)
    elif isinstance(exception, (ValueError, RuntimeError)):
        logger.error("Error during %s: %s", operation_name, exception)
    else:
        logger.exception("Unexpected error during %s", operation_name)
