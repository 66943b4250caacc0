"""Use case error handling utilities.

Provides consistent exception handling across all use cases. Use cases
record errors in their responses rather than raising them (except for
KeyboardInterrupt/SystemExit), so one failing ref never stops the others.

Design principles:
1. KeyboardInterrupt and SystemExit are always re-raised (never caught)
2. PushRangeDomainError subclasses carry user-friendly messages
3. Unexpected exceptions are logged and converted to generic error messages
4. All use cases return responses with success/error fields
"""

import logging
import subprocess

from pushrange.domain.exceptions import PushRangeDomainError

logger = logging.getLogger(__name__)


def format_error_message(exception: Exception, operation_name: str) -> str:
    """Format an exception into a user-friendly error message.

    Handles different exception types appropriately:
    - PushRangeDomainError: Uses the error's message directly
    - OSError: Adds context about permissions/disk space
    - CalledProcessError: Names the failed git command
    - ValueError/RuntimeError: Includes exception message with operation context
    - Other exceptions: Returns a generic "internal error" message

    Args:
        exception: The exception that was caught.
        operation_name: Name of the operation for error messages (e.g., "resolving refs/heads/main").

    Returns:
        User-friendly error message string.

    Example:
        try:
            result = self._do_work()
        except (KeyboardInterrupt, SystemExit):
            raise
        except Exception as e:
            error_msg = format_error_message(e, "resolving")
            return self._create_error_response(error_msg)
    """
    if isinstance(exception, PushRangeDomainError):
        return exception.message
    elif isinstance(exception, subprocess.CalledProcessError):
        return f"Git command failed while {operation_name} (exit code {exception.returncode})"
    elif isinstance(exception, OSError):
        return (
            f"I/O error: {exception}. "
            "Check file permissions, disk space, and filesystem access."
        )
    elif isinstance(exception, (ValueError, RuntimeError)):
        return f"Error while {operation_name}: {exception}"
    else:
        return f"Internal error while {operation_name}. Check logs for details."


def log_use_case_error(exception: Exception, operation_name: str) -> None:
    """Log an exception from a use case with appropriate severity.

    - PushRangeDomainError: ERROR level (expected domain errors)
    - OSError/ValueError/RuntimeError: ERROR level
    - Other exceptions: EXCEPTION level (includes traceback)

    Args:
        exception: The exception that was caught.
        operation_name: Name of the operation for log messages.
    """
    if isinstance(exception, PushRangeDomainError):
        logger.error(f"{operation_name}: {exception}")
    elif isinstance(exception, OSError):
        logger.error(f"I/O error while {operation_name}: {exception}")
    elif isinstance(exception, (ValueError, RuntimeError, subprocess.CalledProcessError)):
        logger.error(f"Error while {operation_name}: {exception}")
    else:
        logger.exception(f"Unexpected error while {operation_name}")
