"""CLI error handling with actionable hints.

Provides consistent error formatting and common error factory functions
for all pushrange CLI commands.
"""

from typing import NoReturn

import click


class PushRangeCliError(click.ClickException):
    """CLI error with actionable hint for users.

    Provides consistent error formatting across all pushrange commands with
    optional hints that guide users toward resolving the issue.

    Attributes:
        message: The primary error message.
        hint: Optional actionable suggestion for the user.

    Example:
        raise PushRangeCliError(
            "Not a git repository: /srv/project",
            hint="Run from inside the repository or pass --repo"
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


def repo_not_found_error(path: str) -> NoReturn:
    """Raise error when not inside a git repository.

    Args:
        path: The location that was searched.

    Raises:
        PushRangeCliError: Always raises with repository hint.
    """
    raise PushRangeCliError(
        f"Not a git repository: {path}",
        hint="Run from inside the repository, set GIT_DIR, or pass --repo",
    )


def lock_busy_error(path: str) -> NoReturn:
    """Raise error when a directory lock is held by another process.

    Args:
        path: The lock directory.

    Raises:
        PushRangeCliError: Always raises with retry hint.
    """
    raise PushRangeCliError(
        f"Lock is held by another process: {path}",
        hint="Retry later, raise [lock] retry_timeout, or remove the directory if its owner died",
    )
