"""Domain exceptions for pushrange.

These exceptions represent rejected inputs and failed lookups. They should be
caught at the application boundary (use case, CLI) and converted to
appropriate user-facing error messages.
"""


class PushRangeDomainError(Exception):
    """Base exception for all domain errors.

    Attributes:
        message: User-facing error message.
        hint: Optional actionable suggestion.
    """

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint


class InvalidUpdateEventError(PushRangeDomainError):
    """Raised when a ref update cannot describe a real transition."""

    pass


class GraphLookupError(PushRangeDomainError):
    """Raised when the commit graph cannot resolve an id or walk history."""

    pass


class LockBusyError(PushRangeDomainError):
    """Raised by scoped lock helpers when another process holds the lock."""

    def __init__(self, path: str, hint: str | None = None) -> None:
        super().__init__(
            f"Lock is held by another process: {path}",
            hint=hint or "Retry later, or remove the lock directory if its owner died",
        )
        self.path = path
