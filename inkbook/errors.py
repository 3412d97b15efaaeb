"""Error taxonomy for the scheduling core.

Every error carries the HTTP status the surrounding application maps it to.
Pure computation errors are never retried; ``TransientError`` is safe to
retry by the caller.
"""

from typing import Optional, Sequence


class BookingError(Exception):
    """Base class for all scheduling errors."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    """Malformed or missing request fields."""

    status_code = 400

    def __init__(self, message: str, fields: Optional[Sequence[str]] = None) -> None:
        super().__init__(message)
        self.fields: list[str] = list(fields or [])


class InvalidInputError(ValidationError):
    """Out-of-domain categorical value (unknown size, complexity outside 1..5)."""


class ConflictError(BookingError):
    """The requested time overlaps existing appointments for the artist."""

    status_code = 409

    def __init__(self, message: str, conflicts: Optional[Sequence] = None) -> None:
        super().__init__(message)
        self.conflicts = list(conflicts or [])


class NotFoundError(BookingError):
    """A referenced appointment does not exist where existence is required."""

    status_code = 404


class TransientError(BookingError):
    """The external store timed out or was unreachable."""

    status_code = 503
