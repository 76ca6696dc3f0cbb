from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from app.services.scheduling.types import ConflictRecord


class SchedulingError(Exception):
    """Base class for every error raised by the scheduling core."""

    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SchedulingError):
    """Bad input shape or range, reported against a single field."""

    kind = "validation"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class RecurrenceConfigError(ValidationError):
    """Missing or invalid recurrence end date, or an unsupported rule type."""

    kind = "recurrence"

    def __init__(self, message: str, field: Optional[str] = "recurrence_end_date"):
        super().__init__(message, field=field)


class ConflictError(SchedulingError):
    """Candidate occurrences overlap practices already booked at the venue."""

    kind = "conflict"

    def __init__(self, conflicts: list["ConflictRecord"]):
        super().__init__("The practice overlaps existing practices at the same location.")
        self.conflicts = conflicts


class StoreError(SchedulingError):
    """The persistence collaborator failed a read or write."""

    kind = "store"


class AuthError(SchedulingError):
    """No caller identity was supplied."""

    kind = "auth"

    def __init__(self, message: str = "Please sign in."):
        super().__init__(message)


class NotFoundError(SchedulingError):
    kind = "not_found"
