from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional, Union

from app.core.errors import ConflictError, SchedulingError, StoreError, ValidationError


@dataclass
class PracticeDraft:
    """Practice fields as submitted by an organizer, before normalisation."""

    event_date: Union[date, str, None]
    start_time: Optional[str]
    end_time: Optional[str]
    location: Optional[str]
    max_participants: Any = 1
    team_name: Optional[str] = None
    content: Optional[str] = None
    level: Optional[str] = None
    conditions: Optional[str] = None
    fee: Optional[str] = None
    display_name: Optional[str] = None


EDITABLE_FIELDS = (
    "event_date",
    "start_time",
    "end_time",
    "location",
    "max_participants",
    "team_name",
    "content",
    "level",
    "conditions",
    "fee",
)


@dataclass
class Occurrence:
    """One concrete, dated practice."""

    event_date: date
    start_time: str  # HH:MM
    end_time: str  # HH:MM
    location: str
    max_participants: int
    owner_id: str
    team_name: Optional[str] = None
    content: Optional[str] = None
    level: Optional[str] = None
    conditions: Optional[str] = None
    fee: Optional[str] = None
    display_name: Optional[str] = None
    recurrence_group_id: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def label(self) -> str:
        return self.team_name or self.display_name or ""

    def to_draft(self) -> PracticeDraft:
        values = {name: getattr(self, name) for name in EDITABLE_FIELDS}
        return PracticeDraft(**values, display_name=self.display_name)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["event_date"] = self.event_date.isoformat()
        data["created_at"] = self.created_at.isoformat() if self.created_at else None
        return data


@dataclass
class ConflictRecord:
    """An existing practice that overlaps a candidate occurrence."""

    practice_id: Optional[str]
    event_date: date
    start_time: str
    end_time: str
    label: str
    location: str
    candidate_start_time: str
    candidate_end_time: str

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["event_date"] = self.event_date.isoformat()
        return data


@dataclass
class RuleRecord:
    """Stored form of a recurrence rule, keyed by its group id."""

    group_id: Optional[str]
    owner_id: str
    type: str
    anchor_date: date
    end_date: date
    day_of_week: Optional[int] = None
    nth_week: Optional[int] = None


class BatchState(str, Enum):
    VALIDATING = "validating"
    EXPANDING = "expanding"
    CONFLICT_CHECKING = "conflict_checking"
    COMMITTING = "committing"
    COMMITTED = "committed"
    ABORTED = "aborted"


@dataclass
class SchedulingResult:
    """Outcome handed back to request handlers; never raised.

    ``may_be_partial`` is set when a write failed part-way and the store
    does not promise all-or-nothing batches.
    """

    success: bool
    state: BatchState = BatchState.COMMITTED
    created: list[Occurrence] = field(default_factory=list)
    deleted: int = 0
    error: Optional[str] = None
    error_kind: Optional[str] = None
    error_field: Optional[str] = None
    conflicts: list[ConflictRecord] = field(default_factory=list)
    may_be_partial: bool = False

    @classmethod
    def ok(cls, created: Optional[list[Occurrence]] = None, deleted: int = 0) -> "SchedulingResult":
        return cls(success=True, created=list(created or []), deleted=deleted)

    @classmethod
    def failure(
        cls,
        exc: SchedulingError,
        state: BatchState = BatchState.ABORTED,
        may_be_partial: bool = False,
    ) -> "SchedulingResult":
        return cls(
            success=False,
            state=state,
            error=exc.message,
            error_kind=exc.kind,
            error_field=exc.field if isinstance(exc, ValidationError) else None,
            conflicts=list(exc.conflicts) if isinstance(exc, ConflictError) else [],
            may_be_partial=may_be_partial if isinstance(exc, StoreError) else False,
        )

    def to_dict(self) -> dict[str, Any]:
        if self.success:
            data: dict[str, Any] = {
                "success": True,
                "created": [o.to_dict() for o in self.created],
            }
            if self.deleted:
                data["deleted"] = self.deleted
            return data

        data = {"success": False, "error": self.error}
        if self.error_field:
            data["field"] = self.error_field
        if self.conflicts:
            data["conflicts"] = [c.to_dict() for c in self.conflicts]
        if self.error_kind == StoreError.kind:
            data["may_be_partial"] = self.may_be_partial
        return data
