from .types import (
    BatchState,
    ConflictRecord,
    Occurrence,
    PracticeDraft,
    RuleRecord,
    SchedulingResult,
)
from .recurrence import RecurrenceRule, RecurrenceType, expand_dates, iter_occurrence_dates
from .conflicts import find_conflicts, overlaps
from .store import PracticeStore
from .coordinator import PracticeScheduler

__all__ = [
    "BatchState",
    "ConflictRecord",
    "Occurrence",
    "PracticeDraft",
    "RuleRecord",
    "SchedulingResult",
    "RecurrenceRule",
    "RecurrenceType",
    "expand_dates",
    "iter_occurrence_dates",
    "find_conflicts",
    "overlaps",
    "PracticeStore",
    "PracticeScheduler",
]
