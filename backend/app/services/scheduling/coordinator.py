"""Validate, expand, conflict-check and commit practice batches.

A creation request moves through

    VALIDATING -> EXPANDING -> CONFLICT_CHECKING -> COMMITTING | ABORTED

and nothing is written before COMMITTING, so an aborted request leaves the
store exactly as it found it. The conflict check and the insert are separate
store calls; two organizers racing for the same slot can both pass the check.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import date
from typing import Any, Callable, Optional

from app.core.errors import (
    AuthError,
    ConflictError,
    NotFoundError,
    RecurrenceConfigError,
    SchedulingError,
    StoreError,
    ValidationError,
)
from app.services.scheduling import dates
from app.services.scheduling.conflicts import find_conflicts, venue_key
from app.services.scheduling.recurrence import (
    RecurrenceRule,
    RecurrenceType,
    expand_dates,
    validate_rule,
)
from app.services.scheduling.store import PracticeStore
from app.services.scheduling.types import (
    EDITABLE_FIELDS,
    BatchState,
    Occurrence,
    PracticeDraft,
    RuleRecord,
    SchedulingResult,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], date]


def require_owner(owner_id: Optional[str]) -> str:
    owner = (owner_id or "").strip()
    if not owner:
        raise AuthError()
    return owner


def _clean_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_capacity(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError("Max participants must be a whole number.", field="max_participants")
    try:
        capacity = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError("Max participants must be a whole number.", field="max_participants")
    if capacity < 1:
        raise ValidationError("Max participants must be at least 1.", field="max_participants")
    return capacity


def build_occurrence(
    draft: PracticeDraft,
    owner_id: str,
    today: date,
    check_past: bool = True,
) -> Occurrence:
    """Normalise a draft into an occurrence, raising ValidationError on bad input."""
    location = venue_key(draft.location or "")
    if not location:
        raise ValidationError("Please enter a location.", field="location")

    event_date = dates.parse_date(draft.event_date, field="event_date")
    if check_past and event_date < today:
        raise ValidationError("The practice date must not be in the past.", field="event_date")

    start_time = dates.normalize_time(draft.start_time, field="start_time")
    end_time = dates.normalize_time(draft.end_time, field="end_time")
    if start_time >= end_time:
        raise ValidationError("The end time must be after the start time.", field="end_time")

    return Occurrence(
        event_date=event_date,
        start_time=start_time,
        end_time=end_time,
        location=location,
        max_participants=_parse_capacity(draft.max_participants),
        owner_id=owner_id,
        team_name=_clean_text(draft.team_name),
        content=_clean_text(draft.content),
        level=_clean_text(draft.level),
        conditions=_clean_text(draft.conditions),
        fee=_clean_text(draft.fee),
        display_name=_clean_text(draft.display_name),
    )


def rule_record_for(group_id: str, owner_id: str, base_date: date, rule: RecurrenceRule) -> RuleRecord:
    return RuleRecord(
        group_id=group_id,
        owner_id=owner_id,
        type=rule.type.value,
        anchor_date=base_date,
        end_date=rule.end_date,
        day_of_week=base_date.weekday() if rule.type is not RecurrenceType.MONTHLY_BY_DATE else None,
        nth_week=(
            dates.nth_week_of(base_date)
            if rule.type is RecurrenceType.MONTHLY_BY_NTH_WEEKDAY
            else None
        ),
    )


class PracticeScheduler:
    """Creates and maintains practices against a PracticeStore.

    Every public method returns a SchedulingResult; SchedulingError never
    escapes to the caller.
    """

    def __init__(self, store: PracticeStore, clock: Clock = dates.today):
        self.store = store
        self.clock = clock

    async def create_practices(
        self,
        draft: PracticeDraft,
        rule: Optional[RecurrenceRule] = None,
        owner_id: Optional[str] = None,
    ) -> SchedulingResult:
        rule = rule or RecurrenceRule()
        today = self.clock()
        state = BatchState.VALIDATING
        try:
            owner = require_owner(owner_id)
            base = build_occurrence(draft, owner, today)

            state = self._advance(state, BatchState.EXPANDING)
            occurrence_dates = expand_dates(base.event_date, rule, today)
            if not occurrence_dates:
                raise RecurrenceConfigError("No dates match the repeat settings.")
            candidates = [replace(base, event_date=d) for d in occurrence_dates]

            state = self._advance(state, BatchState.CONFLICT_CHECKING)
            await self._check_conflicts(candidates)

            state = self._advance(state, BatchState.COMMITTING)
            group_id = str(uuid.uuid4()) if rule.is_recurring else None
            rows = [replace(c, recurrence_group_id=group_id) for c in candidates]
            record = rule_record_for(group_id, owner, base.event_date, rule) if group_id else None
            created = await self.store.insert_batch(rows, record)
        except SchedulingError as exc:
            return self._fail(exc, state)

        logger.info(
            f"Created {len(created)} practice(s) at {base.location} "
            f"({rule.type.value}, group={group_id})"
        )
        return SchedulingResult.ok(created)

    async def update_practice(
        self,
        practice_id: str,
        changes: dict[str, Any],
        owner_id: Optional[str] = None,
        detach: bool = False,
    ) -> SchedulingResult:
        """Edit one practice. ``detach`` removes it from its recurrence group."""
        today = self.clock()
        state = BatchState.VALIDATING
        try:
            owner = require_owner(owner_id)
            unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
            if unknown:
                raise ValidationError(f"Unknown field: {unknown[0]}", field=unknown[0])

            existing = await self.store.get_practice(practice_id)
            if existing is None or existing.owner_id != owner:
                raise NotFoundError("Practice not found.")

            draft = existing.to_draft()
            for name, value in changes.items():
                setattr(draft, name, value)
            date_changed = (
                "event_date" in changes
                and dates.parse_date(changes["event_date"]) != existing.event_date
            )
            updated = replace(
                build_occurrence(draft, owner, today, check_past=date_changed),
                id=existing.id,
            )

            state = self._advance(state, BatchState.CONFLICT_CHECKING)
            await self._check_conflicts([updated])

            state = self._advance(state, BatchState.COMMITTING)
            values = {name: getattr(updated, name) for name in EDITABLE_FIELDS}
            if detach:
                values["recurrence_group_id"] = None
            saved = await self.store.update_practice(practice_id, owner, values)
            if saved is None:
                raise NotFoundError("Practice not found.")
        except SchedulingError as exc:
            return self._fail(exc, state)

        return SchedulingResult.ok([saved])

    async def delete_practice(self, practice_id: str, owner_id: Optional[str] = None) -> SchedulingResult:
        state = BatchState.COMMITTING
        try:
            owner = require_owner(owner_id)
            deleted = await self.store.delete_practice(practice_id, owner)
            if not deleted:
                # Ownership and missing ids look the same from here
                raise NotFoundError("No practice found to delete. Check the id and your permissions.")
        except SchedulingError as exc:
            return self._fail(exc, state)
        return SchedulingResult.ok(deleted=1)

    async def change_recurrence_end(
        self,
        group_id: str,
        new_end_date: date | str,
        owner_id: Optional[str] = None,
    ) -> SchedulingResult:
        """Move a recurrence group's end date.

        Moving it later adds the missing occurrences after the group's
        latest remaining practice; moving it earlier deletes occurrences
        past the new end. The stored end date changes only after the
        occurrence writes succeed. A store failure after an occurrence
        write has committed is reported with ``may_be_partial`` set.
        """
        today = self.clock()
        state = BatchState.VALIDATING
        created: list[Occurrence] = []
        deleted = 0
        written = False
        try:
            owner = require_owner(owner_id)
            new_end = dates.parse_date(new_end_date, field="recurrence_end_date")
            record = await self.store.get_rule(group_id, owner)
            if record is None:
                raise NotFoundError("Repeating practice not found.")

            rule = RecurrenceRule(type=record.type, end_date=new_end)
            validate_rule(record.anchor_date, rule, today)
            if new_end > record.end_date:
                state = self._advance(state, BatchState.EXPANDING)
                siblings = await self.store.list_group(group_id)
                if siblings:
                    template = max(siblings, key=lambda o: (o.event_date, o.start_time))
                    new_dates = [
                        d
                        for d in expand_dates(record.anchor_date, rule, today, after=template.event_date)
                        if d >= today
                    ]
                    candidates = [
                        replace(template, id=None, created_at=None, event_date=d) for d in new_dates
                    ]
                    if candidates:
                        state = self._advance(state, BatchState.CONFLICT_CHECKING)
                        await self._check_conflicts(candidates)
                        state = self._advance(state, BatchState.COMMITTING)
                        created = await self.store.insert_batch(candidates)
                        written = True
            elif new_end < record.end_date:
                state = self._advance(state, BatchState.COMMITTING)
                deleted = await self.store.delete_group_after(group_id, owner, new_end)
                written = True
            else:
                return SchedulingResult.ok()

            state = BatchState.COMMITTING
            await self.store.update_rule_end(group_id, owner, new_end)
        except SchedulingError as exc:
            return self._fail(exc, state, written=written)

        logger.info(
            f"Moved end of group {group_id} to {new_end}: +{len(created)} / -{deleted} practice(s)"
        )
        return SchedulingResult.ok(created, deleted=deleted)

    async def _check_conflicts(self, candidates: list[Occurrence]) -> None:
        location = candidates[0].location
        wanted = sorted({c.event_date for c in candidates})
        existing = await self.store.find_practices(location, wanted)
        conflicts = find_conflicts(candidates, existing)
        if conflicts:
            raise ConflictError(conflicts)

    @staticmethod
    def _advance(current: BatchState, target: BatchState) -> BatchState:
        logger.debug(f"Batch state {current.value} -> {target.value}")
        return target

    def _fail(
        self, exc: SchedulingError, state: BatchState, written: bool = False
    ) -> SchedulingResult:
        # written: an earlier store call in this request already committed
        may_be_partial = False
        if isinstance(exc, StoreError):
            may_be_partial = written or (
                state is BatchState.COMMITTING and not getattr(self.store, "atomic_batches", False)
            )
            logger.error(f"Store failure while {state.value}: {exc.message}")
        elif isinstance(exc, ConflictError):
            logger.info(f"Aborted: {len(exc.conflicts)} conflict(s) found")
        else:
            logger.info(f"Rejected while {state.value}: {exc.message}")
        return SchedulingResult.failure(exc, state=BatchState.ABORTED, may_be_partial=may_be_partial)
