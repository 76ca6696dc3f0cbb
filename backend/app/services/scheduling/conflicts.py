"""Venue overlap detection between candidate and existing practices."""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Iterable

from app.services.scheduling.dates import time_to_minutes
from app.services.scheduling.types import ConflictRecord, Occurrence


def overlaps(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    """Half-open interval overlap: ``[s1, e1)`` and ``[s2, e2)``.

    Back-to-back ranges sharing an endpoint do not overlap.
    """
    s1, e1 = time_to_minutes(start_a), time_to_minutes(end_a)
    s2, e2 = time_to_minutes(start_b), time_to_minutes(end_b)
    return s1 < e2 and s2 < e1


def venue_key(location: str) -> str:
    return " ".join((location or "").split())


def find_conflicts(
    candidates: Iterable[Occurrence],
    existing: Iterable[Occurrence],
) -> list[ConflictRecord]:
    """Return one record per (candidate, existing) pair that overlaps.

    Only practices at the same location on the same date are compared. A
    practice never conflicts with itself (matching ids are skipped).
    """
    booked: dict[tuple[str, date], list[Occurrence]] = defaultdict(list)
    for occ in existing:
        booked[(venue_key(occ.location), occ.event_date)].append(occ)

    records: list[ConflictRecord] = []
    for candidate in candidates:
        for occ in booked.get((venue_key(candidate.location), candidate.event_date), []):
            if candidate.id is not None and occ.id == candidate.id:
                continue
            if not overlaps(candidate.start_time, candidate.end_time, occ.start_time, occ.end_time):
                continue
            records.append(
                ConflictRecord(
                    practice_id=occ.id,
                    event_date=occ.event_date,
                    start_time=occ.start_time,
                    end_time=occ.end_time,
                    label=occ.label,
                    location=occ.location,
                    candidate_start_time=candidate.start_time,
                    candidate_end_time=candidate.end_time,
                )
            )

    records.sort(key=lambda r: (r.event_date, r.start_time, r.end_time, r.practice_id or ""))
    return records
