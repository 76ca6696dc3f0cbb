from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from app.api.deps import (
    get_current_user_id,
    get_db_service,
    get_scheduler,
    raise_for_result,
)
from app.core.errors import SchedulingError
from app.services.db_service import DBService
from app.services.ics_export import google_calendar_url
from app.services.scheduling import (
    PracticeDraft,
    PracticeScheduler,
    RecurrenceRule,
    SchedulingResult,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["practices"])


class _BasePayload(BaseModel):
    """Loose payload models; field validation happens in the scheduler."""

    class Config:
        extra = "ignore"


class PracticeCreatePayload(_BasePayload):
    event_date: str
    start_time: str
    end_time: str
    location: str
    max_participants: Union[int, str] = 1
    team_name: Optional[str] = None
    content: Optional[str] = None
    level: Optional[str] = None
    conditions: Optional[str] = None
    fee: Optional[str] = None
    recurrence_type: str = "none"
    recurrence_end_date: Optional[str] = None


class PracticeUpdatePayload(_BasePayload):
    event_date: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    location: Optional[str] = None
    max_participants: Optional[Union[int, str]] = None
    team_name: Optional[str] = None
    content: Optional[str] = None
    level: Optional[str] = None
    conditions: Optional[str] = None
    fee: Optional[str] = None
    detach: bool = Field(False, description="Remove the practice from its repeating group")


class RecurrenceEndPayload(_BasePayload):
    end_date: str


@router.post("/practices", status_code=201)
async def create_practices(
    payload: PracticeCreatePayload,
    user_id: str = Depends(get_current_user_id),
    scheduler: PracticeScheduler = Depends(get_scheduler),
    db_service: DBService = Depends(get_db_service),
):
    """Create a practice, expanding the recurrence rule into dated occurrences.

    Nothing is written when any occurrence overlaps an existing practice at
    the same location; the response then lists every conflict.
    """
    try:
        rule = RecurrenceRule(payload.recurrence_type, payload.recurrence_end_date)
    except SchedulingError as exc:
        raise_for_result(SchedulingResult.failure(exc))

    draft = PracticeDraft(
        event_date=payload.event_date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        location=payload.location,
        max_participants=payload.max_participants,
        team_name=payload.team_name,
        content=payload.content,
        level=payload.level,
        conditions=payload.conditions,
        fee=payload.fee,
        display_name=await db_service.get_display_name(user_id),
    )
    result = await scheduler.create_practices(draft, rule, owner_id=user_id)
    raise_for_result(result)
    return {**result.to_dict(), "count": len(result.created)}


@router.get("/practices")
async def list_practices(
    from_date: Optional[date] = None,
    limit: int = Query(200, ge=1, le=500),
    db_service: DBService = Depends(get_db_service),
):
    """List practices ordered by date and start time."""
    practices = await db_service.list_practices(from_date=from_date, limit=limit)
    return {
        "total": len(practices),
        "practices": [p.to_dict() for p in practices],
    }


@router.get("/practices/{practice_id}")
async def get_practice(practice_id: str, db_service: DBService = Depends(get_db_service)):
    practice = await db_service.get_practice(practice_id)
    if not practice:
        raise HTTPException(status_code=404, detail="Practice not found")
    return {
        **practice.to_dict(),
        "signup_count": await db_service.count_signups(practice_id),
    }


@router.get("/practices/{practice_id}/google-calendar-url")
async def get_google_calendar_url(practice_id: str, db_service: DBService = Depends(get_db_service)):
    practice = await db_service.get_practice(practice_id)
    if not practice:
        raise HTTPException(status_code=404, detail="Practice not found")
    return {"url": google_calendar_url(practice)}


@router.patch("/practices/{practice_id}")
async def update_practice(
    practice_id: str,
    payload: PracticeUpdatePayload,
    user_id: str = Depends(get_current_user_id),
    scheduler: PracticeScheduler = Depends(get_scheduler),
):
    """Edit one practice; siblings in its repeating group are left untouched."""
    changes = payload.model_dump(exclude_unset=True, exclude={"detach"})
    result = await scheduler.update_practice(
        practice_id, changes, owner_id=user_id, detach=payload.detach
    )
    raise_for_result(result)
    return {"success": True, "practice": result.created[0].to_dict()}


@router.delete("/practices/{practice_id}")
async def delete_practice(
    practice_id: str,
    user_id: str = Depends(get_current_user_id),
    scheduler: PracticeScheduler = Depends(get_scheduler),
):
    result = await scheduler.delete_practice(practice_id, owner_id=user_id)
    raise_for_result(result)
    return {"success": True}


@router.patch("/recurrence-groups/{group_id}")
async def change_recurrence_end(
    group_id: str,
    payload: RecurrenceEndPayload,
    user_id: str = Depends(get_current_user_id),
    scheduler: PracticeScheduler = Depends(get_scheduler),
):
    """Move the end date of a repeating practice."""
    result = await scheduler.change_recurrence_end(group_id, payload.end_date, owner_id=user_id)
    raise_for_result(result)
    return {
        "success": True,
        "created": [o.to_dict() for o in result.created],
        "deleted": result.deleted,
    }


class SignupPayload(_BasePayload):
    message: str | None = None


async def _record_participation(
    db_service: DBService, practice_id: str, user_id: str, kind: str, message: str | None
) -> None:
    await db_service.create_comment(
        {
            "practice_id": practice_id,
            "user_id": user_id,
            "type": kind,
            "comment": (message or "").strip() or None,
            "display_name": await db_service.get_display_name(user_id),
        }
    )


@router.post("/practices/{practice_id}/signup", status_code=201)
async def join_practice(
    practice_id: str,
    payload: SignupPayload | None = None,
    user_id: str = Depends(get_current_user_id),
    db_service: DBService = Depends(get_db_service),
):
    """Sign the caller up and post a join entry to the practice thread."""
    if not await db_service.get_practice(practice_id):
        raise HTTPException(status_code=404, detail="Practice not found")
    if not await db_service.add_signup(practice_id, user_id):
        raise HTTPException(status_code=409, detail="You have already joined this practice.")

    await _record_participation(db_service, practice_id, user_id, "join", payload and payload.message)
    logger.info(f"User {user_id} joined practice {practice_id}")
    return {"success": True, "signup_count": await db_service.count_signups(practice_id)}


@router.delete("/practices/{practice_id}/signup")
async def cancel_practice(
    practice_id: str,
    message: str | None = None,
    user_id: str = Depends(get_current_user_id),
    db_service: DBService = Depends(get_db_service),
):
    if not await db_service.get_practice(practice_id):
        raise HTTPException(status_code=404, detail="Practice not found")
    if not await db_service.remove_signup(practice_id, user_id):
        raise HTTPException(status_code=404, detail="You have not joined this practice.")

    await _record_participation(db_service, practice_id, user_id, "cancel", message)
    logger.info(f"User {user_id} cancelled practice {practice_id}")
    return {"success": True, "signup_count": await db_service.count_signups(practice_id)}
