from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response

from app.api.deps import get_current_user_id, get_db_service
from app.core.config import get_settings
from app.services.db_service import DBService
from app.services.ics_export import build_calendar
from app.services.scheduling import dates

logger = logging.getLogger(__name__)

router = APIRouter(tags=["calendar"])


@router.post("/me/calendar-feed")
async def issue_calendar_feed(
    user_id: str = Depends(get_current_user_id),
    db_service: DBService = Depends(get_db_service),
):
    """Return the caller's private feed URL, issuing a token on first use."""
    token = await db_service.get_or_create_feed_token(user_id)
    base = get_settings().public_base_url
    return {"url": f"{base}/api/calendar/feed?{urlencode({'token': token})}"}


@router.get("/calendar/feed")
async def calendar_feed(
    token: Optional[str] = None,
    db_service: DBService = Depends(get_db_service),
):
    """Upcoming practices the token's owner signed up for, as text/calendar."""
    if not token:
        raise HTTPException(status_code=400, detail="Missing token")

    user_id = await db_service.get_user_by_feed_token(token)
    if not user_id:
        raise HTTPException(status_code=404, detail="Invalid token")

    practices = await db_service.get_signed_up_practices(user_id, from_date=dates.today())
    logger.debug(f"Calendar feed for {user_id}: {len(practices)} practice(s)")

    return Response(
        content=build_calendar(practices),
        media_type="text/calendar; charset=utf-8",
        headers={
            "Cache-Control": f"private, max-age={get_settings().calendar_feed_max_age}",
            "Content-Disposition": 'inline; filename="pingpong-hub.ics"',
        },
    )
