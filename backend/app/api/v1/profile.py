from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from app.api.deps import get_current_user_id, get_db_service
from app.models import UserProfile
from app.services.db_service import PROFILE_FIELDS, DBService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["profile"])


class ProfilePayload(BaseModel):
    display_name: Optional[str] = Field(None, max_length=100)
    racket: Optional[str] = Field(None, max_length=200)
    forehand_rubber: Optional[str] = Field(None, max_length=200)
    backhand_rubber: Optional[str] = Field(None, max_length=200)
    play_style: Optional[str] = Field(None, max_length=200)
    dominant_hand: Optional[str] = Field(None, max_length=20)

    class Config:
        extra = "ignore"


def _serialize(profile: UserProfile) -> dict:
    data = {"user_id": profile.user_id}
    data.update({name: getattr(profile, name) for name in PROFILE_FIELDS})
    return data


@router.get("/me/profile")
async def get_profile(
    user_id: str = Depends(get_current_user_id),
    db_service: DBService = Depends(get_db_service),
):
    profile = await db_service.get_profile(user_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return _serialize(profile)


@router.put("/me/profile")
async def save_profile(
    payload: ProfilePayload,
    user_id: str = Depends(get_current_user_id),
    db_service: DBService = Depends(get_db_service),
):
    """Create or replace the caller's display name and equipment details."""
    profile = await db_service.save_profile(user_id, payload.model_dump())
    return {"success": True, "profile": _serialize(profile)}
