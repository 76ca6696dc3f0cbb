from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from app.api.deps import get_current_user_id, get_db_service, get_optional_user_id
from app.models import PracticeComment
from app.services.db_service import DBService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["comments"])


class CommentPayload(BaseModel):
    comment: str = Field(..., min_length=1, max_length=2000)


def _serialize(comment: PracticeComment, liked_by: list[str], viewer: Optional[str]) -> dict:
    return {
        "id": str(comment.id),
        "practice_id": str(comment.practice_id),
        "user_id": comment.user_id,
        "type": comment.type,
        "comment": comment.comment,
        "display_name": comment.display_name,
        "created_at": comment.created_at.isoformat() if comment.created_at else None,
        "like_count": len(liked_by),
        "liked_by_me": viewer in liked_by if viewer else False,
    }


@router.get("/practices/{practice_id}/comments")
async def list_comments(
    practice_id: str,
    viewer: Optional[str] = Depends(get_optional_user_id),
    db_service: DBService = Depends(get_db_service),
):
    """Thread of a practice: comments plus join/cancel entries, oldest first."""
    entries = await db_service.get_practice_comments(practice_id)
    return {
        "total": len(entries),
        "comments": [_serialize(c, liked_by, viewer) for c, liked_by in entries],
    }


@router.post("/practices/{practice_id}/comments", status_code=201)
async def post_comment(
    practice_id: str,
    payload: CommentPayload,
    user_id: str = Depends(get_current_user_id),
    db_service: DBService = Depends(get_db_service),
):
    text = payload.comment.strip()
    if not text:
        raise HTTPException(status_code=422, detail="Please enter a comment.")
    if not await db_service.get_practice(practice_id):
        raise HTTPException(status_code=404, detail="Practice not found")

    comment = await db_service.create_comment(
        {
            "practice_id": practice_id,
            "user_id": user_id,
            "type": "comment",
            "comment": text,
            "display_name": await db_service.get_display_name(user_id),
        }
    )
    return _serialize(comment, [], user_id)


@router.put("/comments/{comment_id}/like")
async def like_comment(
    comment_id: str,
    user_id: str = Depends(get_current_user_id),
    db_service: DBService = Depends(get_db_service),
):
    """Like a comment. Liking twice is not an error."""
    if not await db_service.get_comment(comment_id):
        raise HTTPException(status_code=404, detail="Comment not found")
    await db_service.like_comment(comment_id, user_id)
    return {"success": True, "liked": True}


@router.delete("/comments/{comment_id}/like")
async def unlike_comment(
    comment_id: str,
    user_id: str = Depends(get_current_user_id),
    db_service: DBService = Depends(get_db_service),
):
    if not await db_service.get_comment(comment_id):
        raise HTTPException(status_code=404, detail="Comment not found")
    removed = await db_service.unlike_comment(comment_id, user_id)
    logger.debug(f"Unlike {comment_id} by {user_id}: removed={removed}")
    return {"success": True, "liked": False}
