from __future__ import annotations

from typing import Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_db
from app.core.errors import (
    AuthError,
    ConflictError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from app.services.db_service import DBService
from app.services.scheduling import PracticeScheduler, SchedulingResult

_STATUS_BY_KIND = {
    ValidationError.kind: 422,
    "recurrence": 422,
    ConflictError.kind: 409,
    AuthError.kind: 401,
    NotFoundError.kind: 404,
    StoreError.kind: 502,
}


def get_optional_user_id(request: Request) -> Optional[str]:
    """User id forwarded by the upstream identity provider, if any."""
    header = get_settings().identity_header
    user_id = (request.headers.get(header) or "").strip()
    return user_id or None


def get_current_user_id(user_id: Optional[str] = Depends(get_optional_user_id)) -> str:
    if not user_id:
        raise HTTPException(status_code=401, detail="Please sign in.")
    return user_id


def get_db_service(db: AsyncSession = Depends(get_db)) -> DBService:
    return DBService(db)


def get_scheduler(db_service: DBService = Depends(get_db_service)) -> PracticeScheduler:
    return PracticeScheduler(db_service)


def status_for_kind(kind: Optional[str]) -> int:
    return _STATUS_BY_KIND.get(kind, 400)


def raise_for_result(result: SchedulingResult) -> None:
    """Turn a failed SchedulingResult into an HTTPException carrying its payload."""
    if result.success:
        return
    status = status_for_kind(result.error_kind)
    raise HTTPException(status_code=status, detail=result.to_dict())
