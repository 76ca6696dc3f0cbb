from __future__ import annotations

import logging
import secrets
import uuid
from contextlib import asynccontextmanager
from datetime import date
from typing import Any, Collection, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import StoreError
from app.models import CommentLike, Practice, PracticeComment, RecurrenceGroup, Signup, UserProfile
from app.services.scheduling.types import Occurrence, RuleRecord

logger = logging.getLogger(__name__)

PROFILE_FIELDS = (
    "display_name",
    "racket",
    "forehand_rubber",
    "backhand_rubber",
    "play_style",
    "dominant_hand",
)


def _uuid(value: Any) -> Optional[uuid.UUID]:
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def _str(value: Optional[uuid.UUID]) -> Optional[str]:
    return str(value) if value is not None else None


def to_occurrence(practice: Practice) -> Occurrence:
    return Occurrence(
        id=_str(practice.id),
        event_date=practice.event_date,
        start_time=practice.start_time,
        end_time=practice.end_time,
        location=practice.location,
        max_participants=practice.max_participants,
        owner_id=practice.owner_id,
        team_name=practice.team_name,
        content=practice.content,
        level=practice.level,
        conditions=practice.conditions,
        fee=practice.fee,
        display_name=practice.display_name,
        recurrence_group_id=_str(practice.recurrence_group_id),
        created_at=practice.created_at,
    )


class DBService:
    """
    Service for database operations.

    Implements the PracticeStore protocol used by the scheduler. A batch is
    written in one transaction, so ``atomic_batches`` is True.
    """

    atomic_batches = True

    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def _guard(self, action: str):
        try:
            yield
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to {action}: {e}")
            raise StoreError(str(e)) from e

    # ==================== PRACTICES ====================

    async def find_practices(self, location: str, dates: Collection[date]) -> List[Occurrence]:
        """Practices at ``location`` on any of ``dates``."""
        if not dates:
            return []
        async with self._guard("query practices"):
            result = await self.session.execute(
                select(Practice)
                .where(Practice.location == location, Practice.event_date.in_(list(dates)))
                .order_by(Practice.event_date, Practice.start_time)
            )
            return [to_occurrence(p) for p in result.scalars().all()]

    async def insert_batch(
        self,
        rows: List[Occurrence],
        rule: Optional[RuleRecord] = None,
    ) -> List[Occurrence]:
        """Insert the practices (and their recurrence rule) in a single commit."""
        async with self._guard("insert practices"):
            if rule is not None:
                self.session.add(
                    RecurrenceGroup(
                        id=_uuid(rule.group_id),
                        owner_id=rule.owner_id,
                        type=rule.type,
                        anchor_date=rule.anchor_date,
                        end_date=rule.end_date,
                        day_of_week=rule.day_of_week,
                        nth_week=rule.nth_week,
                    )
                )
            practices = [
                Practice(
                    event_date=row.event_date,
                    start_time=row.start_time,
                    end_time=row.end_time,
                    location=row.location,
                    max_participants=row.max_participants,
                    team_name=row.team_name,
                    content=row.content,
                    level=row.level,
                    conditions=row.conditions,
                    fee=row.fee,
                    owner_id=row.owner_id,
                    display_name=row.display_name,
                    recurrence_group_id=_uuid(row.recurrence_group_id),
                )
                for row in rows
            ]
            self.session.add_all(practices)
            await self.session.commit()
            return [to_occurrence(p) for p in practices]

    async def _get_practice_row(self, practice_id: str) -> Optional[Practice]:
        p_uuid = _uuid(practice_id)
        if p_uuid is None:
            return None
        result = await self.session.execute(select(Practice).where(Practice.id == p_uuid))
        return result.scalar_one_or_none()

    async def get_practice(self, practice_id: str) -> Optional[Occurrence]:
        """Get practice by ID"""
        async with self._guard("load practice"):
            practice = await self._get_practice_row(practice_id)
            return to_occurrence(practice) if practice else None

    async def list_practices(
        self,
        from_date: Optional[date] = None,
        limit: int = 200,
    ) -> List[Occurrence]:
        """Practices ordered by date and start time."""
        query = select(Practice)
        if from_date is not None:
            query = query.where(Practice.event_date >= from_date)
        query = query.order_by(Practice.event_date, Practice.start_time).limit(limit)
        async with self._guard("list practices"):
            result = await self.session.execute(query)
            return [to_occurrence(p) for p in result.scalars().all()]

    async def update_practice(
        self,
        practice_id: str,
        owner_id: str,
        values: dict,
    ) -> Optional[Occurrence]:
        """Update practice fields if ``owner_id`` owns it."""
        async with self._guard("update practice"):
            practice = await self._get_practice_row(practice_id)
            if practice is None or practice.owner_id != owner_id:
                return None
            for key, value in values.items():
                if key == "recurrence_group_id":
                    value = _uuid(value)
                setattr(practice, key, value)
            await self.session.commit()
            await self.session.refresh(practice)
            return to_occurrence(practice)

    async def delete_practice(self, practice_id: str, owner_id: str) -> bool:
        p_uuid = _uuid(practice_id)
        if p_uuid is None:
            return False
        async with self._guard("delete practice"):
            result = await self.session.execute(
                delete(Practice).where(Practice.id == p_uuid, Practice.owner_id == owner_id)
            )
            await self.session.commit()
            return (result.rowcount or 0) > 0

    # ==================== RECURRENCE GROUPS ====================

    async def get_rule(self, group_id: str, owner_id: str) -> Optional[RuleRecord]:
        g_uuid = _uuid(group_id)
        if g_uuid is None:
            return None
        async with self._guard("load recurrence rule"):
            result = await self.session.execute(
                select(RecurrenceGroup).where(
                    RecurrenceGroup.id == g_uuid,
                    RecurrenceGroup.owner_id == owner_id,
                )
            )
            group = result.scalar_one_or_none()
        if group is None:
            return None
        return RuleRecord(
            group_id=_str(group.id),
            owner_id=group.owner_id,
            type=group.type,
            anchor_date=group.anchor_date,
            end_date=group.end_date,
            day_of_week=group.day_of_week,
            nth_week=group.nth_week,
        )

    async def list_group(self, group_id: str) -> List[Occurrence]:
        g_uuid = _uuid(group_id)
        if g_uuid is None:
            return []
        async with self._guard("list recurrence group"):
            result = await self.session.execute(
                select(Practice)
                .where(Practice.recurrence_group_id == g_uuid)
                .order_by(Practice.event_date)
            )
            return [to_occurrence(p) for p in result.scalars().all()]

    async def delete_group_after(self, group_id: str, owner_id: str, after: date) -> int:
        g_uuid = _uuid(group_id)
        if g_uuid is None:
            return 0
        async with self._guard("delete recurrence group practices"):
            result = await self.session.execute(
                delete(Practice).where(
                    Practice.recurrence_group_id == g_uuid,
                    Practice.owner_id == owner_id,
                    Practice.event_date > after,
                )
            )
            await self.session.commit()
            return result.rowcount or 0

    async def update_rule_end(self, group_id: str, owner_id: str, end_date: date) -> None:
        async with self._guard("update recurrence rule"):
            result = await self.session.execute(
                select(RecurrenceGroup).where(
                    RecurrenceGroup.id == _uuid(group_id),
                    RecurrenceGroup.owner_id == owner_id,
                )
            )
            group = result.scalar_one_or_none()
            if group is not None:
                group.end_date = end_date
                await self.session.commit()

    # ==================== SIGNUPS ====================

    async def add_signup(self, practice_id: str, user_id: str) -> bool:
        """Sign a user up. Returns False if they were already signed up."""
        async with self._guard("sign up"):
            self.session.add(Signup(practice_id=_uuid(practice_id), user_id=user_id))
            try:
                await self.session.commit()
            except IntegrityError:
                await self.session.rollback()
                return False
            return True

    async def remove_signup(self, practice_id: str, user_id: str) -> bool:
        async with self._guard("cancel signup"):
            result = await self.session.execute(
                delete(Signup).where(
                    Signup.practice_id == _uuid(practice_id),
                    Signup.user_id == user_id,
                )
            )
            await self.session.commit()
            return (result.rowcount or 0) > 0

    async def count_signups(self, practice_id: str) -> int:
        async with self._guard("count signups"):
            result = await self.session.execute(
                select(func.count()).select_from(Signup).where(Signup.practice_id == _uuid(practice_id))
            )
            return int(result.scalar_one())

    async def get_signed_up_practices(
        self,
        user_id: str,
        from_date: Optional[date] = None,
    ) -> List[Occurrence]:
        """Practices a user signed up for, ordered by date and start time."""
        query = (
            select(Practice)
            .join(Signup, Signup.practice_id == Practice.id)
            .where(Signup.user_id == user_id)
        )
        if from_date is not None:
            query = query.where(Practice.event_date >= from_date)
        query = query.order_by(Practice.event_date, Practice.start_time)
        async with self._guard("list signed up practices"):
            result = await self.session.execute(query)
            return [to_occurrence(p) for p in result.scalars().all()]

    # ==================== COMMENTS ====================

    async def create_comment(self, data: dict) -> PracticeComment:
        """Create new comment"""
        data = {**data, "practice_id": _uuid(data.get("practice_id"))}
        async with self._guard("post comment"):
            comment = PracticeComment(**data)
            self.session.add(comment)
            await self.session.commit()
            await self.session.refresh(comment)
            return comment

    async def get_comment(self, comment_id: str) -> Optional[PracticeComment]:
        c_uuid = _uuid(comment_id)
        if c_uuid is None:
            return None
        async with self._guard("load comment"):
            result = await self.session.execute(
                select(PracticeComment).where(PracticeComment.id == c_uuid)
            )
            return result.scalar_one_or_none()

    async def get_practice_comments(self, practice_id: str) -> List[tuple[PracticeComment, List[str]]]:
        """Comments on a practice, oldest first, with the user ids that liked each."""
        p_uuid = _uuid(practice_id)
        if p_uuid is None:
            return []
        async with self._guard("list comments"):
            result = await self.session.execute(
                select(PracticeComment)
                .where(PracticeComment.practice_id == p_uuid)
                .order_by(PracticeComment.created_at)
            )
            comments = result.scalars().all()
            if not comments:
                return []
            likes = await self.session.execute(
                select(CommentLike.comment_id, CommentLike.user_id).where(
                    CommentLike.comment_id.in_([c.id for c in comments])
                )
            )
        liked_by: dict[uuid.UUID, List[str]] = {}
        for comment_id, user_id in likes.all():
            liked_by.setdefault(comment_id, []).append(user_id)
        return [(c, liked_by.get(c.id, [])) for c in comments]

    # ==================== LIKES ====================

    async def like_comment(self, comment_id: str, user_id: str) -> bool:
        """Like a comment. Liking twice is not an error."""
        c_uuid = _uuid(comment_id)
        async with self._guard("like comment"):
            existing = await self.session.get(CommentLike, (user_id, c_uuid))
            if existing is not None:
                return True
            self.session.add(CommentLike(comment_id=c_uuid, user_id=user_id))
            try:
                await self.session.commit()
            except IntegrityError:
                await self.session.rollback()
            return True

    async def unlike_comment(self, comment_id: str, user_id: str) -> bool:
        async with self._guard("unlike comment"):
            result = await self.session.execute(
                delete(CommentLike).where(
                    CommentLike.comment_id == _uuid(comment_id),
                    CommentLike.user_id == user_id,
                )
            )
            await self.session.commit()
            return (result.rowcount or 0) > 0

    # ==================== PROFILES ====================

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        async with self._guard("load profile"):
            result = await self.session.execute(
                select(UserProfile).where(UserProfile.user_id == user_id)
            )
            return result.scalar_one_or_none()

    async def get_display_name(self, user_id: str) -> Optional[str]:
        profile = await self.get_profile(user_id)
        if profile and profile.display_name and profile.display_name.strip():
            return profile.display_name.strip()
        return None

    async def save_profile(self, user_id: str, values: dict[str, Optional[str]]) -> UserProfile:
        """Create or update the caller's profile. Blank strings are stored as NULL."""
        cleaned = {
            name: (value.strip() or None) if isinstance(value, str) else value
            for name, value in values.items()
            if name in PROFILE_FIELDS
        }
        profile = await self.get_profile(user_id)
        async with self._guard("save profile"):
            if profile is None:
                profile = UserProfile(user_id=user_id, **cleaned)
                self.session.add(profile)
            else:
                for name, value in cleaned.items():
                    setattr(profile, name, value)
            await self.session.commit()
            await self.session.refresh(profile)
        logger.info(f"Saved profile for {user_id}")
        return profile

    async def get_or_create_feed_token(self, user_id: str) -> str:
        """Return the user's calendar feed token, issuing one on first use."""
        profile = await self.get_profile(user_id)
        if profile and profile.calendar_feed_token:
            return profile.calendar_feed_token
        token = secrets.token_urlsafe(24)
        async with self._guard("issue calendar feed token"):
            if profile is None:
                self.session.add(UserProfile(user_id=user_id, calendar_feed_token=token))
            else:
                profile.calendar_feed_token = token
            await self.session.commit()
        return token

    async def get_user_by_feed_token(self, token: str) -> Optional[str]:
        async with self._guard("resolve calendar feed token"):
            result = await self.session.execute(
                select(UserProfile.user_id).where(UserProfile.calendar_feed_token == token)
            )
            return result.scalar_one_or_none()
