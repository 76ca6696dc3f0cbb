"""Shared fixtures: an in-memory practice store, a SQLite-backed session and an API client."""

import uuid
from dataclasses import replace
from datetime import date, datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.api.deps import get_scheduler
from app.core.database import Base, get_db
from app.core.errors import StoreError
from app.main import app as fastapi_app
from app.services.db_service import DBService
from app.services.scheduling import Occurrence, PracticeScheduler
from app.services.scheduling import dates as dates_module

TODAY = date(2025, 6, 1)
OWNER = "organizer-1"


class InMemoryStore:
    """PracticeStore kept in dicts. Operations named in ``fail_on`` raise StoreError."""

    atomic_batches = False

    def __init__(self):
        self.practices: dict[str, Occurrence] = {}
        self.rules = {}
        self.insert_calls = 0
        self.fail_on: set[str] = set()

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise StoreError(f"{operation} failed: connection reset")

    def add(self, occurrence: Occurrence) -> Occurrence:
        stored = replace(occurrence, id=occurrence.id or str(uuid.uuid4()), created_at=datetime(2025, 1, 1))
        self.practices[stored.id] = stored
        return stored

    async def find_practices(self, location, dates):
        self._check("find_practices")
        wanted = set(dates)
        return [o for o in self.practices.values() if o.location == location and o.event_date in wanted]

    async def insert_batch(self, rows, rule=None):
        self._check("insert_batch")
        self.insert_calls += 1
        if rule is not None:
            self.rules[rule.group_id] = rule
        return [self.add(row) for row in rows]

    async def get_practice(self, practice_id):
        self._check("get_practice")
        return self.practices.get(practice_id)

    async def update_practice(self, practice_id, owner_id, values):
        self._check("update_practice")
        current = self.practices.get(practice_id)
        if current is None or current.owner_id != owner_id:
            return None
        self.practices[practice_id] = replace(current, **values)
        return self.practices[practice_id]

    async def delete_practice(self, practice_id, owner_id):
        self._check("delete_practice")
        current = self.practices.get(practice_id)
        if current is None or current.owner_id != owner_id:
            return False
        del self.practices[practice_id]
        return True

    async def get_rule(self, group_id, owner_id):
        rule = self.rules.get(group_id)
        if rule is None or rule.owner_id != owner_id:
            return None
        return rule

    async def list_group(self, group_id):
        members = [o for o in self.practices.values() if o.recurrence_group_id == group_id]
        return sorted(members, key=lambda o: o.event_date)

    async def delete_group_after(self, group_id, owner_id, after):
        self._check("delete_group_after")
        doomed = [
            o.id
            for o in self.practices.values()
            if o.recurrence_group_id == group_id and o.owner_id == owner_id and o.event_date > after
        ]
        for practice_id in doomed:
            del self.practices[practice_id]
        return len(doomed)

    async def update_rule_end(self, group_id, owner_id, end_date):
        self._check("update_rule_end")
        self.rules[group_id] = replace(self.rules[group_id], end_date=end_date)

    def dates_at(self, location):
        return sorted(o.event_date for o in self.practices.values() if o.location == location)


def make_occurrence(**overrides) -> Occurrence:
    values = dict(
        event_date=date(2025, 6, 3),
        start_time="14:00",
        end_time="16:00",
        location="Gym A",
        max_participants=8,
        owner_id="organizer-0",
        team_name="Morning Club",
    )
    values.update(overrides)
    return Occurrence(**values)


@pytest.fixture
def occurrence():
    """Factory for Occurrence values with a Gym A default."""
    return make_occurrence


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def scheduler(store):
    return PracticeScheduler(store, clock=lambda: TODAY)


@pytest_asyncio.fixture
async def db_session():
    """AsyncSession on a fresh in-memory SQLite database."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def db_service(db_session):
    return DBService(db_session)


@pytest_asyncio.fixture
async def client(db_session, monkeypatch):
    """API client bound to the SQLite session with the calendar frozen at TODAY."""

    async def override_get_db():
        yield db_session

    def override_get_scheduler():
        return PracticeScheduler(DBService(db_session), clock=lambda: TODAY)

    monkeypatch.setattr(dates_module, "today", lambda: TODAY)
    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_scheduler] = override_get_scheduler

    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http

    fastapi_app.dependency_overrides.clear()
