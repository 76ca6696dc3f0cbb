from __future__ import annotations

from datetime import date
from typing import Any, Collection, Optional, Protocol

from app.services.scheduling.types import Occurrence, RuleRecord


class PracticeStore(Protocol):
    """Persistence collaborator used by the scheduler.

    Every method raises ``StoreError`` on I/O failure. Stores that write a
    batch in a single transaction set ``atomic_batches`` to True.
    """

    atomic_batches: bool

    async def find_practices(self, location: str, dates: Collection[date]) -> list[Occurrence]:
        ...

    async def insert_batch(
        self,
        rows: list[Occurrence],
        rule: Optional[RuleRecord] = None,
    ) -> list[Occurrence]:
        ...

    async def get_practice(self, practice_id: str) -> Optional[Occurrence]:
        ...

    async def update_practice(
        self,
        practice_id: str,
        owner_id: str,
        values: dict[str, Any],
    ) -> Optional[Occurrence]:
        ...

    async def delete_practice(self, practice_id: str, owner_id: str) -> bool:
        ...

    async def get_rule(self, group_id: str, owner_id: str) -> Optional[RuleRecord]:
        ...

    async def list_group(self, group_id: str) -> list[Occurrence]:
        ...

    async def delete_group_after(self, group_id: str, owner_id: str, after: date) -> int:
        ...

    async def update_rule_end(self, group_id: str, owner_id: str, end_date: date) -> None:
        ...
