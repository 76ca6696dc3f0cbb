from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LikeSnapshot:
    liked: bool
    count: int


@dataclass
class LikeResult:
    """Response of a like/unlike call."""

    success: bool
    liked: Optional[bool] = None
    error: Optional[str] = None


RemoteCall = Callable[[], Awaitable[LikeResult]]


class OptimisticLikeState:
    """Client-side like toggle that updates before the server answers.

    ``toggle`` applies the predicted snapshot, awaits the remote call and, if
    it fails, re-applies the snapshot recorded before the toggle.
    """

    def __init__(
        self,
        liked: bool,
        count: int,
        on_change: Optional[Callable[[LikeSnapshot], None]] = None,
    ):
        self.snapshot = LikeSnapshot(liked=liked, count=max(0, count))
        self.pending = False
        self._on_change = on_change

    def _apply(self, snapshot: LikeSnapshot) -> None:
        self.snapshot = snapshot
        if self._on_change:
            self._on_change(snapshot)

    def predicted(self) -> LikeSnapshot:
        nxt = not self.snapshot.liked
        return LikeSnapshot(liked=nxt, count=max(0, self.snapshot.count + (1 if nxt else -1)))

    async def toggle(self, like: RemoteCall, unlike: RemoteCall) -> LikeResult:
        if self.pending:
            return LikeResult(success=False, liked=self.snapshot.liked, error="A like request is already in flight.")

        inverse = self.snapshot
        forward = self.predicted()
        self.pending = True
        self._apply(forward)
        try:
            result = await (like() if forward.liked else unlike())
        except Exception:
            self._apply(inverse)
            raise
        finally:
            self.pending = False

        if not result.success:
            logger.info(f"Like toggle failed, rolling back: {result.error}")
            self._apply(inverse)
        return result
