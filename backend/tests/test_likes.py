"""Tests for the optimistic like toggle."""

import pytest

from app.services.likes import LikeResult, LikeSnapshot, OptimisticLikeState


def _remote(result):
    calls = []

    async def call():
        calls.append(result)
        return result

    call.calls = calls
    return call


class TestOptimisticLikeState:
    def test_predicted(self):
        assert OptimisticLikeState(False, 2).predicted() == LikeSnapshot(True, 3)
        assert OptimisticLikeState(True, 3).predicted() == LikeSnapshot(False, 2)

    def test_count_never_negative(self):
        assert OptimisticLikeState(True, 0).predicted().count == 0

    @pytest.mark.asyncio
    async def test_like_succeeds(self):
        seen = []
        state = OptimisticLikeState(False, 2, on_change=seen.append)
        like = _remote(LikeResult(success=True, liked=True))
        unlike = _remote(LikeResult(success=True, liked=False))

        result = await state.toggle(like, unlike)

        assert result.success
        assert state.snapshot == LikeSnapshot(True, 3)
        assert seen == [LikeSnapshot(True, 3)]
        assert len(like.calls) == 1 and unlike.calls == []

    @pytest.mark.asyncio
    async def test_unlike_calls_unlike(self):
        state = OptimisticLikeState(True, 1)
        like = _remote(LikeResult(success=True))
        unlike = _remote(LikeResult(success=True, liked=False))

        await state.toggle(like, unlike)

        assert state.snapshot == LikeSnapshot(False, 0)
        assert like.calls == [] and len(unlike.calls) == 1

    @pytest.mark.asyncio
    async def test_failure_restores_previous_snapshot(self):
        seen = []
        state = OptimisticLikeState(False, 2, on_change=seen.append)
        failing = _remote(LikeResult(success=False, error="Please sign in."))

        result = await state.toggle(failing, failing)

        assert not result.success
        assert state.snapshot == LikeSnapshot(False, 2)
        assert seen == [LikeSnapshot(True, 3), LikeSnapshot(False, 2)]
        assert not state.pending

    @pytest.mark.asyncio
    async def test_exception_restores_and_propagates(self):
        state = OptimisticLikeState(True, 5)

        async def broken():
            raise ConnectionError("offline")

        with pytest.raises(ConnectionError):
            await state.toggle(broken, broken)

        assert state.snapshot == LikeSnapshot(True, 5)
        assert not state.pending

    @pytest.mark.asyncio
    async def test_second_toggle_while_pending_is_refused(self):
        state = OptimisticLikeState(False, 0)
        inner = {}

        async def slow_like():
            inner["result"] = await state.toggle(slow_like, slow_like)
            return LikeResult(success=True, liked=True)

        await state.toggle(slow_like, slow_like)

        assert not inner["result"].success
        assert state.snapshot == LikeSnapshot(True, 1)
