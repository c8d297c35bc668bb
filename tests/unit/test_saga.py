"""Saga step lists: run in order, unwind newest-first on failure."""

import pytest

from app.domain.errors import ExternalServiceError
from app.domain.saga import Saga


class TestSaga:
    @pytest.mark.asyncio
    async def test_runs_steps_in_order(self):
        calls = []
        saga = Saga("demo")
        saga.add_step("one", lambda: calls.append("one"))
        saga.add_step("two", lambda: calls.append("two"))

        await saga.run()

        assert calls == ["one", "two"]
        assert saga.completed == ["one", "two"]

    @pytest.mark.asyncio
    async def test_async_steps_are_awaited(self):
        async def step():
            return 42

        results = await Saga("demo").add_step("answer", step).run()
        assert results == [42]

    @pytest.mark.asyncio
    async def test_failure_compensates_in_reverse_and_reraises(self):
        calls = []

        def boom():
            raise ExternalServiceError("zoom down")

        saga = Saga("demo")
        saga.add_step("one", lambda: calls.append("one"), lambda: calls.append("undo one"))
        saga.add_step("two", lambda: calls.append("two"), lambda: calls.append("undo two"))
        saga.add_step("three", boom, lambda: calls.append("undo three"))

        with pytest.raises(ExternalServiceError, match="zoom down"):
            await saga.run()

        assert calls == ["one", "two", "undo two", "undo one"]
        assert saga.completed == ["one", "two"]

    @pytest.mark.asyncio
    async def test_failing_compensation_does_not_hide_original_error(self):
        def bad_undo():
            raise RuntimeError("undo failed")

        def boom():
            raise ValueError("step failed")

        saga = Saga("demo")
        saga.add_step("one", lambda: None, bad_undo)
        saga.add_step("two", boom)

        with pytest.raises(ValueError, match="step failed"):
            await saga.run()
