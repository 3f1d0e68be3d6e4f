"""Unit tests for the statement retrier."""

import time
from unittest.mock import AsyncMock

import pytest

from dockertest.models.container import RetryBudget
from dockertest.models.errors import StatementRetryExhausted
from dockertest.utils.retry import retry_exec


def flaky(failures: int, result="CREATE DATABASE"):
    """AsyncMock that raises ``failures`` times and then returns ``result``."""
    effects = [RuntimeError(f"not ready {i}") for i in range(failures)] + [result]
    return AsyncMock(side_effect=effects)


class TestRetryExec:
    """Test retry_exec attempts and backoff."""

    @pytest.mark.asyncio
    async def test_succeeds_first_time(self):
        execute = AsyncMock(return_value="ok")
        sleep = AsyncMock()

        result = await retry_exec(execute, "SELECT 1", 3, sleep=sleep)

        assert result == "ok"
        execute.assert_awaited_once_with("SELECT 1")
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fails_twice_then_succeeds(self):
        """Three attempts, pauses of 100ms then 200ms."""
        execute = flaky(2)
        sleep = AsyncMock()

        result = await retry_exec(execute, "CREATE DATABASE x", 3, sleep=sleep)

        assert result == "CREATE DATABASE"
        assert execute.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == pytest.approx([0.1, 0.2])

    @pytest.mark.asyncio
    async def test_real_sleep_is_cumulative(self):
        execute = flaky(2)

        start = time.monotonic()
        await retry_exec(execute, "CREATE DATABASE x", 3)
        elapsed = time.monotonic() - start

        assert execute.await_count == 3
        assert elapsed >= 0.3

    @pytest.mark.asyncio
    async def test_exhausted_reports_attempts(self):
        execute = AsyncMock(side_effect=RuntimeError("connection refused"))
        sleep = AsyncMock()

        with pytest.raises(StatementRetryExhausted) as exc_info:
            await retry_exec(execute, "SELECT 1", 3, sleep=sleep)

        assert execute.await_count == 3
        assert exc_info.value.attempts == 3
        assert isinstance(exc_info.value.last_error, RuntimeError)
        assert str(exc_info.value) == "failed 3 times: connection refused"
        # No pause after the final attempt
        assert [c.args[0] for c in sleep.await_args_list] == pytest.approx([0.1, 0.2])

    @pytest.mark.asyncio
    @pytest.mark.parametrize("max_attempts", [0, -1])
    async def test_no_attempts_when_budget_empty(self, max_attempts):
        execute = AsyncMock()

        with pytest.raises(StatementRetryExhausted) as exc_info:
            await retry_exec(execute, "SELECT 1", max_attempts)

        execute.assert_not_awaited()
        assert exc_info.value.attempts == 0
        assert "did not try at all" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_budget_supplies_backoff(self):
        execute = flaky(3)
        sleep = AsyncMock()
        budget = RetryBudget(max_attempts=4, base_interval=0.5, multiplier=3.0)

        await retry_exec(execute, "SELECT 1", budget=budget, sleep=sleep)

        assert [c.args[0] for c in sleep.await_args_list] == pytest.approx(
            [0.5, 1.5, 4.5]
        )

    @pytest.mark.asyncio
    async def test_explicit_attempts_override_budget(self):
        execute = AsyncMock(side_effect=RuntimeError("nope"))

        with pytest.raises(StatementRetryExhausted) as exc_info:
            await retry_exec(
                execute,
                "SELECT 1",
                max_attempts=2,
                budget=RetryBudget(max_attempts=10),
                sleep=AsyncMock(),
            )

        assert exc_info.value.attempts == 2
