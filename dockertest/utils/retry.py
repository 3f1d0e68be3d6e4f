"""Exponential-backoff retry for a single statement.

A SQL server can accept TCP connections well before it executes
statements, so this loop sits above the reachability probe rather than
inside it.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

from ..models.container import RetryBudget
from ..models.errors import StatementRetryExhausted

logger = structlog.get_logger(__name__)

T = TypeVar("T")


async def retry_exec(
    execute: Callable[[str], Awaitable[T]],
    statement: str,
    max_attempts: Optional[int] = None,
    base_interval: float = 0.1,
    multiplier: float = 2.0,
    budget: Optional[RetryBudget] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """Run ``execute(statement)`` until it succeeds or attempts run out.

    Sleeps ``base_interval`` after the first failure, multiplying the pause
    by ``multiplier`` each time. There is no pause after the last attempt.

    Args:
        execute: Coroutine function that runs the statement
        statement: Statement text passed to ``execute``
        max_attempts: Total attempts allowed (overrides ``budget``)
        base_interval: First pause in seconds
        multiplier: Growth factor for subsequent pauses
        budget: RetryBudget supplying all three values at once
        sleep: Pause implementation, injectable for tests

    Returns:
        Whatever ``execute`` returned on the successful attempt

    Raises:
        StatementRetryExhausted: after ``max_attempts`` failures, or at once
            when ``max_attempts <= 0``
    """
    if budget is not None:
        base_interval = budget.base_interval
        multiplier = budget.multiplier
        if max_attempts is None:
            max_attempts = budget.max_attempts
    if max_attempts is None:
        max_attempts = RetryBudget().max_attempts
    if max_attempts <= 0:
        raise StatementRetryExhausted(0)

    interval = base_interval
    attempts = 0
    while True:
        try:
            return await execute(statement)
        except Exception as e:
            attempts += 1
            if attempts >= max_attempts:
                logger.warning(
                    "Statement retries exhausted",
                    attempts=attempts,
                    error=str(e),
                )
                raise StatementRetryExhausted(attempts, e) from e
            logger.debug(
                "Statement failed, retrying",
                attempt=attempts,
                retry_in=interval,
                error=str(e),
            )
        await sleep(interval)
        interval *= multiplier
