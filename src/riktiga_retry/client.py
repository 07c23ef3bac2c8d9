"""Retry executor."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog

from .models import RetrySpec

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]
OnRetry = Callable[[int, Exception, float], None]

logger = structlog.get_logger(__name__)


async def with_retry(
    spec: RetrySpec,
    fn: Callable[[], Awaitable[T]],
    *,
    sleep: Sleep = asyncio.sleep,
    on_retry: OnRetry | None = None,
) -> T:
    """Run fn, retrying every failure with exponential backoff.

    The error from the final attempt is re-raised unchanged once
    ``spec.max_attempts`` attempts have failed. Cancellation is not a
    failure and propagates immediately.
    """
    last_error: Exception | None = None
    for attempt in range(spec.max_attempts):
        try:
            return await fn()
        except Exception as e:
            last_error = e
            logger.warning(
                "retry_attempt_failed",
                attempt=attempt + 1,
                max_attempts=spec.max_attempts,
                error=str(e),
            )
            if attempt + 1 < spec.max_attempts:
                delay = spec.compute_delay(attempt)
                if on_retry is not None:
                    on_retry(attempt + 1, e, delay)
                await sleep(delay)
    assert last_error is not None
    logger.error("retry_exhausted", attempts=spec.max_attempts, error=str(last_error))
    raise last_error


class RetryExecutor:
    """Holds a default RetrySpec. Keeps no state between executions."""

    def __init__(self, spec: RetrySpec | None = None, sleep: Sleep = asyncio.sleep) -> None:
        self._spec = spec or RetrySpec()
        self._sleep = sleep

    @property
    def spec(self) -> RetrySpec:
        return self._spec

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        spec: RetrySpec | None = None,
        on_retry: OnRetry | None = None,
    ) -> T:
        return await with_retry(
            spec or self._spec, operation, sleep=self._sleep, on_retry=on_retry
        )
