"""Resilience – BackoffRetryPolicy, a tenacity-backed async retry policy."""
from __future__ import annotations

from typing import Any, Awaitable, Callable, TypeVar

import tenacity

T = TypeVar("T")


class BackoffRetryPolicy:
    """Bounded exponential-backoff retry for async callables.

    Parameters
    ----------
    max_attempts:
        Maximum number of call attempts (including the first call).
    base_delay:
        Delay before the first retry, in seconds; doubles on every retry.
    max_delay:
        Upper bound for a single delay.
    retry_on:
        Exception types that trigger a retry; anything else propagates
        immediately.
    sleep:
        Awaitable sleep function, replaceable in tests.

    After the last attempt the original exception is re-raised.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 30.0,
        retry_on: tuple[type[BaseException], ...] = (Exception,),
        sleep: Callable[[float], Awaitable[Any]] | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self._wait = tenacity.wait_exponential(multiplier=base_delay, min=base_delay, max=max_delay)
        self._retry = tenacity.retry_if_exception_type(retry_on)
        self._sleep = sleep
        self.last_attempts = 0

    def _build_async_retrying(self) -> tenacity.AsyncRetrying:
        kwargs: dict[str, Any] = {}
        if self._sleep is not None:
            kwargs["sleep"] = self._sleep
        return tenacity.AsyncRetrying(
            stop=tenacity.stop_after_attempt(self.max_attempts),
            wait=self._wait,
            retry=self._retry,
            reraise=True,
            **kwargs,
        )

    async def execute_async(self, func: Callable[[], Awaitable[T]]) -> T:
        """Execute *func* with retry; returns its result."""
        self.last_attempts = 0
        async for attempt in self._build_async_retrying():
            with attempt:
                self.last_attempts = attempt.retry_state.attempt_number
                result = await func()
        return result  # type: ignore[return-value]


__all__ = ["BackoffRetryPolicy"]
