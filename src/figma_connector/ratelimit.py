"""Rate-limited, single-flight access to an expensive async resource.

Used to share one Figma login between every search running in the process.
Logging in is slow and Figma starts asking for CAPTCHAs when it sees too many
logins, so the accessor:

- runs the factory once no matter how many callers arrive during a cold start
- reuses the produced value until its window ends or it is invalidated
- starts at most ``quota`` factory calls in any ``window``

When a refresh is due but the quota is used up, the last good value is served
again. If there never was one, ``QuotaExhaustedError`` is raised.
"""

import asyncio
import logging
import time
from collections import deque
from datetime import timedelta
from typing import Awaitable, Callable, Generic, TypeVar

from .exceptions import QuotaExhaustedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_WINDOW = timedelta(hours=24)


class RateLimitedAccessor(Generic[T]):
    """Memoizing accessor around a zero-argument async factory.

    Args:
        factory: Coroutine function producing the resource.
        quota: Maximum factory invocations per window.
        window: Length of the sliding quota window. A produced value is
            reused for one window unless invalidated.
        clock: Monotonic time source in seconds (injectable for tests).
    """

    def __init__(
        self,
        factory: Callable[[], Awaitable[T]],
        quota: int,
        window: timedelta = DEFAULT_WINDOW,
        clock: Callable[[], float] = time.monotonic,
    ):
        if quota < 1:
            raise ValueError(f"quota must be at least 1, got {quota}")
        if window.total_seconds() <= 0:
            raise ValueError("window must be positive")

        self._factory = factory
        self._quota = quota
        self._window = window.total_seconds()
        self._clock = clock

        self._calls: deque[float] = deque()
        self._pending: asyncio.Future[T] | None = None
        self._generation = 0
        self._value: T | None = None
        self._has_value = False
        self._produced_at: float | None = None

    @property
    def remaining(self) -> int:
        """Factory invocations still allowed in the current window."""
        self._expire_calls(self._clock())
        return self._quota - len(self._calls)

    def invalidate(self) -> None:
        """Mark the cached value stale so the next call refreshes it.

        The stale value is still served if the quota is used up.
        """
        self._produced_at = None

    def clear(self) -> None:
        """Forget the cached value entirely, keeping the quota log.

        A factory call already in flight still answers its waiters but its
        value is not cached.
        """
        self._generation += 1
        self._pending = None
        self._value = None
        self._has_value = False
        self._produced_at = None

    async def __call__(self) -> T:
        now = self._clock()
        if self._is_fresh(now):
            return self._value  # type: ignore[return-value]

        if self._pending is None:
            self._expire_calls(now)
            if len(self._calls) >= self._quota:
                if self._has_value:
                    logger.warning(
                        "Quota of %d calls per %.0fs used up, reusing previous value",
                        self._quota,
                        self._window,
                    )
                    return self._value  # type: ignore[return-value]
                raise QuotaExhaustedError(
                    f"Quota of {self._quota} calls per {self._window:.0f}s exhausted"
                )

            self._calls.append(now)
            logger.debug("Invoking factory (%d of %d this window)", len(self._calls), self._quota)
            self._pending = asyncio.ensure_future(self._invoke(self._generation))

        # Shield so one cancelled waiter does not cancel the shared invocation
        return await asyncio.shield(self._pending)

    async def _invoke(self, generation: int) -> T:
        try:
            value = await self._factory()
        finally:
            if generation == self._generation:
                self._pending = None
        if generation == self._generation:
            self._value = value
            self._has_value = True
            self._produced_at = self._clock()
        return value

    def _is_fresh(self, now: float) -> bool:
        if self._produced_at is None:
            return False
        return now - self._produced_at < self._window

    def _expire_calls(self, now: float) -> None:
        while self._calls and now - self._calls[0] >= self._window:
            self._calls.popleft()
