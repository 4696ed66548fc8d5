"""Tests for ratelimit.py: single-flight, caching, quota and failure handling."""

import asyncio
import gc
from datetime import timedelta

import pytest

from figma_connector.exceptions import QuotaExhaustedError
from figma_connector.ratelimit import RateLimitedAccessor


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingFactory:
    """Async factory returning 1, 2, 3... and optionally failing."""

    def __init__(self, delay: float = 0.0):
        self.calls = 0
        self.delay = delay
        self.fail_with: Exception | None = None

    async def __call__(self) -> int:
        self.calls += 1
        await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        return self.calls


HOUR = 3600


class TestSingleFlight:
    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_invocation(self):
        factory = CountingFactory(delay=0.01)
        accessor = RateLimitedAccessor(factory, quota=24)

        values = await asyncio.gather(*(accessor() for _ in range(10)))

        assert factory.calls == 1
        assert values == [1] * 10

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_failure(self):
        factory = CountingFactory(delay=0.01)
        factory.fail_with = RuntimeError("boom")
        accessor = RateLimitedAccessor(factory, quota=24)

        results = await asyncio.gather(*(accessor() for _ in range(5)), return_exceptions=True)

        assert factory.calls == 1
        assert all(isinstance(r, RuntimeError) for r in results)
        assert len({id(r) for r in results}) == 1


class TestCaching:
    @pytest.mark.asyncio
    async def test_reuses_value_for_whole_window(self):
        clock = FakeClock()
        factory = CountingFactory()
        accessor = RateLimitedAccessor(factory, quota=24, window=timedelta(hours=24), clock=clock)

        assert await accessor() == 1
        clock.advance(2 * HOUR)
        assert await accessor() == 1
        clock.advance(22 * HOUR - 1)
        assert await accessor() == 1
        assert factory.calls == 1

    @pytest.mark.asyncio
    async def test_refreshes_once_window_ends(self):
        clock = FakeClock()
        factory = CountingFactory()
        accessor = RateLimitedAccessor(factory, quota=24, window=timedelta(hours=24), clock=clock)

        await accessor()
        clock.advance(24 * HOUR)
        assert await accessor() == 2
        assert accessor.remaining == 23

    @pytest.mark.asyncio
    async def test_invalidate_forces_refresh(self):
        factory = CountingFactory()
        accessor = RateLimitedAccessor(factory, quota=24)

        await accessor()
        accessor.invalidate()
        assert await accessor() == 2


class TestFailure:
    @pytest.mark.asyncio
    async def test_failure_is_not_cached(self):
        factory = CountingFactory()
        factory.fail_with = RuntimeError("login failed")
        accessor = RateLimitedAccessor(factory, quota=24)

        with pytest.raises(RuntimeError):
            await accessor()

        factory.fail_with = None
        assert await accessor() == 2

    @pytest.mark.asyncio
    async def test_failed_refresh_keeps_retrying(self):
        factory = CountingFactory()
        accessor = RateLimitedAccessor(factory, quota=24)

        await accessor()
        accessor.invalidate()
        factory.fail_with = RuntimeError("expired")
        with pytest.raises(RuntimeError):
            await accessor()
        with pytest.raises(RuntimeError):
            await accessor()
        assert factory.calls == 3


class TestQuota:
    @pytest.mark.asyncio
    async def test_serves_stale_value_when_exhausted(self):
        clock = FakeClock()
        factory = CountingFactory()
        accessor = RateLimitedAccessor(factory, quota=2, window=timedelta(hours=2), clock=clock)

        assert await accessor() == 1
        accessor.invalidate()
        assert await accessor() == 2
        accessor.invalidate()

        assert await accessor() == 2
        assert factory.calls == 2
        assert accessor.remaining == 0

    @pytest.mark.asyncio
    async def test_raises_when_exhausted_without_value(self):
        factory = CountingFactory()
        factory.fail_with = RuntimeError("bad password")
        accessor = RateLimitedAccessor(factory, quota=2)

        for _ in range(2):
            with pytest.raises(RuntimeError):
                await accessor()

        with pytest.raises(QuotaExhaustedError):
            await accessor()
        assert factory.calls == 2

    @pytest.mark.asyncio
    async def test_quota_recovers_after_window(self):
        clock = FakeClock()
        factory = CountingFactory()
        accessor = RateLimitedAccessor(factory, quota=1, window=timedelta(hours=1), clock=clock)

        await accessor()
        accessor.invalidate()
        assert await accessor() == 1

        clock.advance(HOUR)
        assert accessor.remaining == 1
        assert await accessor() == 2


class TestValidation:
    def test_rejects_zero_quota(self):
        with pytest.raises(ValueError):
            RateLimitedAccessor(CountingFactory(), quota=0)

    def test_rejects_empty_window(self):
        with pytest.raises(ValueError):
            RateLimitedAccessor(CountingFactory(), quota=1, window=timedelta(0))


class TestClear:
    @pytest.mark.asyncio
    async def test_clear_keeps_quota_log(self):
        factory = CountingFactory()
        accessor = RateLimitedAccessor(factory, quota=2)

        await accessor()
        accessor.clear()

        assert accessor.remaining == 1
        assert await accessor() == 2

    @pytest.mark.asyncio
    async def test_clear_drops_stale_fallback(self):
        factory = CountingFactory()
        accessor = RateLimitedAccessor(factory, quota=1)

        await accessor()
        accessor.clear()

        with pytest.raises(QuotaExhaustedError):
            await accessor()

    @pytest.mark.asyncio
    async def test_value_from_before_clear_is_not_cached(self):
        factory = CountingFactory(delay=0.01)
        accessor = RateLimitedAccessor(factory, quota=24)

        in_flight = asyncio.ensure_future(accessor())
        await asyncio.sleep(0)
        accessor.clear()

        assert await in_flight == 1
        assert await accessor() == 2


class TestCancellation:
    @pytest.mark.asyncio
    async def test_failure_after_all_waiters_cancelled_is_not_reported(self):
        loop = asyncio.get_running_loop()
        reported = []
        loop.set_exception_handler(lambda _loop, context: reported.append(context))
        release = asyncio.Event()

        async def factory():
            await release.wait()
            raise RuntimeError("login failed")

        accessor = RateLimitedAccessor(factory, quota=24)
        waiter = asyncio.ensure_future(accessor())
        await asyncio.sleep(0)
        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        release.set()
        for _ in range(5):
            await asyncio.sleep(0)
        gc.collect()

        loop.set_exception_handler(None)
        assert reported == []

        with pytest.raises(RuntimeError):
            await accessor()
