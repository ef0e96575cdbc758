import asyncio

import pytest

from figlink.infrastructure.resilience.rate_limiter import RateLimiter


def _admissions_in_window(timestamps, window_end, window_seconds):
    return sum(1 for t in timestamps if window_end - window_seconds < t <= window_end)


@pytest.mark.asyncio
async def test_admits_without_waiting_under_limit(clock, fake_sleep):
    limiter = RateLimiter(max_requests=3, window_seconds=1.0, clock=clock, sleep=fake_sleep)

    for _ in range(3):
        await limiter.wait_if_needed()

    assert fake_sleep.calls == []
    assert limiter.get_stats()["requests_in_window"] == 3


@pytest.mark.asyncio
async def test_third_call_waits_for_window(clock, fake_sleep):
    """maxRequests=2, window=1s: the third call at t=0 returns no earlier than t=1s."""
    limiter = RateLimiter(max_requests=2, window_seconds=1.0, clock=clock, sleep=fake_sleep)
    start = clock()

    await limiter.wait_if_needed()
    await limiter.wait_if_needed()
    assert clock() == start

    await limiter.wait_if_needed()

    assert fake_sleep.calls == [pytest.approx(1.0)]
    assert clock() - start >= 1.0
    assert limiter.get_stats()["requests_in_window"] == 2


@pytest.mark.asyncio
async def test_wait_shortened_by_elapsed_time(clock, fake_sleep):
    limiter = RateLimiter(max_requests=1, window_seconds=10.0, clock=clock, sleep=fake_sleep)

    await limiter.wait_if_needed()
    clock.advance(4.0)
    await limiter.wait_if_needed()

    assert fake_sleep.calls == [pytest.approx(6.0)]


@pytest.mark.asyncio
async def test_no_wait_once_window_has_passed(clock, fake_sleep):
    limiter = RateLimiter(max_requests=1, window_seconds=1.0, clock=clock, sleep=fake_sleep)

    await limiter.wait_if_needed()
    clock.advance(1.0)
    await limiter.wait_if_needed()

    assert fake_sleep.calls == []


@pytest.mark.asyncio
async def test_window_never_exceeds_max_requests(clock, fake_sleep):
    """Sliding any window over the admission log never finds more than max_requests."""
    limiter = RateLimiter(max_requests=3, window_seconds=2.0, clock=clock, sleep=fake_sleep)
    admissions = []
    gaps = [0, 0, 0, 0, 0.5, 0, 1.7, 0, 0, 0, 0.1, 3.0, 0, 0, 0]

    for gap in gaps:
        clock.advance(gap)
        await limiter.wait_if_needed()
        admissions.append(limiter.timestamps[-1])

    for t in admissions:
        assert _admissions_in_window(admissions, t, 2.0) <= 3


@pytest.mark.asyncio
async def test_concurrent_callers_admitted_in_arrival_order(clock, fake_sleep):
    limiter = RateLimiter(max_requests=1, window_seconds=5.0, clock=clock, sleep=fake_sleep)
    order = []

    async def caller(name):
        await limiter.wait_if_needed()
        order.append((name, clock()))

    await asyncio.gather(caller("a"), caller("b"), caller("c"))

    assert [name for name, _ in order] == ["a", "b", "c"]
    assert [t for _, t in order] == [1000.0, 1005.0, 1010.0]


def test_get_wait_time_is_read_only(clock, fake_sleep):
    limiter = RateLimiter(max_requests=1, window_seconds=3.0, clock=clock, sleep=fake_sleep)
    assert limiter.get_wait_time() == 0.0

    limiter.timestamps.append(clock())
    clock.advance(1.0)

    assert limiter.get_wait_time() == pytest.approx(2.0)
    assert len(limiter.timestamps) == 1


def test_get_stats_prunes_expired_timestamps(clock, fake_sleep):
    limiter = RateLimiter(max_requests=5, window_seconds=1.0, clock=clock, sleep=fake_sleep)
    limiter.timestamps.extend([clock() - 2.0, clock() - 0.5])

    stats = limiter.get_stats()

    assert stats["requests_in_window"] == 1
    assert stats["max_requests"] == 5
    assert stats["window_seconds"] == 1.0
    assert stats["next_reset_time"] is not None


@pytest.mark.asyncio
async def test_reset_clears_admissions(clock, fake_sleep):
    limiter = RateLimiter(max_requests=1, window_seconds=60.0, clock=clock, sleep=fake_sleep)
    await limiter.wait_if_needed()

    limiter.reset()
    await limiter.wait_if_needed()

    assert fake_sleep.calls == []


def test_rejects_invalid_configuration():
    with pytest.raises(ValueError):
        RateLimiter(max_requests=0)
    with pytest.raises(ValueError):
        RateLimiter(window_seconds=0)


@pytest.mark.asyncio
async def test_real_sleep_suspends_only_the_waiting_task():
    limiter = RateLimiter(max_requests=1, window_seconds=0.2)
    ticks = []

    async def ticker():
        for _ in range(3):
            ticks.append(asyncio.get_running_loop().time())
            await asyncio.sleep(0.02)

    await limiter.wait_if_needed()
    loop = asyncio.get_running_loop()
    start = loop.time()
    await asyncio.gather(limiter.wait_if_needed(), ticker())

    assert loop.time() - start >= 0.15
    assert len(ticks) == 3
