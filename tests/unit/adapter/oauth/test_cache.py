"""Unit tests for the time-bounded single-use cache."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from studyhall.adapter.oauth.cache import PKCEStore, TimeBoundedCache
from studyhall.adapter.oauth.pkce import generate_pkce_challenge


class FakeClock:
    """Manually advanced clock."""

    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


class TestTimeBoundedCache:
    """Tests for TimeBoundedCache."""

    def test_take_once_returns_value_exactly_once(self, clock):
        cache: TimeBoundedCache[str] = TimeBoundedCache(timedelta(minutes=10), clock)
        cache.put("state-1", "verifier")

        assert cache.take_once("state-1") == "verifier"
        assert cache.take_once("state-1") is None

    def test_expired_entry_is_not_returned(self, clock):
        cache: TimeBoundedCache[str] = TimeBoundedCache(timedelta(minutes=10), clock)
        cache.put("state-1", "verifier")

        clock.advance(timedelta(minutes=10))

        assert cache.take_once("state-1") is None
        assert "state-1" not in cache

    def test_per_entry_ttl_overrides_default(self, clock):
        cache: TimeBoundedCache[str] = TimeBoundedCache(timedelta(minutes=10), clock)
        cache.put("short", "v", ttl=timedelta(seconds=5))

        clock.advance(timedelta(seconds=6))

        assert cache.take_once("short") is None

    def test_put_replaces_previous_entry(self, clock):
        cache: TimeBoundedCache[str] = TimeBoundedCache(timedelta(minutes=10), clock)
        cache.put("state-1", "old")
        cache.put("state-1", "new")

        assert cache.take_once("state-1") == "new"

    def test_sweep_removes_only_expired_entries(self, clock):
        cache: TimeBoundedCache[str] = TimeBoundedCache(timedelta(minutes=10), clock)
        cache.put("old", "a")
        clock.advance(timedelta(minutes=6))
        cache.put("new", "b")
        clock.advance(timedelta(minutes=5))

        removed = cache.sweep()

        assert removed == 1
        assert len(cache) == 1
        assert "new" in cache

    @pytest.mark.asyncio
    async def test_sweeper_task_stops_on_cancel(self, clock):
        cache: TimeBoundedCache[str] = TimeBoundedCache(timedelta(seconds=1), clock)
        cache.put("state-1", "v")
        clock.advance(timedelta(seconds=2))

        task = asyncio.create_task(cache.run_sweeper(0.01))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert len(cache) == 0


class TestPKCEStore:
    """Tests for PKCEStore."""

    def test_stores_challenges_by_state(self, clock):
        store = PKCEStore(timedelta(minutes=10), clock)
        challenge = generate_pkce_challenge()

        store.put("state-1", challenge)

        assert store.take_once("state-1") == challenge
        assert store.take_once("state-1") is None
