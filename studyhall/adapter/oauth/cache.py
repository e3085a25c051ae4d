"""Time-bounded single-use cache for in-flight OAuth state."""

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Generic, TypeVar

import logfire

from studyhall.domain.value import PKCEChallenge

V = TypeVar("V")

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(timezone.utc)


class TimeBoundedCache(Generic[V]):
    """Process-local keyed store with delete-on-read and hard expiry.

    Entries expire ``ttl`` after insertion whether or not they were read.
    ``put``, ``take_once`` and ``sweep`` never await, so on a single event
    loop two concurrent ``take_once`` calls for the same key cannot both
    succeed.

    Sufficient for OAuth flows: entries only live for minutes and users can
    restart the flow after a server restart. Deployments with several API
    processes need sticky routing for the authorize/callback pair.
    """

    def __init__(self, ttl: timedelta, clock: Clock = utc_now) -> None:
        """Initialize an empty cache.

        Args:
            ttl: Default entry lifetime
            clock: Time source, injectable for tests
        """
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[V, datetime]] = {}

    def put(self, key: str, value: V, ttl: timedelta | None = None) -> None:
        """Store a value, replacing any previous entry for the key."""
        expires_at = self._clock() + (ttl if ttl is not None else self.ttl)
        self._entries[key] = (value, expires_at)

    def take_once(self, key: str) -> V | None:
        """Remove and return a live value.

        Returns:
            The value, or None if absent, already taken or expired
        """
        entry = self._entries.pop(key, None)
        if entry is None:
            return None

        value, expires_at = entry
        if expires_at <= self._clock():
            return None
        return value

    def sweep(self) -> int:
        """Drop every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, (_, exp) in self._entries.items() if exp <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    async def run_sweeper(self, interval_seconds: float) -> None:
        """Sweep expired entries forever, every ``interval_seconds``.

        Intended to run as a background task for the lifetime of the app;
        cancel the task to stop it.
        """
        while True:
            await asyncio.sleep(interval_seconds)
            removed = self.sweep()
            if removed:
                logfire.debug("Swept expired OAuth cache entries", removed=removed)


class PKCEStore(TimeBoundedCache[PKCEChallenge]):
    """PKCE verifiers keyed by the OAuth ``state`` parameter."""

    pass
