"""
In-process TTL memoizer for collaborator lookups.

Concurrent fetches for the same key share one in-flight task, so identical
registry or provider calls made while a request is pending hit the network
once. Failed fetches are never stored.
"""
import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from loguru import logger

from eatsafe.config import CACHE_ENABLED


class _Miss:
    def __repr__(self) -> str:
        return "MISS"


MISS = _Miss()


@dataclass
class CacheEntry:
    key: str
    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


def build_cache_key(prefix: str, *parts: Optional[str]) -> str:
    """
    Deterministic key from an operation tag and its parameters.

    Args:
        prefix (str): Operation tag, e.g. "hygiene:exact".
        *parts (Optional[str]): Parameters; empty ones are skipped.

    Returns:
        str: e.g. "hygiene:exact:스타벅스_강남역점:강남구".
    """
    cleaned = ["_".join(str(part).strip().lower().split()) for part in parts if part and str(part).strip()]
    return ":".join([prefix] + cleaned)


class Memoizer:
    """
    Keyed TTL cache with single-flight fetches.

    Args:
        enabled (bool): When False every lookup goes straight to the fetcher.
        clock (Callable[[], float]): Time source in seconds, injectable for tests.
    """

    def __init__(self, enabled: bool = CACHE_ENABLED, clock: Callable[[], float] = time.time):
        self.enabled = enabled
        self._clock = clock
        self._store: Dict[str, CacheEntry] = {}
        self._inflight: Dict[str, asyncio.Future] = {}
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Any:
        """Cached value, or MISS when absent or expired. A cached None is a hit."""
        entry = self._store.get(key)
        if entry is None:
            self._misses += 1
            return MISS
        if entry.is_expired(self._clock()):
            del self._store[key]
            self._misses += 1
            return MISS
        self._hits += 1
        return entry.value

    def set(self, key: str, value: Any, ttl: float) -> None:
        self._store[key] = CacheEntry(key=key, value=value, expires_at=self._clock() + ttl)

    def delete(self, key: str) -> bool:
        return self._store.pop(key, None) is not None

    def clear(self) -> None:
        self._store.clear()

    def stats(self) -> Dict[str, int]:
        return {"keys": len(self._store), "hits": self._hits, "misses": self._misses}

    async def get_or_fetch(self, key: str, ttl: float, fetcher: Callable[[], Awaitable[Any]]) -> Any:
        """
        Return the cached value for `key`, fetching and storing it on a miss.

        The fetch runs as its own task. Every caller for the key, including
        the one that started it, awaits that task through `asyncio.shield`,
        so cancelling one caller never cancels the fetch or the other
        waiters. All of them receive its value or its exception.

        Args:
            key (str): Cache key from build_cache_key.
            ttl (float): Lifetime of the stored value in seconds.
            fetcher (Callable[[], Awaitable[Any]]): Zero-argument coroutine factory.

        Returns:
            Any: The fetched or cached value (None is a valid value).
        """
        if not self.enabled:
            return await fetcher()

        cached = self.get(key)
        if cached is not MISS:
            logger.debug(f"💾 Cache hit {key}")
            return cached

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(fetcher())
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._store_fetched(key, ttl, done))
        else:
            logger.debug(f"🔗 Joining in-flight fetch {key}")
        return await asyncio.shield(task)

    def _store_fetched(self, key: str, ttl: float, task: asyncio.Future) -> None:
        """Done callback of a fetch task: cache its value, never its failure."""
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.debug(f"⚠️ Fetch for {key} failed, not cached: {error!r}")
            return
        self.set(key, task.result(), ttl)
