"""
Read-through Query Cache

Memoizes read queries against the backing store for a short freshness
window (60 seconds by default). Writes invalidate what they touch, either
by exact key, by key prefix, or by tag.

    cache = QueryCache(ttl_seconds=60)
    rows = cache.get_or_fetch("active_positions", load_positions, tags=["positions"])
    cache.invalidate_tags("positions")

A failed fetch is logged and returns None; nothing is stored, so the next
call goes back to the store. Pass swallow_errors=False to get the exception
instead.

Concurrency: the map is guarded by a lock, the fetch runs outside it. Two
callers missing the same key both fetch and the last one to finish wins,
unless single_flight is on. Then callers share one in-flight fetch per key:
threads calling get_or_fetch() wait on a concurrent.futures.Future, tasks
calling aget_or_fetch() await a shielded asyncio task.
"""

import asyncio
import logging
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, FrozenSet, Iterable, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60.0


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    fetched_at: float
    tags: FrozenSet[str] = frozenset()


def _check_key(key: str) -> None:
    if not isinstance(key, str) or not key:
        raise ValueError("Cache key must be a non-empty string")


class QueryCache:
    """In-memory read-through cache keyed by query identity."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        swallow_errors: bool = True,
        single_flight: bool = False,
    ):
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        self.ttl_seconds = ttl_seconds
        self.swallow_errors = swallow_errors
        self.single_flight = single_flight
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._in_flight: Dict[str, "asyncio.Future[Any]"] = {}
        self._pending: Dict[str, Future] = {}

    # ============================================================
    # READS
    # ============================================================

    def get_or_fetch(
        self,
        key: str,
        fetch_fn: Callable[[], Any],
        force_fresh: bool = False,
        tags: Iterable[str] = (),
    ) -> Optional[Any]:
        """
        Return the cached value for key if fresh, else run fetch_fn and cache it.

        force_fresh skips the lookup but still stores the new result.
        """
        _check_key(key)
        entry = self._fresh_entry(key, force_fresh)
        if entry is not None:
            logger.debug("Cache hit", extra={"cache_key": key})
            return entry.value

        if not self.single_flight:
            return self._fetch(key, fetch_fn, tags)

        with self._lock:
            pending = self._pending.get(key)
            leader = pending is None
            if leader:
                pending = self._pending[key] = Future()
        if not leader:
            logger.debug("Joining in-flight fetch", extra={"cache_key": key})
            return pending.result()

        try:
            value = self._fetch(key, fetch_fn, tags)
        except BaseException as exc:
            pending.set_exception(exc)
            raise
        else:
            pending.set_result(value)
            return value
        finally:
            with self._lock:
                if self._pending.get(key) is pending:
                    del self._pending[key]

    def _fetch(self, key: str, fetch_fn: Callable[[], Any], tags: Iterable[str]) -> Optional[Any]:
        try:
            value = fetch_fn()
        except Exception:
            logger.exception("Live fetch failed", extra={"cache_key": key})
            if not self.swallow_errors:
                raise
            return None

        self._store(key, value, tags)
        return value

    async def aget_or_fetch(
        self,
        key: str,
        fetch_fn: Callable[[], Awaitable[Any]],
        force_fresh: bool = False,
        tags: Iterable[str] = (),
    ) -> Optional[Any]:
        """Coroutine variant of get_or_fetch() for async fetchers."""
        _check_key(key)
        entry = self._fresh_entry(key, force_fresh)
        if entry is not None:
            logger.debug("Cache hit", extra={"cache_key": key})
            return entry.value

        if not self.single_flight:
            return await self._afetch(key, fetch_fn, tags)

        pending = self._in_flight.get(key)
        if pending is not None:
            return await asyncio.shield(pending)

        task = asyncio.ensure_future(self._afetch(key, fetch_fn, tags))
        self._in_flight[key] = task
        try:
            return await asyncio.shield(task)
        finally:
            if self._in_flight.get(key) is task:
                del self._in_flight[key]

    async def _afetch(self, key: str, fetch_fn, tags: Iterable[str]) -> Optional[Any]:
        try:
            value = await fetch_fn()
        except Exception:
            logger.exception("Live fetch failed", extra={"cache_key": key})
            if not self.swallow_errors:
                raise
            return None

        self._store(key, value, tags)
        return value

    # ============================================================
    # INVALIDATION
    # ============================================================

    def invalidate(self, key: Optional[str] = None) -> None:
        """Drop one entry, or everything when key is omitted."""
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)

    def invalidate_prefix(self, prefix: str) -> int:
        """Drop every entry whose key starts with prefix. Returns how many."""
        with self._lock:
            doomed = [k for k in self._entries if k.startswith(prefix)]
            for k in doomed:
                del self._entries[k]
        if doomed:
            logger.debug("Invalidated %d entries by prefix %r", len(doomed), prefix)
        return len(doomed)

    def invalidate_tags(self, *tags: str) -> int:
        """Drop every entry carrying any of the tags. Returns how many."""
        wanted = set(tags)
        with self._lock:
            doomed = [k for k, e in self._entries.items() if e.tags & wanted]
            for k in doomed:
                del self._entries[k]
        if doomed:
            logger.debug("Invalidated %d entries by tags %s", len(doomed), sorted(wanted))
        return len(doomed)

    # ============================================================
    # INTROSPECTION
    # ============================================================

    def peek(self, key: str) -> Optional[CacheEntry]:
        """Entry for key regardless of age, or None."""
        with self._lock:
            return self._entries.get(key)

    def is_fresh(self, key: str) -> bool:
        return self._fresh_entry(key, force_fresh=False) is not None

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    # ============================================================
    # INTERNALS
    # ============================================================

    def _fresh_entry(self, key: str, force_fresh: bool) -> Optional[CacheEntry]:
        if force_fresh:
            return None
        with self._lock:
            entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.fetched_at < self.ttl_seconds:
            return entry
        return None

    def _store(self, key: str, value: Any, tags: Iterable[str]) -> None:
        entry = CacheEntry(value=value, fetched_at=self._clock(), tags=frozenset(tags))
        with self._lock:
            self._entries[key] = entry
