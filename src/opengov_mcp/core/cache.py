"""Byte-budgeted LRU cache with TTL expiry.

Holds the results of document retrieval so repeated requests for the same
id set do not hit the provider again. Entries are bounded three ways:
total serialized size, age, and recency of use.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from opengov_mcp.core.errors import InternalError
from opengov_mcp.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_SIZE_BYTES = 50 * 1024 * 1024
DEFAULT_TTL_SECONDS = 5 * 60
DEFAULT_CLEANUP_INTERVAL_SECONDS = 60


def serialized_size(value: Any) -> int:
    """UTF-8 byte length of the compact JSON form of ``value``.

    Raises:
        InternalError: ``value`` is not JSON-serializable
    """
    try:
        encoded = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise InternalError(f"Failed to compute object size: {e}") from e
    return len(encoded.encode("utf-8"))


@dataclass
class CacheEntry(Generic[T]):
    value: T
    timestamp: float
    size_bytes: int


class LRUCache(Generic[T]):
    """Least-recently-used cache bounded by total bytes and entry age.

    Expired entries are dropped lazily on ``get`` and eagerly by
    ``cleanup``. The ordered dict keeps the most recently used key last.
    """

    def __init__(
        self,
        max_size_bytes: int = DEFAULT_MAX_SIZE_BYTES,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_size_bytes = max_size_bytes
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[str, CacheEntry[T]] = OrderedDict()
        self._current_size = 0

    def _is_expired(self, entry: CacheEntry[T], now: float) -> bool:
        return now - entry.timestamp > self.ttl_seconds

    def get(self, key: str) -> Optional[T]:
        """Return the cached value, or None if missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._is_expired(entry, self._clock()):
            self.delete(key)
            return None

        self._entries.move_to_end(key)
        return entry.value

    def set(self, key: str, value: T) -> bool:
        """Store ``value`` under ``key``, evicting older entries as needed.

        Returns:
            False if the value alone exceeds the cache capacity and was not
            stored, True otherwise
        """
        size = serialized_size(value)

        if size > self.max_size_bytes:
            logger.warning(
                f"Item too large to cache: {size} bytes > {self.max_size_bytes} bytes"
            )
            return False

        self.delete(key)

        while self._entries and self._current_size + size > self.max_size_bytes:
            oldest_key = next(iter(self._entries))
            logger.debug(f"Evicting least recently used cache entry {oldest_key}")
            self.delete(oldest_key)

        self._entries[key] = CacheEntry(value=value, timestamp=self._clock(), size_bytes=size)
        self._current_size += size
        return True

    def delete(self, key: str) -> bool:
        entry = self._entries.pop(key, None)
        if entry is None:
            return False
        self._current_size -= entry.size_bytes
        return True

    def clear(self) -> None:
        self._entries.clear()
        self._current_size = 0

    def cleanup(self) -> int:
        """Evict every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [k for k, e in self._entries.items() if self._is_expired(e, now)]
        for key in expired:
            self.delete(key)
        return len(expired)

    def keys(self) -> list[str]:
        """Live keys, least recently used first."""
        return list(self._entries)

    @property
    def size_bytes(self) -> int:
        return self._current_size

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries


class CacheCleanupTask:
    """Periodically evicts expired entries from a cache.

    Owned by the server lifecycle: ``start()`` at startup, ``await stop()``
    at shutdown.
    """

    def __init__(
        self,
        cache: LRUCache[Any],
        interval_seconds: float = DEFAULT_CLEANUP_INTERVAL_SECONDS,
    ):
        self.cache = cache
        self.interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="cache-cleanup")
        logger.debug(f"Cache cleanup scheduled every {self.interval_seconds}s")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            removed = self.cache.cleanup()
            if removed:
                logger.debug(
                    f"Cache cleanup removed {removed} expired entries "
                    f"({len(self.cache)} left, {self.cache.size_bytes} bytes)"
                )

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
