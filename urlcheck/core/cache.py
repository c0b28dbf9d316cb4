import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, TypeVar

from cachetools import TTLCache as _TTLStore

T = TypeVar("T")

SAFETY_CACHE_PREFIX = "safety:"
REDIRECT_CACHE_PREFIX = "redirect:"
DEFAULT_CACHE_TTL = 24 * 60 * 60  # 24 hours in seconds


@dataclass
class CacheEntry(Generic[T]):
    key: str
    value: T
    inserted_at: float


class TTLCache:
    """In-memory key/value store whose entries expire after a fixed TTL.

    Backed by cachetools, which drops expired entries when the store is read
    or written rather than from a background thread. The store is unbounded:
    it holds every distinct key written during the process lifetime until the
    entry is found expired.
    """

    def __init__(self, ttl: float = DEFAULT_CACHE_TTL, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self._clock = clock
        self._entries: _TTLStore = _TTLStore(maxsize=math.inf, ttl=ttl, timer=clock)
        self._pending: Dict[str, "asyncio.Future[Any]"] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[Any]:
        """Return the fresh value stored under key, or None on a miss."""
        if self.invalidate_expired(key):
            return None
        entry = self._entries.get(key)
        if entry is None:
            return None
        logging.debug(f"Cache hit for {key} (age {self._clock() - entry.inserted_at:.0f}s)")
        return entry.value

    def put(self, key: str, value: Any) -> None:
        """Store value under key, replacing any previous entry wholesale."""
        self._entries[key] = CacheEntry(key=key, value=value, inserted_at=self._clock())

    def invalidate_expired(self, key: str) -> bool:
        """Drop expired entries. Returns True if the entry for key was one of them."""
        if key in self._entries:
            return False
        expired = [expired_key for expired_key, _ in self._entries.expire()]
        if key in expired:
            logging.debug(f"Cache entry expired for {key}")
            return True
        return False

    async def coalesce(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        """Run factory() once for all concurrent callers asking for the same key.

        The computation is shared only while it is in flight; it does not write
        to the cache itself, so whether a result is stored is up to factory.
        """
        pending = self._pending.get(key)
        if pending is None:
            pending = asyncio.ensure_future(factory())
            self._pending[key] = pending
            pending.add_done_callback(lambda _: self._pending.pop(key, None))
        else:
            logging.debug(f"Joining in-flight computation for {key}")
        # a cancelled caller must not cancel the computation other callers wait on
        return await asyncio.shield(pending)
