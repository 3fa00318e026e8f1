"""In-process lock store with TTL expiry, for tests and single-process runs."""

from __future__ import annotations

import asyncio
import time
from typing import Callable, Dict, Optional, Tuple


class InMemoryLockStore:
    """``LockStore`` keeping records in a dict keyed by lock key.

    Expiry is evaluated lazily against a monotonic clock on every access.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._records: Dict[str, Tuple[str, float]] = {}  # key -> (value, expires_at)
        self._lock = asyncio.Lock()
        self._clock = clock

    def _live(self, key: str, now: float) -> Optional[str]:
        record = self._records.get(key)
        if record is None:
            return None
        value, expires_at = record
        if now >= expires_at:
            del self._records[key]
            return None
        return value

    async def set_if_absent(self, key: str, value: str, ttl_ms: int) -> bool:
        async with self._lock:
            now = self._clock()
            if self._live(key, now) is not None:
                return False
            self._records[key] = (value, now + ttl_ms / 1000.0)
            return True

    async def delete(self, key: str) -> bool:
        async with self._lock:
            existed = self._live(key, self._clock()) is not None
            self._records.pop(key, None)
            return existed

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            return self._live(key, self._clock())
