"""Redis-based distributed lock using SET NX PX semantics."""

from __future__ import annotations

from typing import Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from .exceptions import StoreUnavailableError
from .locks import LockRepository, LockStore
from .settings import LockSettings
from stocklock.utils.logging import get_logger


LOCK_MARKER = "lock"


class RedisLockStore:
    """``LockStore`` over a ``redis.asyncio`` client."""

    def __init__(self, redis: Redis) -> None:
        self._redis = redis

    @classmethod
    def from_url(cls, url: str, *, socket_timeout: Optional[float] = None) -> "RedisLockStore":
        return cls(Redis.from_url(url, socket_timeout=socket_timeout, decode_responses=True))

    async def set_if_absent(self, key: str, value: str, ttl_ms: int) -> bool:
        try:
            # SET returns None when NX loses
            return bool(await self._redis.set(key, value, px=ttl_ms, nx=True))
        except (RedisError, OSError) as exc:
            raise StoreUnavailableError(
                "Lock store unavailable during acquire", operation="acquire", key=key, original_error=exc
            ) from exc

    async def delete(self, key: str) -> bool:
        try:
            return bool(await self._redis.delete(key))
        except (RedisError, OSError) as exc:
            raise StoreUnavailableError(
                "Lock store unavailable during release", operation="release", key=key, original_error=exc
            ) from exc

    async def close(self) -> None:
        await self._redis.aclose()


class RedisLockRepository(LockRepository):
    """Stateless lock adapter: one store round trip per call, no ownership tokens.

    ``release`` deletes the key whoever holds it. A holder whose work outlives
    ``ttl_ms`` can therefore remove the lock of the next holder.
    """

    def __init__(self, store: LockStore, *, ttl_ms: int = 3000, key_prefix: str = "") -> None:
        if ttl_ms <= 0:
            raise ValueError("ttl_ms must be positive")
        self._store = store
        self._ttl_ms = ttl_ms
        self._key_prefix = key_prefix
        self.logger = get_logger("RedisLockRepository")

    @classmethod
    def from_settings(cls, settings: LockSettings) -> "RedisLockRepository":
        store = RedisLockStore.from_url(settings.redis_url, socket_timeout=settings.socket_timeout_seconds)
        return cls(store, ttl_ms=settings.ttl_ms, key_prefix=settings.key_prefix)

    @property
    def ttl_ms(self) -> int:
        return self._ttl_ms

    def derive_key(self, identifier: int) -> str:
        if isinstance(identifier, bool) or not isinstance(identifier, int):
            raise TypeError(f"Lock identifier must be an int, got {type(identifier).__name__}")
        return f"{self._key_prefix}{identifier}"

    async def acquire(self, identifier: int) -> bool:
        key = self.derive_key(identifier)
        acquired = await self._store.set_if_absent(key, LOCK_MARKER, self._ttl_ms)
        self.logger.debug("acquire %s -> %s", key, acquired)
        return acquired

    async def release(self, identifier: int) -> bool:
        key = self.derive_key(identifier)
        released = await self._store.delete(key)
        self.logger.debug("release %s -> %s", key, released)
        return released

    async def close(self) -> None:
        close = getattr(self._store, "close", None)
        if close is not None:
            await close()
