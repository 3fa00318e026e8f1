"""Abstract interfaces for distributed locks."""

from __future__ import annotations

import abc
from typing import Protocol


class LockStore(Protocol):
    """The two atomic primitives a shared store must offer."""

    async def set_if_absent(self, key: str, value: str, ttl_ms: int) -> bool:
        """Create ``key`` with ``value`` expiring after ``ttl_ms`` only if it does not exist."""
        ...

    async def delete(self, key: str) -> bool:
        """Delete ``key``; return whether it existed."""
        ...


class LockRepository(abc.ABC):
    """Per-identifier lock primitives over a shared store."""

    @abc.abstractmethod
    def derive_key(self, identifier: int) -> str:  # pragma: no cover - interface
        raise NotImplementedError

    @abc.abstractmethod
    async def acquire(self, identifier: int) -> bool:  # pragma: no cover - interface
        """Try once to take the lock for ``identifier``."""
        raise NotImplementedError

    @abc.abstractmethod
    async def release(self, identifier: int) -> bool:  # pragma: no cover - interface
        """Drop the lock for ``identifier`` regardless of who holds it."""
        raise NotImplementedError
