"""Core locking primitives for stocklock."""

from .exceptions import (
    InsufficientStockError,
    LockInterruptedError,
    LockTimeoutError,
    MutationFailedError,
    StockLockError,
    StockNotFoundError,
    StoreUnavailableError,
)
from .facade import LockStockFacade
from .locks import LockRepository, LockStore
from .locks_memory import InMemoryLockStore
from .locks_redis import RedisLockRepository, RedisLockStore
from .models import DecreaseAttempt, DecreaseState, Stock
from .settings import LockSettings

__all__ = [
    "LockStockFacade",
    "LockRepository",
    "LockStore",
    "InMemoryLockStore",
    "RedisLockRepository",
    "RedisLockStore",
    "LockSettings",
    "DecreaseAttempt",
    "DecreaseState",
    "Stock",
    "StockLockError",
    "StoreUnavailableError",
    "LockInterruptedError",
    "LockTimeoutError",
    "MutationFailedError",
    "InsufficientStockError",
    "StockNotFoundError",
]
