"""Exceptions raised by the locking core and the guarded stock operations."""

from __future__ import annotations

from typing import Optional


class StockLockError(Exception):
    """Base exception for all stocklock errors."""

    def __init__(self, message: str, details: Optional[str] = None) -> None:
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class StoreUnavailableError(StockLockError):
    """The shared lock store could not be reached or answered with an error.

    Raised for both acquire and release so callers never confuse a broken
    store with a held or free lock.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        key: Optional[str] = None,
        original_error: Optional[BaseException] = None,
    ) -> None:
        self.operation = operation
        self.key = key
        self.original_error = original_error
        details = str(original_error) if original_error is not None else None
        super().__init__(message, details)


class LockInterruptedError(StockLockError):
    """Acquisition was abandoned before the lock was held."""

    def __init__(self, message: str, *, key: Optional[str] = None, attempts: int = 0) -> None:
        self.key = key
        self.attempts = attempts
        super().__init__(message)


class LockTimeoutError(LockInterruptedError):
    """The configured acquire timeout elapsed while the lock was still held elsewhere."""


class MutationFailedError(StockLockError):
    """Base class for domain errors raised by the guarded stock mutation."""


class StockNotFoundError(MutationFailedError):
    def __init__(self, stock_id: int) -> None:
        self.stock_id = stock_id
        super().__init__(f"Stock {stock_id} does not exist")


class InsufficientStockError(MutationFailedError):
    """Raised when a decrease would take the quantity below zero."""

    def __init__(self, stock_id: int, available: int, requested: int) -> None:
        self.stock_id = stock_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Stock {stock_id} cannot drop below zero",
            f"available={available} requested={requested}",
        )
