"""Lock-guarded stock decrease."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from functools import partial
from typing import TYPE_CHECKING, AsyncIterator, Optional

from stocklock.core.exceptions import LockTimeoutError, StoreUnavailableError
from stocklock.core.locks import LockRepository
from stocklock.core.models import DecreaseAttempt, DecreaseState
from stocklock.core.settings import LockSettings
from stocklock.utils.logging import get_logger

if TYPE_CHECKING:
    from stocklock.services.audit_logger import AuditLogger
    from stocklock.services.stock import StockService


def _describe(exc: BaseException) -> str:
    if isinstance(exc, asyncio.CancelledError):
        return "cancelled"
    return f"{type(exc).__name__}: {exc}"


class LockStockFacade:
    """Serializes stock decreases per stock id through a shared lock store.

    Waiting is a polling loop: the store cannot block on a key, so a caller
    that loses ``acquire`` sleeps ``retry_interval_ms`` and tries again. There
    is no queue and no fairness between waiters. The lock is not renewed; a
    decrease that runs longer than the lock TTL is no longer exclusive.
    """

    def __init__(
        self,
        lock_repository: LockRepository,
        stock_service: "StockService",
        *,
        retry_interval_ms: int = 100,
        acquire_timeout_ms: Optional[int] = None,
        audit_logger: Optional["AuditLogger"] = None,
    ) -> None:
        if retry_interval_ms <= 0:
            raise ValueError("retry_interval_ms must be positive")
        if acquire_timeout_ms is not None and acquire_timeout_ms <= 0:
            raise ValueError("acquire_timeout_ms must be positive")
        self._locks = lock_repository
        self._stock_service = stock_service
        self._retry_interval = retry_interval_ms / 1000.0
        self._acquire_timeout = acquire_timeout_ms / 1000.0 if acquire_timeout_ms else None
        self._audit = audit_logger
        self.logger = get_logger("LockStockFacade")

    @classmethod
    def from_settings(cls, settings: LockSettings, stock_service: "StockService") -> "LockStockFacade":
        from stocklock.core.locks_redis import RedisLockRepository
        from stocklock.services.audit_logger import AuditLogger

        audit_logger = AuditLogger(settings.audit_log_path) if settings.audit_log_path else None
        return cls(
            RedisLockRepository.from_settings(settings),
            stock_service,
            retry_interval_ms=settings.retry_interval_ms,
            acquire_timeout_ms=settings.acquire_timeout_ms,
            audit_logger=audit_logger,
        )

    async def decrease(self, stock_id: int, quantity: int) -> None:
        """Decrease stock ``stock_id`` by ``quantity`` while holding its lock.

        Raises ``StoreUnavailableError`` if the store fails, ``LockTimeoutError``
        if an acquire timeout is configured and elapses, and re-raises whatever
        the stock service raised once the lock has been released.
        """
        attempt = DecreaseAttempt(stock_id=stock_id, amount=quantity)
        try:
            async with self.hold(stock_id, attempt=attempt):
                await self._stock_service.decrease(stock_id, quantity)
        except BaseException as exc:
            if attempt.error is None:
                attempt.error = _describe(exc)
            raise
        finally:
            await self._record(attempt)

    @asynccontextmanager
    async def hold(self, stock_id: int, *, attempt: Optional[DecreaseAttempt] = None) -> AsyncIterator[DecreaseAttempt]:
        """Wait for the lock on ``stock_id``, yield, then release it on every exit path."""
        if attempt is None:
            attempt = DecreaseAttempt(stock_id=stock_id, amount=0)
        try:
            await self._acquire(stock_id, attempt)
        except BaseException as exc:
            attempt.state = DecreaseState.FAILED
            attempt.error = _describe(exc)
            self.logger.warning("Gave up acquiring lock for stock %s: %s", stock_id, attempt.error)
            raise

        attempt.state = DecreaseState.HOLDING
        failed = True
        try:
            yield attempt
            failed = False
        finally:
            attempt.state = DecreaseState.RELEASED_WITH_ERROR if failed else DecreaseState.RELEASED
            # a second cancellation must not skip the delete
            release = asyncio.ensure_future(self._locks.release(stock_id))
            try:
                await asyncio.shield(release)
            except asyncio.CancelledError:
                release.add_done_callback(partial(self._log_orphaned_release, stock_id))
                raise
            except StoreUnavailableError as exc:
                if not failed:
                    attempt.state = DecreaseState.FAILED
                    attempt.error = _describe(exc)
                    raise
                self.logger.error(
                    "Could not release lock for stock %s after failure; it expires with its TTL: %s",
                    stock_id,
                    exc,
                )

    async def _acquire(self, stock_id: int, attempt: DecreaseAttempt) -> None:
        loop = asyncio.get_running_loop()
        started = loop.time()
        deadline = started + self._acquire_timeout if self._acquire_timeout is not None else None
        while True:
            attempt.acquire_attempts += 1
            pending = asyncio.ensure_future(self._locks.acquire(stock_id))
            try:
                acquired = await asyncio.shield(pending)
            except asyncio.CancelledError:
                await self._undo_cancelled_acquire(stock_id, pending)
                raise
            if acquired:
                attempt.waited_ms = (loop.time() - started) * 1000
                return
            now = loop.time()
            if deadline is not None and now >= deadline:
                raise LockTimeoutError(
                    f"Timed out waiting for lock on stock {stock_id}",
                    key=self._locks.derive_key(stock_id),
                    attempts=attempt.acquire_attempts,
                )
            delay = self._retry_interval if deadline is None else min(self._retry_interval, deadline - now)
            self.logger.debug("Lock for stock %s is held; retrying in %.3fs", stock_id, delay)
            await asyncio.sleep(delay)

    async def _undo_cancelled_acquire(self, stock_id: int, pending: "asyncio.Future[bool]") -> None:
        """Wait out an acquire interrupted by cancellation and drop the lock if it was won."""
        try:
            acquired = await pending
        except Exception as exc:
            self.logger.warning("Acquire for stock %s failed after cancellation: %s", stock_id, exc)
            return
        if not acquired:
            return
        self.logger.info("Cancelled while acquiring stock %s but the lock was taken; releasing", stock_id)
        try:
            await self._locks.release(stock_id)
        except StoreUnavailableError as exc:
            self.logger.error(
                "Could not release lock for stock %s after cancellation; it expires with its TTL: %s",
                stock_id,
                exc,
            )

    def _log_orphaned_release(self, stock_id: int, release: "asyncio.Future[bool]") -> None:
        if release.cancelled():
            return
        exc = release.exception()
        if exc is not None:
            self.logger.error(
                "Could not release lock for stock %s after cancellation; it expires with its TTL: %s",
                stock_id,
                exc,
            )

    async def _record(self, attempt: DecreaseAttempt) -> None:
        if attempt.state is DecreaseState.RELEASED:
            self.logger.info(
                "Decreased stock %s by %s after %d acquire attempt(s)",
                attempt.stock_id,
                attempt.amount,
                attempt.acquire_attempts,
            )
        else:
            self.logger.warning(
                "Decrease of stock %s ended in state %s: %s",
                attempt.stock_id,
                attempt.state.value,
                attempt.error,
            )
        if self._audit:
            try:
                await self._audit.log(attempt)
            except Exception:
                self.logger.debug("Failed to persist audit log", exc_info=True)
