"""CLI entrypoint firing concurrent guarded decreases at one stock record."""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from stocklock.core.exceptions import StockLockError
from stocklock.core.facade import LockStockFacade
from stocklock.core.locks_memory import InMemoryLockStore
from stocklock.core.locks_redis import RedisLockRepository
from stocklock.core.models import Stock
from stocklock.core.settings import LockSettings
from stocklock.services import AuditLogger, InMemoryStockService
from stocklock.utils.env import get_bool_env
from stocklock.utils.logging import get_logger


logger = get_logger("DecreaseCLI", rich=get_bool_env("STOCKLOCK_RICH_LOGS", default=True))


def _load_settings(path: Path | None) -> LockSettings:
    if path is None:
        return LockSettings.from_env()
    if not path.exists():
        raise SystemExit(f"Config file not found: {path}")
    return LockSettings.from_file(path)


async def main() -> None:
    parser = argparse.ArgumentParser(description="Run concurrent stock decreases guarded by a shared lock.")
    parser.add_argument("--config", type=Path, default=None, help="Path to lock settings YAML (default: env)")
    parser.add_argument("--stock-id", type=int, default=1)
    parser.add_argument("--initial", type=int, default=100, help="Initial quantity")
    parser.add_argument("--amount", type=int, default=1, help="Quantity removed per worker")
    parser.add_argument("--workers", type=int, default=100)
    parser.add_argument("--latency-ms", type=int, default=5, help="Simulated read/write gap in the stock service")
    parser.add_argument("--memory", action="store_true", help="Use an in-process lock store instead of Redis")
    args = parser.parse_args()

    settings = _load_settings(args.config)
    stock_service = InMemoryStockService(
        [Stock(id=args.stock_id, product_id=args.stock_id, quantity=args.initial)],
        latency_seconds=args.latency_ms / 1000.0,
    )
    if args.memory:
        repository = RedisLockRepository(InMemoryLockStore(), ttl_ms=settings.ttl_ms, key_prefix=settings.key_prefix)
    else:
        repository = RedisLockRepository.from_settings(settings)
    facade = LockStockFacade(
        repository,
        stock_service,
        retry_interval_ms=settings.retry_interval_ms,
        acquire_timeout_ms=settings.acquire_timeout_ms,
        audit_logger=AuditLogger(settings.audit_log_path) if settings.audit_log_path else None,
    )

    logger.info("Starting %d workers against stock %s", args.workers, args.stock_id)
    try:
        results = await asyncio.gather(
            *(facade.decrease(args.stock_id, args.amount) for _ in range(args.workers)),
            return_exceptions=True,
        )
    finally:
        await repository.close()

    failures = [result for result in results if isinstance(result, BaseException)]
    for failure in failures:
        if isinstance(failure, StockLockError):
            logger.warning("Decrease failed: %s", failure)
        else:
            logger.error("Unexpected error: %r", failure)
    logger.info(
        "Final quantity for stock %s: %d (%d failed)",
        args.stock_id,
        stock_service.get(args.stock_id).quantity,
        len(failures),
    )


if __name__ == "__main__":
    asyncio.run(main())
