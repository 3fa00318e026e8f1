"""Stock quantity service guarded by the distributed lock."""

from __future__ import annotations

import asyncio
from typing import Dict, Iterable, Protocol

from stocklock.core.exceptions import InsufficientStockError, StockNotFoundError
from stocklock.core.models import Stock


class StockService(Protocol):
    """Performs the actual quantity update; knows nothing about locking."""

    async def decrease(self, stock_id: int, quantity: int) -> None:
        ...


def apply_decrease(stock: Stock, quantity: int) -> Stock:
    if quantity <= 0:
        raise ValueError("quantity must be positive")
    if stock.quantity - quantity < 0:
        raise InsufficientStockError(stock.id, stock.quantity, quantity)
    return stock.model_copy(update={"quantity": stock.quantity - quantity})


class InMemoryStockService:
    """Dict-backed stock records with a read/modify/write decrease.

    The read and the write are separated by an await, so concurrent callers
    that skip the lock can lose updates.
    """

    def __init__(self, stocks: Iterable[Stock] = (), *, latency_seconds: float = 0.0) -> None:
        self._stocks: Dict[int, Stock] = {stock.id: stock for stock in stocks}
        self._latency = latency_seconds

    def add(self, stock: Stock) -> None:
        self._stocks[stock.id] = stock

    def get(self, stock_id: int) -> Stock:
        try:
            return self._stocks[stock_id]
        except KeyError:
            raise StockNotFoundError(stock_id) from None

    async def decrease(self, stock_id: int, quantity: int) -> None:
        stock = self.get(stock_id)
        await asyncio.sleep(self._latency)
        self._stocks[stock_id] = apply_decrease(stock, quantity)
