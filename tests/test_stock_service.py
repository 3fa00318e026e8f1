from __future__ import annotations

import pytest

from stocklock.core.exceptions import InsufficientStockError, MutationFailedError, StockNotFoundError
from stocklock.core.models import Stock
from stocklock.services.stock import InMemoryStockService


@pytest.mark.asyncio
async def test_decrease_updates_quantity():
    service = InMemoryStockService([Stock(id=1, product_id=100, quantity=10)])

    await service.decrease(1, 3)

    assert service.get(1).quantity == 7


@pytest.mark.asyncio
async def test_decrease_cannot_go_below_zero():
    service = InMemoryStockService([Stock(id=1, product_id=100, quantity=2)])

    with pytest.raises(InsufficientStockError) as err:
        await service.decrease(1, 3)

    assert isinstance(err.value, MutationFailedError)
    assert err.value.available == 2
    assert "available=2 requested=3" in str(err.value)
    assert service.get(1).quantity == 2


@pytest.mark.asyncio
async def test_decrease_to_exactly_zero():
    service = InMemoryStockService([Stock(id=1, product_id=100, quantity=3)])

    await service.decrease(1, 3)

    assert service.get(1).quantity == 0


@pytest.mark.asyncio
async def test_unknown_stock():
    service = InMemoryStockService()

    with pytest.raises(StockNotFoundError):
        await service.decrease(99, 1)


@pytest.mark.asyncio
async def test_non_positive_quantity_rejected():
    service = InMemoryStockService([Stock(id=1, product_id=100, quantity=3)])

    with pytest.raises(ValueError):
        await service.decrease(1, 0)
