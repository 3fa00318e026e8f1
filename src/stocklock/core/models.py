"""Data models shared across stocklock."""

from __future__ import annotations

import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class DecreaseState(str, Enum):
    """Phases of one guarded decrease."""

    ACQUIRING = "acquiring"
    HOLDING = "holding"
    RELEASED = "released"
    FAILED = "failed"
    RELEASED_WITH_ERROR = "released_with_error"


class Stock(BaseModel):
    """Quantity record guarded by the lock."""

    id: int
    product_id: int
    quantity: int = Field(ge=0)


class DecreaseAttempt(BaseModel):
    """Outcome of one ``LockStockFacade.decrease`` call."""

    stock_id: int
    amount: int
    state: DecreaseState = DecreaseState.ACQUIRING
    acquire_attempts: int = 0
    waited_ms: float = 0.0
    error: Optional[str] = None
    started_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))
