"""Audit trail of guarded stock decreases, one JSON object per line."""

from __future__ import annotations

import asyncio
import datetime as dt
import json
from pathlib import Path
from typing import Any, Dict, List

from stocklock.core.models import DecreaseAttempt


EVENT_STOCK_DECREASE = "stock_decrease"


def attempt_record(attempt: DecreaseAttempt) -> Dict[str, Any]:
    """Flatten a finished attempt into the audit line layout."""
    finished_at = dt.datetime.now(dt.timezone.utc)
    return {
        "timestamp": finished_at.isoformat(),
        "event": EVENT_STOCK_DECREASE,
        "stock_id": attempt.stock_id,
        "amount": attempt.amount,
        "state": attempt.state.value,
        "acquire_attempts": attempt.acquire_attempts,
        "waited_ms": round(attempt.waited_ms, 3),
        "duration_ms": round((finished_at - attempt.started_at).total_seconds() * 1000, 3),
        "error": attempt.error,
    }


class AuditLogger:
    """Appends the outcome of every ``LockStockFacade.decrease`` call.

    Writes go through a worker thread and are serialized within the process.
    """

    def __init__(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self._path = path
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def log(self, attempt: DecreaseAttempt) -> None:
        line = json.dumps(attempt_record(attempt), ensure_ascii=True) + "\n"
        async with self._lock:
            await asyncio.to_thread(self._append, line)

    async def entries(self) -> List[Dict[str, Any]]:
        """Read the trail back, oldest first."""
        async with self._lock:
            return await asyncio.to_thread(self._read)

    def _append(self, line: str) -> None:
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(line)

    def _read(self) -> List[Dict[str, Any]]:
        if not self._path.exists():
            return []
        with self._path.open(encoding="utf-8") as fh:
            return [json.loads(line) for line in fh if line.strip()]
