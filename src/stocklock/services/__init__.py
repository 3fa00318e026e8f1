"""Collaborators used by the lock facade."""

from .audit_logger import AuditLogger
from .stock import InMemoryStockService, StockService

__all__ = ["AuditLogger", "InMemoryStockService", "StockService"]
