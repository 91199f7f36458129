"""Inventory: the shared, concurrency-safe stock ledger."""
from .ledger import DEFAULT_STOCK, LOW_STOCK_THRESHOLD, InventoryLedger

__all__ = ["DEFAULT_STOCK", "LOW_STOCK_THRESHOLD", "InventoryLedger"]
