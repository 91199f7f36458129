"""
Inventory Ledger - Shared Stock Table With Atomic Reserve/Release

PURPOSE:
--------
The only shared mutable resource in the system. Every checkout that pays
successfully reserves stock here, concurrently with every other checkout.

CORRECTNESS GUARANTEE:
----------------------
Two reservations whose combined quantity exceeds available stock never both
succeed. Stock never goes negative. No update is ever lost.

    seed: product 5 = 10 units
    10 threads x reserve(5, 1) + 5 threads x reserve(5, 1)
    → exactly 10 True, 5 False, final stock 0

DESIGN DECISIONS:
-----------------
1. One threading.Lock for the whole table
   - Check-then-act (read stock, compare, write) happens under one lock,
     so no caller can observe or act on a stale count
   - Coarse-grained is fine: critical sections are a dict lookup and a write

2. Rejections are booleans, not exceptions
   - Insufficient stock is a normal business answer ("sold out"), the
     caller decides whether to cancel, retry, or tell the customer

3. Low stock is an event, not a behaviour change
   - The ledger logs it and notifies listeners with LowStockDetected
   - Listeners run AFTER the lock is released so a slow listener can't
     stall other checkouts

4. No singleton
   - The application assembly constructs one ledger and injects it;
     tests construct their own
"""

from __future__ import annotations

import threading
from typing import Callable, Dict, List, Mapping, Optional

import structlog

from order_system.domain.events import LowStockDetected, create_event_metadata

logger = structlog.get_logger(__name__)

# Seed stock per catalog product id
DEFAULT_STOCK: Dict[int, int] = {
    1: 15,   # Laptop
    2: 25,   # Smartphone
    3: 50,   # Headphones
    4: 100,  # Book
    5: 10,   # Coffee machine
}

LOW_STOCK_THRESHOLD = 5

LowStockListener = Callable[[LowStockDetected], None]


def _is_positive_count(quantity: object) -> bool:
    # bool is an int subclass; fractional and string quantities are rejected too
    return isinstance(quantity, int) and not isinstance(quantity, bool) and quantity > 0


class InventoryLedger:
    """
    Per-product stock counts with linearizable reserve/release.

    Usage:
        ledger = InventoryLedger()
        if ledger.reserve(product_id=5, quantity=1):
            ...  # sale committed
        else:
            ...  # sold out / unknown product
    """

    def __init__(
        self,
        seed: Optional[Mapping[int, int]] = None,
        low_stock_threshold: int = LOW_STOCK_THRESHOLD,
    ):
        """
        Args:
            seed: Initial quantity per product id (defaults to DEFAULT_STOCK)
            low_stock_threshold: Stock below this after a reservation raises
                a LowStockDetected event
        """
        seed = dict(DEFAULT_STOCK if seed is None else seed)
        for product_id, quantity in seed.items():
            if quantity < 0:
                raise ValueError(f"Seed stock cannot be negative: product {product_id} = {quantity}")

        self._seed: Dict[int, int] = seed
        self._stock: Dict[int, int] = {}
        self._lock = threading.Lock()
        self._listeners: List[LowStockListener] = []
        self._events_emitted = 0
        self.low_stock_threshold = low_stock_threshold

        self._initialize()

    def _initialize(self) -> None:
        """Load seed quantities. Caller holds the lock (or is the constructor)."""
        self._stock.update(self._seed)
        logger.info("inventory_initialized", products=len(self._stock))

    # ── Queries ────────────────────────────────────────────────

    def is_in_stock(self, product_id: int) -> bool:
        """True if the product is known and has at least one unit."""
        with self._lock:
            return self._stock.get(product_id, 0) > 0

    def get_stock(self, product_id: int) -> int:
        """Current quantity, 0 for unknown products."""
        with self._lock:
            return self._stock.get(product_id, 0)

    def snapshot(self) -> Dict[int, int]:
        """
        Copy of the whole table, taken atomically.

        For display only - mutating the copy never touches the ledger.
        """
        with self._lock:
            return dict(self._stock)

    # ── Mutations ──────────────────────────────────────────────

    def reserve(self, product_id: int, quantity: int) -> bool:
        """
        Atomically take quantity units of a product.

        Returns:
            True if reserved; False (no state change) when quantity is not a
            positive integer, the product is unknown, or stock is insufficient
        """
        if not _is_positive_count(quantity):
            logger.warning("invalid_reserve_quantity", product_id=product_id, quantity=quantity)
            return False

        with self._lock:
            current = self._stock.get(product_id)
            if current is None:
                logger.error("product_not_in_inventory", product_id=product_id)
                return False

            if current < quantity:
                logger.warning(
                    "insufficient_stock",
                    product_id=product_id,
                    requested=quantity,
                    available=current,
                )
                return False

            remaining = current - quantity
            self._stock[product_id] = remaining

        logger.info(
            "stock_reserved",
            product_id=product_id,
            quantity=quantity,
            remaining=remaining,
        )

        if remaining < self.low_stock_threshold:
            self._announce_low_stock(product_id, remaining)

        return True

    def release(self, product_id: int, quantity: int) -> bool:
        """
        Atomically return quantity units of a product.

        No upper bound: stock may end above its seed level.

        Returns:
            True if released; False (no state change) when quantity is not a
            positive integer or the product is unknown
        """
        if not _is_positive_count(quantity):
            logger.warning("invalid_release_quantity", product_id=product_id, quantity=quantity)
            return False

        with self._lock:
            current = self._stock.get(product_id)
            if current is None:
                logger.error("product_not_in_inventory", product_id=product_id)
                return False

            new_level = current + quantity
            self._stock[product_id] = new_level

        logger.info(
            "stock_released",
            product_id=product_id,
            quantity=quantity,
            new_level=new_level,
        )
        return True

    def reset(self) -> None:
        """Clear the table and re-seed it."""
        with self._lock:
            self._stock.clear()
            self._initialize()
        logger.info("inventory_reset")

    # ── Low-stock notification ─────────────────────────────────

    def subscribe(self, listener: LowStockListener) -> None:
        """Register a callback for LowStockDetected events."""
        self._listeners.append(listener)

    def unsubscribe(self, listener: LowStockListener) -> None:
        self._listeners.remove(listener)

    def _announce_low_stock(self, product_id: int, remaining: int) -> None:
        logger.warning(
            "low_stock_alert",
            product_id=product_id,
            remaining=remaining,
            threshold=self.low_stock_threshold,
        )

        with self._lock:
            sequence_number = self._events_emitted
            self._events_emitted += 1

        event = LowStockDetected(
            metadata=create_event_metadata(
                event_type="LowStockDetected",
                aggregate_id=f"product-{product_id}",
                aggregate_type="inventory",
                sequence_number=sequence_number,
            ),
            product_id=product_id,
            remaining=remaining,
            threshold=self.low_stock_threshold,
        )

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                # A broken listener must not undo or fail a committed reservation
                logger.exception("low_stock_listener_failed", product_id=product_id)
