"""
Aggregates - Consistency Boundaries

OrderAggregate binds one priced order to an identity, a status and payment
metadata. It is the unit the checkout flow sequences:

    price (Order) -> pay (PaymentContext) -> reserve stock (InventoryLedger)

Status state machine:

    NEW → PROCESSING → PAID ──→ PREPARING → SHIPPED → DELIVERED
                    ↘ FAILED        ↘ CANCELLED

Every transition appends a domain event, so an order's history can be shown
("created 10:02, processing 10:02, paid 10:03 via PayPal").

Concurrency: an aggregate is owned by the single checkout flow that created
it, so it carries no locks.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

import structlog

from order_system.domain.events import (
    DomainEvent,
    OrderCreated,
    OrderFailed,
    OrderPaid,
    OrderProcessingStarted,
    OrderStatusChanged,
    create_event_metadata,
)
from order_system.domain.orders import Order
from order_system.domain.value_objects import Money
from order_system.exceptions import InvalidArgument

logger = structlog.get_logger()


class OrderStatus(str, Enum):
    """
    Order lifecycle states.

    PAID / FAILED are the only outcomes of a payment attempt. PREPARING,
    SHIPPED, DELIVERED and CANCELLED are fulfilment states set directly.
    """

    NEW = "new"
    PROCESSING = "processing"
    PAID = "paid"
    FAILED = "failed"
    PREPARING = "preparing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"

    @property
    def label(self) -> str:
        """Human-readable status for the console."""
        return _STATUS_LABELS[self]


_STATUS_LABELS = {
    OrderStatus.NEW: "New order",
    OrderStatus.PROCESSING: "Payment processing",
    OrderStatus.PAID: "Paid",
    OrderStatus.FAILED: "Payment failed",
    OrderStatus.PREPARING: "Preparing",
    OrderStatus.SHIPPED: "Shipped",
    OrderStatus.DELIVERED: "Delivered",
    OrderStatus.CANCELLED: "Cancelled",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_order_id() -> str:
    """
    Opaque order identifier.

    Format: ORD-{8 uppercase hex chars}
    Example: ORD-3F7A9C21
    """
    return f"ORD-{uuid.uuid4().hex[:8].upper()}"


@dataclass
class OrderAggregate:
    """
    Order Aggregate Root.

    Owns its Order exclusively. Total and description are read through to
    the Order at any time, including before payment.

    Use begin() to create one - it records the OrderCreated event.
    """

    order: Order
    product_id: int
    order_id: str = field(default_factory=generate_order_id)
    status: OrderStatus = OrderStatus.NEW
    transaction_id: str | None = None
    payment_method: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    paid_at: datetime | None = None
    version: int = 0

    # Event history
    _uncommitted_events: list[DomainEvent] = field(default_factory=list, repr=False)
    _event_history: list[DomainEvent] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        if self.order is None:
            raise InvalidArgument("Order cannot be null")
        if not isinstance(self.order, Order):
            raise InvalidArgument(f"Expected an Order, got {type(self.order).__name__}")

    @classmethod
    def begin(cls, order: Order, product_id: int) -> OrderAggregate:
        """
        Factory method: start checkout for a priced order.

        Status NEW, fresh opaque id, created_at captured.
        """
        aggregate = cls(order=order, product_id=product_id)
        total = aggregate.total

        aggregate._apply_event(
            OrderCreated(
                metadata=aggregate._next_metadata("OrderCreated"),
                order_id=aggregate.order_id,
                product_id=product_id,
                description=aggregate.description,
                total=total.amount,
                currency=total.currency.value,
            )
        )

        logger.info(
            "order_created",
            order_id=aggregate.order_id,
            product_id=product_id,
            total=str(total.amount),
            description=aggregate.description,
        )
        return aggregate

    # ── Read-through to the owned order ───────────────────────

    @property
    def total(self) -> Money:
        return self.order.compute_total()

    @property
    def description(self) -> str:
        return self.order.describe()

    @property
    def is_paid(self) -> bool:
        return self.status == OrderStatus.PAID

    # ── Transitions ────────────────────────────────────────────

    def mark_processing(self) -> None:
        """Guard transition taken right before the payment context is invoked."""
        self._apply_event(
            OrderProcessingStarted(
                metadata=self._next_metadata("OrderProcessingStarted"),
                order_id=self.order_id,
            )
        )

    def mark_paid(self, transaction_id: str, payment_method: str) -> None:
        """
        Record a successful payment.

        Only meaningful after a successful PaymentOutcome; the checkout
        service enforces that before calling.
        """
        if not transaction_id:
            raise InvalidArgument("Transaction id cannot be empty", order_id=self.order_id)

        self._apply_event(
            OrderPaid(
                metadata=self._next_metadata("OrderPaid"),
                order_id=self.order_id,
                transaction_id=transaction_id,
                payment_method=payment_method,
                paid_at=_utcnow(),
            )
        )

    def mark_failed(self) -> None:
        """Payment failed: transaction fields stay absent."""
        self._apply_event(
            OrderFailed(
                metadata=self._next_metadata("OrderFailed"),
                order_id=self.order_id,
            )
        )

    def set_status(self, status: OrderStatus | str) -> None:
        """
        Set a fulfilment state directly (PREPARING / SHIPPED / DELIVERED / CANCELLED).

        These states carry no further coupling to pricing or payment.
        """
        try:
            status = OrderStatus(status)
        except ValueError as e:
            raise InvalidArgument(f"Unknown order status: {status!r}") from e

        self._apply_event(
            OrderStatusChanged(
                metadata=self._next_metadata("OrderStatusChanged"),
                order_id=self.order_id,
                from_status=self.status.value,
                to_status=status.value,
            )
        )

    # ── Event handling ─────────────────────────────────────────

    def _next_metadata(self, event_type: str):
        return create_event_metadata(
            event_type=event_type,
            aggregate_id=self.order_id,
            aggregate_type="order",
            sequence_number=self.version,
        )

    def _apply_event(self, event: DomainEvent) -> None:
        """
        Apply event to aggregate state.

        - Event is added to uncommitted events and history
        - State is updated based on event
        - Version incremented
        """
        self._uncommitted_events.append(event)
        self._event_history.append(event)
        self.version += 1
        self._mutate(event)

    def _mutate(self, event: DomainEvent) -> None:
        """Update aggregate state based on event. Must be deterministic."""
        previous = self.status

        if isinstance(event, OrderCreated):
            self.status = OrderStatus.NEW

        elif isinstance(event, OrderProcessingStarted):
            self.status = OrderStatus.PROCESSING

        elif isinstance(event, OrderPaid):
            self.status = OrderStatus.PAID
            self.transaction_id = event.transaction_id
            self.payment_method = event.payment_method
            self.paid_at = event.paid_at

        elif isinstance(event, OrderFailed):
            self.status = OrderStatus.FAILED
            self.transaction_id = None
            self.payment_method = None
            self.paid_at = None

        elif isinstance(event, OrderStatusChanged):
            self.status = OrderStatus(event.to_status)

        if previous != self.status:
            logger.debug(
                "order_status_changed",
                order_id=self.order_id,
                from_status=previous.value,
                to_status=self.status.value,
            )

    def history(self) -> list[DomainEvent]:
        """Every event this order has recorded, oldest first."""
        return self._event_history.copy()

    def get_uncommitted_events(self) -> list[DomainEvent]:
        """Get events that haven't been handed off yet."""
        return self._uncommitted_events.copy()

    def mark_events_committed(self) -> None:
        """Clear uncommitted events after hand-off."""
        self._uncommitted_events.clear()

    def __str__(self) -> str:
        return (
            f"OrderAggregate(id={self.order_id}, status={self.status.value}, "
            f"total={self.total}, description={self.description!r})"
        )
