"""
Domain Events - Immutable Facts About What Happened

An order aggregate records an event for every lifecycle transition, and the
inventory ledger announces low stock as an event.

Why events here?
- Order history: "created 10:02, processing 10:02, paid 10:03 via PayPal"
- Low stock is a fact the ledger observes, not a decision it makes: it
  publishes LowStockDetected and lets the caller log/alert/reorder
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EventMetadata(BaseModel):
    """
    Envelope fields shared by every event.

    sequence_number orders the events of one aggregate (0 = first).
    """

    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    event_type: str
    aggregate_id: str
    aggregate_type: Literal["order", "inventory"]
    sequence_number: int
    occurred_at: datetime = Field(default_factory=_utcnow)
    correlation_id: str | None = None


class DomainEvent(BaseModel):
    """
    Something that already happened to an order or to stock.

    Named in the past tense (OrderPaid, LowStockDetected) and frozen once built.
    """

    metadata: EventMetadata

    class Config:
        frozen = True  # Immutable


# ============================================================================
# ORDER LIFECYCLE EVENTS
# ============================================================================

class OrderCreated(DomainEvent):
    """Checkout started: a priced order got an identity. Always the first event."""

    order_id: str
    product_id: int
    description: str
    total: Decimal
    currency: str


class OrderProcessingStarted(DomainEvent):
    """Payment is about to be attempted."""

    order_id: str


class OrderPaid(DomainEvent):
    """Payment succeeded; transaction metadata recorded."""

    order_id: str
    transaction_id: str
    payment_method: str
    paid_at: datetime


class OrderFailed(DomainEvent):
    """Payment failed; the order keeps no transaction id."""

    order_id: str


class OrderStatusChanged(DomainEvent):
    """Fulfilment transition set directly (preparing, shipped, delivered, cancelled)."""

    order_id: str
    from_status: str
    to_status: str


# ============================================================================
# INVENTORY EVENTS
# ============================================================================

class LowStockDetected(DomainEvent):
    """
    A reservation left a product below the low-stock threshold.

    Observational only: the ledger's behaviour does not change.
    """

    product_id: int
    remaining: int
    threshold: int


def create_event_metadata(
    event_type: str,
    aggregate_id: str,
    aggregate_type: Literal["order", "inventory"],
    sequence_number: int,
    correlation_id: str | None = None,
) -> EventMetadata:
    """Metadata for the next event of an aggregate; a correlation id is generated when absent."""
    return EventMetadata(
        event_type=event_type,
        aggregate_id=aggregate_id,
        aggregate_type=aggregate_type,
        sequence_number=sequence_number,
        correlation_id=correlation_id or str(uuid.uuid4()),
    )
