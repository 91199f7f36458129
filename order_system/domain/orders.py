"""
Order Pipeline - Base Purchase + Stacked Add-on Services

An order is either:
- BaseOrder: one product at its base price
- DecoratedOrder: exactly one inner order plus one add-on service

Decorations form a singly-linked chain:

    DecoratedOrder(GREETING_CARD)
      └── DecoratedOrder(EXPRESS_SHIPPING)
            └── DecoratedOrder(GIFT_WRAP)
                  └── BaseOrder("Book", 25.50)

    total       = 25.50 + 5.00 + 10.00 + 2.00 = 42.50
    description = "Book + Gift Wrap + Express Shipping + Greeting Card"

Invariants:
- total(node) = total(inner) + surcharge(node)
- description(node) = description(inner) + " + " + fragment(node)
- Orders never change after construction; a new service wraps, never mutates
- The chain is acyclic: a decoration can only wrap an already-built order

Totals are order-independent (addition commutes). Descriptions are not:
they list services in the order they were applied.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Optional

import structlog

from order_system.domain.value_objects import Money
from order_system.exceptions import InvalidArgument

logger = structlog.get_logger(__name__)

DEFAULT_GREETING = "Congratulations!"


class ServiceKind(str, Enum):
    """Add-on services a customer can stack onto an order."""

    GIFT_WRAP = "gift_wrap"
    EXPRESS_SHIPPING = "express_shipping"
    GREETING_CARD = "greeting_card"

    @property
    def surcharge(self) -> Decimal:
        return SERVICES[self].surcharge

    @property
    def fragment(self) -> str:
        return SERVICES[self].fragment


@dataclass(frozen=True)
class ServiceDefinition:
    """Fixed price and description fragment of one add-on service."""

    surcharge: Decimal
    fragment: str


SERVICES: dict[ServiceKind, ServiceDefinition] = {
    ServiceKind.GIFT_WRAP: ServiceDefinition(Decimal("5.00"), "Gift Wrap"),
    ServiceKind.EXPRESS_SHIPPING: ServiceDefinition(Decimal("10.00"), "Express Shipping"),
    ServiceKind.GREETING_CARD: ServiceDefinition(Decimal("2.00"), "Greeting Card"),
}


class Order(ABC):
    """
    Priced, described order.

    Every node in a decoration chain answers both questions; callers never
    need to know how deep the chain is.
    """

    @abstractmethod
    def compute_total(self) -> Money:
        """Base price plus every surcharge in the chain."""

    @abstractmethod
    def describe(self) -> str:
        """Product name followed by each applied service, in application order."""

    @property
    @abstractmethod
    def base(self) -> BaseOrder:
        """The innermost base order."""

    def services(self) -> list[ServiceKind]:
        """Applied services, innermost (first applied) first."""
        return [node.kind for node in _decorations(self)]


@dataclass(frozen=True)
class BaseOrder(Order):
    """
    One product at its base price - the innermost link of every chain.

    Invariants: product name is non-empty, price is present and >= 0.
    """

    product_name: str
    base_price: Money

    def __post_init__(self) -> None:
        if not isinstance(self.product_name, str) or not self.product_name.strip():
            raise InvalidArgument("Product name cannot be null or empty")

        price = _coerce_price(self.base_price)
        if price.is_negative:
            raise InvalidArgument(
                "Base price cannot be null or negative", base_price=str(price.amount)
            )
        object.__setattr__(self, "base_price", price)

        logger.debug(
            "base_order_created",
            product_name=self.product_name,
            base_price=str(price.amount),
        )

    def compute_total(self) -> Money:
        return self.base_price

    def describe(self) -> str:
        return self.product_name

    @property
    def base(self) -> BaseOrder:
        return self


@dataclass(frozen=True)
class DecoratedOrder(Order):
    """
    An inner order plus one add-on service.

    The service is identified by kind; its surcharge and description fragment
    are fixed constants. Greeting cards also carry a message, which is stored
    for the card but never affects the price.

    Stacking the same kind repeatedly is allowed and additive.
    """

    inner: Order
    kind: ServiceKind
    message: Optional[str] = field(default=None)

    def __post_init__(self) -> None:
        if self.inner is None:
            raise InvalidArgument("Wrapped order cannot be null")
        if not isinstance(self.inner, Order):
            raise InvalidArgument(
                f"Wrapped order must be an Order, got {type(self.inner).__name__}"
            )

        try:
            kind = ServiceKind(self.kind)
        except ValueError as e:
            raise InvalidArgument(f"Unknown service kind: {self.kind!r}") from e
        object.__setattr__(self, "kind", kind)

        if kind is ServiceKind.GREETING_CARD:
            message = (self.message or "").strip()
            object.__setattr__(self, "message", message or DEFAULT_GREETING)
        elif self.message is not None:
            raise InvalidArgument(f"Only greeting cards carry a message, not {kind.value}")

        logger.info(
            "service_added",
            service=kind.value,
            surcharge=str(kind.surcharge),
            card_message=self.message,
        )

    @property
    def surcharge(self) -> Money:
        """This node's surcharge, in the base order's currency."""
        return Money(amount=self.kind.surcharge, currency=self.base.base_price.currency)

    @property
    def fragment(self) -> str:
        return self.kind.fragment

    @property
    def base(self) -> BaseOrder:
        node: Order = self
        while isinstance(node, DecoratedOrder):
            node = node.inner
        return node  # type: ignore[return-value]

    def compute_total(self) -> Money:
        base = self.base
        total = base.base_price
        for node in _decorations(self):
            total = total + Money(amount=node.kind.surcharge, currency=total.currency)
        return total

    def describe(self) -> str:
        parts = [self.base.product_name]
        parts.extend(node.kind.fragment for node in _decorations(self))
        return " + ".join(parts)


def _decorations(order: Order) -> list[DecoratedOrder]:
    """
    Walk the chain outermost -> innermost, return innermost first.

    Iterative so long chains don't hit the recursion limit.
    """
    chain: list[DecoratedOrder] = []
    node = order
    while isinstance(node, DecoratedOrder):
        chain.append(node)
        node = node.inner
    chain.reverse()
    return chain


def _coerce_price(price: Any) -> Money:
    if price is None:
        raise InvalidArgument("Base price cannot be null or negative")
    if isinstance(price, Money):
        return price
    try:
        return Money.of(price)
    except (ValueError, TypeError, ArithmeticError) as e:
        raise InvalidArgument(f"Invalid base price: {price!r}") from e


# ============================================================================
# CONSTRUCTION HELPERS
# ============================================================================

def create_base_order(product_name: str, price: Money | Decimal | int | float | str) -> BaseOrder:
    """Start an order for one product."""
    return BaseOrder(product_name=product_name, base_price=price)  # type: ignore[arg-type]


def decorate(order: Order, kind: ServiceKind | str, message: Optional[str] = None) -> DecoratedOrder:
    """Wrap an order with one add-on service."""
    return DecoratedOrder(inner=order, kind=kind, message=message)  # type: ignore[arg-type]


def with_gift_wrap(order: Order) -> DecoratedOrder:
    return decorate(order, ServiceKind.GIFT_WRAP)


def with_express_shipping(order: Order) -> DecoratedOrder:
    return decorate(order, ServiceKind.EXPRESS_SHIPPING)


def with_greeting_card(order: Order, message: Optional[str] = None) -> DecoratedOrder:
    return decorate(order, ServiceKind.GREETING_CARD, message)


def apply_services(order: Order, kinds: Iterable[ServiceKind | str]) -> Order:
    """Apply services left to right (first kind ends up innermost)."""
    for kind in kinds:
        order = decorate(order, kind)
    return order
