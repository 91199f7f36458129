"""
Checkout Service - Price → Pay → Reserve Stock

The in-process surface a front end (console, future API) drives:

    service = CheckoutService(InventoryLedger())
    order = service.create_base_order("Book", "25.50")
    order = service.decorate(order, ServiceKind.GIFT_WRAP)
    aggregate = service.begin_checkout(order, product_id=4)
    outcome = service.pay(aggregate, PaymentMethod.PAYPAL)
    if outcome.success:
        service.on_payment_success(aggregate, outcome)   # paid + 1 unit reserved
    else:
        service.on_payment_failure(aggregate)            # failed, stock untouched

or in one call: service.checkout(order, product_id=4, method="paypal").

Ordering guarantee: stock is only ever reserved for an aggregate that has
already been marked PAID. A failed payment never touches the ledger.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import List, Optional

import structlog

from order_system.domain.aggregates import OrderAggregate, OrderStatus
from order_system.domain.orders import BaseOrder, DecoratedOrder, Order, ServiceKind
from order_system.domain.orders import create_base_order as _create_base_order
from order_system.domain.orders import decorate as _decorate
from order_system.domain.value_objects import Money
from order_system.exceptions import InvalidArgument
from order_system.inventory.ledger import InventoryLedger
from order_system.payments.context import PaymentContext, PaymentOutcome
from order_system.payments.simulation import PaymentSimulation
from order_system.payments.strategies import PaymentMethod, create_strategy

logger = structlog.get_logger(__name__)

UNITS_PER_ORDER = 1


@dataclass(frozen=True)
class CheckoutResult:
    """What one full checkout produced."""

    aggregate: OrderAggregate
    outcome: PaymentOutcome
    stock_reserved: bool

    @property
    def success(self) -> bool:
        return self.outcome.success


class CheckoutService:
    """
    Drives orders through payment and stock reservation.

    The ledger is injected (one per process, owned by the application
    assembly). The service keeps every aggregate it started, for history.
    """

    def __init__(
        self,
        ledger: InventoryLedger,
        simulation: Optional[PaymentSimulation] = None,
    ):
        self.ledger = ledger
        self.simulation = simulation or PaymentSimulation.from_settings()
        self._history: List[OrderAggregate] = []
        self._history_lock = threading.Lock()

    # ── Pricing ────────────────────────────────────────────────

    def create_base_order(self, name: str, price: Money | str | int) -> BaseOrder:
        return _create_base_order(name, price)

    def decorate(
        self, order: Order, kind: ServiceKind | str, message: Optional[str] = None
    ) -> DecoratedOrder:
        return _decorate(order, kind, message)

    # ── Lifecycle ──────────────────────────────────────────────

    def begin_checkout(self, order: Order, product_id: int) -> OrderAggregate:
        """Wrap a priced order in a NEW aggregate and retain it for history."""
        aggregate = OrderAggregate.begin(order, product_id)
        with self._history_lock:
            self._history.append(aggregate)
        return aggregate

    def pay(self, aggregate: OrderAggregate, method: PaymentMethod | str) -> PaymentOutcome:
        """
        Attempt payment for the aggregate's current total.

        Marks the aggregate PROCESSING first. Never raises for payment
        problems - inspect the outcome.
        """
        strategy = create_strategy(method, self.simulation)
        aggregate.mark_processing()
        context = PaymentContext(strategy)
        return context.attempt(aggregate.total, aggregate.order_id)

    def on_payment_success(self, aggregate: OrderAggregate, outcome: PaymentOutcome) -> bool:
        """
        Commit a successful payment: mark PAID, then reserve one unit.

        Returns:
            True if the unit was reserved. False means the product sold out
            (or is unknown) - the payment stands, the shortage is reported.
        """
        if not outcome.success or outcome.transaction_id is None:
            raise InvalidArgument(
                "Cannot commit a failed payment", order_id=aggregate.order_id
            )

        aggregate.mark_paid(outcome.transaction_id, outcome.method_name)

        reserved = self.ledger.reserve(aggregate.product_id, UNITS_PER_ORDER)
        if reserved:
            logger.info(
                "order_stock_reserved",
                order_id=aggregate.order_id,
                product_id=aggregate.product_id,
            )
        else:
            logger.warning(
                "order_stock_reservation_failed",
                order_id=aggregate.order_id,
                product_id=aggregate.product_id,
            )
        return reserved

    def on_payment_failure(self, aggregate: OrderAggregate) -> None:
        """Payment failed: mark FAILED, leave the ledger alone."""
        aggregate.mark_failed()
        logger.info("order_payment_failed", order_id=aggregate.order_id)

    def checkout(
        self, order: Order, product_id: int, method: PaymentMethod | str
    ) -> CheckoutResult:
        """Run the whole flow for one order."""
        return self._settle(self.begin_checkout(order, product_id), method)

    def retry(self, aggregate: OrderAggregate, method: PaymentMethod | str) -> CheckoutResult:
        """
        Pay again for a FAILED aggregate, usually with another method.

        Same order id and total; the aggregate's history keeps the earlier
        failure.
        """
        if aggregate.status != OrderStatus.FAILED:
            raise InvalidArgument(
                "Only a failed payment can be retried",
                order_id=aggregate.order_id,
                status=aggregate.status.value,
            )
        logger.info("order_payment_retry", order_id=aggregate.order_id, method=method)
        return self._settle(aggregate, method)

    def _settle(self, aggregate: OrderAggregate, method: PaymentMethod | str) -> CheckoutResult:
        outcome = self.pay(aggregate, method)

        if outcome.success:
            reserved = self.on_payment_success(aggregate, outcome)
        else:
            self.on_payment_failure(aggregate)
            reserved = False

        return CheckoutResult(aggregate=aggregate, outcome=outcome, stock_reserved=reserved)

    # ── History ────────────────────────────────────────────────

    def history(self) -> List[OrderAggregate]:
        """Every aggregate started through this service, oldest first."""
        with self._history_lock:
            return list(self._history)

    def paid_orders(self) -> List[OrderAggregate]:
        return [a for a in self.history() if a.status == OrderStatus.PAID]

    def revenue(self) -> Money:
        """
        Sum of totals of orders currently PAID.

        In the currency of the first paid order (EUR when nothing is paid).
        Paid orders in mixed currencies raise ValueError.
        """
        return _sum_totals(self.paid_orders())

    def average_order_value(self) -> Money:
        """Revenue divided by the number of paid orders, half-up to the cent."""
        paid = self.paid_orders()
        if not paid:
            return Money.zero()
        return _sum_totals(paid) / len(paid)


def _sum_totals(aggregates: List[OrderAggregate]) -> Money:
    if not aggregates:
        return Money.zero()
    total = Money.zero(aggregates[0].total.currency)
    for aggregate in aggregates:
        total = total + aggregate.total
    return total
