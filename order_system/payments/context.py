"""
Payment Context - One Active Strategy, One Outcome Shape

The context is what checkout talks to. It:
1. Holds the active strategy (swappable at runtime)
2. Validates preconditions BEFORE the strategy does any work
3. Normalizes EVERY result into a PaymentOutcome

CRITICAL: attempt() never raises. Declines, interruptions and unexpected
strategy bugs all come back as a failed outcome, so one broken back-end
can't crash the checkout flow.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from pydantic import BaseModel, model_validator

from order_system.domain.aggregates import OrderStatus
from order_system.exceptions import InvalidArgument, PaymentDeclined
from order_system.payments.strategies import PaymentStrategy, as_money

logger = structlog.get_logger(__name__)

INVALID_AMOUNT = "Invalid amount"
AMOUNT_OVER_LIMIT = "Amount exceeds payment method limit"
PAYMENT_SUCCESSFUL = "Payment successful"


class PaymentOutcome(BaseModel):
    """
    Result of one payment attempt.

    Invariants:
    - success  <=> status == PAID  <=> transaction_id is set
    """

    success: bool
    transaction_id: Optional[str] = None
    status: OrderStatus
    message: str
    method_name: str

    class Config:
        frozen = True  # Immutable

    @model_validator(mode="after")
    def check_consistency(self) -> "PaymentOutcome":
        if self.status not in (OrderStatus.PAID, OrderStatus.FAILED):
            raise ValueError(f"Payment outcome status must be paid or failed, got {self.status}")
        if self.success != (self.status == OrderStatus.PAID):
            raise ValueError("success must match status PAID")
        if self.success != (self.transaction_id is not None):
            raise ValueError("transaction_id is present exactly when the payment succeeded")
        return self

    @classmethod
    def paid(cls, transaction_id: str, method_name: str) -> PaymentOutcome:
        return cls(
            success=True,
            transaction_id=transaction_id,
            status=OrderStatus.PAID,
            message=PAYMENT_SUCCESSFUL,
            method_name=method_name,
        )

    @classmethod
    def failed(cls, message: str, method_name: str) -> PaymentOutcome:
        return cls(
            success=False,
            transaction_id=None,
            status=OrderStatus.FAILED,
            message=message,
            method_name=method_name,
        )


def _method_name(strategy: PaymentStrategy) -> str:
    """Display name of a strategy, falling back to its class name."""
    try:
        return str(strategy.method_name)
    except Exception:
        logger.exception("payment_method_name_unavailable", strategy=type(strategy).__name__)
        return type(strategy).__name__


class PaymentContext:
    """
    Orchestrates a single payment strategy.

    Example:
        context = PaymentContext(CreditCardPayment())
        outcome = context.attempt(Money.of("42.50"), "ORD-3F7A9C21")
        if not outcome.success:
            context.set_strategy(PayPalPayment())   # let the customer retry
    """

    def __init__(self, strategy: PaymentStrategy):
        if strategy is None:
            raise InvalidArgument("Payment strategy cannot be null")
        self._strategy = strategy
        logger.debug("payment_context_initialized", method=_method_name(strategy))

    @property
    def strategy(self) -> PaymentStrategy:
        return self._strategy

    def set_strategy(self, strategy: PaymentStrategy) -> None:
        """Replace the active strategy."""
        if strategy is None:
            raise InvalidArgument("Payment strategy cannot be null")
        logger.info(
            "payment_strategy_switched",
            from_method=_method_name(self._strategy),
            to_method=_method_name(strategy),
        )
        self._strategy = strategy

    def attempt(self, amount: Any, reference: str) -> PaymentOutcome:
        """
        Run one payment attempt through the active strategy.

        Flow:
        1. Amount present and positive? else "Invalid amount"
        2. Strategy can handle it? else "Amount exceeds payment method limit"
        3. Delegate; map success / PaymentDeclined / anything else to an outcome
        """
        strategy = self._strategy
        method_name = _method_name(strategy)

        logger.info("payment_started", reference=reference, method=method_name)

        money = as_money(amount)
        if money is None or not money.is_positive:
            logger.error("payment_invalid_amount", reference=reference, amount=repr(amount))
            return PaymentOutcome.failed(INVALID_AMOUNT, method_name)

        try:
            if not strategy.can_handle(money):
                logger.warning(
                    "payment_amount_over_limit",
                    reference=reference,
                    method=method_name,
                    amount=str(money.amount),
                )
                return PaymentOutcome.failed(AMOUNT_OVER_LIMIT, method_name)

            transaction_id = strategy.attempt(money, reference)

        except PaymentDeclined as e:
            logger.error(
                "payment_failed",
                reference=reference,
                method=e.method,
                reason=e.reason,
            )
            return PaymentOutcome.failed(e.reason, method_name)

        except Exception as e:
            logger.exception("payment_unexpected_error", reference=reference, method=method_name)
            return PaymentOutcome.failed(f"Unexpected error: {e}", method_name)

        logger.info(
            "payment_succeeded",
            reference=reference,
            method=method_name,
            transaction_id=transaction_id,
        )
        return PaymentOutcome.paid(transaction_id, method_name)
