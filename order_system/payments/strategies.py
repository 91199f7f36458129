"""
Payment Strategies - Interchangeable Simulated Back-ends

Every strategy honours one contract:
- attempt(amount, reference) -> transaction id, or raise PaymentDeclined
- can_handle(amount) -> bool
- method_name

They differ only in their profile:

| Strategy      | Ceiling | Success | Latency windows (ms)         | Tag |
|---------------|---------|---------|------------------------------|-----|
| Credit Card   | 10 000  | 90%     | 500-1000                     | CC- |
| PayPal        | 15 000  | 95%     | 300-600 auth, 400-800 tx     | PP- |
| Bank Transfer | 50 000  | 98%     | 600-1200 verify, 800-1600    | BT- |

Attempt flow (identical for every strategy):
1. Validate amount (positive, within ceiling) - before any simulated work
2. Strategy-specific preparation (PayPal computes its fee)
3. Wait through each latency window (interruptible)
4. Draw success/decline
5. Generate transaction id: tag + 8 uppercase alphanumerics
"""

from __future__ import annotations

import uuid
from abc import ABC
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Optional

import structlog

from order_system.domain.value_objects import Money
from order_system.exceptions import InvalidArgument, PaymentDeclined
from order_system.payments.simulation import PaymentSimulation

logger = structlog.get_logger(__name__)


class PaymentMethod(str, Enum):
    """Payment back-ends a customer can choose at checkout."""

    CREDIT_CARD = "credit_card"
    PAYPAL = "paypal"
    BANK_TRANSFER = "bank_transfer"


@dataclass(frozen=True)
class LatencyWindow:
    """One simulated external step (verification, authentication, transfer)."""

    min_ms: int
    max_ms: int
    interrupted_reason: str


def as_money(amount: Any) -> Optional[Money]:
    """Normalize caller input; None when it isn't a usable amount."""
    if amount is None:
        return None
    if isinstance(amount, Money):
        return amount
    try:
        return Money.of(amount)
    except (ValueError, TypeError, ArithmeticError):
        return None


class PaymentStrategy(ABC):
    """
    Base class for simulated payment back-ends.

    Subclasses only declare their profile as class attributes; the attempt
    flow is shared.
    """

    method: ClassVar[PaymentMethod]
    method_name: ClassVar[str]
    max_transaction_amount: ClassVar[Decimal]
    success_rate: ClassVar[int]  # percent
    transaction_prefix: ClassVar[str]
    decline_reason: ClassVar[str]
    latency_windows: ClassVar[tuple[LatencyWindow, ...]]

    def __init__(self, simulation: Optional[PaymentSimulation] = None):
        self.simulation = simulation or PaymentSimulation()

    def can_handle(self, amount: Any) -> bool:
        """Positive and not above this method's ceiling."""
        money = as_money(amount)
        if money is None:
            return False
        return Decimal("0") < money.amount <= self.max_transaction_amount

    def attempt(self, amount: Any, reference: str) -> str:
        """
        Settle a payment.

        Returns:
            Transaction id, e.g. "CC-3F7A9C21"

        Raises:
            PaymentDeclined: invalid amount, over the ceiling, interrupted
                processing, or a simulated decline
        """
        money = as_money(amount)
        logger.info(
            "payment_attempt_started",
            method=self.method_name,
            reference=reference,
            amount=str(money.amount) if money else repr(amount),
        )

        if money is None or not money.is_positive:
            logger.error("payment_invalid_amount", method=self.method_name, amount=repr(amount))
            raise PaymentDeclined(self.method_name, "Invalid amount")

        if money.amount > self.max_transaction_amount:
            ceiling = Money(amount=self.max_transaction_amount, currency=money.currency)
            logger.warning(
                "payment_amount_over_limit",
                method=self.method_name,
                amount=str(money.amount),
                limit=str(self.max_transaction_amount),
            )
            raise PaymentDeclined(self.method_name, f"Amount exceeds limit of {ceiling.format()}")

        self._prepare(money, reference)

        for window in self.latency_windows:
            if not self.simulation.pause(window.min_ms, window.max_ms):
                logger.warning(
                    "payment_interrupted",
                    method=self.method_name,
                    reference=reference,
                    reason=window.interrupted_reason,
                )
                raise PaymentDeclined(self.method_name, window.interrupted_reason)

        if not self.simulation.succeeds(self.success_rate):
            logger.error("payment_declined", method=self.method_name, reference=reference)
            raise PaymentDeclined(self.method_name, self.decline_reason)

        transaction_id = f"{self.transaction_prefix}{uuid.uuid4().hex[:8].upper()}"
        logger.info(
            "payment_attempt_succeeded",
            method=self.method_name,
            reference=reference,
            transaction_id=transaction_id,
        )
        return transaction_id

    def _prepare(self, amount: Money, reference: str) -> None:
        """Hook for strategy-specific work before the latency windows."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(limit={self.max_transaction_amount}, success_rate={self.success_rate}%)"


class CreditCardPayment(PaymentStrategy):
    """Fast card payment for everyday amounts."""

    method = PaymentMethod.CREDIT_CARD
    method_name = "Credit Card"
    max_transaction_amount = Decimal("10000.00")
    success_rate = 90
    transaction_prefix = "CC-"
    decline_reason = "Card declined by bank"
    latency_windows = (LatencyWindow(500, 1000, "Processing interrupted"),)


class PayPalPayment(PaymentStrategy):
    """
    PayPal wallet payment: authentication, then the transaction.

    PayPal charges a 2.9% fee. It is computed for information only - the
    settled amount is never changed by it.
    """

    method = PaymentMethod.PAYPAL
    method_name = "PayPal"
    max_transaction_amount = Decimal("15000.00")
    success_rate = 95
    transaction_prefix = "PP-"
    decline_reason = "Insufficient funds or account issue"
    latency_windows = (
        LatencyWindow(300, 600, "Authentication interrupted"),
        LatencyWindow(400, 800, "Transaction interrupted"),
    )

    TRANSACTION_FEE_PERCENTAGE: ClassVar[Decimal] = Decimal("2.9")

    @classmethod
    def transaction_fee(cls, amount: Money) -> Money:
        """
        Informational fee figure.

        Example: transaction_fee(Money.of(100)) = 2.90
        """
        return amount.apply_percentage(cls.TRANSACTION_FEE_PERCENTAGE)

    def _prepare(self, amount: Money, reference: str) -> None:
        fee = self.transaction_fee(amount)
        logger.debug(
            "paypal_fee_computed",
            reference=reference,
            fee=str(fee.amount),
            fee_percentage=str(self.TRANSACTION_FEE_PERCENTAGE),
        )


class BankTransferPayment(PaymentStrategy):
    """Bank transfer for large amounts: account verification, then the transfer."""

    method = PaymentMethod.BANK_TRANSFER
    method_name = "Bank Transfer"
    max_transaction_amount = Decimal("50000.00")
    success_rate = 98
    transaction_prefix = "BT-"
    decline_reason = "Insufficient funds or invalid account"
    latency_windows = (
        LatencyWindow(600, 1200, "Verification interrupted"),
        LatencyWindow(800, 1600, "Transfer interrupted"),
    )


STRATEGIES: dict[PaymentMethod, type[PaymentStrategy]] = {
    PaymentMethod.CREDIT_CARD: CreditCardPayment,
    PaymentMethod.PAYPAL: PayPalPayment,
    PaymentMethod.BANK_TRANSFER: BankTransferPayment,
}


def create_strategy(
    method: PaymentMethod | str, simulation: Optional[PaymentSimulation] = None
) -> PaymentStrategy:
    """Instantiate the strategy for a payment method."""
    try:
        method = PaymentMethod(method)
    except ValueError as e:
        raise InvalidArgument(f"Unknown payment method: {method!r}") from e
    return STRATEGIES[method](simulation)
