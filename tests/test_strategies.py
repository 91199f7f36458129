"""
Unit tests for the simulated payment strategies.
"""
import random
import re
import threading
import time
from decimal import Decimal

import pytest

from order_system.domain.value_objects import Money
from order_system.exceptions import InvalidArgument, PaymentDeclined
from order_system.payments import (
    BankTransferPayment,
    CreditCardPayment,
    PaymentMethod,
    PaymentSimulation,
    PayPalPayment,
    create_strategy,
)

TRANSACTION_ID = re.compile(r"^(CC|PP|BT)-[0-9A-Z]{8}$")


class TestStrategyProfiles:
    """Static profile of each payment method."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "strategy_cls,name,ceiling,rate,prefix",
        [
            (CreditCardPayment, "Credit Card", Decimal("10000"), 90, "CC-"),
            (PayPalPayment, "PayPal", Decimal("15000"), 95, "PP-"),
            (BankTransferPayment, "Bank Transfer", Decimal("50000"), 98, "BT-"),
        ],
    )
    def test_profile(self, strategy_cls, name, ceiling, rate, prefix) -> None:
        assert strategy_cls.method_name == name
        assert strategy_cls.max_transaction_amount == ceiling
        assert strategy_cls.success_rate == rate
        assert strategy_cls.transaction_prefix == prefix

    @pytest.mark.unit
    def test_paypal_fee_is_informational(self) -> None:
        assert PayPalPayment.TRANSACTION_FEE_PERCENTAGE == Decimal("2.9")
        assert PayPalPayment.transaction_fee(Money.of(100)) == Money.of("2.90")

    @pytest.mark.unit
    def test_create_strategy(self, approving_simulation: PaymentSimulation) -> None:
        strategy = create_strategy("paypal", approving_simulation)
        assert isinstance(strategy, PayPalPayment)
        assert strategy.simulation is approving_simulation
        assert isinstance(create_strategy(PaymentMethod.BANK_TRANSFER), BankTransferPayment)

    @pytest.mark.unit
    def test_create_strategy_unknown_method(self) -> None:
        with pytest.raises(InvalidArgument, match="Unknown payment method"):
            create_strategy("cash")


class TestCanHandle:
    """Ceiling checks."""

    @pytest.mark.unit
    def test_boundaries(self) -> None:
        card = CreditCardPayment()
        assert card.can_handle(Money.of("0.01"))
        assert card.can_handle(Money.of("10000.00"))
        assert not card.can_handle(Money.of("10000.01"))
        assert not card.can_handle(Money.zero())
        assert not card.can_handle(Money.of(-5))
        assert not card.can_handle(None)

    @pytest.mark.unit
    def test_accepts_plain_numbers(self) -> None:
        assert BankTransferPayment().can_handle("49999.99")
        assert not PayPalPayment().can_handle(20000)

    @pytest.mark.unit
    def test_out_of_range_amount_is_not_handled(self) -> None:
        assert not BankTransferPayment().can_handle(Decimal("1e30"))
        assert not CreditCardPayment().can_handle("1e27")


class TestAttempt:
    """The shared attempt flow."""

    @pytest.mark.unit
    @pytest.mark.parametrize("strategy_cls", [CreditCardPayment, PayPalPayment, BankTransferPayment])
    def test_success_returns_tagged_transaction_id(
        self, strategy_cls, approving_simulation: PaymentSimulation
    ) -> None:
        transaction_id = strategy_cls(approving_simulation).attempt(Money.of("42.50"), "ORD-TEST0001")

        assert TRANSACTION_ID.match(transaction_id)
        assert transaction_id.startswith(strategy_cls.transaction_prefix)

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "strategy_cls,reason",
        [
            (CreditCardPayment, "Card declined by bank"),
            (PayPalPayment, "Insufficient funds or account issue"),
            (BankTransferPayment, "Insufficient funds or invalid account"),
        ],
    )
    def test_decline(self, strategy_cls, reason, declining_simulation: PaymentSimulation) -> None:
        with pytest.raises(PaymentDeclined) as exc_info:
            strategy_cls(declining_simulation).attempt(Money.of("10.00"), "ORD-TEST0002")

        assert exc_info.value.reason == reason
        assert exc_info.value.method == strategy_cls.method_name
        assert str(exc_info.value) == f"Payment failed via {strategy_cls.method_name}: {reason}"

    @pytest.mark.unit
    @pytest.mark.parametrize("amount", [Money.zero(), Money.of(-1), None, "abc"])
    def test_invalid_amount(self, amount, approving_simulation: PaymentSimulation) -> None:
        with pytest.raises(PaymentDeclined) as exc_info:
            CreditCardPayment(approving_simulation).attempt(amount, "ORD-TEST0003")
        assert exc_info.value.reason == "Invalid amount"

    @pytest.mark.unit
    def test_over_ceiling(self, approving_simulation: PaymentSimulation) -> None:
        with pytest.raises(PaymentDeclined) as exc_info:
            CreditCardPayment(approving_simulation).attempt(Money.of("10000.01"), "ORD-TEST0004")
        assert exc_info.value.reason == "Amount exceeds limit of 10,000.00 EUR"

    @pytest.mark.unit
    def test_preconditions_checked_before_any_waiting(self) -> None:
        """An over-limit amount fails immediately even with real latency."""
        strategy = BankTransferPayment(PaymentSimulation(latency_scale=1.0, forced_outcome=True))

        started = time.monotonic()
        with pytest.raises(PaymentDeclined):
            strategy.attempt(Money.of("50000.01"), "ORD-TEST0005")
        assert time.monotonic() - started < 0.5

    @pytest.mark.unit
    def test_success_rate_is_sampled(self) -> None:
        """Seeded draws: roughly 90 of 100 card payments go through."""
        strategy = CreditCardPayment(PaymentSimulation(rng=random.Random(7), latency_scale=0.0))

        successes = 0
        for _ in range(1000):
            try:
                strategy.attempt(Money.of(1), "ORD-TEST0006")
                successes += 1
            except PaymentDeclined:
                pass

        assert 850 <= successes <= 950


class TestInterruption:
    """Cancelling the simulation interrupts the current latency window."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "strategy_cls,reason",
        [
            (CreditCardPayment, "Processing interrupted"),
            (PayPalPayment, "Authentication interrupted"),
            (BankTransferPayment, "Verification interrupted"),
        ],
    )
    def test_cancelled_before_first_window(self, strategy_cls, reason) -> None:
        simulation = PaymentSimulation.instant(succeed=True)
        simulation.cancel()

        with pytest.raises(PaymentDeclined) as exc_info:
            strategy_cls(simulation).attempt(Money.of(10), "ORD-TEST0007")
        assert exc_info.value.reason == reason

    @pytest.mark.unit
    def test_cancel_wakes_in_flight_wait(self) -> None:
        simulation = PaymentSimulation(latency_scale=10.0, forced_outcome=True)
        strategy = CreditCardPayment(simulation)
        errors = []

        def pay() -> None:
            try:
                strategy.attempt(Money.of(10), "ORD-TEST0008")
            except PaymentDeclined as e:
                errors.append(e)

        worker = threading.Thread(target=pay)
        started = time.monotonic()
        worker.start()
        time.sleep(0.1)
        simulation.cancel()
        worker.join(timeout=5)

        assert not worker.is_alive()
        assert time.monotonic() - started < 5
        assert [e.reason for e in errors] == ["Processing interrupted"]

    @pytest.mark.unit
    def test_reset_allows_payments_again(self) -> None:
        simulation = PaymentSimulation.instant(succeed=True)
        simulation.cancel()
        assert simulation.cancelled

        simulation.reset()

        assert not simulation.cancelled
        assert CreditCardPayment(simulation).attempt(Money.of(10), "ORD-TEST0009").startswith("CC-")


class TestPaymentSimulation:
    """Latency and outcome source."""

    @pytest.mark.unit
    def test_negative_latency_scale_rejected(self) -> None:
        with pytest.raises(ValueError):
            PaymentSimulation(latency_scale=-1)

    @pytest.mark.unit
    def test_from_settings(self, test_settings) -> None:
        simulation = PaymentSimulation.from_settings(test_settings)
        assert simulation.latency_scale == 0.0
        assert simulation.forced_outcome is None

    @pytest.mark.unit
    def test_pause_without_latency_completes(self) -> None:
        assert PaymentSimulation.instant().pause(500, 1000)
