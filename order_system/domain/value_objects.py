"""
Value Objects - Money

Prices, surcharges, payment amounts and ceilings are all Money: a Decimal
amount quantized to cents plus a currency, compared by value.

    Money.of("25.50") + Money.of("5.00") == Money.of("30.50")

Amounts in different currencies never mix; there is no conversion step.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any

from pydantic import BaseModel, field_validator

CENT = Decimal("0.01")


class Currency(str, Enum):
    """ISO 4217 currency codes."""
    EUR = "EUR"
    USD = "USD"
    GBP = "GBP"


class Money(BaseModel):
    """
    Money value object with currency.

    Amounts are always quantized to cents with ROUND_HALF_UP, including
    the results of division and percentage application.

    Floats are converted through their string form so Money(amount=25.5)
    means exactly 25.50, not 25.4999999999999982236431605997495353221893310546875.
    """

    amount: Decimal
    currency: Currency = Currency.EUR

    class Config:
        frozen = True  # Immutable

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Any:
        """Route floats through str() so binary artifacts never reach Decimal."""
        if isinstance(v, bool):
            raise ValueError("Money amount cannot be a boolean")
        if isinstance(v, float):
            return Decimal(str(v))
        return v

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        """Ensure proper decimal precision for currency."""
        if not v.is_finite():
            raise ValueError(f"Money amount must be finite, got {v}")
        try:
            return v.quantize(CENT, rounding=ROUND_HALF_UP)
        except InvalidOperation as e:
            raise ValueError(f"Money amount out of range: {v}") from e

    @classmethod
    def of(cls, value: Decimal | int | float | str, currency: Currency = Currency.EUR) -> Money:
        """
        Build Money from a plain number or numeric string.

        Example: Money.of("25.50") == Money(amount=Decimal("25.50"), currency=EUR)
        """
        if isinstance(value, str):
            try:
                value = Decimal(value.strip())
            except InvalidOperation as e:
                raise ValueError(f"Not a monetary amount: {value!r}") from e
        return cls(amount=value, currency=currency)

    @classmethod
    def zero(cls, currency: Currency = Currency.EUR) -> Money:
        return cls(amount=Decimal("0"), currency=currency)

    def _require_same_currency(self, other: Money, verb: str) -> None:
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot {verb} {self.currency.value} and {other.currency.value} - "
                f"currency conversion is not supported"
            )

    def __add__(self, other: Money) -> Money:
        """
        Add money (only same currency).

        CRITICAL: Can't add EUR + USD - there is no conversion step.
        """
        self._require_same_currency(other, "add")
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: Money) -> Money:
        """Subtract money (only same currency)."""
        self._require_same_currency(other, "subtract")
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def __mul__(self, multiplier: Decimal | int) -> Money:
        """Multiply money by scalar (e.g., quantity)."""
        return Money(
            amount=self.amount * Decimal(str(multiplier)), currency=self.currency
        )

    def __truediv__(self, divisor: Decimal | int) -> Money:
        """
        Divide money by scalar.

        Rounding: ROUND_HALF_UP to the cent. Money.of(10) / 3 == 3.33
        """
        divisor = Decimal(str(divisor))
        if divisor == 0:
            raise ZeroDivisionError("Cannot divide money by zero")
        return Money(amount=self.amount / divisor, currency=self.currency)

    def apply_percentage(self, percentage: Decimal) -> Money:
        """
        Apply percentage (e.g., fee, markup).

        Example: Money(100, EUR).apply_percentage(Decimal("2.9")) = Money(2.90, EUR)
        """
        return Money(
            amount=self.amount * (percentage / Decimal("100")), currency=self.currency
        )

    @property
    def is_positive(self) -> bool:
        return self.amount > 0

    @property
    def is_negative(self) -> bool:
        return self.amount < 0

    def __eq__(self, other: object) -> bool:
        """Value equality."""
        if not isinstance(other, Money):
            return False
        return self.amount == other.amount and self.currency == other.currency

    def __hash__(self) -> int:
        return hash((self.amount, self.currency))

    def __lt__(self, other: Money) -> bool:
        """Compare money (same currency only)."""
        self._require_same_currency(other, "compare")
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        self._require_same_currency(other, "compare")
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        self._require_same_currency(other, "compare")
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        self._require_same_currency(other, "compare")
        return self.amount >= other.amount

    def format(self) -> str:
        """Human-readable amount, e.g. '1,042.50 EUR'."""
        return f"{self.amount:,.2f} {self.currency.value}"

    def __str__(self) -> str:
        return self.format()

    def __repr__(self) -> str:
        return f"Money({self.amount}, {self.currency.value})"
