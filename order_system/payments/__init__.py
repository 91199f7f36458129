"""Payment settlement: simulated back-ends behind one context."""
from .context import PaymentContext, PaymentOutcome
from .simulation import PaymentSimulation
from .strategies import (
    BankTransferPayment,
    CreditCardPayment,
    PayPalPayment,
    PaymentMethod,
    PaymentStrategy,
    create_strategy,
)

__all__ = [
    "BankTransferPayment",
    "CreditCardPayment",
    "PayPalPayment",
    "PaymentContext",
    "PaymentMethod",
    "PaymentOutcome",
    "PaymentSimulation",
    "PaymentStrategy",
    "create_strategy",
]
