"""
Exception classes for the order system.

Exception design:
1. Every exception carries a machine-readable error code
2. Construction errors surface synchronously to the immediate caller
3. Payment declines are expected business failures, converted into
   PaymentOutcome values by the payment context

Stock shortages are NOT exceptions: the ledger answers False and the caller
decides whether to retry, cancel, or tell the customer.
"""

from typing import Any, Dict


class OrderSystemError(Exception):
    """
    Base exception for all order system errors.

    Every exception includes:
    - Error code (for client handling)
    - Message (for logs and operators)
    - Metadata (extra context for structured logging)
    """

    def __init__(self, message: str, error_code: str = "order_system_error", **kwargs: Any):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.metadata = kwargs

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for log records and console output."""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "type": self.__class__.__name__,
            }
        }


class InvalidArgument(OrderSystemError, ValueError):
    """
    Malformed construction input.

    Raised for: empty product name, absent/negative price, wrapping a missing
    order, installing a missing payment strategy.

    Never retried automatically - the input itself is wrong.
    """

    def __init__(self, message: str, **kwargs: Any):
        super().__init__(message, error_code="invalid_argument", **kwargs)


class PaymentDeclined(OrderSystemError):
    """
    A payment back-end refused or could not finish the charge.

    This is a recoverable business failure (card declined, interrupted
    processing). The payment context always turns it into a failed
    PaymentOutcome; it should never reach the checkout caller.
    """

    def __init__(self, method: str, reason: str):
        super().__init__(
            f"Payment failed via {method}: {reason}",
            error_code="payment_declined",
            method=method,
            reason=reason,
        )
        self.method = method
        self.reason = reason
