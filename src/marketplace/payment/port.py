"""Payment gateway port.

Checkout charges each order through this interface and cancellation refunds
through it. The only adapter shipped is the in-process mock; real gateway
integration is out of scope.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class ChargeResult:
    success: bool
    transaction_id: str | None = None
    failure_reason: str | None = None


@dataclass(frozen=True)
class RefundResult:
    success: bool
    refund_id: str | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def charge(self, order_code: str, amount: int, idempotency_key: str) -> ChargeResult:
        """Charge ``amount`` minor units for an order."""
        ...

    @abstractmethod
    def refund(self, order_code: str, amount: int, reason: str | None) -> RefundResult:
        """Refund a previously charged order."""
        ...
