"""In-process payment gateway that settles immediately.

Succeeds by default. Tests can make it decline charges with
``configure(should_succeed=False)`` and inspect ``calls``.
"""

from uuid import uuid4

from marketplace.payment.port import ChargeResult, PaymentGateway, RefundResult


class MockGateway(PaymentGateway):
    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Card declined"
        self.calls: list[dict] = []

    def configure(self, should_succeed: bool, failure_reason: str = "Card declined") -> None:
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def charge(self, order_code: str, amount: int, idempotency_key: str) -> ChargeResult:
        self.calls.append(
            {
                "method": "charge",
                "order_code": order_code,
                "amount": amount,
                "idempotency_key": idempotency_key,
            }
        )
        if self.should_succeed:
            return ChargeResult(success=True, transaction_id=f"mock_txn_{uuid4().hex[:12]}")
        return ChargeResult(success=False, failure_reason=self.failure_reason)

    def refund(self, order_code: str, amount: int, reason: str | None) -> RefundResult:
        self.calls.append(
            {
                "method": "refund",
                "order_code": order_code,
                "amount": amount,
                "reason": reason,
            }
        )
        return RefundResult(success=True, refund_id=f"mock_ref_{uuid4().hex[:12]}")
