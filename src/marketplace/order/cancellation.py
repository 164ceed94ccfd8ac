"""Buyer order cancellation — command and handler.

Cancels every NEW or CONFIRMED item of the order, returns their stock to the
inventory ledger and marks the order REFUNDED, all in one unit of work.
Calling it again on a fully cancelled order changes nothing and still
reports REFUNDED.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.inventory.ledger import InventoryLedger
from marketplace.order.order import Order, PaymentStatus
from marketplace.order.queries import buyer_order
from marketplace.payment import get_gateway

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class CancelOrder:
    buyer_id = Identifier(required=True)
    order_id = Identifier(required=True)
    reason = String(max_length=500)


def refund_payment(order, reason=None):
    """Return the order total through the gateway.

    Called after the order has been handed to its repository, as the last step
    of the handler, since a gateway refund cannot be rolled back.
    """
    result = get_gateway().refund(order.code, order.total_amount, reason)
    logger.info("Payment refunded", order_id=str(order.id), refund_id=result.refund_id)


@marketplace.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = buyer_order(command.buyer_id, command.order_id)

        was_paid = order.payment_status == PaymentStatus.PAID.value
        cancelled = order.cancel(reason=command.reason)

        ledger = InventoryLedger()
        for item in cancelled:
            ledger.release(item.product_id, item.qty, reason="order_cancelled")

        repo.add(order)
        if was_paid:
            refund_payment(order, command.reason)

        logger.info(
            "Order cancelled",
            order_id=str(order.id),
            buyer_id=str(command.buyer_id),
            cancelled_items=len(cancelled),
        )
        return {
            "order_id": str(order.id),
            "payment_status": order.payment_status,
            "cancelled_items": len(cancelled),
        }
