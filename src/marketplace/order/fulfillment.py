"""Order item fulfillment — seller and buyer transition commands.

A seller cancellation releases the item's stock in the same unit of work as
the status change. When it leaves no live item on the order, the order is
refunded the same way a buyer cancellation would refund it.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace
from marketplace.errors import Forbidden
from marketplace.inventory.ledger import InventoryLedger
from marketplace.inventory.shop import shop_owned_by
from marketplace.order.cancellation import refund_payment
from marketplace.order.order import ItemStatus, Order, PaymentStatus
from marketplace.order.queries import get_order

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class UpdateItemStatus:
    """Seller moves one of their shop's items to CONFIRMED, SHIPPED or CANCELLED."""

    seller_id = Identifier(required=True)
    order_id = Identifier(required=True)
    item_id = Identifier(required=True)
    status = String(required=True, max_length=20)


@marketplace.command(part_of="Order")
class ConfirmReceipt:
    """Buyer confirms a shipped item arrived."""

    buyer_id = Identifier(required=True)
    order_id = Identifier(required=True)
    item_id = Identifier(required=True)


def seller_shop(seller_id):
    shop = shop_owned_by(seller_id)
    if shop is None:
        raise Forbidden("Seller has no shop, activate seller first")
    return shop


@marketplace.command_handler(part_of=Order)
class FulfillmentHandler:
    @handle(UpdateItemStatus)
    def update_item_status(self, command):
        shop = seller_shop(command.seller_id)
        repo = current_domain.repository_for(Order)
        order = get_order(command.order_id)

        was_paid = order.payment_status == PaymentStatus.PAID.value
        item = order.seller_transition(command.item_id, shop.id, command.status)

        refund_due = False
        if item.status == ItemStatus.CANCELLED.value:
            InventoryLedger().release(item.product_id, item.qty, reason="seller_cancelled")
            if order.all_items_cancelled:
                order.mark_refunded()
                refund_due = was_paid

        repo.add(order)
        if refund_due:
            refund_payment(order, reason="All items cancelled by seller")

        logger.info(
            "Order item status updated",
            order_id=str(order.id),
            item_id=str(item.id),
            status=item.status,
            actor="seller",
        )
        return str(item.id)

    @handle(ConfirmReceipt)
    def confirm_receipt(self, command):
        repo = current_domain.repository_for(Order)
        order = get_order(command.order_id)

        item = order.confirm_receipt(command.item_id, command.buyer_id)
        repo.add(order)

        logger.info(
            "Order item received",
            order_id=str(order.id),
            item_id=str(item.id),
            actor="buyer",
        )
        return str(item.id)
