"""Checkout — turns a buyer's cart (or part of it) into one order per shop.

The handler runs as one unit of work under the domain write lock:

    1. Resolve the cart and the selected lines (all lines when none given)
    2. Re-validate every line against current stock before mutating anything
    3. Partition the lines by the shop that owns each product
    4. Place one Order per shop and reserve stock for each of its items
    5. Charge each order through the payment gateway
    6. Drain the processed lines from the cart

Any failure raises out of the handler and the unit of work discards every
order, reservation and cart change made so far. The gateway is not part of
the unit of work, so charges already taken when a later step fails are
refunded before the error propagates.
"""

import json
import secrets
from datetime import UTC, datetime

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.cart.queries import find_cart
from marketplace.domain import marketplace
from marketplace.errors import EmptyCart
from marketplace.inventory.ledger import InventoryLedger
from marketplace.order.order import Order, PaymentStatus
from marketplace.order.queries import order_to_dict
from marketplace.payment import get_gateway

logger = structlog.get_logger(__name__)


@marketplace.command(part_of="Order")
class Checkout:
    buyer_id = Identifier(required=True)
    recipient_name = String(required=True, max_length=255)
    phone = String(required=True, max_length=32)
    city = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=20)
    street = String(required=True, max_length=500)
    shipping_method = String(max_length=100)
    selected_item_ids = Text()  # JSON list of cart item ids; empty means the whole cart


def generate_order_code(index, now=None):
    """Human-readable order reference, e.g. ``ORD-20250101120000123-01A4F2``.

    Orders from one checkout share the timestamp, so the per-shop index keeps
    them apart and the random suffix separates concurrent checkouts.
    """
    now = now or datetime.now(UTC)
    stamp = now.strftime("%Y%m%d%H%M%S") + f"{now.microsecond // 1000:03d}"
    return f"ORD-{stamp}-{index:02d}{secrets.token_hex(2).upper()}"


def _partition_by_shop(lines):
    partitions = {}
    for item, product in lines:
        partitions.setdefault(str(product.shop_id), []).append((item, product))
    return partitions


def _refund_charges(gateway, orders):
    """Give back charges taken for orders whose checkout is being rolled back."""
    for order in orders:
        result = gateway.refund(order.code, order.total_amount, "checkout_aborted")
        logger.warning(
            "Charge refunded after failed checkout",
            order_code=order.code,
            amount=order.total_amount,
            refund_id=result.refund_id,
        )


@marketplace.command_handler(part_of=Order)
class CheckoutHandler:
    @handle(Checkout)
    def checkout(self, command):
        cart = find_cart(command.buyer_id)
        if cart is None or not cart.items:
            raise EmptyCart(command.buyer_id)

        selected_ids = json.loads(command.selected_item_ids) if command.selected_item_ids else None
        items = cart.select(selected_ids)
        if not items:
            raise EmptyCart(command.buyer_id)

        ledger = InventoryLedger()
        lines = [(item, ledger.check(item.product_id, item.qty)) for item in items]

        address = {
            "recipient_name": command.recipient_name,
            "phone": command.phone,
            "city": command.city,
            "postal_code": command.postal_code,
            "street": command.street,
            "shipping_method": command.shipping_method,
        }

        now = datetime.now(UTC)
        orders = []
        for index, (shop_id, shop_lines) in enumerate(_partition_by_shop(lines).items(), start=1):
            order = Order.place(
                buyer_id=command.buyer_id,
                shop_id=shop_id,
                code=generate_order_code(index, now),
                address=address,
                lines=[
                    {
                        "product_id": str(item.product_id),
                        "title": product.title,
                        "qty": item.qty,
                        "price_snapshot": item.price_snapshot,
                    }
                    for item, product in shop_lines
                ],
            )
            for item, _ in shop_lines:
                ledger.reserve(item.product_id, item.qty)
            orders.append(order)

        gateway = get_gateway()
        order_repo = current_domain.repository_for(Order)
        charged = []
        try:
            for order in orders:
                result = gateway.charge(order.code, order.total_amount, idempotency_key=str(order.id))
                if result.success:
                    charged.append(order)
                    order.record_payment(PaymentStatus.PAID)
                else:
                    logger.warning(
                        "Payment declined",
                        order_id=str(order.id),
                        reason=result.failure_reason,
                    )
                    order.record_payment(PaymentStatus.FAILED)
                order_repo.add(order)

            cart.drain(items, [order.id for order in orders])
            current_domain.repository_for(Cart).add(cart)
        except Exception:
            _refund_charges(gateway, charged)
            raise

        logger.info(
            "Checkout completed",
            buyer_id=str(command.buyer_id),
            order_count=len(orders),
            item_count=len(items),
        )
        return [order_to_dict(order) for order in orders]
