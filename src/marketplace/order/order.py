"""Order aggregate — one buyer, one shop, one checkout.

Checkout creates one Order per shop represented in the processed cart lines.
The order itself is immutable apart from ``payment_status``; each OrderItem
moves through its own fulfillment lifecycle:

    NEW → CONFIRMED → SHIPPED → COMPLETED
    NEW / CONFIRMED → CANCELLED

Sellers confirm, ship and cancel items of their own shop. Buyers only confirm
receipt (SHIPPED → COMPLETED) or cancel the whole order. COMPLETED and
CANCELLED are terminal. Stock side effects of a cancellation are applied by
the command handlers in the same unit of work as the status change.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String, ValueObject

from marketplace.domain import marketplace
from marketplace.errors import Forbidden, InvalidTransition, NotFound, OrderNotCancellable
from marketplace.order.events import (
    OrderCancelled,
    OrderItemStatusChanged,
    OrderPlaced,
    PaymentStatusChanged,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ItemStatus(Enum):
    NEW = "NEW"
    CONFIRMED = "CONFIRMED"
    SHIPPED = "SHIPPED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentStatus(Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class Actor(Enum):
    BUYER = "BUYER"
    SELLER = "SELLER"


# Transition maps, one per authority
SELLER_TRANSITIONS = {
    ItemStatus.NEW: {ItemStatus.CONFIRMED, ItemStatus.CANCELLED},
    ItemStatus.CONFIRMED: {ItemStatus.SHIPPED, ItemStatus.CANCELLED},
    ItemStatus.SHIPPED: set(),
    ItemStatus.COMPLETED: set(),  # Terminal
    ItemStatus.CANCELLED: set(),  # Terminal
}

BUYER_TRANSITIONS = {
    ItemStatus.NEW: set(),
    ItemStatus.CONFIRMED: set(),
    ItemStatus.SHIPPED: {ItemStatus.COMPLETED},
    ItemStatus.COMPLETED: set(),  # Terminal
    ItemStatus.CANCELLED: set(),  # Terminal
}

# Item states a buyer cancellation may still act on
CANCELLABLE_STATUSES = {ItemStatus.NEW, ItemStatus.CONFIRMED}

# Item states that block a buyer cancellation of the whole order
_SHIPPED_STATUSES = {ItemStatus.SHIPPED, ItemStatus.COMPLETED}


def _parse_status(value):
    if isinstance(value, ItemStatus):
        return value
    try:
        return ItemStatus(str(value).upper())
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@marketplace.value_object(part_of="Order")
class AddressSnapshot:
    """Delivery details captured at checkout.

    Never re-read from the buyer's live profile; later address changes do not
    reach orders that were already placed.
    """

    recipient_name = String(required=True, max_length=255)
    phone = String(required=True, max_length=32)
    city = String(required=True, max_length=100)
    postal_code = String(required=True, max_length=20)
    street = String(required=True, max_length=500)
    shipping_method = String(max_length=100)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@marketplace.entity(part_of="Order")
class OrderItem:
    """One product line of an order.

    Shop, title and unit price are copied from the product at checkout, so
    later catalogue edits leave historical orders untouched.
    """

    product_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    qty = Integer(required=True, min_value=1)
    price_snapshot = Integer(required=True, min_value=0)
    status = String(choices=ItemStatus, default=ItemStatus.NEW.value)
    updated_at = DateTime()

    @property
    def subtotal(self):
        return self.qty * self.price_snapshot


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@marketplace.aggregate
class Order:
    buyer_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    code = String(required=True, max_length=64, unique=True)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    total_amount = Integer(required=True, min_value=0)
    address = ValueObject(AddressSnapshot, required=True)
    items = HasMany(OrderItem)
    created_at = DateTime()

    @invariant.post
    def items_belong_to_the_order_shop(self):
        for item in self.items or []:
            if str(item.shop_id) != str(self.shop_id):
                raise ValidationError({"items": ["Every item must belong to the order's shop"]})

    @invariant.post
    def total_matches_items(self):
        if self.items and self.total_amount != sum(item.subtotal for item in self.items):
            raise ValidationError({"total_amount": ["Total must equal the sum of item subtotals"]})

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def place(cls, buyer_id, shop_id, code, address, lines):
        """Create an order for one shop's partition of a checkout.

        Args:
            address: Dict with recipient_name, phone, city, postal_code,
                     street and optional shipping_method.
            lines: List of dicts with product_id, title, qty, price_snapshot.
        """
        now = datetime.now(UTC)
        items = [
            OrderItem(
                product_id=line["product_id"],
                shop_id=shop_id,
                title=line["title"],
                qty=line["qty"],
                price_snapshot=line["price_snapshot"],
                status=ItemStatus.NEW.value,
                updated_at=now,
            )
            for line in lines
        ]
        order = cls(
            buyer_id=buyer_id,
            shop_id=shop_id,
            code=code,
            payment_status=PaymentStatus.PENDING.value,
            total_amount=sum(item.subtotal for item in items),
            address=AddressSnapshot(**address),
            items=items,
            created_at=now,
        )

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                buyer_id=str(buyer_id),
                shop_id=str(shop_id),
                code=code,
                total_amount=order.total_amount,
                items=json.dumps(
                    [
                        {
                            "item_id": str(item.id),
                            "product_id": str(item.product_id),
                            "qty": item.qty,
                            "price_snapshot": item.price_snapshot,
                        }
                        for item in order.items
                    ]
                ),
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------
    def find_item(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise NotFound("Order item", item_id)
        return item

    @property
    def all_items_cancelled(self):
        return all(ItemStatus(item.status) == ItemStatus.CANCELLED for item in self.items)

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def record_payment(self, status):
        status = PaymentStatus(status.value if isinstance(status, PaymentStatus) else status)
        previous = self.payment_status
        if previous == status.value:
            return

        self.payment_status = status.value
        self.raise_(
            PaymentStatusChanged(
                order_id=str(self.id),
                from_status=previous,
                to_status=status.value,
                changed_at=datetime.now(UTC),
            )
        )

    def mark_refunded(self):
        self.record_payment(PaymentStatus.REFUNDED)

    # -------------------------------------------------------------------
    # Item transitions
    # -------------------------------------------------------------------
    def _move_item(self, item, target, table, actor):
        current = ItemStatus(item.status)
        if target not in table.get(current, set()):
            raise InvalidTransition(current.value, target.value, actor=actor.value.lower())

        now = datetime.now(UTC)
        item.status = target.value
        item.updated_at = now

        self.raise_(
            OrderItemStatusChanged(
                order_id=str(self.id),
                item_id=str(item.id),
                product_id=str(item.product_id),
                shop_id=str(item.shop_id),
                from_status=current.value,
                to_status=target.value,
                actor=actor.value,
                changed_at=now,
            )
        )
        return item

    def seller_transition(self, item_id, seller_shop_id, target_status):
        """Apply a seller-driven move to one item of the seller's own shop."""
        item = self.find_item(item_id)
        if str(item.shop_id) != str(seller_shop_id):
            raise Forbidden("Order item belongs to another shop")

        target = _parse_status(target_status)
        if target is None:
            raise InvalidTransition(ItemStatus(item.status).value, str(target_status), actor="seller")
        return self._move_item(item, target, SELLER_TRANSITIONS, Actor.SELLER)

    def confirm_receipt(self, item_id, buyer_id):
        """Buyer confirms a shipped item arrived."""
        if str(self.buyer_id) != str(buyer_id):
            raise Forbidden("Only the buyer of this order can confirm receipt")
        item = self.find_item(item_id)
        return self._move_item(item, ItemStatus.COMPLETED, BUYER_TRANSITIONS, Actor.BUYER)

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel(self, reason=None):
        """Cancel every still-cancellable item and mark the order refunded.

        Rejects the whole order if any item has shipped or completed. Items
        already cancelled are left alone. Returns the items cancelled by this
        call; their stock is released by the caller.
        """
        blocking = [item for item in self.items if ItemStatus(item.status) in _SHIPPED_STATUSES]
        if blocking:
            raise OrderNotCancellable(self.id, [item.id for item in blocking])

        now = datetime.now(UTC)
        cancelled = []
        for item in self.items:
            if ItemStatus(item.status) in CANCELLABLE_STATUSES:
                item.status = ItemStatus.CANCELLED.value
                item.updated_at = now
                cancelled.append(item)

        if cancelled:
            self.raise_(
                OrderCancelled(
                    order_id=str(self.id),
                    buyer_id=str(self.buyer_id),
                    cancelled_item_ids=json.dumps([str(item.id) for item in cancelled]),
                    reason=reason,
                    cancelled_at=now,
                )
            )

        self.mark_refunded()
        return cancelled
