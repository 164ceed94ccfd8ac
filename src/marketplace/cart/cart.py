"""Cart aggregate — one persistent cart per buyer.

A cart holds at most one line per product. Each line remembers the unit price
the buyer saw when it was last added or updated (``price_snapshot``); checkout
charges that price, never the live product price. Lines leave the cart only
when removed, cleared, or drained by a successful checkout.
"""

import json
from datetime import UTC, datetime

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer

from marketplace.cart.events import (
    CartCheckedOut,
    CartCleared,
    CartItemAdded,
    CartItemRemoved,
    CartItemUpdated,
)
from marketplace.domain import marketplace
from marketplace.errors import InvalidSelection, NotFound


@marketplace.entity(part_of="Cart")
class CartItem:
    product_id = Identifier(required=True)
    qty = Integer(required=True, min_value=1)
    price_snapshot = Integer(required=True, min_value=0)
    added_at = DateTime()

    @property
    def subtotal(self):
        return self.qty * self.price_snapshot


@marketplace.aggregate
class Cart:
    buyer_id = Identifier(required=True, unique=True)
    items = HasMany(CartItem)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def one_line_per_product(self):
        product_ids = [str(item.product_id) for item in self.items or []]
        if len(product_ids) != len(set(product_ids)):
            raise ValidationError({"items": ["A product can appear only once in a cart"]})

    @classmethod
    def create(cls, buyer_id):
        now = datetime.now(UTC)
        return cls(buyer_id=buyer_id, created_at=now, updated_at=now)

    def item_for_product(self, product_id):
        return next((i for i in self.items if str(i.product_id) == str(product_id)), None)

    def find_item(self, item_id):
        item = next((i for i in self.items if str(i.id) == str(item_id)), None)
        if item is None:
            raise NotFound("Cart item", item_id)
        return item

    def quantity_after_adding(self, product_id, qty):
        """Total quantity the cart would hold for ``product_id`` after adding ``qty``."""
        existing = self.item_for_product(product_id)
        return qty + (existing.qty if existing else 0)

    def add_item(self, product_id, qty, price):
        """Add ``qty`` units of a product, merging into an existing line.

        Merging also refreshes the line's price snapshot to ``price``.
        """
        now = datetime.now(UTC)
        existing = self.item_for_product(product_id)

        if existing:
            existing.qty += qty
            existing.price_snapshot = price
            item = existing
        else:
            item = CartItem(product_id=product_id, qty=qty, price_snapshot=price, added_at=now)
            self.add_items(item)

        self.updated_at = now
        self.raise_(
            CartItemAdded(
                cart_id=str(self.id),
                item_id=str(item.id),
                product_id=str(product_id),
                added_qty=qty,
                new_qty=item.qty,
                price_snapshot=price,
            )
        )
        return item

    def update_item(self, item_id, qty, price):
        """Set the quantity of a line and re-capture the product price."""
        item = self.find_item(item_id)
        previous_qty = item.qty
        item.qty = qty
        item.price_snapshot = price
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemUpdated(
                cart_id=str(self.id),
                item_id=str(item.id),
                previous_qty=previous_qty,
                new_qty=qty,
                price_snapshot=price,
            )
        )
        return item

    def remove_item(self, item_id):
        item = self.find_item(item_id)
        self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartItemRemoved(cart_id=str(self.id), item_id=str(item_id)))

    def clear(self):
        removed = list(self.items)
        for item in removed:
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(CartCleared(cart_id=str(self.id), removed_count=len(removed)))
        return len(removed)

    def select(self, item_ids=None):
        """Return the lines a checkout will process.

        With no ``item_ids`` every line is selected. Otherwise every id must
        belong to this cart, or the whole selection is rejected.
        """
        if not item_ids:
            return list(self.items)

        by_id = {str(item.id): item for item in self.items}
        wanted = list(dict.fromkeys(str(item_id) for item_id in item_ids))
        missing = [item_id for item_id in wanted if item_id not in by_id]
        if missing:
            raise InvalidSelection(missing)
        return [by_id[item_id] for item_id in wanted]

    def drain(self, items, order_ids):
        """Remove checked-out lines; untouched lines stay in the cart."""
        for item in items:
            self.remove_items(item)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartCheckedOut(
                cart_id=str(self.id),
                buyer_id=str(self.buyer_id),
                item_ids=json.dumps([str(item.id) for item in items]),
                order_ids=json.dumps([str(order_id) for order_id in order_ids]),
            )
        )
