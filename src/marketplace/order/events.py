"""Domain events for the Order aggregate."""

from protean.fields import DateTime, Identifier, Integer, String, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="Order")
class OrderPlaced:
    """A shop-scoped order was created by checkout."""

    __version__ = 1

    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    code = String(required=True, max_length=64)
    total_amount = Integer(required=True)
    items = Text(required=True)  # JSON: [{item_id, product_id, qty, price_snapshot}]
    placed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderItemStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    from_status = String(required=True, max_length=20)
    to_status = String(required=True, max_length=20)
    actor = String(required=True, max_length=20)
    changed_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class OrderCancelled:
    """The buyer cancelled the order; lists only the items cancelled by this call."""

    __version__ = 1

    order_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    cancelled_item_ids = Text(required=True)  # JSON list
    reason = String(max_length=500)
    cancelled_at = DateTime(required=True)


@marketplace.event(part_of="Order")
class PaymentStatusChanged:
    __version__ = 1

    order_id = Identifier(required=True)
    from_status = String(required=True, max_length=20)
    to_status = String(required=True, max_length=20)
    changed_at = DateTime(required=True)
