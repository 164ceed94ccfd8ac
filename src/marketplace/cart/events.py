"""Domain events for the Cart aggregate."""

from protean.fields import Identifier, Integer, Text

from marketplace.domain import marketplace


@marketplace.event(part_of="Cart")
class CartItemAdded:
    """A product was added to the cart, or its quantity merged into an existing line."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    product_id = Identifier(required=True)
    added_qty = Integer(required=True)
    new_qty = Integer(required=True)
    price_snapshot = Integer(required=True)


@marketplace.event(part_of="Cart")
class CartItemUpdated:
    """The quantity of a cart line was set, re-capturing the product price."""

    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)
    previous_qty = Integer(required=True)
    new_qty = Integer(required=True)
    price_snapshot = Integer(required=True)


@marketplace.event(part_of="Cart")
class CartItemRemoved:
    __version__ = 1

    cart_id = Identifier(required=True)
    item_id = Identifier(required=True)


@marketplace.event(part_of="Cart")
class CartCleared:
    __version__ = 1

    cart_id = Identifier(required=True)
    removed_count = Integer(required=True)


@marketplace.event(part_of="Cart")
class CartCheckedOut:
    """Cart lines were turned into orders and drained from the cart."""

    __version__ = 1

    cart_id = Identifier(required=True)
    buyer_id = Identifier(required=True)
    item_ids = Text(required=True)  # JSON: list of drained cart item ids
    order_ids = Text(required=True)  # JSON: list of created order ids
