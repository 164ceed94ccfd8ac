"""Domain events for the Product aggregate (inventory ledger movements)."""

from protean.fields import DateTime, Identifier, Integer, String

from marketplace.domain import marketplace


@marketplace.event(part_of="Product")
class StockReserved:
    """Stock was taken for a checkout: stock down, sold count up."""

    __version__ = 1

    product_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    new_sold_count = Integer(required=True)
    reserved_at = DateTime(required=True)


@marketplace.event(part_of="Product")
class StockReleased:
    """A cancelled order item returned its stock: stock up, sold count down."""

    __version__ = 1

    product_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    quantity = Integer(required=True)
    previous_stock = Integer(required=True)
    new_stock = Integer(required=True)
    new_sold_count = Integer(required=True)
    reason = String(max_length=100)
    released_at = DateTime(required=True)
