"""Read helpers for carts."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.inventory.product import Product


def find_cart(buyer_id):
    """Return the buyer's cart, or None if they never added anything."""
    repo = current_domain.repository_for(Cart)
    return repo._dao.query.filter(buyer_id=str(buyer_id)).all().first


def _product_summary(product_id):
    try:
        product = current_domain.repository_for(Product).get(str(product_id))
    except ObjectNotFoundError:
        return None
    return {
        "title": product.title,
        "price": product.price,
        "stock": product.stock,
        "is_active": product.is_active,
    }


def cart_view(buyer_id) -> dict:
    """Cart contents with per-line subtotals and a grand total, newest line first.

    Each line also carries the live product state, so a caller can see that
    the snapshot price has drifted or that the product went out of stock.
    """
    cart = find_cart(buyer_id)
    if cart is None:
        return {"cart_id": None, "items": [], "grand_total": 0}

    lines = [
        {
            "id": str(item.id),
            "product_id": str(item.product_id),
            "qty": item.qty,
            "price_snapshot": item.price_snapshot,
            "subtotal": item.subtotal,
            "product": _product_summary(item.product_id),
        }
        for _, item in sorted(
            enumerate(cart.items), key=lambda pair: (pair[1].added_at, pair[0]), reverse=True
        )
    ]
    return {
        "cart_id": str(cart.id),
        "items": lines,
        "grand_total": sum(line["subtotal"] for line in lines),
    }
