"""Read helpers for orders: buyer history, order detail and the seller queue.

Results are assembled from the Order repository and sorted in Python,
newest first, then paginated.
"""

import math

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.errors import NotFound
from marketplace.order.order import ItemStatus, Order, PaymentStatus

MAX_PAGE_SIZE = 50
DEFAULT_PAGE_SIZE = 10


def get_order(order_id):
    try:
        return current_domain.repository_for(Order).get(str(order_id))
    except ObjectNotFoundError:
        raise NotFound("Order", order_id)


def buyer_order(buyer_id, order_id):
    """Load an order owned by ``buyer_id``; someone else's order does not exist for them."""
    order = get_order(order_id)
    if str(order.buyer_id) != str(buyer_id):
        raise NotFound("Order", order_id)
    return order


def item_to_dict(item) -> dict:
    return {
        "id": str(item.id),
        "product_id": str(item.product_id),
        "shop_id": str(item.shop_id),
        "title": item.title,
        "qty": item.qty,
        "price_snapshot": item.price_snapshot,
        "subtotal": item.subtotal,
        "status": item.status,
    }


def order_to_dict(order) -> dict:
    address = order.address
    return {
        "id": str(order.id),
        "code": order.code,
        "buyer_id": str(order.buyer_id),
        "shop_id": str(order.shop_id),
        "payment_status": order.payment_status,
        "total_amount": order.total_amount,
        "address_detail": {
            "recipient_name": address.recipient_name,
            "phone": address.phone,
            "city": address.city,
            "postal_code": address.postal_code,
            "street": address.street,
            "shipping_method": address.shipping_method,
        },
        "created_at": order.created_at.isoformat() if order.created_at else None,
        "items": [item_to_dict(item) for item in order.items],
    }


def _paginate(rows, page, limit):
    page = max(int(page or 1), 1)
    limit = min(max(int(limit or DEFAULT_PAGE_SIZE), 1), MAX_PAGE_SIZE)
    total = len(rows)
    start = (page - 1) * limit
    return rows[start : start + limit], {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit) if total else 0,
    }


SCAN_BATCH = 100


def fetch_all(query):
    """Drain a queryset batch by batch; a single `all()` is capped at one page."""
    rows, offset = [], 0
    while True:
        batch = query.offset(offset).limit(SCAN_BATCH).all().items
        rows.extend(batch)
        if len(batch) < SCAN_BATCH:
            return rows
        offset += SCAN_BATCH


def _newest_first(orders):
    return sorted(orders, key=lambda o: o.created_at, reverse=True)


def buyer_orders(buyer_id, page=1, limit=DEFAULT_PAGE_SIZE, payment_status=None) -> dict:
    repo = current_domain.repository_for(Order)
    filters = {"buyer_id": str(buyer_id)}
    if payment_status:
        filters["payment_status"] = PaymentStatus(payment_status).value

    orders = _newest_first(fetch_all(repo._dao.query.filter(**filters)))
    rows, pagination = _paginate(orders, page, limit)
    return {"orders": [order_to_dict(order) for order in rows], "pagination": pagination}


def seller_order_items(shop_id, status=None, page=1, limit=DEFAULT_PAGE_SIZE) -> dict:
    """Order items of one shop, each annotated with its order id and code."""
    repo = current_domain.repository_for(Order)
    wanted = ItemStatus(status).value if status else None

    rows = []
    for order in _newest_first(fetch_all(repo._dao.query.filter(shop_id=str(shop_id)))):
        for item in order.items:
            if wanted and item.status != wanted:
                continue
            rows.append(
                {
                    **item_to_dict(item),
                    "order_id": str(order.id),
                    "order_code": order.code,
                    "buyer_id": str(order.buyer_id),
                }
            )

    page_rows, pagination = _paginate(rows, page, limit)
    return {"items": page_rows, "pagination": pagination}
