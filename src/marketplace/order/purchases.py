"""Review eligibility boundary.

The review component may only accept a review from a buyer who has received
the product, i.e. owns at least one COMPLETED order item for it.
"""

from protean.utils.globals import current_domain

from marketplace.order.order import ItemStatus, Order
from marketplace.order.queries import fetch_all


def has_completed_purchase(buyer_id, product_id) -> bool:
    repo = current_domain.repository_for(Order)
    orders = fetch_all(repo._dao.query.filter(buyer_id=str(buyer_id)))
    return any(
        str(item.product_id) == str(product_id) and item.status == ItemStatus.COMPLETED.value
        for order in orders
        for item in order.items
    )
