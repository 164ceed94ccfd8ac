"""Marketplace bounded context — carts, checkout and order fulfillment.

Converts a buyer's cart into shop-scoped orders, keeps product stock
consistent while doing so, and drives each order item through the
seller/buyer fulfillment lifecycle.
"""

import structlog
from protean.domain import Domain

marketplace = Domain(name="marketplace")

logger = structlog.get_logger(__name__)
