"""Inventory ledger — repository-backed stock operations used by the order pipeline.

The ledger is always used from inside a command handler, so every call runs in
the handler's UnitOfWork: a reservation made here is committed together with
the orders that caused it, or not at all.
"""

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from marketplace.errors import InternalConsistencyFault, ProductUnavailable
from marketplace.inventory.product import Product

logger = structlog.get_logger(__name__)


class InventoryLedger:
    def __init__(self):
        self.repo = current_domain.repository_for(Product)

    def product(self, product_id):
        """Load a product; a product that no longer exists is unavailable."""
        try:
            return self.repo.get(str(product_id))
        except ObjectNotFoundError:
            raise ProductUnavailable(product_id)

    def check(self, product_id, quantity):
        """Validate that ``quantity`` could be reserved right now. Mutates nothing."""
        product = self.product(product_id)
        product.ensure_available(quantity)
        return product

    def reserve(self, product_id, quantity):
        product = self.product(product_id)
        product.reserve(quantity)
        self.repo.add(product)
        logger.info(
            "Stock reserved",
            product_id=str(product_id),
            quantity=quantity,
            stock=product.stock,
        )
        return product

    def release(self, product_id, quantity, reason=None):
        try:
            product = self.repo.get(str(product_id))
        except ObjectNotFoundError:
            logger.error("Release for unknown product", product_id=str(product_id), quantity=quantity)
            raise InternalConsistencyFault(
                f"Cannot release stock of missing product {product_id}",
                product_id=str(product_id),
            )
        product.release(quantity, reason=reason)
        self.repo.add(product)
        logger.info(
            "Stock released",
            product_id=str(product_id),
            quantity=quantity,
            stock=product.stock,
            reason=reason,
        )
        return product
