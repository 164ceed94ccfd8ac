"""Product aggregate — the per-product stock and sold-count ledger.

Catalogue attributes (title, price, owning shop, active flag) are kept only
to the extent checkout needs them. Stock moves exclusively through
``reserve`` and ``release``:

    reserve(qty):  requires is_active and stock >= qty
                   stock -= qty, sold_count += qty
    release(qty):  requires sold_count >= qty
                   stock += qty, sold_count -= qty

Both check and mutate in a single call on the aggregate, which is loaded and
saved inside one serialized unit of work (see ``marketplace.transaction``).
"""

from datetime import UTC, datetime

import structlog
from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, Integer, String

from marketplace.domain import marketplace
from marketplace.errors import InsufficientStock, InternalConsistencyFault, ProductUnavailable
from marketplace.inventory.events import StockReleased, StockReserved

logger = structlog.get_logger(__name__)


@marketplace.aggregate
class Product:
    shop_id = Identifier(required=True)
    title = String(required=True, max_length=255)
    price = Integer(required=True, min_value=0)  # minor currency units
    stock = Integer(default=0, min_value=0)
    sold_count = Integer(default=0, min_value=0)
    is_active = Boolean(default=True)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def stock_and_sold_count_cannot_be_negative(self):
        if (self.stock or 0) < 0:
            raise ValidationError({"stock": ["Stock cannot be negative"]})
        if (self.sold_count or 0) < 0:
            raise ValidationError({"sold_count": ["Sold count cannot be negative"]})

    @classmethod
    def create(cls, shop_id, title, price, stock=0, is_active=True):
        now = datetime.now(UTC)
        return cls(
            shop_id=shop_id,
            title=title,
            price=price,
            stock=stock,
            sold_count=0,
            is_active=is_active,
            created_at=now,
            updated_at=now,
        )

    def ensure_available(self, quantity):
        """Read-only availability check. Raises without touching any counter."""
        if not self.is_active:
            raise ProductUnavailable(self.id)
        if self.stock < quantity:
            raise InsufficientStock(self.id, requested=quantity, available=self.stock)

    def reserve(self, quantity):
        """Take ``quantity`` units of stock for a checkout."""
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})
        self.ensure_available(quantity)

        previous_stock = self.stock
        self.stock = previous_stock - quantity
        self.sold_count = (self.sold_count or 0) + quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            StockReserved(
                product_id=str(self.id),
                shop_id=str(self.shop_id),
                quantity=quantity,
                previous_stock=previous_stock,
                new_stock=self.stock,
                new_sold_count=self.sold_count,
                reserved_at=self.updated_at,
            )
        )

    def release(self, quantity, reason=None):
        """Return ``quantity`` units of a prior reservation to stock."""
        if quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be positive"]})

        sold_count = self.sold_count or 0
        if sold_count < quantity:
            logger.error(
                "Release would drive sold count negative",
                product_id=str(self.id),
                sold_count=sold_count,
                quantity=quantity,
            )
            raise InternalConsistencyFault(
                f"Cannot release {quantity} units of product {self.id}: only {sold_count} sold",
                product_id=str(self.id),
            )

        previous_stock = self.stock
        self.stock = previous_stock + quantity
        self.sold_count = sold_count - quantity
        self.updated_at = datetime.now(UTC)

        self.raise_(
            StockReleased(
                product_id=str(self.id),
                shop_id=str(self.shop_id),
                quantity=quantity,
                previous_stock=previous_stock,
                new_stock=self.stock,
                new_sold_count=self.sold_count,
                reason=reason,
                released_at=self.updated_at,
            )
        )

    def deactivate(self):
        self.is_active = False
        self.updated_at = datetime.now(UTC)

    def activate(self):
        self.is_active = True
        self.updated_at = datetime.now(UTC)
