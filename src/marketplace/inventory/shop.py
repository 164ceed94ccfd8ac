"""Shop aggregate — the seller-owned storefront that order items are fulfilled by.

Shop profile management lives outside this service; only what the order
pipeline needs is kept here: who owns the shop.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Identifier, String
from protean.utils.globals import current_domain

from marketplace.domain import marketplace


@marketplace.aggregate
class Shop:
    owner_id = Identifier(required=True, unique=True)
    name = String(required=True, max_length=150)
    created_at = DateTime()

    @classmethod
    def create(cls, owner_id, name):
        return cls(owner_id=owner_id, name=name, created_at=datetime.now(UTC))


def shop_owned_by(owner_id):
    """Return the shop owned by a seller, or None if they have not activated one."""
    results = current_domain.repository_for(Shop)._dao.query.filter(owner_id=str(owner_id)).all()
    return results.first
