"""Request identity.

Authentication happens upstream; the gateway forwards the caller's id and
role in ``X-User-Id`` and ``X-User-Role``.
"""

from dataclasses import dataclass
from enum import Enum

from fastapi import Depends, Header, HTTPException

from marketplace.errors import Forbidden
from marketplace.order.fulfillment import seller_shop


class Role(str, Enum):
    BUYER = "BUYER"
    SELLER = "SELLER"


@dataclass(frozen=True)
class Identity:
    id: str
    role: Role


async def current_identity(
    x_user_id: str | None = Header(default=None),
    x_user_role: str = Header(default=Role.BUYER.value),
) -> Identity:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    try:
        role = Role(x_user_role.upper())
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown role: {x_user_role}")
    return Identity(id=x_user_id, role=role)


async def current_buyer(identity: Identity = Depends(current_identity)) -> Identity:
    if identity.role != Role.BUYER:
        raise Forbidden("Buyer role required")
    return identity


async def current_seller(identity: Identity = Depends(current_identity)) -> Identity:
    if identity.role != Role.SELLER:
        raise Forbidden("Seller role required")
    return identity


async def current_seller_shop_id(identity: Identity = Depends(current_seller)) -> str:
    return str(seller_shop(identity.id).id)
