"""Pydantic request/response schemas for the Marketplace API.

These are external contracts, kept separate from the internal Protean
commands they are translated into.
"""

from enum import Enum

from pydantic import BaseModel, Field


class ItemStatusValue(str, Enum):
    NEW = "NEW"
    CONFIRMED = "CONFIRMED"
    SHIPPED = "SHIPPED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class PaymentStatusFilter(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    qty: int = Field(ge=1, default=1)


class UpdateCartItemRequest(BaseModel):
    qty: int = Field(ge=1)


class CartItemIdResponse(BaseModel):
    item_id: str


class ProductSummary(BaseModel):
    title: str
    price: int
    stock: int
    is_active: bool


class CartLine(BaseModel):
    id: str
    product_id: str
    qty: int
    price_snapshot: int
    subtotal: int
    product: ProductSummary | None = None


class CartResponse(BaseModel):
    cart_id: str | None = None
    items: list[CartLine]
    grand_total: int


class ClearCartResponse(BaseModel):
    removed: int


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    phone: str = Field(min_length=1, max_length=32)
    city: str = Field(min_length=1, max_length=100)
    postal_code: str = Field(min_length=1, max_length=20)
    address: str = Field(min_length=1, max_length=500)


class CheckoutRequest(BaseModel):
    address: AddressSchema
    shipping_method: str | None = Field(default=None, max_length=100)
    selected_item_ids: list[str] | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "address": {
                        "name": "Jane Doe",
                        "phone": "0812345678",
                        "city": "Springfield",
                        "postal_code": "62701",
                        "address": "123 Main St",
                    },
                    "shipping_method": "standard",
                    "selected_item_ids": None,
                }
            ]
        }
    }


class OrderItemSchema(BaseModel):
    id: str
    product_id: str
    shop_id: str
    title: str
    qty: int
    price_snapshot: int
    subtotal: int
    status: str


class AddressDetail(BaseModel):
    recipient_name: str
    phone: str
    city: str
    postal_code: str
    street: str
    shipping_method: str | None = None


class OrderSchema(BaseModel):
    id: str
    code: str
    buyer_id: str
    shop_id: str
    payment_status: str
    total_amount: int
    address_detail: AddressDetail
    created_at: str | None = None
    items: list[OrderItemSchema]


class CheckoutResponse(BaseModel):
    count: int
    orders: list[OrderSchema]


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class OrderListResponse(BaseModel):
    orders: list[OrderSchema]
    pagination: Pagination


class CancelOrderRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class CancelOrderResponse(BaseModel):
    order_id: str
    payment_status: str
    cancelled_items: int


# ---------------------------------------------------------------------------
# Seller fulfillment
# ---------------------------------------------------------------------------
class UpdateItemStatusRequest(BaseModel):
    status: ItemStatusValue


class SellerOrderItemSchema(OrderItemSchema):
    order_id: str
    order_code: str
    buyer_id: str


class SellerOrderItemListResponse(BaseModel):
    items: list[SellerOrderItemSchema]
    pagination: Pagination


# ---------------------------------------------------------------------------
# Reviews boundary
# ---------------------------------------------------------------------------
class PurchaseCheckResponse(BaseModel):
    product_id: str
    has_completed_purchase: bool
