"""FastAPI routes for the Marketplace — cart, checkout, orders and seller fulfillment."""

import json

from fastapi import APIRouter, Depends, Query

from marketplace.api.deps import Identity, current_buyer, current_seller, current_seller_shop_id
from marketplace.api.schemas import (
    AddToCartRequest,
    CancelOrderRequest,
    CancelOrderResponse,
    CartItemIdResponse,
    CartResponse,
    CheckoutRequest,
    CheckoutResponse,
    ClearCartResponse,
    ItemStatusValue,
    OrderItemSchema,
    OrderListResponse,
    OrderSchema,
    PaymentStatusFilter,
    PurchaseCheckResponse,
    SellerOrderItemListResponse,
    UpdateCartItemRequest,
    UpdateItemStatusRequest,
)
from marketplace.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartItem
from marketplace.cart.queries import cart_view
from marketplace.checkout.checkout import Checkout
from marketplace.order.cancellation import CancelOrder
from marketplace.order.fulfillment import ConfirmReceipt, UpdateItemStatus
from marketplace.order.purchases import has_completed_purchase
from marketplace.order.queries import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    buyer_order,
    buyer_orders,
    get_order,
    item_to_dict,
    order_to_dict,
    seller_order_items,
)
from marketplace.transaction import process

# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/cart", tags=["cart"])


@cart_router.get("", response_model=CartResponse)
async def get_cart(buyer: Identity = Depends(current_buyer)) -> CartResponse:
    return CartResponse(**cart_view(buyer.id))


@cart_router.post("/items", status_code=201, response_model=CartItemIdResponse)
async def add_cart_item(body: AddToCartRequest, buyer: Identity = Depends(current_buyer)) -> CartItemIdResponse:
    command = AddToCart(buyer_id=buyer.id, product_id=body.product_id, qty=body.qty)
    return CartItemIdResponse(item_id=process(command))


@cart_router.patch("/items/{item_id}", response_model=CartItemIdResponse)
async def update_cart_item(
    item_id: str, body: UpdateCartItemRequest, buyer: Identity = Depends(current_buyer)
) -> CartItemIdResponse:
    command = UpdateCartItem(buyer_id=buyer.id, item_id=item_id, qty=body.qty)
    return CartItemIdResponse(item_id=process(command))


@cart_router.delete("/items/{item_id}", status_code=204)
async def remove_cart_item(item_id: str, buyer: Identity = Depends(current_buyer)) -> None:
    process(RemoveFromCart(buyer_id=buyer.id, item_id=item_id))


@cart_router.delete("", response_model=ClearCartResponse)
async def clear_cart(buyer: Identity = Depends(current_buyer)) -> ClearCartResponse:
    return ClearCartResponse(removed=process(ClearCart(buyer_id=buyer.id)))


# ---------------------------------------------------------------------------
# Checkout Router
# ---------------------------------------------------------------------------
checkout_router = APIRouter(prefix="/checkout", tags=["checkout"])


@checkout_router.post("", status_code=201, response_model=CheckoutResponse)
async def checkout(body: CheckoutRequest, buyer: Identity = Depends(current_buyer)) -> CheckoutResponse:
    command = Checkout(
        buyer_id=buyer.id,
        recipient_name=body.address.name,
        phone=body.address.phone,
        city=body.address.city,
        postal_code=body.address.postal_code,
        street=body.address.address,
        shipping_method=body.shipping_method,
        selected_item_ids=json.dumps(body.selected_item_ids) if body.selected_item_ids else None,
    )
    orders = process(command)
    return CheckoutResponse(count=len(orders), orders=orders)


# ---------------------------------------------------------------------------
# Order Router (buyer)
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.get("", response_model=OrderListResponse)
async def list_orders(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    payment_status: PaymentStatusFilter | None = None,
    buyer: Identity = Depends(current_buyer),
) -> OrderListResponse:
    result = buyer_orders(
        buyer.id,
        page=page,
        limit=limit,
        payment_status=payment_status.value if payment_status else None,
    )
    return OrderListResponse(**result)


@order_router.get("/{order_id}", response_model=OrderSchema)
async def get_order_detail(order_id: str, buyer: Identity = Depends(current_buyer)) -> OrderSchema:
    return OrderSchema(**order_to_dict(buyer_order(buyer.id, order_id)))


@order_router.patch("/{order_id}/cancel", response_model=CancelOrderResponse)
async def cancel_order(
    order_id: str,
    body: CancelOrderRequest | None = None,
    buyer: Identity = Depends(current_buyer),
) -> CancelOrderResponse:
    command = CancelOrder(buyer_id=buyer.id, order_id=order_id, reason=body.reason if body else None)
    return CancelOrderResponse(**process(command))


@order_router.patch("/{order_id}/items/{item_id}/complete", response_model=OrderItemSchema)
async def confirm_receipt(order_id: str, item_id: str, buyer: Identity = Depends(current_buyer)) -> OrderItemSchema:
    process(ConfirmReceipt(buyer_id=buyer.id, order_id=order_id, item_id=item_id))
    return OrderItemSchema(**item_to_dict(get_order(order_id).find_item(item_id)))


# ---------------------------------------------------------------------------
# Seller Router
# ---------------------------------------------------------------------------
seller_router = APIRouter(prefix="/seller", tags=["seller"])


@seller_router.get("/order-items", response_model=SellerOrderItemListResponse)
async def list_shop_order_items(
    status: ItemStatusValue | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    shop_id: str = Depends(current_seller_shop_id),
) -> SellerOrderItemListResponse:
    result = seller_order_items(shop_id, status=status.value if status else None, page=page, limit=limit)
    return SellerOrderItemListResponse(**result)


@seller_router.patch("/orders/{order_id}/items/{item_id}/status", response_model=OrderItemSchema)
async def update_item_status(
    order_id: str,
    item_id: str,
    body: UpdateItemStatusRequest,
    seller: Identity = Depends(current_seller),
) -> OrderItemSchema:
    command = UpdateItemStatus(seller_id=seller.id, order_id=order_id, item_id=item_id, status=body.status.value)
    process(command)
    return OrderItemSchema(**item_to_dict(get_order(order_id).find_item(item_id)))


# ---------------------------------------------------------------------------
# Purchases Router (review eligibility)
# ---------------------------------------------------------------------------
purchases_router = APIRouter(prefix="/purchases", tags=["purchases"])


@purchases_router.get("/{product_id}", response_model=PurchaseCheckResponse)
async def check_purchase(product_id: str, buyer: Identity = Depends(current_buyer)) -> PurchaseCheckResponse:
    return PurchaseCheckResponse(product_id=product_id, has_completed_purchase=has_completed_purchase(buyer.id, product_id))
