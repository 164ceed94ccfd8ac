"""Marketplace API package."""

from marketplace.api.routes import cart_router, checkout_router, order_router, purchases_router, seller_router

__all__ = ["cart_router", "checkout_router", "order_router", "seller_router", "purchases_router"]
