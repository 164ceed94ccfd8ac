"""FastAPI application factory for the Marketplace service."""

from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from marketplace.api.errors import register_marketplace_error_handlers
from marketplace.api.routes import (
    cart_router,
    checkout_router,
    order_router,
    purchases_router,
    seller_router,
)
from marketplace.domain import marketplace
from marketplace.utils.logging import add_context, clear_context


def create_app() -> FastAPI:
    app = FastAPI(
        title="Marketplace API",
        description="Multi-seller marketplace — cart, checkout and order fulfillment",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        """Push the marketplace domain context and bind request log context."""
        clear_context()
        add_context(
            request_id=request.headers.get("X-Request-Id") or uuid4().hex,
            method=request.method,
            path=request.url.path,
            user_id=request.headers.get("X-User-Id"),
        )
        try:
            with marketplace.domain_context():
                return await call_next(request)
        finally:
            clear_context()

    app.include_router(cart_router)
    app.include_router(checkout_router)
    app.include_router(order_router)
    app.include_router(seller_router)
    app.include_router(purchases_router)

    register_exception_handlers(app)
    register_marketplace_error_handlers(app)

    @app.get("/health")
    async def health():
        return JSONResponse(content={"status": "ok", "domain": marketplace.name})

    return app
