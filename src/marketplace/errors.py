"""Domain exceptions for the marketplace.

Raised by aggregates and command handlers when a business rule is violated.
Each error carries the HTTP status it maps to and enough context for the
caller to act on it (offending product, attempted transition, ...). The API
layer translates them into JSON responses in ``marketplace.api.errors``.
"""


class MarketplaceError(Exception):
    """Base class for every rejected marketplace operation."""

    status_code = 400
    code = "marketplace_error"

    def __init__(self, message, **context):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_dict(self):
        return {"error": self.code, "message": self.message, **self.context}


class EmptyCart(MarketplaceError):
    code = "empty_cart"

    def __init__(self, buyer_id):
        super().__init__("Cart is empty", buyer_id=str(buyer_id))


class InvalidSelection(MarketplaceError):
    code = "invalid_selection"

    def __init__(self, missing_item_ids):
        missing = sorted(str(item_id) for item_id in missing_item_ids)
        super().__init__(
            f"Cart items not found: {', '.join(missing)}",
            missing_item_ids=missing,
        )


class ProductUnavailable(MarketplaceError):
    code = "product_unavailable"

    def __init__(self, product_id):
        super().__init__(f"Product {product_id} not available", product_id=str(product_id))


class InsufficientStock(MarketplaceError):
    status_code = 409
    code = "insufficient_stock"

    def __init__(self, product_id, requested, available):
        super().__init__(
            f"Insufficient stock for product {product_id}: {available} available, {requested} requested",
            product_id=str(product_id),
            requested=requested,
            available=available,
        )


class InvalidTransition(MarketplaceError):
    status_code = 409
    code = "invalid_transition"

    def __init__(self, from_status, to_status, actor=None):
        prefix = f"Invalid transition for {actor}" if actor else "Invalid transition"
        super().__init__(
            f"{prefix}: {from_status} -> {to_status}",
            from_status=from_status,
            to_status=to_status,
        )


class Forbidden(MarketplaceError):
    status_code = 403
    code = "forbidden"

    def __init__(self, message="Forbidden"):
        super().__init__(message)


class NotFound(MarketplaceError):
    status_code = 404
    code = "not_found"

    def __init__(self, resource, identifier):
        super().__init__(f"{resource} not found", resource=resource, id=str(identifier))


class OrderNotCancellable(MarketplaceError):
    status_code = 409
    code = "order_not_cancellable"

    def __init__(self, order_id, blocking_item_ids):
        super().__init__(
            "Order has shipped or completed items and cannot be cancelled",
            order_id=str(order_id),
            blocking_item_ids=[str(i) for i in blocking_item_ids],
        )


class InternalConsistencyFault(MarketplaceError):
    """Stock and status side effects disagree. Never expected; fails closed."""

    status_code = 500
    code = "internal_consistency_fault"


class ServiceBusy(MarketplaceError):
    status_code = 503
    code = "service_busy"

    def __init__(self, timeout):
        super().__init__("Could not acquire the write lock in time, retry the request", timeout=timeout)
