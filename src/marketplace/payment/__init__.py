"""Payment gateway factory.

``PAYMENT_ADAPTER`` selects the implementation; ``mock`` is the only one.
``set_gateway()`` swaps it out in tests.
"""

import os

from marketplace.payment.mock_adapter import MockGateway
from marketplace.payment.port import PaymentGateway

_ADAPTERS = {"mock": MockGateway}

_current_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    """Return the active payment gateway, building it on first use."""
    global _current_gateway
    if _current_gateway is None:
        name = os.environ.get("PAYMENT_ADAPTER", "mock").lower()
        if name not in _ADAPTERS:
            raise ValueError(f"Unknown payment adapter: {name}")
        _current_gateway = _ADAPTERS[name]()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    global _current_gateway
    _current_gateway = None
