import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture

ADDRESS = {
    "recipient_name": "Jane Doe",
    "phone": "0812345678",
    "city": "Springfield",
    "postal_code": "62701",
    "street": "123 Main St",
    "shipping_method": "standard",
}


@pytest.fixture(scope="session")
def marketplace_bed():
    from marketplace.domain import marketplace
    from marketplace.utils.db import drop_db, setup_db

    bed = DomainFixture(marketplace)
    bed.setup()
    setup_db(marketplace)
    yield bed
    drop_db(marketplace)
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(marketplace_bed):
    from marketplace.payment import reset_gateway

    with marketplace_bed.domain_context():
        yield

        # Clear all databases
        for _, provider in current_domain.providers.items():
            provider._data_reset()

        # Drain event stores
        current_domain.event_store.store._data_reset()

    reset_gateway()


# ---------------------------------------------------------------------------
# Data factories
# ---------------------------------------------------------------------------
@pytest.fixture()
def address():
    return dict(ADDRESS)


@pytest.fixture()
def make_shop():
    from marketplace.inventory.shop import Shop

    def _make(owner_id="seller-001", name=None):
        shop = Shop.create(owner_id=owner_id, name=name or f"Shop of {owner_id}")
        current_domain.repository_for(Shop).add(shop)
        return shop

    return _make


@pytest.fixture()
def make_product():
    from marketplace.inventory.product import Product

    def _make(shop, price=100, stock=10, title="Test Product", is_active=True):
        product = Product.create(
            shop_id=shop.id,
            title=title,
            price=price,
            stock=stock,
            is_active=is_active,
        )
        current_domain.repository_for(Product).add(product)
        return product

    return _make


@pytest.fixture()
def load_product():
    from marketplace.inventory.product import Product

    def _load(product):
        return current_domain.repository_for(Product).get(str(product.id))

    return _load


@pytest.fixture()
def add_to_cart():
    from marketplace.cart.items import AddToCart
    from marketplace.transaction import process

    def _add(buyer_id, product, qty=1):
        return process(AddToCart(buyer_id=buyer_id, product_id=str(product.id), qty=qty))

    return _add


@pytest.fixture()
def checkout():
    import json

    from marketplace.checkout.checkout import Checkout
    from marketplace.transaction import process

    def _checkout(buyer_id, selected_item_ids=None, **address_overrides):
        fields = {**ADDRESS, **address_overrides}
        command = Checkout(
            buyer_id=buyer_id,
            selected_item_ids=json.dumps(selected_item_ids) if selected_item_ids is not None else None,
            **fields,
        )
        return process(command)

    return _checkout


@pytest.fixture()
def load_order():
    from marketplace.order.order import Order

    def _load(order_id):
        return current_domain.repository_for(Order).get(str(order_id))

    return _load


@pytest.fixture()
def seller_update():
    from marketplace.order.fulfillment import UpdateItemStatus
    from marketplace.transaction import process

    def _update(seller_id, order, item_id, status):
        return process(
            UpdateItemStatus(
                seller_id=seller_id,
                order_id=str(order["id"] if isinstance(order, dict) else order.id),
                item_id=str(item_id),
                status=status,
            )
        )

    return _update


@pytest.fixture()
def placed_order(make_shop, make_product, add_to_cart, checkout):
    """One PAID order from seller-001's shop: one item of qty 2 at price 150, stock 10 before."""
    shop = make_shop("seller-001")
    product = make_product(shop, price=150, stock=10)
    add_to_cart("buyer-001", product, qty=2)
    order = checkout("buyer-001")[0]
    return {"shop": shop, "product": product, "order": order, "item_id": order["items"][0]["id"]}
