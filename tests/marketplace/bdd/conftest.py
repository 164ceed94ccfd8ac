"""Shared BDD fixtures and step definitions for the Marketplace."""

import pytest
from marketplace.cart.items import AddToCart
from marketplace.checkout.checkout import Checkout
from marketplace.errors import MarketplaceError
from marketplace.inventory.product import Product
from marketplace.inventory.shop import Shop
from marketplace.order.fulfillment import UpdateItemStatus
from marketplace.order.order import Order
from marketplace.transaction import process
from protean import current_domain
from pytest_bdd import given, parsers, then

BUYER_ID = "buyer-001"


@pytest.fixture()
def world():
    """Mutable scenario state shared between steps."""
    return {
        "shops": {},
        "products": {},
        "orders": [],
        "error": None,
        "outcome": None,
    }


@pytest.fixture()
def attempt(world):
    """Run a step action, recording a domain error instead of raising it."""

    def _attempt(call):
        world["error"] = None
        try:
            result = call()
        except MarketplaceError as exc:
            world["error"] = exc
            world["outcome"] = exc.code
            return None
        world["outcome"] = "ok"
        return result

    return _attempt


def product_named(world, name):
    return current_domain.repository_for(Product).get(str(world["products"][name].id))


def current_order(world):
    return current_domain.repository_for(Order).get(world["orders"][0]["id"])


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse('a shop "{name}" owned by "{owner}"'))
def a_shop(world, name, owner):
    shop = Shop.create(owner_id=owner, name=name)
    current_domain.repository_for(Shop).add(shop)
    world["shops"][name] = shop


@given(parsers.cfparse('a product "{title}" of shop "{shop}" priced {price:d} with stock {stock:d}'))
def a_product(world, title, shop, price, stock):
    product = Product.create(shop_id=world["shops"][shop].id, title=title, price=price, stock=stock)
    current_domain.repository_for(Product).add(product)
    world["products"][title] = product


@given(parsers.cfparse('the buyer has {qty:d} "{title}" in the cart'))
def in_cart(world, qty, title):
    process(AddToCart(buyer_id=BUYER_ID, product_id=str(world["products"][title].id), qty=qty))


@given(parsers.cfparse('the buyer has placed an order for {qty:d} "{title}"'))
def placed_order(world, qty, title):
    in_cart(world, qty, title)
    world["orders"] = process(
        Checkout(
            buyer_id=BUYER_ID,
            recipient_name="Jane Doe",
            phone="0812345678",
            city="Springfield",
            postal_code="62701",
            street="123 Main St",
        )
    )
    world["item_id"] = world["orders"][0]["items"][0]["id"]


@given(parsers.cfparse('the seller "{seller}" moves the item to "{status}"'))
def seller_moves(world, seller, status):
    process(
        UpdateItemStatus(
            seller_id=seller,
            order_id=world["orders"][0]["id"],
            item_id=world["item_id"],
            status=status,
        )
    )


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the stock of "{title}" is {stock:d}'))
def stock_is(world, title, stock):
    assert product_named(world, title).stock == stock


@then(parsers.cfparse('the sold count of "{title}" is {sold:d}'))
def sold_count_is(world, title, sold):
    assert product_named(world, title).sold_count == sold


@then(parsers.cfparse('the item is "{status}"'))
def item_is(world, status):
    assert current_order(world).find_item(world["item_id"]).status == status


@then(parsers.cfparse('the order payment status is "{status}"'))
def payment_status_is(world, status):
    assert current_order(world).payment_status == status


@then(parsers.cfparse('the outcome is "{outcome}"'))
def outcome_is(world, outcome):
    assert world["outcome"] == outcome
