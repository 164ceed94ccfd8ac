"""Application tests for checkout: partitioning, atomicity and selection."""

import pytest
from marketplace.cart.queries import find_cart
from marketplace.errors import EmptyCart, InsufficientStock, InvalidSelection, ProductUnavailable
from marketplace.inventory.product import Product
from marketplace.order.order import Order
from marketplace.payment import get_gateway, set_gateway
from marketplace.payment.mock_adapter import MockGateway
from protean import current_domain


def _order_count():
    return current_domain.repository_for(Order)._dao.query.all().total


@pytest.fixture()
def two_shops(make_shop, make_product):
    shop_a = make_shop("seller-a")
    shop_b = make_shop("seller-b")
    return {
        "shop_a": shop_a,
        "shop_b": shop_b,
        "product_a": make_product(shop_a, price=100, stock=5, title="Mug"),
        "product_b": make_product(shop_b, price=200, stock=5, title="Kettle"),
    }


class TestCheckoutAcrossShops:
    def test_one_order_per_shop(self, two_shops, add_to_cart, checkout, load_product):
        add_to_cart("buyer-001", two_shops["product_a"], qty=1)
        add_to_cart("buyer-001", two_shops["product_b"], qty=1)

        orders = checkout("buyer-001")

        assert len(orders) == 2
        totals = {order["shop_id"]: order["total_amount"] for order in orders}
        assert totals == {str(two_shops["shop_a"].id): 100, str(two_shops["shop_b"].id): 200}
        assert len(find_cart("buyer-001").items) == 0
        assert load_product(two_shops["product_a"]).stock == 4
        assert load_product(two_shops["product_b"]).stock == 4
        assert load_product(two_shops["product_a"]).sold_count == 1

    def test_orders_are_paid_new_and_snapshotted(self, two_shops, add_to_cart, checkout):
        add_to_cart("buyer-001", two_shops["product_a"], qty=2)
        order = checkout("buyer-001", shipping_method="express")[0]

        assert order["payment_status"] == "PAID"
        assert order["address_detail"]["shipping_method"] == "express"
        assert order["address_detail"]["recipient_name"] == "Jane Doe"
        item = order["items"][0]
        assert item["status"] == "NEW"
        assert item["title"] == "Mug"
        assert item["qty"] == 2
        assert item["price_snapshot"] == 100
        assert item["shop_id"] == str(two_shops["shop_a"].id)

    def test_order_codes_are_unique(self, two_shops, add_to_cart, checkout):
        add_to_cart("buyer-001", two_shops["product_a"])
        add_to_cart("buyer-001", two_shops["product_b"])
        orders = checkout("buyer-001")
        assert orders[0]["code"] != orders[1]["code"]

    def test_checkout_charges_the_snapshot_price(self, two_shops, add_to_cart, checkout):
        add_to_cart("buyer-001", two_shops["product_a"], qty=1)

        repo = current_domain.repository_for(Product)
        product = repo.get(str(two_shops["product_a"].id))
        product.price = 999
        repo.add(product)

        order = checkout("buyer-001")[0]
        assert order["total_amount"] == 100
        assert get_gateway().calls[0]["amount"] == 100


class TestCheckoutSelection:
    def test_subset_leaves_other_lines(self, two_shops, add_to_cart, checkout, load_product):
        item_a = add_to_cart("buyer-001", two_shops["product_a"])
        item_b = add_to_cart("buyer-001", two_shops["product_b"])

        orders = checkout("buyer-001", selected_item_ids=[item_a])

        assert len(orders) == 1
        assert [str(i.id) for i in find_cart("buyer-001").items] == [item_b]
        assert load_product(two_shops["product_b"]).stock == 5

    def test_unknown_selected_id_rejects_everything(self, two_shops, add_to_cart, checkout, load_product):
        item_a = add_to_cart("buyer-001", two_shops["product_a"])

        with pytest.raises(InvalidSelection):
            checkout("buyer-001", selected_item_ids=[item_a, "not-mine"])

        assert _order_count() == 0
        assert len(find_cart("buyer-001").items) == 1
        assert load_product(two_shops["product_a"]).stock == 5

    def test_item_of_another_buyer_is_an_invalid_selection(self, two_shops, add_to_cart, checkout):
        add_to_cart("buyer-001", two_shops["product_a"])
        foreign = add_to_cart("buyer-002", two_shops["product_b"])
        with pytest.raises(InvalidSelection):
            checkout("buyer-001", selected_item_ids=[foreign])


class TestCheckoutFailures:
    def test_no_cart(self, checkout):
        with pytest.raises(EmptyCart):
            checkout("buyer-001")

    def test_emptied_cart(self, two_shops, add_to_cart, checkout):
        from marketplace.cart.items import ClearCart
        from marketplace.transaction import process

        add_to_cart("buyer-001", two_shops["product_a"])
        process(ClearCart(buyer_id="buyer-001"))
        with pytest.raises(EmptyCart):
            checkout("buyer-001")

    def test_one_short_product_fails_the_whole_checkout(self, two_shops, add_to_cart, checkout, load_product):
        add_to_cart("buyer-001", two_shops["product_a"], qty=1)
        add_to_cart("buyer-001", two_shops["product_b"], qty=3)

        repo = current_domain.repository_for(Product)
        product_b = repo.get(str(two_shops["product_b"].id))
        product_b.stock = 2
        repo.add(product_b)

        with pytest.raises(InsufficientStock) as exc:
            checkout("buyer-001")

        assert exc.value.context["product_id"] == str(two_shops["product_b"].id)
        assert _order_count() == 0
        assert load_product(two_shops["product_a"]).stock == 5
        assert load_product(two_shops["product_a"]).sold_count == 0
        assert load_product(two_shops["product_b"]).stock == 2
        assert len(find_cart("buyer-001").items) == 2

    def test_deactivated_product_fails_the_whole_checkout(self, two_shops, add_to_cart, checkout, load_product):
        add_to_cart("buyer-001", two_shops["product_a"])
        add_to_cart("buyer-001", two_shops["product_b"])

        repo = current_domain.repository_for(Product)
        product_a = repo.get(str(two_shops["product_a"].id))
        product_a.deactivate()
        repo.add(product_a)

        with pytest.raises(ProductUnavailable):
            checkout("buyer-001")
        assert _order_count() == 0
        assert load_product(two_shops["product_b"]).stock == 5

    def test_declined_payment_still_places_order_as_failed(self, two_shops, add_to_cart, checkout, load_product):
        get_gateway().configure(should_succeed=False)
        add_to_cart("buyer-001", two_shops["product_a"])

        order = checkout("buyer-001")[0]

        assert order["payment_status"] == "FAILED"
        assert load_product(two_shops["product_a"]).stock == 4


class _ExplodingGateway(MockGateway):
    def charge(self, order_code, amount, idempotency_key):
        raise RuntimeError("gateway unreachable")


class TestCheckoutRollback:
    def test_failure_after_reservation_discards_everything(self, two_shops, add_to_cart, checkout, load_product):
        set_gateway(_ExplodingGateway())
        add_to_cart("buyer-001", two_shops["product_a"], qty=2)
        add_to_cart("buyer-001", two_shops["product_b"], qty=1)

        with pytest.raises(RuntimeError):
            checkout("buyer-001")

        assert _order_count() == 0
        assert load_product(two_shops["product_a"]).stock == 5
        assert load_product(two_shops["product_a"]).sold_count == 0
        assert load_product(two_shops["product_b"]).stock == 5
        assert len(find_cart("buyer-001").items) == 2


class _SecondChargeTimesOutGateway(MockGateway):
    def charge(self, order_code, amount, idempotency_key):
        result = super().charge(order_code, amount, idempotency_key)
        if len([call for call in self.calls if call["method"] == "charge"]) > 1:
            raise RuntimeError("gateway timed out")
        return result


class TestCheckoutChargeCompensation:
    def test_charges_taken_before_a_failure_are_refunded(self, two_shops, add_to_cart, checkout, load_product):
        gateway = _SecondChargeTimesOutGateway()
        set_gateway(gateway)
        add_to_cart("buyer-001", two_shops["product_a"], qty=2)
        add_to_cart("buyer-001", two_shops["product_b"], qty=1)

        with pytest.raises(RuntimeError):
            checkout("buyer-001")

        charges = [call for call in gateway.calls if call["method"] == "charge"]
        refunds = [call for call in gateway.calls if call["method"] == "refund"]
        assert len(charges) == 2
        assert len(refunds) == 1
        assert refunds[0]["order_code"] == charges[0]["order_code"]
        assert refunds[0]["amount"] == charges[0]["amount"]
        assert _order_count() == 0
        assert load_product(two_shops["product_a"]).stock == 5
        assert load_product(two_shops["product_b"]).stock == 5

    def test_successful_checkout_refunds_nothing(self, two_shops, add_to_cart, checkout):
        add_to_cart("buyer-001", two_shops["product_a"], qty=1)
        add_to_cart("buyer-001", two_shops["product_b"], qty=1)

        checkout("buyer-001")

        assert [call["method"] for call in get_gateway().calls] == ["charge", "charge"]
