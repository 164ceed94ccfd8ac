"""Application tests for order read helpers and review eligibility."""

import pytest
from marketplace.errors import NotFound
from marketplace.order.fulfillment import ConfirmReceipt
from marketplace.order.purchases import has_completed_purchase
from marketplace.order.queries import buyer_order, buyer_orders, seller_order_items
from marketplace.transaction import process


@pytest.fixture()
def three_orders(make_shop, make_product, add_to_cart, checkout):
    shop = make_shop("seller-001")
    product = make_product(shop, price=100, stock=20)
    orders = []
    for _ in range(3):
        add_to_cart("buyer-001", product)
        orders.append(checkout("buyer-001")[0])
    return {"shop": shop, "product": product, "orders": orders}


class TestBuyerOrders:
    def test_newest_first_with_pagination(self, three_orders):
        result = buyer_orders("buyer-001", page=1, limit=2)

        assert [o["id"] for o in result["orders"]] == [
            three_orders["orders"][2]["id"],
            three_orders["orders"][1]["id"],
        ]
        assert result["pagination"] == {"page": 1, "limit": 2, "total": 3, "total_pages": 2}

        second = buyer_orders("buyer-001", page=2, limit=2)
        assert [o["id"] for o in second["orders"]] == [three_orders["orders"][0]["id"]]

    def test_limit_is_capped(self, three_orders):
        assert buyer_orders("buyer-001", limit=500)["pagination"]["limit"] == 50

    def test_filter_by_payment_status(self, three_orders):
        from marketplace.order.cancellation import CancelOrder

        process(CancelOrder(buyer_id="buyer-001", order_id=three_orders["orders"][0]["id"]))

        refunded = buyer_orders("buyer-001", payment_status="REFUNDED")
        assert [o["id"] for o in refunded["orders"]] == [three_orders["orders"][0]["id"]]
        assert buyer_orders("buyer-001", payment_status="PAID")["pagination"]["total"] == 2

    def test_other_buyers_see_nothing(self, three_orders):
        assert buyer_orders("buyer-002")["orders"] == []
        with pytest.raises(NotFound):
            buyer_order("buyer-002", three_orders["orders"][0]["id"])


class TestSellerOrderItems:
    def test_lists_own_shop_items_with_order_reference(self, three_orders, make_shop, seller_update):
        order = three_orders["orders"][0]
        seller_update("seller-001", order, order["items"][0]["id"], "CONFIRMED")

        result = seller_order_items(three_orders["shop"].id)
        assert result["pagination"]["total"] == 3
        assert {row["order_code"] for row in result["items"]} == {o["code"] for o in three_orders["orders"]}

        confirmed = seller_order_items(three_orders["shop"].id, status="CONFIRMED")
        assert [row["order_id"] for row in confirmed["items"]] == [order["id"]]

        other = make_shop("seller-002")
        assert seller_order_items(other.id)["items"] == []


class TestHasCompletedPurchase:
    def test_only_completed_items_count(self, placed_order, seller_update):
        product_id = str(placed_order["product"].id)
        order = placed_order["order"]
        item_id = placed_order["item_id"]
        assert has_completed_purchase("buyer-001", product_id) is False

        seller_update("seller-001", order, item_id, "CONFIRMED")
        seller_update("seller-001", order, item_id, "SHIPPED")
        assert has_completed_purchase("buyer-001", product_id) is False

        process(ConfirmReceipt(buyer_id="buyer-001", order_id=order["id"], item_id=item_id))
        assert has_completed_purchase("buyer-001", product_id) is True
        assert has_completed_purchase("buyer-002", product_id) is False
