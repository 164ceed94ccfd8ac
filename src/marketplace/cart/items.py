"""Cart item management — commands and handler.

Every add or update re-validates the product against the inventory ledger
using the quantity the line would end up with, and re-captures the current
product price as the line's snapshot. Nothing here touches stock.
"""

from protean import handle
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from marketplace.cart.cart import Cart
from marketplace.cart.queries import find_cart
from marketplace.domain import marketplace
from marketplace.errors import NotFound
from marketplace.inventory.ledger import InventoryLedger


@marketplace.command(part_of="Cart")
class AddToCart:
    buyer_id = Identifier(required=True)
    product_id = Identifier(required=True)
    qty = Integer(required=True, min_value=1)


@marketplace.command(part_of="Cart")
class UpdateCartItem:
    buyer_id = Identifier(required=True)
    item_id = Identifier(required=True)
    qty = Integer(required=True, min_value=1)


@marketplace.command(part_of="Cart")
class RemoveFromCart:
    buyer_id = Identifier(required=True)
    item_id = Identifier(required=True)


@marketplace.command(part_of="Cart")
class ClearCart:
    buyer_id = Identifier(required=True)


def _existing_cart(buyer_id):
    cart = find_cart(buyer_id)
    if cart is None:
        raise NotFound("Cart", buyer_id)
    return cart


@marketplace.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = find_cart(command.buyer_id) or Cart.create(buyer_id=command.buyer_id)

        desired = cart.quantity_after_adding(command.product_id, command.qty)
        product = InventoryLedger().check(command.product_id, desired)

        item = cart.add_item(product_id=command.product_id, qty=command.qty, price=product.price)
        repo.add(cart)
        return str(item.id)

    @handle(UpdateCartItem)
    def update_cart_item(self, command):
        repo = current_domain.repository_for(Cart)
        cart = _existing_cart(command.buyer_id)

        item = cart.find_item(command.item_id)
        product = InventoryLedger().check(item.product_id, command.qty)

        cart.update_item(item_id=command.item_id, qty=command.qty, price=product.price)
        repo.add(cart)
        return str(item.id)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = _existing_cart(command.buyer_id)
        cart.remove_item(item_id=command.item_id)
        repo.add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = find_cart(command.buyer_id)
        if cart is None:
            return 0
        removed = cart.clear()
        repo.add(cart)
        return removed
