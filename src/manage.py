"""Marketplace database management CLI.

Creates and drops the relational schema of the marketplace domain, and seeds
a small demo data set for local runs.

Usage:
    PROTEAN_ENV=production python src/manage.py setup-db    # Create all tables
    PROTEAN_ENV=production python src/manage.py drop-db     # Drop all tables
    PROTEAN_ENV=production python src/manage.py seed-demo   # Two shops, products and a cart
"""

import argparse
import sys


def setup_database():
    from marketplace.domain import marketplace
    from marketplace.utils.db import setup_db

    print("Initializing marketplace domain...")
    marketplace.init()
    print("Creating marketplace database schema...")
    setup_db(marketplace)
    print("Done.")


def drop_database():
    from marketplace.domain import marketplace
    from marketplace.utils.db import drop_db

    print("Initializing marketplace domain...")
    marketplace.init()
    print("Dropping marketplace database schema...")
    drop_db(marketplace)
    print("Done.")


def seed_demo(buyer_id="buyer-demo"):
    """Create two shops with products and fill one buyer's cart from both."""
    from marketplace.cart.items import AddToCart
    from marketplace.domain import marketplace
    from marketplace.inventory.product import Product
    from marketplace.inventory.shop import Shop
    from marketplace.transaction import process

    marketplace.init()
    with marketplace.domain_context():
        shops = [
            Shop.create(owner_id="seller-books", name="Corner Books"),
            Shop.create(owner_id="seller-tea", name="Leaf & Pot"),
        ]
        shop_repo = marketplace.repository_for(Shop)
        for shop in shops:
            shop_repo.add(shop)

        products = [
            Product.create(shop_id=shops[0].id, title="Field Notes", price=12000, stock=10),
            Product.create(shop_id=shops[0].id, title="Pocket Atlas", price=18500, stock=3),
            Product.create(shop_id=shops[1].id, title="Oolong 100g", price=9000, stock=25),
        ]
        product_repo = marketplace.repository_for(Product)
        for product in products:
            product_repo.add(product)
            print(f"  product {product.id}  {product.title}  stock={product.stock}")

        process(AddToCart(buyer_id=buyer_id, product_id=products[0].id, qty=1))
        process(AddToCart(buyer_id=buyer_id, product_id=products[2].id, qty=2))

    print(f"Seeded 2 shops, {len(products)} products and a cart for {buyer_id}.")


def main():
    parser = argparse.ArgumentParser(description="Marketplace database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    seed_parser = subparsers.add_parser("seed-demo", help="Seed demo shops, products and a cart")
    seed_parser.add_argument("--buyer", default="buyer-demo", help="Buyer id that owns the demo cart")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "seed-demo":
        seed_demo(args.buyer)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
