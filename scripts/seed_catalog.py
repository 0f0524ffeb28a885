#!/usr/bin/env python3
"""
Sample data population script for the Kasir POS.
Saves the default catalog, books opening stock and rings up a few sales.
"""
import random
import sys

from kasir.api.deps import get_services
from kasir.core.exceptions import KasirError
from kasir.services.catalog import DEFAULT_PRODUCTS


def create_sample_products(services):
    """Persist the default catalog and book opening stock for each product."""
    if not services.catalog.seed_defaults():
        print("Catalog already saved, skipping...")
        return

    for product in DEFAULT_PRODUCTS:
        opening = random.randint(10, 40)
        services.stock_ledger.record_movement(product.id, product.name, "in", opening, "Stok awal")
        services.stock_ledger.set_minimum_stock(product.id, random.choice([5, 8, 10]))
        print(f"Created product: {product.name} - opening stock: {opening}")

    print(f"✅ Created {len(DEFAULT_PRODUCTS)} sample products")


def create_sample_sales(services, count: int = 10):
    products = services.catalog.list_products()
    created = 0

    for _ in range(count):
        services.cart.clear()
        for product in random.sample(products, random.randint(1, 3)):
            services.cart.add_product(product, random.randint(1, 3))

        cart = services.cart.get_cart()
        try:
            if random.random() < 0.5:
                total = services.checkout.compute_totals(cart).total
                services.checkout.checkout_cash(cart, total + random.choice([0, 5000, 50000]))
            else:
                services.checkout.checkout_qris(cart)
            created += 1
        except KasirError as e:
            print(f"Error creating sale: {e}")
        finally:
            services.cart.clear()

    print(f"✅ Created {created} sample sales")


def main():
    """Main function to populate sample data."""
    print("🎯 Kasir POS Sample Data Population")
    print("=" * 50)

    services = get_services()
    try:
        print("\n🛍️  Creating sample products...")
        create_sample_products(services)

        print("\n💰 Creating sample sales...")
        create_sample_sales(services)

        print("\n🎉 Sample data population completed successfully!")
    except KasirError as e:
        print(f"❌ Error populating sample data: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
