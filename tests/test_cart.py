"""
Tests for the cart and catalog services.
"""
import json

import pytest

from kasir.core.exceptions import ProductNotFoundError
from kasir.models.catalog import ProductCategory
from kasir.services.catalog import DEFAULT_PRODUCTS


class TestCartService:
    """Test cases for CartService."""

    def test_empty_cart(self, cart_service):
        assert cart_service.get_cart() == []

    def test_add_merges_same_product(self, cart_service, susu, pampers):
        cart_service.add_product(susu)
        cart_service.add_product(pampers, 2)
        cart = cart_service.add_product(susu, 3)

        assert [(item.id, item.quantity) for item in cart] == [(1, 4), (2, 2)]
        assert [(item.id, item.quantity) for item in cart_service.get_cart()] == [(1, 4), (2, 2)]

    def test_add_rejects_non_positive_quantity(self, cart_service, susu):
        with pytest.raises(ValueError):
            cart_service.add_product(susu, 0)

    def test_update_quantity(self, cart_service, susu):
        cart_service.add_product(susu, 2)

        cart = cart_service.update_quantity(susu.id, 1)
        assert cart[0].quantity == 3

        cart = cart_service.update_quantity(susu.id, -3)
        assert cart == []

    def test_remove_and_clear(self, cart_service, store, susu, pampers):
        cart_service.add_product(susu)
        cart_service.add_product(pampers)

        assert [item.id for item in cart_service.remove_item(susu.id)] == [pampers.id]

        cart_service.clear()
        assert cart_service.get_cart() == []
        assert store.raw(cart_service.keys.cart) is None

    def test_line_keeps_product_snapshot(self, cart_service, store, susu):
        cart_service.add_product(susu, 2)

        stored = json.loads(store.raw(cart_service.keys.cart))
        assert stored == [{
            "id": 1,
            "name": "Susu A",
            "price": 50000,
            "category": "susu",
            "barcode": "111",
            "image": "",
            "quantity": 2,
        }]


class TestCatalog:
    """Test cases for Catalog."""

    def test_defaults_until_saved(self, catalog, store):
        products = catalog.list_products()

        assert [p.id for p in products] == [p.id for p in DEFAULT_PRODUCTS]
        assert store.raw(catalog.keys.products) is None

    def test_seed_defaults_once(self, catalog):
        assert catalog.seed_defaults() is True
        assert catalog.seed_defaults() is False
        assert len(catalog.list_products()) == len(DEFAULT_PRODUCTS)

    def test_find_by_barcode_and_id(self, catalog):
        product = DEFAULT_PRODUCTS[2]

        assert catalog.find_product_by_barcode(f" {product.barcode} ").id == product.id
        assert catalog.find_product_by_barcode("") is None
        assert catalog.find_product_by_id(product.id).name == product.name
        assert catalog.find_product_by_id(999) is None

    def test_search_is_case_insensitive(self, catalog):
        names = [p.name for p in catalog.search("SUSU")]

        assert names
        assert all("susu" in name.lower() for name in names)

    def test_add_product_takes_next_id(self, catalog):
        product = catalog.add_product("Tisu Basah", 15000, ProductCategory.PERLENGKAPAN, barcode="999")

        assert product.id == max(p.id for p in DEFAULT_PRODUCTS) + 1
        assert catalog.find_product_by_barcode("999").name == "Tisu Basah"

    def test_unknown_category_is_uncategorized(self, catalog):
        product = catalog.add_product("Mainan", 30000, "mainan")

        assert product.category == ProductCategory.UNCATEGORIZED

    def test_update_product(self, catalog):
        product = catalog.find_product_by_id(1).model_copy(update={"price": 99000})

        catalog.update_product(product)

        assert catalog.find_product_by_id(1).price == 99000

    def test_update_missing_product(self, catalog, susu):
        with pytest.raises(ProductNotFoundError):
            catalog.update_product(susu.model_copy(update={"id": 500}))

    def test_delete_removes_from_cart(self, catalog, cart_service):
        product = catalog.find_product_by_id(1)
        other = catalog.find_product_by_id(2)
        cart_service.add_product(product)
        cart_service.add_product(other)

        catalog.delete_product(product.id)

        assert catalog.find_product_by_id(product.id) is None
        assert [item.id for item in cart_service.get_cart()] == [other.id]

    def test_delete_keeps_stock_row(self, catalog, stock_ledger):
        stock_ledger.record_movement(1, "Susu Formula Bebelac 1 400g", "in", 4, "restock")

        catalog.delete_product(1)

        assert stock_ledger.get_current_stock(1) == 4

    def test_delete_missing_product(self, catalog):
        with pytest.raises(ProductNotFoundError):
            catalog.delete_product(404)
