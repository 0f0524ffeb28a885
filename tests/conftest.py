"""
Shared fixtures for the Kasir POS tests.
"""
import random
from datetime import datetime, timezone

import pytest

from helpers import FixedClock
from kasir.core.config import Settings
from kasir.core.storage import InMemoryStore
from kasir.models.catalog import Product, ProductCategory
from kasir.services.cart import CartService
from kasir.services.catalog import Catalog
from kasir.services.checkout import CheckoutEngine
from kasir.services.sales_ledger import SalesLedger
from kasir.services.stock_ledger import StockLedger


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        storage_backend="memory",
        qris_confirmation_delay=0,
    )


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def clock():
    # 10:00 in Jakarta
    return FixedClock(datetime(2024, 5, 10, 3, 0, tzinfo=timezone.utc))


@pytest.fixture
def stock_ledger(store, settings, clock):
    return StockLedger(store, settings, clock)


@pytest.fixture
def sales_ledger(store, stock_ledger, settings, clock):
    return SalesLedger(store, stock_ledger, settings, clock)


@pytest.fixture
def checkout_engine(sales_ledger, settings, clock):
    return CheckoutEngine(sales_ledger, settings, clock, rng=random.Random(42))


@pytest.fixture
def cart_service(store, settings):
    return CartService(store, settings)


@pytest.fixture
def catalog(store, settings, cart_service):
    return Catalog(store, settings, cart=cart_service)


@pytest.fixture
def susu():
    return Product(id=1, name="Susu A", price=50000, category=ProductCategory.SUSU, barcode="111")


@pytest.fixture
def pampers():
    return Product(id=2, name="Pampers M", price=89000, category=ProductCategory.PAMPERS, barcode="222")
