"""
Service wiring for the HTTP layer.
"""
import random
from functools import lru_cache
from typing import Optional

from kasir.core.clock import Clock, system_clock
from kasir.core.config import Settings, settings
from kasir.core.storage import KeyValueStore, build_store
from kasir.services.cart import CartService
from kasir.services.catalog import Catalog
from kasir.services.checkout import CheckoutEngine
from kasir.services.payments import QrisPaymentSimulator
from kasir.services.sales_ledger import SalesLedger
from kasir.services.stock_ledger import StockLedger


class Services:
    """One set of services sharing a store, a clock and settings."""

    def __init__(
        self,
        store: KeyValueStore,
        settings: Settings,
        clock: Clock = system_clock,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.settings = settings
        self.stock_ledger = StockLedger(store, settings, clock)
        self.sales_ledger = SalesLedger(store, self.stock_ledger, settings, clock)
        self.checkout = CheckoutEngine(self.sales_ledger, settings, clock, rng)
        self.cart = CartService(store, settings)
        self.catalog = Catalog(store, settings, cart=self.cart)
        self.qris = QrisPaymentSimulator(settings, rng)


@lru_cache()
def get_services() -> Services:
    """Services backed by the configured store, created on first use."""
    return Services(build_store(settings), settings)
