"""
Business logic services for the Kasir POS.
"""

from .stock_ledger import StockLedger
from .sales_ledger import SalesLedger
from .checkout import CheckoutEngine, CheckoutAttempt, CheckoutState, compute_totals
from .payments import QrisPaymentSimulator
from .cart import CartService
from .catalog import Catalog

__all__ = [
    "StockLedger",
    "SalesLedger",
    "CheckoutEngine",
    "CheckoutAttempt",
    "CheckoutState",
    "compute_totals",
    "QrisPaymentSimulator",
    "CartService",
    "Catalog",
]
