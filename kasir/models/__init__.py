"""
Record models for the Kasir POS ledgers.
"""

from .catalog import Product, ProductCategory, CartLine
from .sales import PaymentMethod, ReceiptLine, Receipt, TransactionRecord, DailyAggregate, SalesStatistics, CheckoutTotals
from .inventory import MovementDirection, StockMovement, ProductStock, StockStatus

__all__ = [
    "Product", "ProductCategory", "CartLine",
    "PaymentMethod", "ReceiptLine", "Receipt", "TransactionRecord", "DailyAggregate", "SalesStatistics", "CheckoutTotals",
    "MovementDirection", "StockMovement", "ProductStock", "StockStatus",
]
