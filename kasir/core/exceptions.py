"""
Exception hierarchy for checkout validation and persistence failures.
"""
from typing import Iterable, Optional


class KasirError(Exception):
    """Base class for all errors raised by the POS core."""


class CheckoutError(KasirError, ValueError):
    """A checkout request that the caller has to correct before retrying."""


class EmptyCartError(CheckoutError):
    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message)


class InsufficientCashError(CheckoutError):
    def __init__(self, total: int, cash: int):
        self.total = total
        self.cash = cash
        super().__init__(f"Cash tendered ({cash}) is less than total ({total})")


class PaymentDeclinedError(CheckoutError):
    """The (simulated) QRIS confirmation failed or timed out."""


class InvalidCheckoutStateError(CheckoutError):
    def __init__(self, state, expected):
        self.state = state
        super().__init__(f"Checkout attempt is {state.value}, expected {expected.value}")


class StorageError(KasirError):
    """Persistence I/O failure."""

    def __init__(self, message: str, key: Optional[str] = None):
        self.key = key
        super().__init__(message)


class StorageReadError(StorageError):
    pass


class StorageWriteError(StorageError):
    pass


class PartialStockUpdateError(KasirError):
    """
    The sale was recorded but one or more stock decrements failed.

    The transaction record is authoritative; ``failed_product_ids`` lists
    the products whose stock rows were not updated.
    """

    def __init__(self, record, failed_product_ids: Iterable[int]):
        self.record = record
        self.failed_product_ids = list(failed_product_ids)
        super().__init__(
            f"Transaction {record.id} recorded but stock was not updated for "
            f"products {self.failed_product_ids}"
        )


class ProductNotFoundError(KasirError, LookupError):
    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")
