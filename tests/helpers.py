"""
Builders shared by the test modules.
"""
from datetime import datetime, timedelta

from kasir.models.catalog import CartLine
from kasir.models.sales import Receipt
from kasir.services.checkout import compute_totals


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def line(product, quantity):
    return CartLine.from_product(product, quantity)


def make_receipt(lines, clock, transaction_id=123456, tax_rate=0.11, cash=None):
    """Receipt for ``lines`` paid in cash (exact amount unless ``cash`` is given)."""
    totals = compute_totals(lines, tax_rate)
    cash = totals.total if cash is None else cash
    return Receipt(
        items=lines,
        subtotal=totals.subtotal,
        tax=totals.tax,
        total=totals.total,
        cash=cash,
        change=cash - totals.total,
        timestamp=clock(),
        transaction_id=transaction_id,
    )
