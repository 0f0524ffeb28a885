"""
Sales models: receipts, transaction history and daily aggregates.
"""
import enum
from datetime import date, datetime
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from kasir.models.base import FrozenRecord
from kasir.models.catalog import CartLine


class PaymentMethod(str, enum.Enum):
    """Payment method enumeration."""
    CASH = "cash"
    QRIS = "qris"


class ReceiptLine(CartLine):
    """Cart line as sold; frozen once it is part of a receipt."""

    model_config = ConfigDict(frozen=True)


class Receipt(FrozenRecord):
    """Immutable snapshot of a completed sale."""

    items: Tuple[ReceiptLine, ...] = Field(..., min_length=1)
    subtotal: int = Field(..., ge=0)
    tax: int = Field(..., ge=0)
    total: int = Field(..., ge=0)
    cash: int = Field(..., ge=0)
    change: int = Field(..., ge=0)
    timestamp: datetime
    transaction_id: int
    payment_method: PaymentMethod = PaymentMethod.CASH

    @field_validator("items", mode="before")
    @classmethod
    def snapshot_items(cls, v):
        if isinstance(v, (list, tuple)):
            return tuple(item.model_dump() if isinstance(item, BaseModel) else item for item in v)
        return v

    @model_validator(mode="after")
    def check_totals(self):
        if self.subtotal != sum(item.line_total for item in self.items):
            raise ValueError("Subtotal does not match line items")
        if self.total != self.subtotal + self.tax:
            raise ValueError("Total must equal subtotal plus tax")
        if self.change != self.cash - self.total:
            raise ValueError("Change must equal cash minus total")
        return self

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)


class TransactionRecord(Receipt):
    """A receipt as stored in the transaction history."""

    id: str

    def __repr__(self):
        return f"<TransactionRecord(id='{self.id}', total={self.total})>"


class DailyAggregate(FrozenRecord):
    """Running sales totals for one store-local calendar date."""

    date: str
    total_sales: int = Field(0, ge=0)
    total_transactions: int = Field(0, ge=0)
    total_items: int = Field(0, ge=0)

    @field_validator("date")
    @classmethod
    def validate_date(cls, v):
        date.fromisoformat(v)
        return v


class SalesStatistics(FrozenRecord):
    total_sales: int
    total_transactions: int
    total_items: int
    today: DailyAggregate
    average_transaction: float
    daily_sales: List[DailyAggregate]


class CheckoutTotals(FrozenRecord):
    subtotal: int
    tax: int
    total: int
