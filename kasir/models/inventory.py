"""
Inventory models for stock movements and per-product stock levels.
"""
import enum
from datetime import datetime
from typing import Optional

from pydantic import Field

from kasir.models.base import FrozenRecord


class MovementDirection(str, enum.Enum):
    """Stock movement direction."""
    IN = "in"
    OUT = "out"


class StockStatus(str, enum.Enum):
    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    NORMAL = "normal"


class StockMovement(FrozenRecord):
    """Append-only stock event."""

    id: str
    product_id: int
    product_name: str
    direction: MovementDirection = Field(..., alias="type")
    quantity: int = Field(..., gt=0)
    reason: str = ""
    timestamp: datetime
    user_id: Optional[str] = None

    @property
    def signed_quantity(self) -> int:
        return self.quantity if self.direction == MovementDirection.IN else -self.quantity

    def __repr__(self):
        return (
            f"<StockMovement(id='{self.id}', product_id={self.product_id}, "
            f"type={self.direction.value}, quantity={self.quantity})>"
        )


class ProductStock(FrozenRecord):
    """Current stock level of one product, derived from its movements."""

    product_id: int
    current_stock: int = Field(0, ge=0)
    min_stock: int = Field(0, ge=0)
    last_updated: datetime

    @property
    def is_low(self) -> bool:
        return self.current_stock <= self.min_stock

    @property
    def status(self) -> StockStatus:
        if self.current_stock <= 0:
            return StockStatus.OUT_OF_STOCK
        if self.is_low:
            return StockStatus.LOW_STOCK
        return StockStatus.NORMAL

    def __repr__(self):
        return f"<ProductStock(product_id={self.product_id}, current={self.current_stock}, min={self.min_stock})>"
