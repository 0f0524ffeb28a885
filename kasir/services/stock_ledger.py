"""
Stock Ledger service: append-only stock movements and the derived stock table.
"""
import logging
import uuid
from datetime import datetime
from typing import Dict, List, Optional, Union

from kasir.core.clock import Clock, epoch_millis, system_clock
from kasir.core.config import Settings, get_settings
from kasir.core.exceptions import StorageError
from kasir.core.storage import KeyNames, KeyValueStore, load_records
from kasir.models.inventory import MovementDirection, ProductStock, StockMovement, StockStatus

logger = logging.getLogger(__name__)


class StockLedger:
    """Service for recording stock movements and tracking per-product stock levels."""

    def __init__(
        self,
        store: KeyValueStore,
        settings: Optional[Settings] = None,
        clock: Clock = system_clock,
    ):
        settings = settings or get_settings()
        self.store = store
        self.keys = KeyNames(settings.storage_namespace)
        self.movement_limit = settings.stock_movement_limit
        self.default_min_stock = settings.default_min_stock
        self.clock = clock
        self._lock_name = f"{self.keys.namespace}-stock-ledger"

    def record_movement(
        self,
        product_id: int,
        product_name: str,
        direction: Union[MovementDirection, str],
        quantity: int,
        reason: str = "",
        user_id: Optional[str] = None,
    ) -> StockMovement:
        """
        Append a stock movement and update the product's stock row.

        Args:
            product_id: Product ID
            product_name: Product name at the time of the movement
            direction: "in" to add stock, "out" to remove it
            quantity: Positive number of units
            reason: Free-text reason (restock, sale, damage, ...)
            user_id: Optional ID of whoever made the change

        Returns:
            The recorded movement

        The log append and the stock row update are written together, so a
        reader never sees one without the other.
        """
        direction = MovementDirection(direction)
        if quantity <= 0:
            raise ValueError("Movement quantity must be positive")

        now = self.clock()
        movement = StockMovement(
            id=self._movement_id(now),
            product_id=product_id,
            product_name=product_name,
            direction=direction,
            quantity=quantity,
            reason=reason,
            timestamp=now,
            user_id=user_id,
        )

        try:
            with self.store.lock(self._lock_name):
                log = self.store.get(self.keys.stock_movements, [])
                if not isinstance(log, list):
                    logger.warning(f"Stock movement log under {self.keys.stock_movements} is malformed, resetting")
                    log = []
                stocks = self._load_stocks()

                previous = stocks.get(product_id)
                updated = self._apply_movement(previous, product_id, movement.signed_quantity, now)
                stocks[product_id] = updated

                log = [movement.to_storage()] + log
                self.store.set_many({
                    self.keys.stock_movements: log[:self.movement_limit],
                    self.keys.product_stocks: [stock.to_storage() for stock in stocks.values()],
                })
        except StorageError as e:
            logger.error(f"Failed to record stock movement for product {product_id}: {e}")
            raise

        previous_quantity = previous.current_stock if previous else 0
        if previous_quantity + movement.signed_quantity < 0:
            logger.warning(
                f"Stock level for product {product_id} would go negative "
                f"({previous_quantity} - {quantity}), set to 0"
            )
        if updated.is_low and (previous is None or not previous.is_low):
            logger.warning(
                f"Low stock: product {product_id} ({product_name}) at {updated.current_stock}, "
                f"minimum {updated.min_stock}"
            )

        logger.info(
            f"Stock {direction.value} for product {product_id}: "
            f"{previous_quantity} -> {updated.current_stock} ({reason})"
        )
        return movement

    def set_minimum_stock(self, product_id: int, min_stock: int) -> ProductStock:
        """Set the low-stock threshold for a product. Does not write a movement."""
        if min_stock < 0:
            raise ValueError("Minimum stock must not be negative")

        now = self.clock()
        try:
            with self.store.lock(self._lock_name):
                stocks = self._load_stocks()
                existing = stocks.get(product_id)
                if existing:
                    updated = existing.model_copy(update={"min_stock": min_stock, "last_updated": now})
                else:
                    updated = ProductStock(product_id=product_id, current_stock=0, min_stock=min_stock, last_updated=now)
                stocks[product_id] = updated
                self.store.set(self.keys.product_stocks, [stock.to_storage() for stock in stocks.values()])
        except StorageError as e:
            logger.error(f"Failed to set minimum stock for product {product_id}: {e}")
            raise

        logger.info(f"Minimum stock for product {product_id} set to {min_stock}")
        return updated

    def get_current_stock(self, product_id: int) -> int:
        stock = self.get_product_stock(product_id)
        return stock.current_stock if stock else 0

    def get_product_stock(self, product_id: int) -> Optional[ProductStock]:
        return self._load_stocks().get(product_id)

    def get_product_stocks(self) -> List[ProductStock]:
        return list(self._load_stocks().values())

    def get_low_stock_products(self) -> List[ProductStock]:
        """Products whose current stock is at or below their minimum."""
        return [stock for stock in self._load_stocks().values() if stock.is_low]

    def get_stock_status(self, product_id: int) -> StockStatus:
        stock = self.get_product_stock(product_id)
        if stock is None:
            return StockStatus.OUT_OF_STOCK
        return stock.status

    def get_stock_movements(
        self,
        product_id: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[StockMovement]:
        """Get stock movement history, newest first."""
        movements = load_records(self.store, self.keys.stock_movements, StockMovement)
        if product_id is not None:
            movements = [m for m in movements if m.product_id == product_id]
        if limit is not None:
            movements = movements[:limit]
        return movements

    def replay_stock(self, product_id: int) -> int:
        """Re-derive current stock from the retained movement log, clamping at each step."""
        level = 0
        for movement in reversed(self.get_stock_movements(product_id=product_id)):
            level = max(0, level + movement.signed_quantity)
        return level

    def _load_stocks(self) -> Dict[int, ProductStock]:
        stocks: Dict[int, ProductStock] = {}
        for stock in load_records(self.store, self.keys.product_stocks, ProductStock):
            stocks[stock.product_id] = stock
        return stocks

    def _apply_movement(
        self,
        existing: Optional[ProductStock],
        product_id: int,
        delta: int,
        now: datetime,
    ) -> ProductStock:
        if existing is None:
            return ProductStock(
                product_id=product_id,
                current_stock=max(0, delta),
                min_stock=self.default_min_stock,
                last_updated=now,
            )
        return existing.model_copy(update={
            "current_stock": max(0, existing.current_stock + delta),
            "last_updated": now,
        })

    @staticmethod
    def _movement_id(now: datetime) -> str:
        return f"mov_{epoch_millis(now)}_{uuid.uuid4().hex[:9]}"
