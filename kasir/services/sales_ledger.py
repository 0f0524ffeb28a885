"""
Sales Ledger service for recording completed POS transactions.
"""
import logging
from typing import Dict, List, Optional

from kasir.core.clock import Clock, epoch_millis, local_date, store_zone, system_clock
from kasir.core.config import Settings, get_settings
from kasir.core.exceptions import PartialStockUpdateError, StorageError
from kasir.core.storage import KeyNames, KeyValueStore, load_records
from kasir.models.inventory import MovementDirection
from kasir.models.sales import DailyAggregate, Receipt, SalesStatistics, TransactionRecord
from kasir.services.stock_ledger import StockLedger

logger = logging.getLogger(__name__)


class SalesLedger:
    """Service for the transaction history and its per-day aggregates."""

    def __init__(
        self,
        store: KeyValueStore,
        stock_ledger: StockLedger,
        settings: Optional[Settings] = None,
        clock: Clock = system_clock,
    ):
        settings = settings or get_settings()
        self.store = store
        self.stock_ledger = stock_ledger
        self.keys = KeyNames(settings.storage_namespace)
        self.history_limit = settings.transaction_history_limit
        self.daily_limit = settings.daily_sales_limit
        self.recent_days = settings.statistics_recent_days
        self.zone = store_zone(settings.store_timezone)
        self.clock = clock
        self._lock_name = f"{self.keys.namespace}-sales-ledger"

    def record_transaction(self, receipt: Receipt) -> TransactionRecord:
        """
        Record a completed sale.

        Args:
            receipt: Validated receipt with at least one line

        Returns:
            The stored transaction record

        The history entry and the daily aggregate are written together. One
        "out" movement per line item follows; those are not atomic as a
        group, and if any of them fails PartialStockUpdateError is raised
        after the sale itself has been kept.
        """
        if not receipt.items:
            raise ValueError("Transaction must contain at least one item")

        record = TransactionRecord(
            **receipt.model_dump(exclude={"id"}),
            id=f"txn_{receipt.transaction_id}_{epoch_millis(self.clock())}",
        )
        day = local_date(receipt.timestamp, self.zone)

        try:
            with self.store.lock(self._lock_name):
                history = self.store.get(self.keys.transactions, [])
                if not isinstance(history, list):
                    logger.warning(f"Transaction history under {self.keys.transactions} is malformed, resetting")
                    history = []
                aggregates = self._apply_to_daily(self._load_daily(), day, receipt)

                history = [record.to_storage()] + history
                self.store.set_many({
                    self.keys.transactions: history[:self.history_limit],
                    self.keys.daily_sales: [row.to_storage() for row in aggregates],
                })
        except StorageError as e:
            logger.error(f"Failed to record transaction {receipt.transaction_id}: {e}")
            raise

        logger.info(
            f"Transaction recorded: {record.id} total={record.total} "
            f"items={record.item_count} payment={record.payment_method.value}"
        )

        failed = []
        for item in receipt.items:
            try:
                self.stock_ledger.record_movement(
                    item.id,
                    item.name,
                    MovementDirection.OUT,
                    item.quantity,
                    f"Sale — Transaction #{receipt.transaction_id}",
                )
            except StorageError as e:
                logger.error(f"Stock not decremented for product {item.id} in {record.id}: {e}")
                failed.append(item.id)

        if failed:
            raise PartialStockUpdateError(record, failed)
        return record

    def get_transaction_history(self, limit: Optional[int] = None) -> List[TransactionRecord]:
        """Get recorded transactions, newest first."""
        records = load_records(self.store, self.keys.transactions, TransactionRecord)
        return records[:limit] if limit is not None else records

    def get_transaction(self, record_id: str) -> Optional[TransactionRecord]:
        for record in self.get_transaction_history():
            if record.id == record_id or str(record.transaction_id) == record_id:
                return record
        return None

    def get_daily_sales(self) -> List[DailyAggregate]:
        """Daily aggregates, newest date first."""
        return self._load_daily()

    def get_sales_statistics(self) -> SalesStatistics:
        """Summarise the retained daily aggregates."""
        daily = self._load_daily()
        today = local_date(self.clock(), self.zone)

        total_sales = sum(row.total_sales for row in daily)
        total_transactions = sum(row.total_transactions for row in daily)
        total_items = sum(row.total_items for row in daily)
        today_row = next((row for row in daily if row.date == today), DailyAggregate(date=today))

        return SalesStatistics(
            total_sales=total_sales,
            total_transactions=total_transactions,
            total_items=total_items,
            today=today_row,
            average_transaction=total_sales / total_transactions if total_transactions > 0 else 0.0,
            daily_sales=daily[:self.recent_days],
        )

    def _load_daily(self) -> List[DailyAggregate]:
        rows = load_records(self.store, self.keys.daily_sales, DailyAggregate)
        return sorted(rows, key=lambda row: row.date, reverse=True)

    def _apply_to_daily(self, daily: List[DailyAggregate], day: str, receipt: Receipt) -> List[DailyAggregate]:
        by_date: Dict[str, DailyAggregate] = {row.date: row for row in daily}
        existing = by_date.get(day)
        if existing:
            by_date[day] = existing.model_copy(update={
                "total_sales": existing.total_sales + receipt.total,
                "total_transactions": existing.total_transactions + 1,
                "total_items": existing.total_items + receipt.item_count,
            })
        else:
            by_date[day] = DailyAggregate(
                date=day,
                total_sales=receipt.total,
                total_transactions=1,
                total_items=receipt.item_count,
            )

        rows = sorted(by_date.values(), key=lambda row: row.date, reverse=True)
        return rows[:self.daily_limit]
