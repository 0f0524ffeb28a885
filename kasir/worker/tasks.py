"""
Celery background tasks for the Kasir POS.
"""
import logging
from datetime import datetime, timezone

from kasir.api.deps import get_services
from kasir.core.exceptions import StorageError
from kasir.worker.celery import celery

logger = logging.getLogger(__name__)


@celery.task(bind=True)
def generate_daily_report(self):
    """Log and return the current sales statistics."""
    try:
        logger.info("Starting daily sales report task")

        statistics = get_services().sales_ledger.get_sales_statistics()

        logger.info(
            f"Daily report: today {statistics.today.total_sales} from "
            f"{statistics.today.total_transactions} transactions; "
            f"average {statistics.average_transaction:.0f}"
        )
        return {
            "status": "success",
            "statistics": statistics.to_storage(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    except StorageError as e:
        logger.error(f"Failed to generate daily report: {e}")
        raise self.retry(exc=e, countdown=300, max_retries=3)  # Retry in 5 minutes


@celery.task(bind=True)
def check_low_stock(self):
    """Log every product at or below its minimum stock."""
    try:
        low_stock = get_services().stock_ledger.get_low_stock_products()

        for stock in low_stock:
            logger.warning(
                f"Low stock: product {stock.product_id} at {stock.current_stock}, minimum {stock.min_stock}"
            )
        logger.info(f"Low stock check found {len(low_stock)} product(s)")
        return {
            "status": "success",
            "low_stock_count": len(low_stock),
            "products": [stock.to_storage() for stock in low_stock],
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    except StorageError as e:
        logger.error(f"Failed to check low stock: {e}")
        raise self.retry(exc=e, countdown=300, max_retries=3)
