"""
Celery configuration for scheduled ledger reports.
"""
from celery import Celery

from kasir.core.config import settings

# Create Celery app
celery = Celery(
    "kasir",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["kasir.worker.tasks"],
)

celery.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.store_timezone,
    enable_utc=True,
    task_track_started=True,
    task_time_limit=5 * 60,
    worker_prefetch_multiplier=1,
    result_expires=3600,  # 1 hour
    beat_schedule={
        "generate-daily-report": {
            "task": "kasir.worker.tasks.generate_daily_report",
            "schedule": 86400.0,  # Every 24 hours
        },
        "check-low-stock": {
            "task": "kasir.worker.tasks.check_low_stock",
            "schedule": 3600.0,  # Every hour
        },
    },
)

if __name__ == "__main__":
    celery.start()
