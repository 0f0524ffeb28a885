"""
Store-local time helpers.

Timestamps are kept timezone-aware; calendar dates used for daily
aggregates are always taken in the store's configured time zone.
"""
from datetime import datetime, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    """Current time in UTC."""
    return datetime.now(timezone.utc)


def store_zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def local_date(moment: datetime, zone: ZoneInfo) -> str:
    """Calendar date ("YYYY-MM-DD") of ``moment`` in the store time zone."""
    if moment.tzinfo is None:
        # naive values are treated as UTC
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(zone).date().isoformat()


def epoch_millis(moment: Optional[datetime] = None) -> int:
    moment = moment or system_clock()
    return int(moment.timestamp() * 1000)
