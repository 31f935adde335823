"""
Utility functions for wall-clock time used by promotion and voucher windows.
"""

from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo
VN_TZ = ZoneInfo("Asia/Ho_Chi_Minh")


def get_vn_now() -> datetime:
    """
    Get current datetime in the shop's timezone.
    Returns:
        Current datetime object with Asia/Ho_Chi_Minh timezone
    """
    return datetime.now(VN_TZ)


def ensure_aware(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare against aware ones."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def resolve_now(now: Optional[datetime] = None) -> datetime:
    return ensure_aware(now) if now is not None else get_vn_now()


def within_window(start: datetime, end: datetime, now: datetime) -> bool:
    """Inclusive [start, end] check."""
    now = ensure_aware(now)
    return ensure_aware(start) <= now <= ensure_aware(end)
