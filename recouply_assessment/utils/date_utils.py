"""Date manipulation utilities"""

import math
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as an aware UTC datetime"""
    return datetime.now(timezone.utc)


def ensure_utc(moment: datetime) -> datetime:
    """Treat naive datetimes (e.g. read back from SQLite) as UTC"""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def seconds_until(moment: datetime, now: datetime) -> int:
    """Whole seconds from now until moment, rounded up, never negative"""
    return max(0, math.ceil((ensure_utc(moment) - ensure_utc(now)).total_seconds()))
