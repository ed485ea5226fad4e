"""
Human readable timestamps ("5 minutes ago", "Jan 15, 2024")
"""
from datetime import datetime, timezone
from typing import Optional, Union

from components.gateway.models import parse_timestamp

Timestamp = Union[str, datetime, None]


def _to_datetime(timestamp: Timestamp) -> Optional[datetime]:
    if not timestamp:
        return None
    return parse_timestamp(timestamp)


def _plural(count: int, unit: str) -> str:
    return f"1 {unit} ago" if count == 1 else f"{count} {unit}s ago"


def format_time_ago(timestamp: Timestamp, now: Optional[datetime] = None) -> str:
    """Relative time from now, 'Unknown' for missing or invalid input"""
    past = _to_datetime(timestamp)
    if past is None:
        return 'Unknown'
    now = now or datetime.now(timezone.utc)

    diff_seconds = (now - past).total_seconds()
    minutes = int(diff_seconds // 60)
    hours = int(diff_seconds // 3600)
    days = int(diff_seconds // 86400)

    if minutes < 1:
        return 'Just now'
    if minutes < 60:
        return _plural(minutes, 'minute')
    if hours < 24:
        return _plural(hours, 'hour')
    if days < 7:
        return _plural(days, 'day')
    if days < 30:
        return _plural(days // 7, 'week')
    if days < 365:
        return _plural(days // 30, 'month')
    return _plural(days // 365, 'year')


def format_date(timestamp: Timestamp, tz=None) -> str:
    """e.g. 'Jan 15, 2024'"""
    value = _to_datetime(timestamp)
    if value is None:
        return 'Unknown'
    value = value.astimezone(tz)
    return f"{value.strftime('%b')} {value.day}, {value.year}"


def format_date_time(timestamp: Timestamp, tz=None) -> str:
    """e.g. 'Jan 15, 2024 at 3:45 PM'"""
    value = _to_datetime(timestamp)
    if value is None:
        return 'Unknown'
    value = value.astimezone(tz)
    hour = value.hour % 12 or 12
    suffix = 'AM' if value.hour < 12 else 'PM'
    return f"{format_date(value, tz)} at {hour}:{value.minute:02d} {suffix}"
