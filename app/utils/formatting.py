# app/utils/formatting.py
"""Date/time helpers shared by emails and the reminder sweep"""
from datetime import date, datetime, time, timezone
from typing import Union


def ensure_utc(value: datetime) -> datetime:
    """Timezone-aware UTC; naive values (SQLite round-trips) are taken as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_time_display(value: Union[str, time]) -> str:
    """'14:30' -> '2:30 PM'"""
    if isinstance(value, str):
        hour, minute = (int(part) for part in value.split(":")[:2])
    else:
        hour, minute = value.hour, value.minute
    period = "PM" if hour >= 12 else "AM"
    hour12 = hour % 12 or 12
    return f"{hour12}:{minute:02d} {period}"


def format_date_display(value: date) -> str:
    """date(2026, 1, 5) -> 'Monday, January 5, 2026'"""
    return f"{value.strftime('%A, %B')} {value.day}, {value.year}"
