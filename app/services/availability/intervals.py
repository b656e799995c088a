# ===== app/services/availability/intervals.py =====
"""
Time-of-day arithmetic for slot resolution.

Times are handled as minutes since midnight so comparisons never touch
string ordering or timezone-aware datetimes.
"""
from datetime import time
from typing import Iterable, List, Tuple, Union

MINUTES_PER_DAY = 24 * 60

TimeLike = Union[str, time]


def to_minutes(value: TimeLike) -> int:
    """Convert "HH:MM" (seconds tolerated) or a time object to minutes since midnight"""
    if isinstance(value, time):
        return value.hour * 60 + value.minute

    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Time must be in HH:MM format, got {value!r}")

    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        raise ValueError(f"Time must be in HH:MM format, got {value!r}")

    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Time out of range: {value!r}")

    return hours * 60 + minutes


def from_minutes(minutes: int) -> str:
    """Format minutes since midnight as zero-padded "HH:MM" """
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise ValueError(f"Minutes out of range: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def to_time(value: TimeLike) -> time:
    minutes = to_minutes(value)
    return time(minutes // 60, minutes % 60)


def overlaps(a_start: int, a_duration: int, b_start: int, b_end: int) -> bool:
    """
    Half-open overlap test between [a_start, a_start + a_duration) and [b_start, b_end).

    Touching endpoints do not overlap: a slot ending exactly when a busy
    period starts is still bookable.
    """
    return a_start < b_end and a_start + a_duration > b_start


def merge_intervals(intervals: Iterable[Tuple[int, int]]) -> List[Tuple[int, int]]:
    """Merge overlapping or touching intervals, returned sorted by start"""
    ordered = sorted(intervals)
    if not ordered:
        return []

    merged = [ordered[0]]
    for start, end in ordered[1:]:
        last_start, last_end = merged[-1]
        if start <= last_end:
            merged[-1] = (last_start, max(last_end, end))
        else:
            merged.append((start, end))
    return merged
