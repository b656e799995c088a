from datetime import date, time

import pytest

from app.services.availability.intervals import from_minutes, merge_intervals, overlaps, to_minutes, to_time
from app.utils.formatting import format_date_display, format_time_display


def test_to_minutes_accepts_strings_and_times():
    assert to_minutes("09:30") == 570
    assert to_minutes("09:30:00") == 570
    assert to_minutes(time(14, 5)) == 845


@pytest.mark.parametrize("value", ["9", "24:00", "12:60", "ab:cd", "1:2:3:4"])
def test_to_minutes_rejects_malformed(value):
    with pytest.raises(ValueError):
        to_minutes(value)


def test_from_minutes_zero_pads():
    assert from_minutes(0) == "00:00"
    assert from_minutes(545) == "09:05"
    with pytest.raises(ValueError):
        from_minutes(24 * 60)


def test_to_time():
    assert to_time("17:45") == time(17, 45)


def test_touching_intervals_do_not_overlap():
    assert not overlaps(540, 30, 570, 600)
    assert not overlaps(600, 30, 570, 600)
    assert overlaps(555, 30, 570, 600)
    assert overlaps(540, 120, 570, 600)


def test_merge_intervals_merges_overlapping_and_touching():
    assert merge_intervals([(600, 660), (540, 570), (570, 590), (650, 700)]) == [(540, 590), (600, 700)]
    assert merge_intervals([]) == []


def test_display_formatting():
    assert format_time_display("14:30") == "2:30 PM"
    assert format_time_display(time(0, 15)) == "12:15 AM"
    assert format_time_display("12:00") == "12:00 PM"
    assert format_date_display(date(2026, 1, 5)) == "Monday, January 5, 2026"
