"""Tests for clock and calendar helpers."""

from datetime import datetime

from taskcadence.timeutils import (
    FixedClock,
    end_of_day,
    is_in_range,
    last_day_of_month,
    minutes_between,
    resolve_now,
    set_clock,
    shift_months,
    start_of_day,
    weekday_index,
)


def test_fixed_clock_advance():
    clock = FixedClock(datetime(2024, 1, 1, 9, 0))
    clock.advance(minutes=90)
    assert clock.now() == datetime(2024, 1, 1, 10, 30)


def test_resolve_now_prefers_explicit_value():
    moment = datetime(2020, 5, 5)
    assert resolve_now(moment) is moment
    assert isinstance(resolve_now(None), datetime)


def test_set_clock_drives_resolve_now():
    moment = datetime(2024, 1, 2, 8, 0)
    previous = set_clock(FixedClock(moment))
    try:
        assert resolve_now(None) == moment
    finally:
        set_clock(previous)
    assert resolve_now(None) != moment


def test_weekday_index_starts_on_sunday():
    assert weekday_index(datetime(2024, 1, 7)) == 0
    assert weekday_index(datetime(2024, 1, 1)) == 1
    assert weekday_index(datetime(2024, 1, 6)) == 6


def test_shift_months_clamps_and_reanchors():
    jan31 = datetime(2024, 1, 31, 9, 0)
    assert shift_months(jan31, 1) == datetime(2024, 2, 29, 9, 0)
    assert shift_months(datetime(2024, 2, 29, 9, 0), 1, anchor_day=31) == datetime(2024, 3, 31, 9, 0)
    assert shift_months(jan31, -2) == datetime(2023, 11, 30, 9, 0)


def test_month_lengths():
    assert last_day_of_month(2023, 2) == 28
    assert last_day_of_month(2024, 2) == 29
    assert last_day_of_month(2024, 12) == 31


def test_day_bounds_and_ranges():
    moment = datetime(2024, 1, 3, 15, 20)
    assert start_of_day(moment) == datetime(2024, 1, 3)
    assert end_of_day(moment).date() == moment.date()
    assert is_in_range(moment, moment, moment)
    assert minutes_between(start_of_day(moment), moment) == 920
