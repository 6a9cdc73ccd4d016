"""Tests for month-count to day-count conversion."""

from month_count import day_count_from_month_count, next_month_offset
from time_date import TimeDateService

days_in_month = TimeDateService().days_in_month


def test_next_month_regular_day():
    assert next_month_offset(2026, 0, 15, 0, days_in_month) == (31, 0)


def test_next_month_clamps_and_records_leftover():
    # Jan 31 -> Feb 28 leaves 3 days over
    assert next_month_offset(2026, 0, 31, 0, days_in_month) == (28, 3)


def test_next_month_folds_leftover_back():
    # From Feb 28 with 3 leftover days back to Mar 31
    assert next_month_offset(2026, 1, 31, 3, days_in_month) == (31, 0)


def test_next_month_leap_february():
    assert next_month_offset(2028, 0, 31, 0, days_in_month) == (29, 2)


def test_next_month_across_year_end():
    assert next_month_offset(2026, 11, 31, 0, days_in_month) == (31, 0)


def test_multiple_months():
    assert day_count_from_month_count(2026, 0, 2, 15, 0, days_in_month) == (59, 0)


def test_multiple_months_with_clamp_in_between():
    # Jan 31 + 3 months: Feb clamps, Mar restores, Apr clamps again
    assert day_count_from_month_count(2026, 0, 3, 31, 0, days_in_month) == (89, 1)


def test_month_rule_matches_single_month_count():
    for year, month, anchor, leftover in [(2026, 0, 31, 0), (2026, 3, 31, 1), (2028, 1, 30, 1)]:
        assert next_month_offset(year, month, anchor, leftover, days_in_month) == \
            day_count_from_month_count(year, month, 1, anchor, leftover, days_in_month)
