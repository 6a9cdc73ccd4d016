"""Tests for weekday repeat gaps."""

import pytest

from time_date import MONDAY_FIRST, SUNDAY_FIRST
from weekday_gaps import rotate_weekdays, weekday_gaps

T, F = True, False

# Monday, Wednesday and Friday in both conventions.
MWF_SUNDAY_FIRST = [F, T, F, T, F, T, F]
MWF_MONDAY_FIRST = [T, F, T, F, T, F, F]


def test_gaps_from_active_anchor():
    assert weekday_gaps(0, MWF_MONDAY_FIRST) == [2, 2, 3]


def test_gaps_from_inactive_anchor():
    # Tuesday anchor: Wed is one day away, then Fri, then Mon.
    assert weekday_gaps(1, MWF_MONDAY_FIRST) == [1, 2, 3]


def test_gaps_every_day():
    assert weekday_gaps(4, [T] * 7) == [1] * 7


def test_gaps_single_weekday():
    assert weekday_gaps(3, [F, F, F, T, F, F, F]) == [7]


def test_gaps_no_active_weekday():
    with pytest.raises(ValueError):
        weekday_gaps(0, [F] * 7)


def test_rotate_sunday_first_to_monday_first():
    assert rotate_weekdays(MWF_SUNDAY_FIRST, SUNDAY_FIRST, MONDAY_FIRST) == MWF_MONDAY_FIRST


def test_rotate_monday_first_to_sunday_first():
    assert rotate_weekdays(MWF_MONDAY_FIRST, MONDAY_FIRST, SUNDAY_FIRST) == MWF_SUNDAY_FIRST


def test_rotate_same_convention_copies():
    rotated = rotate_weekdays(MWF_SUNDAY_FIRST, SUNDAY_FIRST, SUNDAY_FIRST)
    assert rotated == MWF_SUNDAY_FIRST
    assert rotated is not MWF_SUNDAY_FIRST


def test_rotated_gaps_differ_from_unrotated():
    effective = rotate_weekdays(MWF_SUNDAY_FIRST, SUNDAY_FIRST, MONDAY_FIRST)
    assert weekday_gaps(0, effective) == [2, 2, 3]
    # Using the authored flags directly would select Tue/Thu/Sat instead.
    assert weekday_gaps(0, MWF_SUNDAY_FIRST) != [2, 2, 3]
