"""Unit tests for calendar keys used by attendance and dues."""

from datetime import date

import pytest

from libs.common.datetime_utils import month_start, nearest_sunday, year_months


@pytest.mark.unit
def test_nearest_sunday_keeps_a_sunday():
    assert nearest_sunday(date(2025, 3, 2)) == date(2025, 3, 2)


@pytest.mark.unit
@pytest.mark.parametrize(
    "day,expected",
    [
        (date(2025, 3, 3), date(2025, 3, 9)),  # Monday
        (date(2025, 3, 8), date(2025, 3, 9)),  # Saturday
        (date(2025, 12, 29), date(2026, 1, 4)),  # across the year end
    ],
)
def test_nearest_sunday_moves_forward(day, expected):
    assert nearest_sunday(day) == expected


@pytest.mark.unit
def test_nearest_sunday_defaults_to_today():
    assert nearest_sunday().weekday() == 6


@pytest.mark.unit
def test_month_start():
    assert month_start(date(2025, 2, 28)) == date(2025, 2, 1)


@pytest.mark.unit
def test_year_months_covers_the_whole_year():
    months = year_months(2025)
    assert len(months) == 12
    assert months[0] == date(2025, 1, 1)
    assert months[-1] == date(2025, 12, 1)
    assert all(m.day == 1 for m in months)
