from datetime import date, datetime, timezone

import pytest

from shiftboard.errors import InvalidInput
from shiftboard.services import calendar


@pytest.mark.parametrize(
    "value, expected",
    [
        (date(2024, 6, 2), date(2024, 6, 2)),  # Sunday maps to itself
        (date(2024, 6, 3), date(2024, 6, 2)),
        (date(2024, 6, 8), date(2024, 6, 2)),  # Saturday closes the week
        (date(2024, 6, 9), date(2024, 6, 9)),
        (date(2024, 1, 1), date(2023, 12, 31)),  # crosses the year boundary
        (date(2024, 3, 1), date(2024, 2, 25)),
    ],
)
def test_week_start_is_sunday_on_or_before(value, expected):
    assert calendar.week_start(value) == expected
    assert calendar.is_week_start(calendar.week_start(value))


def test_next_week_start():
    assert calendar.next_week_start(date(2024, 6, 4)) == date(2024, 6, 9)
    assert calendar.next_week_start(date(2024, 6, 2)) == date(2024, 6, 2)


def test_week_range():
    assert calendar.week_range(date(2024, 6, 2)) == (date(2024, 6, 2), date(2024, 6, 8))
    assert calendar.week_range(date(2023, 12, 31)) == (date(2023, 12, 31), date(2024, 1, 6))


def test_day_delta_between_weeks():
    assert calendar.day_delta(date(2024, 6, 2), date(2024, 6, 9)) == 7
    assert calendar.day_delta(date(2024, 6, 9), date(2024, 6, 2)) == -7


def test_require_week_start_rejects_weekdays():
    assert calendar.require_week_start(date(2024, 6, 2)) == date(2024, 6, 2)
    with pytest.raises(InvalidInput):
        calendar.require_week_start(date(2024, 6, 3))


def test_as_utc_handles_naive_and_aware():
    naive = datetime(2024, 6, 1, 12, 0)
    assert calendar.as_utc(naive) == datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
    assert calendar.as_utc(None) is None
