"""Unit tests for business-day arithmetic."""

from __future__ import annotations

from datetime import date

import pytest

from modules.milestones.calendar import (
    add_business_days,
    is_business_day,
    shift_business_days,
    shift_calendar_days,
    subtract_business_days,
    to_business_day,
)

pytestmark = pytest.mark.unit

FRIDAY = date(2024, 1, 5)
SATURDAY = date(2024, 1, 6)
SUNDAY = date(2024, 1, 7)
MONDAY = date(2024, 1, 8)


class TestBusinessDays:
    def test_weekdays_are_business_days(self):
        assert is_business_day(FRIDAY)
        assert is_business_day(MONDAY)

    def test_weekend_is_not(self):
        assert not is_business_day(SATURDAY)
        assert not is_business_day(SUNDAY)

    @pytest.mark.parametrize("day", [SATURDAY, SUNDAY])
    def test_weekend_moves_back_to_friday(self, day):
        assert to_business_day(day) == FRIDAY

    def test_business_day_is_unchanged(self):
        assert to_business_day(MONDAY) == MONDAY


class TestShifts:
    def test_add_skips_weekend(self):
        assert add_business_days(FRIDAY, 1) == MONDAY

    def test_subtract_skips_weekend(self):
        assert subtract_business_days(MONDAY, 1) == FRIDAY

    def test_four_weeks_back(self):
        assert subtract_business_days(date(2024, 3, 1), 20) == date(2024, 2, 2)

    def test_zero_offset_keeps_start(self):
        assert shift_business_days(FRIDAY, 0) == FRIDAY

    def test_negative_add_delegates(self):
        assert add_business_days(MONDAY, -1) == FRIDAY
        assert subtract_business_days(FRIDAY, -1) == MONDAY

    def test_signed_shift(self):
        assert shift_business_days(date(2024, 3, 1), 22) == date(2024, 4, 2)
        assert shift_business_days(date(2024, 3, 1), -5) == date(2024, 2, 23)

    def test_calendar_shift_lands_on_weekend_falls_back(self):
        # 2024-01-31 minus 3 calendar days is Sunday 2024-01-28
        assert shift_calendar_days(date(2024, 1, 31), -3) == date(2024, 1, 26)

    def test_calendar_shift_on_weekday(self):
        assert shift_calendar_days(date(2024, 1, 26), -2) == date(2024, 1, 24)
