"""Tests for resource_planner/weeks.py."""

from datetime import date

import pytest

from resource_planner.weeks import week_start, week_starts, weeks_spanned


class TestWeekStart:
    def test_monday_is_its_own_week_start(self):
        assert week_start(date(2025, 1, 6)) == date(2025, 1, 6)

    def test_midweek_and_sunday_roll_back_to_monday(self):
        assert week_start(date(2025, 1, 8)) == date(2025, 1, 6)
        assert week_start(date(2025, 1, 19)) == date(2025, 1, 13)

    def test_crosses_year_boundary(self):
        assert week_start(date(2025, 1, 1)) == date(2024, 12, 30)


class TestWeeksSpanned:
    def test_two_full_weeks(self):
        assert weeks_spanned(date(2025, 1, 6), date(2025, 1, 19)) == 2

    def test_four_full_weeks(self):
        assert weeks_spanned(date(2025, 1, 6), date(2025, 2, 2)) == 4

    def test_partial_week_counts_as_one(self):
        assert weeks_spanned(date(2025, 1, 8), date(2025, 1, 10)) == 1

    def test_single_day_spill_adds_a_week(self):
        assert weeks_spanned(date(2025, 1, 6), date(2025, 1, 20)) == 3

    def test_inverted_range_floors_at_one(self):
        assert weeks_spanned(date(2025, 1, 20), date(2025, 1, 6)) == 1


class TestWeekStarts:
    def test_consecutive_mondays(self):
        assert week_starts(date(2025, 1, 6), 3) == [
            date(2025, 1, 6),
            date(2025, 1, 13),
            date(2025, 1, 20),
        ]

    def test_rejects_non_positive_count(self):
        with pytest.raises(ValueError):
            week_starts(date(2025, 1, 6), 0)
