"""Tests for success rates, weekday breakdowns and trend buckets."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from habitlens.models.habit import Habit
from habitlens.services.analytics import (
    NO_ACTIVE_DAY,
    DayOfWeekStat,
    calculate_day_of_week_stats,
    calculate_monthly_trends,
    calculate_quarterly_trends,
    calculate_success_rate,
    completion_distribution,
    find_best_and_worst_days,
    select_best_and_worst,
)
from habitlens.services.history import Completion

from conftest import assert_float_equal


def _habit(repetition: str = "daily", days=None, created_at: date = date(2023, 1, 1)) -> Habit:
    return Habit(
        name="Habit",
        repetition=repetition,
        specific_days=list(days or []),
        created_at=created_at,
    )


class TestSuccessRate:
    def test_four_sundays_all_completed(self):
        habit = _habit("weekly", [0])
        sundays = [date(2024, 1, 7) + timedelta(weeks=index) for index in range(4)]
        records = [Completion(day) for day in sundays]

        assert calculate_success_rate(habit, records, sundays[0], sundays[-1]) == 1.0

    def test_weekly_without_days_is_zero(self):
        habit = _habit("weekly", [])
        records = [Completion("2024-01-03"), Completion("2024-01-04")]

        assert calculate_success_rate(habit, records, "2024-01-01", "2024-12-31") == 0

    def test_half_completed(self):
        habit = _habit()
        records = [Completion(f"2024-01-{day:02d}") for day in range(1, 6)]

        assert_float_equal(calculate_success_rate(habit, records, "2024-01-01", "2024-01-10"), 0.5)

    def test_false_records_do_not_count(self):
        habit = _habit()
        records = [Completion("2024-01-01"), Completion("2024-01-02", completed=False)]

        assert calculate_success_rate(habit, records, "2024-01-01", "2024-01-02") == 0.5

    def test_numerator_counts_completions_on_unscheduled_days(self):
        """Completions on non-due dates still count toward the numerator."""
        habit = _habit("weekly", [2])  # Tuesdays
        records = [
            Completion("2024-01-02"),  # Tuesday, due
            Completion("2024-01-03"),  # Wednesday, not due
        ]

        rate = calculate_success_rate(habit, records, "2024-01-01", "2024-01-14")

        # two due Tuesdays, two completions in range
        assert rate == 1.0

    def test_rate_is_capped_at_one(self):
        """Seven completions against one due Tuesday: the raw ratio of 7.0 is capped at 1.0."""
        habit = _habit("weekly", [2])
        records = [Completion(f"2024-01-{day:02d}") for day in range(1, 8)]

        assert calculate_success_rate(habit, records, "2024-01-01", "2024-01-07") == 1.0

    def test_records_outside_range_ignored(self):
        habit = _habit()
        records = [Completion("2023-12-31"), Completion("2024-01-02")]

        assert calculate_success_rate(habit, records, "2024-01-01", "2024-01-02") == 0.5


class TestDayOfWeek:
    def test_only_tuesdays_scheduled(self):
        habit = _habit("weekly", [2])
        tuesdays = [date(2024, 1, 2), date(2024, 1, 9), date(2024, 1, 16)]
        records = [Completion(day) for day in tuesdays]

        stats = calculate_day_of_week_stats(habit, records, "2024-01-01", "2024-01-20")

        assert stats[2] == DayOfWeekStat(day_of_week=2, total_days=3, completed_days=3, success_rate=1.0)
        assert all(stat.total_days == 0 for index, stat in enumerate(stats) if index != 2)

    def test_best_and_worst_both_tuesday(self):
        habit = _habit("weekly", [2])
        records = [Completion(day) for day in (date(2024, 1, 2), date(2024, 1, 9), date(2024, 1, 16))]

        result = find_best_and_worst_days(habit, records, "2024-01-01", "2024-01-20")

        assert result.best == 2
        assert result.worst == 2

    def test_no_due_dates_gives_sentinel(self):
        habit = _habit("monthly", [31])

        result = find_best_and_worst_days(habit, [], "2024-02-01", "2024-02-29")

        assert (result.best, result.worst) == (NO_ACTIVE_DAY, NO_ACTIVE_DAY)

    def test_ties_go_to_first_weekday(self):
        stats = [
            DayOfWeekStat(day_of_week=1, total_days=2, completed_days=1, success_rate=0.5),
            DayOfWeekStat(day_of_week=3, total_days=2, completed_days=1, success_rate=0.5),
            DayOfWeekStat(day_of_week=5, total_days=2, completed_days=1, success_rate=0.5),
        ]

        result = select_best_and_worst(stats)

        assert (result.best, result.worst) == (1, 1)

    def test_best_and_worst_differ(self):
        habit = _habit()
        # one full week, Monday (1) and Friday (5) missed
        records = [
            Completion(day, completed=day.isoweekday() not in (1, 5))
            for day in (date(2024, 1, 7) + timedelta(days=offset) for offset in range(7))
        ]

        result = find_best_and_worst_days(habit, records, "2024-01-07", "2024-01-13")

        assert result.best == 0
        assert result.worst == 1

    def test_stat_to_dict_includes_day_name(self):
        stat = DayOfWeekStat(day_of_week=0, total_days=1, completed_days=1, success_rate=1.0)

        assert stat.to_dict()["day_name"] == "Sunday"


class TestTrends:
    def test_monthly_trends_cover_twelve_months(self):
        habit = _habit()
        records = [Completion(f"2024-02-{day:02d}") for day in range(1, 30)]

        trends = calculate_monthly_trends(habit, records, 2024)

        assert len(trends) == 12
        assert trends[1].success_rate == 1.0
        assert trends[1].completions == 29
        assert trends[0].success_rate == 0
        assert trends[1].to_dict()["month_name"] == "February"

    def test_quarterly_trends(self):
        habit = _habit("monthly", [1])
        records = [Completion("2024-01-01"), Completion("2024-02-01"), Completion("2024-04-01")]

        trends = calculate_quarterly_trends(habit, records, 2024)

        assert [trend.quarter for trend in trends] == [1, 2, 3, 4]
        assert_float_equal(trends[0].success_rate, 2 / 3)
        assert_float_equal(trends[1].success_rate, 1 / 3)
        assert trends[3].completions == 0


class TestCompletionDistribution:
    def test_clamps_to_creation_date(self):
        habit = _habit(created_at=date(2024, 1, 5))
        records = [Completion("2024-01-03"), Completion("2024-01-05"), Completion("2024-01-06")]

        assert completion_distribution(habit, records, "2024-01-01", "2024-01-10") == (6, 2)

    @pytest.mark.parametrize("repetition", ["daily", "weekly", "monthly"])
    def test_empty_history(self, repetition):
        habit = _habit(repetition, [1])

        due, completed = completion_distribution(habit, [], "2024-01-01", "2024-01-31")

        assert completed == 0
        assert due >= 1
