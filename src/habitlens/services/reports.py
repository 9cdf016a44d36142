"""Cross-habit reports built on top of the analytics engine."""

from __future__ import annotations

import io
import math
from calendar import monthrange
from collections import defaultdict
from datetime import date, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Iterable, Optional

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
from matplotlib.figure import Figure

from ..models.habit import CompletionRecord, Habit
from .analytics import (
    MonthlyTrend,
    calculate_success_rate,
    day_name,
    find_best_and_worst_days,
    month_name,
)
from .habits import DEFAULT_PERIOD, period_window
from .history import completion_map, schedule_for
from .schedule import date_range, is_due, weekday_index
from .streaks import calculate_streak_periods

if TYPE_CHECKING:  # pragma: no cover
    from ..domain.repositories.habit import HabitRepository

QUARTER_DAYS = 91


def _load_active(
    repository: HabitRepository,
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> tuple[list[Habit], dict[int, list[CompletionRecord]]]:
    """Active habits plus their records grouped by habit id."""

    habits = repository.list_active()
    grouped: dict[int, list[CompletionRecord]] = defaultdict(list)
    ids = [habit.id for habit in habits if habit.id is not None]
    for record in repository.list_completions_for_habits(ids, start, end):
        grouped[record.habit_id].append(record)
    return habits, grouped


def _due_for(habit: Habit, day: date, *, created_by: Optional[date] = None) -> bool:
    """Due on ``day`` and created no later than ``created_by`` (default ``day``)."""

    if habit.created_at > (created_by or day):
        return False
    return is_due(day, schedule_for(habit))


def _window_end(start: date, days: int) -> date:
    """Last day of a ``days``-long window starting at ``start``."""

    try:
        return start + timedelta(days=days - 1)
    except OverflowError as exc:
        raise ValueError(f"A {days}-day window starting {start.isoformat()} ends past the last supported date") from exc


def overview_report(
    repository: HabitRepository, *, today: date | None = None, limit: int = 5
) -> dict:
    """Dashboard summary across all active habits."""

    today = today or date.today()
    window_start = today - timedelta(days=30)
    habits, grouped = _load_active(repository)

    completed_today = sum(
        1
        for habit in habits
        for record in grouped.get(habit.id, [])
        if record.occurred_on == today and record.completed
    )

    consistency = [
        {
            "habit_id": habit.id,
            "habit_name": habit.name,
            "success_rate": calculate_success_rate(
                habit, grouped.get(habit.id, []), window_start, today
            ),
            "current_streak": habit.current_streak,
            "best_streak": habit.best_streak,
        }
        for habit in habits
    ]
    most_consistent = sorted(
        (item for item in consistency if item["success_rate"] > 0),
        key=lambda item: item["success_rate"],
        reverse=True,
    )[:limit]

    longest = max(habits, key=lambda habit: habit.best_streak, default=None)

    window_records = [
        record
        for habit in habits
        for record in grouped.get(habit.id, [])
        if window_start <= record.occurred_on <= today
    ]
    habit_days = sum(
        sum(1 for day in date_range(window_start, today) if day >= habit.created_at)
        for habit in habits
    )
    window_completed = sum(1 for record in window_records if record.completed)

    counts = [0] * 7
    completed = [0] * 7
    for record in window_records:
        index = weekday_index(record.occurred_on)
        counts[index] += 1
        if record.completed:
            completed[index] += 1
    day_stats = [
        {
            "day_of_week": index,
            "day_name": day_name(index),
            "success_rate": completed[index] / counts[index] if counts[index] else 0,
            "total_completions": completed[index],
        }
        for index in range(7)
    ]
    best_day = None
    for stat in day_stats:
        if stat["total_completions"] > 0 and (
            best_day is None or stat["success_rate"] > best_day["success_rate"]
        ):
            best_day = stat

    return {
        "total_habits": len(habits),
        "active_habits_count": len(habits),
        "completed_today": completed_today,
        "most_consistent_habits": most_consistent,
        "longest_streak_habit": (
            {"habit_name": longest.name, "best_streak": longest.best_streak} if longest else None
        ),
        "last_30_days_success_rate": window_completed / habit_days if habit_days else 0,
        "best_day_of_week": best_day,
        "day_of_week_stats": day_stats,
    }


def all_habits_analytics(
    repository: HabitRepository,
    period: Optional[str] = DEFAULT_PERIOD,
    *,
    today: date | None = None,
) -> dict:
    """Per-habit analytics for every active habit, best success rate first."""

    start, end = period_window(period, today=today)
    every_habit = repository.list_all(include_inactive=True)
    habits, grouped = _load_active(repository, start, end)
    weeks = math.ceil((end - start).days / 7)

    rows = []
    for habit in habits:
        records = grouped.get(habit.id, [])
        best_worst = find_best_and_worst_days(habit, records, start, end)
        periods = calculate_streak_periods(completion_map(records), schedule_for(habit))
        total = sum(1 for record in records if record.completed)
        rows.append(
            {
                "habit_id": habit.id,
                "habit_name": habit.name,
                "tag": habit.tag,
                "repetition": habit.repetition,
                "success_rate": calculate_success_rate(habit, records, start, end),
                "best_day_of_week": best_worst.best,
                "worst_day_of_week": best_worst.worst,
                "longest_streak": max((run.length for run in periods), default=0),
                "total_completions": total,
                "average_completions_per_week": total / weeks if weeks > 0 else 0,
                "current_streak": habit.current_streak,
                "best_streak": habit.best_streak,
                "current_counter": habit.current_counter,
                "goal_value": habit.goal_value,
                "is_active": habit.is_active,
            }
        )

    count = len(rows)
    return {
        "period": period or DEFAULT_PERIOD,
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "total_habits": len(every_habit),
        "active_habits": count,
        "habits": sorted(rows, key=lambda row: row["success_rate"], reverse=True),
        "summary": {
            "average_success_rate": (
                sum(row["success_rate"] for row in rows) / count if count else 0
            ),
            "total_completions": sum(row["total_completions"] for row in rows),
            "average_streak": sum(row["longest_streak"] for row in rows) / count if count else 0,
        },
    }


def daily_report(repository: HabitRepository, day: date) -> dict:
    """Which due habits were completed on ``day``."""

    habits, grouped = _load_active(repository, day, day)
    due = [habit for habit in habits if _due_for(habit, day)]

    details = []
    tags: dict[str, dict[str, int]] = {}
    for habit in due:
        done = any(record.completed for record in grouped.get(habit.id, []))
        details.append(
            {
                "habit_id": habit.id,
                "habit_name": habit.name,
                "tag": habit.tag,
                "goal_value": habit.goal_value,
                "completed": done,
            }
        )
        bucket = tags.setdefault(habit.tag, {"total": 0, "completed": 0})
        bucket["total"] += 1
        if done:
            bucket["completed"] += 1

    completed_count = sum(1 for item in details if item["completed"])
    tag_stats = sorted(
        (
            {
                "tag": tag,
                "total_habits": bucket["total"],
                "completed_habits": bucket["completed"],
                "completion_rate": bucket["completed"] / bucket["total"],
            }
            for tag, bucket in tags.items()
        ),
        key=lambda item: item["completion_rate"],
        reverse=True,
    )

    return {
        "date": day.isoformat(),
        "completion_rate": round(completed_count / len(due), 2) if due else 0,
        "total_habits": len(due),
        "completed_habits": completed_count,
        "habit_details": details,
        "tag_stats": tag_stats,
    }


def _completed_ids(records_by_habit: dict[int, list[CompletionRecord]], day: date) -> set[int]:
    return {
        habit_id
        for habit_id, records in records_by_habit.items()
        for record in records
        if record.occurred_on == day and record.completed
    }


def weekly_report(repository: HabitRepository, start: date) -> dict:
    """Seven-day report starting at ``start``."""

    end = _window_end(start, 7)
    habits, grouped = _load_active(repository, start, end)

    daily_stats = []
    for day in date_range(start, end):
        relevant = [habit for habit in habits if _due_for(habit, day, created_by=end)]
        done = _completed_ids(grouped, day) & {habit.id for habit in relevant}
        rate = len(done) / len(relevant) * 100 if relevant else 0
        daily_stats.append(
            {
                "date": day.isoformat(),
                "day_of_week": weekday_index(day),
                "day_name": day_name(weekday_index(day)),
                "total_habits": len(relevant),
                "completed_habits": len(done),
                "completion_rate": round(rate, 2),
            }
        )

    habit_stats = []
    for habit in habits:
        schedule = schedule_for(habit)
        active_days = sum(1 for day in date_range(start, end) if is_due(day, schedule))
        done_dates = [
            record.occurred_on.isoformat()
            for record in grouped.get(habit.id, [])
            if record.completed
        ]
        habit_stats.append(
            {
                "habit_id": habit.id,
                "habit_name": habit.name,
                "active_days_count": active_days,
                "completed_days_count": len(done_dates),
                "success_rate": min(1.0, len(done_dates) / active_days) if active_days else 0,
                "completed_dates": done_dates,
            }
        )

    overall = sum(item["completion_rate"] for item in daily_stats) / len(daily_stats)
    return {
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "daily_stats": daily_stats,
        "weekly_stats": {
            "overall_success_rate": round(overall, 2),
            "total_completions": sum(item["completed_habits"] for item in daily_stats),
            "most_productive_day": _first_extreme(daily_stats, "completion_rate", highest=True),
            "least_productive_day": _first_extreme(daily_stats, "completion_rate", highest=False),
            "most_productive_habit": _first_extreme(
                [item for item in habit_stats if item["active_days_count"] > 0],
                "success_rate",
                highest=True,
            ),
        },
        "habit_stats": habit_stats,
    }


def monthly_report(repository: HabitRepository, year: int, month: int) -> dict:
    """Month view: per-day completion, per-weekday totals, per-habit rates."""

    if not 1 <= month <= 12:
        raise ValueError("Invalid year or month. Month should be 1-12")

    start = date(year, month, 1)
    end = date(year, month, monthrange(year, month)[1])
    habits, grouped = _load_active(repository, start, end)

    daily = []
    for day in date_range(start, end):
        due = [habit for habit in habits if _due_for(habit, day)]
        done = _completed_ids(grouped, day)
        daily.append(
            {
                "date": day.isoformat(),
                "day_of_week": weekday_index(day),
                "day_name": day_name(weekday_index(day)),
                "count": len(done),
                "total_habits": len(due),
                "completion_rate": min(1.0, len(done) / len(due)) if due else 0,
            }
        )

    weekday_stats = []
    for index in range(7):
        days = [item for item in daily if item["day_of_week"] == index]
        total = sum(item["total_habits"] for item in days)
        count = sum(item["count"] for item in days)
        weekday_stats.append(
            {
                "day_of_week": index,
                "day_name": day_name(index),
                "success_rate": min(1.0, count / total) if total else 0,
                "total_habits": total,
                "completed_habits": count,
            }
        )

    habit_stats = []
    for habit in habits:
        active_days = sum(1 for day in date_range(start, end) if _due_for(habit, day))
        done_count = sum(1 for record in grouped.get(habit.id, []) if record.completed)
        habit_stats.append(
            {
                "habit_id": habit.id,
                "habit_name": habit.name,
                "tag": habit.tag,
                "active_days_count": active_days,
                "completed_days_count": done_count,
                "completion_rate": done_count / active_days if active_days else 0,
                "current_streak": habit.current_streak,
                "best_streak": habit.best_streak,
            }
        )

    total_active = sum(item["active_days_count"] for item in habit_stats)
    total_completions = sum(item["count"] for item in daily)
    scored_days = [item for item in daily if item["total_habits"] > 0]
    productive = _first_extreme(
        [item for item in habit_stats if item["active_days_count"] > 0],
        "completion_rate",
        highest=True,
    )
    best_streak_habit = max(habit_stats, key=lambda item: item["best_streak"], default=None)

    return {
        "year": year,
        "month": month,
        "month_name": month_name(month),
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "daily_completion_counts": daily,
        "day_of_week_stats": weekday_stats,
        "habit_stats": sorted(habit_stats, key=lambda item: item["completion_rate"], reverse=True),
        "monthly_stats": {
            "total_habits": len(habit_stats),
            "total_completions": total_completions,
            "overall_completion_rate": (
                min(1.0, total_completions / total_active) if total_active else 0
            ),
            "most_productive_habit": productive["habit_name"] if productive else None,
            "best_streak_habit": best_streak_habit["habit_name"] if best_streak_habit else None,
            "best_day": _first_extreme(scored_days, "completion_rate", highest=True),
            "worst_day": _first_extreme(scored_days, "completion_rate", highest=False),
        },
    }


def quarter_report(repository: HabitRepository, start: date) -> dict:
    """91-day completion heatmap starting at ``start``.

    A day's rate covers only habits with a record on that day.
    """

    end = _window_end(start, QUARTER_DAYS)
    habits, grouped = _load_active(repository, start, end)
    by_day: dict[date, dict[int, bool]] = defaultdict(dict)
    for habit in habits:
        for record in grouped.get(habit.id, []):
            by_day[record.occurred_on][habit.id] = record.completed

    daily_data = []
    for day in date_range(start, end):
        states = by_day.get(day, {})
        done = sum(1 for value in states.values() if value)
        rate = done / len(states) * 100 if states else 0
        daily_data.append({"date": day.isoformat(), "completion_rate": round(rate, 2)})

    return {
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "total_days": len(daily_data),
        "daily_data": daily_data,
    }


def _first_extreme(items: list[dict], key: str, *, highest: bool) -> Optional[dict]:
    """First item holding the highest (or lowest) value of ``key``."""

    chosen = None
    for item in items:
        if chosen is None:
            chosen = item
        elif highest and item[key] > chosen[key]:
            chosen = item
        elif not highest and item[key] < chosen[key]:
            chosen = item
    return chosen


def build_monthly_trend_chart(
    *, trends: Iterable[MonthlyTrend], title: str = "Monthly success rate"
) -> Figure:
    """Bar chart of success rate (percent) per month with completion counts on top."""

    rows = list(trends)
    fig, ax = plt.subplots(figsize=(10, 4))

    if rows:
        labels = [month_name(row.month)[:3] for row in rows]
        values = [row.success_rate * 100 for row in rows]
        bars = ax.bar(labels, values, color="#4F46E5", edgecolor="white", linewidth=1.0)
        for bar, row in zip(bars, rows):
            if row.completions:
                ax.text(
                    bar.get_x() + bar.get_width() / 2,
                    bar.get_height() + 1,
                    str(row.completions),
                    ha="center",
                    va="bottom",
                    fontsize=8,
                    color="#374151",
                )
        ax.set_ylim(0, 110)
        ax.set_ylabel("Success rate (%)")
        ax.grid(axis="y", alpha=0.3)
    else:
        ax.text(0.5, 0.5, "No completion data", ha="center", va="center", fontsize=14, color="#666")
        ax.axis("off")

    ax.set_title(title, fontsize=14, fontweight="bold")
    fig.tight_layout()
    return fig


def render_png(figure: Figure) -> bytes:
    """Serialize a chart to PNG bytes and release it."""

    buffer = io.BytesIO()
    figure.savefig(buffer, format="png", bbox_inches="tight", dpi=120)
    plt.close(figure)
    return buffer.getvalue()


def export_trend_png(
    *,
    trends: Iterable[MonthlyTrend],
    output_path: Path,
    title: str = "Monthly success rate",
) -> Path:
    """Render the monthly trend chart to PNG and return the path."""

    fig = build_monthly_trend_chart(trends=trends, title=title)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, bbox_inches="tight", dpi=120)
    plt.close(fig)
    return output_path


__all__ = [
    "QUARTER_DAYS",
    "all_habits_analytics",
    "build_monthly_trend_chart",
    "daily_report",
    "export_trend_png",
    "monthly_report",
    "overview_report",
    "quarter_report",
    "render_png",
    "weekly_report",
]
