"""Analytics and report routes."""

from __future__ import annotations

from datetime import date

from flask import Response, current_app, jsonify, request

from . import bp
from ..errors import error_response
from ...extensions import session_factory
from ...infra.repositories.habit import SQLModelHabitRepository
from ...services import reports
from ...services.analytics import calculate_monthly_trends
from ...services.habits import habit_analytics, parse_day, require_habit


def _repository() -> SQLModelHabitRepository:
    return SQLModelHabitRepository(session_factory)


def _period() -> str:
    return request.args.get("period") or current_app.config.get("DEFAULT_PERIOD", "30days")


@bp.get("/overview")
def overview():
    limit = current_app.config.get("MOST_CONSISTENT_LIMIT", 5)
    return jsonify(reports.overview_report(_repository(), limit=limit))


@bp.get("/habits")
def all_habits():
    """Analytics for every active habit over ``?period=``."""

    return jsonify(reports.all_habits_analytics(_repository(), _period()))


@bp.get("/habits/<int:habit_id>")
def single_habit(habit_id: int):
    top = current_app.config.get("TOP_STREAKS", 3)
    return jsonify(habit_analytics(_repository(), habit_id, _period(), top_streaks=top))


@bp.get("/habits/<int:habit_id>/trend.png")
def habit_trend_chart(habit_id: int):
    """Monthly success-rate bar chart for ``?year=`` (default current year)."""

    repository = _repository()
    habit = require_habit(repository, habit_id)
    year = request.args.get("year", type=int) or date.today().year
    if not date.min.year <= year <= date.max.year:
        return error_response("invalid_date", f"Year must be between {date.min.year} and {date.max.year}", 400)
    trends = calculate_monthly_trends(habit, repository.list_completions(habit_id), year)
    figure = reports.build_monthly_trend_chart(trends=trends, title=f"{habit.name} ({year})")
    return Response(reports.render_png(figure), mimetype="image/png")


@bp.get("/daily/<day>")
def daily(day: str):
    try:
        target = parse_day(day)
    except ValueError as exc:
        return error_response("invalid_date", str(exc), 400)
    return jsonify(reports.daily_report(_repository(), target))


@bp.get("/weekly/<start>")
def weekly(start: str):
    try:
        report = reports.weekly_report(_repository(), parse_day(start))
    except ValueError as exc:
        return error_response("invalid_date", str(exc), 400)
    return jsonify(report)


@bp.get("/monthly/<int:year>/<int:month>")
def monthly(year: int, month: int):
    try:
        report = reports.monthly_report(_repository(), year, month)
    except ValueError as exc:
        return error_response("invalid_month", str(exc), 400)
    return jsonify(report)


@bp.get("/quarter/<start>")
def quarter(start: str):
    try:
        report = reports.quarter_report(_repository(), parse_day(start))
    except ValueError as exc:
        return error_response("invalid_date", str(exc), 400)
    return jsonify(report)
