"""Habit routes."""

from __future__ import annotations

from datetime import date

from flask import jsonify, request

from . import bp
from ..errors import error_response
from ...extensions import session_factory
from ...infra.repositories.habit import SQLModelHabitRepository
from ...models.habit import Habit
from ...services import habits as habit_service
from .forms import BatchCompletionForm, CompletionForm, HabitForm


def _repository() -> SQLModelHabitRepository:
    return SQLModelHabitRepository(session_factory)


def _payload() -> dict:
    return request.get_json(silent=True) or {}


@bp.get("/")
def list_habits():
    """List habits; archived ones only when ``include_inactive`` is set."""

    include_inactive = request.args.get("include_inactive", "").lower() in {"1", "true", "yes"}
    habits = _repository().list_all(include_inactive=include_inactive)
    return jsonify({"habits": [habit.to_dict() for habit in habits]})


@bp.post("/")
def create_habit():
    form = HabitForm.model_validate(_payload())
    habit = Habit(
        name=form.name,
        description=form.description,
        tag=form.tag,
        repetition=form.repetition.value,
        specific_days=form.specific_days,
        goal_value=form.goal_value,
        is_active=form.is_active,
        created_at=form.created_at or date.today(),
    )
    created = _repository().create(habit)
    return jsonify(created.to_dict()), 201


@bp.get("/<int:habit_id>")
def get_habit(habit_id: int):
    habit = habit_service.require_habit(_repository(), habit_id)
    return jsonify(habit.to_dict())


@bp.delete("/<int:habit_id>")
def delete_habit(habit_id: int):
    if not _repository().delete(habit_id):
        raise habit_service.HabitNotFoundError(habit_id)
    return jsonify({"deleted": True, "habit_id": habit_id})


@bp.get("/<int:habit_id>/completions")
def list_completions(habit_id: int):
    """Completion records for a habit, optionally bounded by ``start_date``/``end_date``."""

    repository = _repository()
    habit_service.require_habit(repository, habit_id)
    try:
        start = _optional_day(request.args.get("start_date"))
        end = _optional_day(request.args.get("end_date"))
    except ValueError as exc:
        return error_response("invalid_date", str(exc), 400)

    records = repository.list_completions(habit_id, start, end)
    return jsonify({"habit_id": habit_id, "completions": [record.to_dict() for record in records]})


@bp.post("/<int:habit_id>/completions")
def record_completion(habit_id: int):
    """Create or overwrite the record for one day and return refreshed streaks."""

    form = CompletionForm.model_validate(_payload())
    repository = _repository()
    record = habit_service.record_completion(
        repository, habit_id, form.occurred_on, form.completed
    )
    habit = habit_service.require_habit(repository, habit_id)
    return jsonify({"completion": record.to_dict(), "habit": habit.to_dict()}), 201


@bp.delete("/<int:habit_id>/completions/<day>")
def delete_completion(habit_id: int, day: str):
    try:
        occurred_on = habit_service.parse_day(day)
    except ValueError as exc:
        return error_response("invalid_date", str(exc), 400)

    repository = _repository()
    if not habit_service.delete_completion(repository, habit_id, occurred_on):
        return error_response(
            "completion_not_found",
            f"No completion for habit {habit_id} on {occurred_on.isoformat()}",
            404,
        )
    habit = habit_service.require_habit(repository, habit_id)
    return jsonify({"deleted": True, "habit": habit.to_dict()})


@bp.post("/completions/batch")
def record_completions_batch():
    """Apply several writes; unknown habit ids are skipped."""

    form = BatchCompletionForm.model_validate(_payload())
    writes = [
        habit_service.CompletionWrite(
            habit_id=item.habit_id, occurred_on=item.occurred_on, completed=item.completed
        )
        for item in form.completions
    ]
    saved = habit_service.record_completions_batch(_repository(), writes)
    return jsonify(
        {
            "saved": len(saved),
            "skipped": len(writes) - len(saved),
            "completions": [record.to_dict() for record in saved],
        }
    )


def _optional_day(value: str | None) -> date | None:
    if not value:
        return None
    return habit_service.parse_day(value)
