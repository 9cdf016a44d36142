"""JSON error responses shared by the HTTP layer."""

from __future__ import annotations

from flask import Flask, jsonify, request
from pydantic import ValidationError

from ..logging_config import get_logger
from ..services.habits import HabitNotFoundError, InactiveHabitError

logger = get_logger(__name__)


def error_response(code: str, message: str, status: int, **extra):
    """Log a rejected request and build the ``{"error", "message"}`` body."""

    logger.warning(
        "Request rejected",
        extra={"error": code, "status": status, "path": request.path, "method": request.method},
    )
    payload = {"error": code, "message": message}
    payload.update(extra)
    return jsonify(payload), status


def validation_errors(exc: ValidationError) -> dict[str, list[str]]:
    """Group pydantic errors by top-level field name."""

    structured: dict[str, list[str]] = {}
    for error in exc.errors(include_url=False):
        loc = error.get("loc", ())
        key = str(loc[0]) if loc else "__root__"
        structured.setdefault(key, []).append(error.get("msg", "Invalid value"))
    return structured


def register_error_handlers(app: Flask) -> None:
    """Translate service exceptions into JSON responses."""

    @app.errorhandler(HabitNotFoundError)
    def _habit_not_found(exc: HabitNotFoundError):
        return error_response("habit_not_found", str(exc), 404)

    @app.errorhandler(InactiveHabitError)
    def _habit_inactive(exc: InactiveHabitError):
        return error_response("habit_inactive", str(exc), 400)

    @app.errorhandler(ValidationError)
    def _invalid_payload(exc: ValidationError):
        return error_response(
            "invalid_payload", "Request payload failed validation", 400, details=validation_errors(exc)
        )


__all__ = ["error_response", "register_error_handlers", "validation_errors"]
