"""Tests for the Flask CLI commands."""

from __future__ import annotations

from datetime import date

from habitlens.cli import seed_demo_habits
from habitlens.services.habits import record_completion


def test_seed_demo_habits(repository):
    created = seed_demo_habits(repository, days=28, today=date(2024, 1, 28))

    assert [habit.name for habit in created] == ["Morning Walk", "Evening Journal", "Budget Review"]
    walk = repository.get_by_id(created[0].id)
    assert len(repository.list_completions(walk.id)) == 28
    # every fourth day missed: 3-day runs
    assert walk.best_streak == 3
    assert walk.current_counter == 21


def test_seed_command(app):
    result = app.test_cli_runner().invoke(args=["habitlens-seed", "--days", "14"])

    assert result.exit_code == 0
    assert "Seeded 3 habit(s)" in result.output


def test_recompute_command(app, app_repository):
    habit = seed_demo_habits(app_repository, days=7)[0]
    record_completion(app_repository, habit.id, date.today())

    result = app.test_cli_runner().invoke(args=["habitlens-recompute"])

    assert result.exit_code == 0
    assert "Recomputed streaks for 3 habit(s)." in result.output


def test_export_trend_command(app, app_repository, tmp_path):
    habit = seed_demo_habits(app_repository, days=14, today=date(2024, 3, 14))[0]
    output = tmp_path / "charts" / "walk.png"

    result = app.test_cli_runner().invoke(
        args=["habitlens-export-trend", str(habit.id), "--year", "2024", "--output", str(output)]
    )

    assert result.exit_code == 0
    assert output.exists()
    assert output.read_bytes().startswith(b"\x89PNG")
    assert str(output) in result.output


def test_export_trend_defaults_to_data_dir(app, app_repository):
    habit = seed_demo_habits(app_repository, days=7, today=date(2024, 3, 7))[0]

    result = app.test_cli_runner().invoke(args=["habitlens-export-trend", str(habit.id), "--year", "2024"])

    expected = app.config["HABITLENS_CONFIG"].DATA_DIR / "exports" / f"habit_{habit.id}_2024.png"
    assert result.exit_code == 0
    assert expected.exists()


def test_export_trend_unknown_habit(app):
    result = app.test_cli_runner().invoke(args=["habitlens-export-trend", "999"])

    assert result.exit_code != 0
    assert "Habit 999 not found" in result.output
