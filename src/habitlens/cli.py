"""Flask CLI commands for HabitLens."""

from __future__ import annotations

from datetime import date, timedelta
from pathlib import Path

import click


def init_app(app) -> None:
    """Register CLI commands on the Flask app."""

    @app.cli.command("habitlens-recompute")
    def habitlens_recompute() -> None:
        """Refresh stored streak fields for every habit."""

        # Import here to avoid circular imports at module import time
        from .extensions import session_factory
        from .infra.repositories.habit import SQLModelHabitRepository
        from .services.habits import recompute_all

        count = recompute_all(SQLModelHabitRepository(session_factory))
        click.echo(f"Recomputed streaks for {count} habit(s).")

    @app.cli.command("habitlens-seed")
    @click.option("--days", default=28, show_default=True, help="Days of history to generate")
    def habitlens_seed(days: int) -> None:
        """Insert demo habits with a few weeks of completions."""

        from .extensions import session_factory
        from .infra.repositories.habit import SQLModelHabitRepository

        repository = SQLModelHabitRepository(session_factory)
        created = seed_demo_habits(repository, days=days)
        click.echo(f"Seeded {len(created)} habit(s) with {days} day(s) of history.")

    @app.cli.command("habitlens-export-trend")
    @click.argument("habit_id", type=int)
    @click.option("--year", type=click.IntRange(date.min.year, date.max.year), help="Defaults to the current year")
    @click.option("--output", type=click.Path(dir_okay=False, path_type=Path), help="PNG file to write")
    def habitlens_export_trend(habit_id: int, year: int | None, output: Path | None) -> None:
        """Write a habit's monthly success-rate chart to a PNG file."""

        from .extensions import session_factory
        from .infra.repositories.habit import SQLModelHabitRepository
        from .services.analytics import calculate_monthly_trends
        from .services.habits import HabitNotFoundError, require_habit
        from .services.reports import export_trend_png

        repository = SQLModelHabitRepository(session_factory)
        try:
            habit = require_habit(repository, habit_id)
        except HabitNotFoundError as exc:
            raise click.ClickException(f"Habit {habit_id} not found") from exc

        year = year or date.today().year
        if output is None:
            data_dir = Path(app.config["HABITLENS_CONFIG"].DATA_DIR)
            output = data_dir / "exports" / f"habit_{habit_id}_{year}.png"
        trends = calculate_monthly_trends(habit, repository.list_completions(habit_id), year)
        path = export_trend_png(trends=trends, output_path=output, title=f"{habit.name} ({year})")
        click.echo(f"Trend chart written to {path}")


def seed_demo_habits(repository, *, days: int = 28, today: date | None = None) -> list:
    """Create the demo habit set and backfill completions; return the created habits."""

    from .models.habit import Habit
    from .services.habits import CompletionWrite, record_completions_batch
    from .services.history import schedule_for
    from .services.schedule import date_range, is_due

    today = today or date.today()
    start = today - timedelta(days=days - 1)
    demo = [
        (Habit(name="Morning Walk", tag="health", created_at=start), 4),
        (
            Habit(
                name="Evening Journal",
                tag="mindfulness",
                repetition="weekly",
                specific_days=[1, 3, 5],
                created_at=start,
            ),
            3,
        ),
        (
            Habit(
                name="Budget Review",
                tag="finance",
                repetition="monthly",
                specific_days=[1, 15],
                created_at=start,
            ),
            1,
        ),
    ]

    created = []
    writes: list[CompletionWrite] = []
    for habit, skip_every in demo:
        stored = repository.create(habit)
        created.append(stored)
        schedule = schedule_for(stored)
        due_days = [day for day in date_range(start, today) if is_due(day, schedule)]
        for index, day in enumerate(due_days, start=1):
            # every ``skip_every``-th due day is missed; 1 misses nothing
            missed = skip_every > 1 and index % skip_every == 0
            writes.append(CompletionWrite(habit_id=stored.id, occurred_on=day, completed=not missed))

    record_completions_batch(repository, writes, today=today)
    return created


__all__ = ["init_app", "seed_demo_habits"]
