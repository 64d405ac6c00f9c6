"""Workout commands: today, substitute, reset-substitution."""

import json
from typing import Annotated, Optional

import typer

from .. import views
from ..app import (
    DataDirOption,
    JsonOption,
    UserOption,
    app,
    get_tracker,
    require_active_enrollment,
    resolve_user,
    unwrap_or_exit,
)

DayOption = Annotated[
    Optional[int],
    typer.Option("--day", "-d", min=1, help="Program day (default: the current day)"),
]


def _target_day(tracker, user: str | None, day: int | None) -> int:
    """Explicit --day, else the active enrollment's current day (day 1 before starting)."""
    if day is not None:
        return day
    enrollment = require_active_enrollment(tracker, resolve_user(user))
    return enrollment.current_day or 1


@app.command()
def today(
    data_dir: DataDirOption = None,
    user: UserOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show today's workout with substitutions and suggested weights.
    """
    tracker = get_tracker(data_dir)
    user_id = resolve_user(user)
    require_active_enrollment(tracker, user_id)
    workout = unwrap_or_exit(tracker.todays_workout(user_id))

    if json_out:
        print(json.dumps({
            "day_number": workout.program_day.day_number,
            "name": workout.program_day.name,
            "day_type": workout.program_day.day_type,
            "template_key": workout.program_day.template_key,
            "phase": workout.resolved.phase,
            "week_number": workout.resolved.week_number,
            "is_rest": workout.is_rest,
            "exercises": [
                {
                    "id": e.id,
                    "exercise_id": e.exercise_id,
                    "order_index": e.order_index,
                    "sets": e.sets,
                    "rep_range": [e.rep_range_min, e.rep_range_max],
                    "rpe_target": e.rpe_target,
                    "rest_seconds": e.rest_seconds,
                    "progression_type": e.progression_type,
                    "substituted_from": e.substituted_from,
                    "suggested_weight": workout.working_weights.get(e.exercise_id),
                }
                for e in workout.exercises
            ],
        }, indent=2))
        return

    views.print_todays_workout(workout)


@app.command()
def substitute(
    original: Annotated[str, typer.Argument(help="Exercise id in the template")],
    replacement: Annotated[str, typer.Argument(help="Exercise id to do instead")],
    day: DayOption = None,
    data_dir: DataDirOption = None,
    user: UserOption = None,
) -> None:
    """
    Replace an exercise on one program day.
    """
    tracker = get_tracker(data_dir)
    program_day = _target_day(tracker, user, day)

    unwrap_or_exit(tracker.set_day_substitution(program_day, original, replacement))
    views.print_success(f"Day {program_day}: {original} → {replacement}")


@app.command("reset-substitution")
def reset_substitution(
    original: Annotated[
        Optional[str],
        typer.Argument(help="Exercise id to restore (default: every exercise of the day)"),
    ] = None,
    day: DayOption = None,
    data_dir: DataDirOption = None,
    user: UserOption = None,
) -> None:
    """
    Restore the template's exercise(s) on one program day.
    """
    tracker = get_tracker(data_dir)
    program_day = _target_day(tracker, user, day)

    if original is None:
        unwrap_or_exit(tracker.clear_day_substitutions(program_day))
        views.print_success(f"Day {program_day}: all substitutions cleared")
        return

    current = unwrap_or_exit(tracker.get_day_substitution(program_day, original))
    if current is None:
        views.print_info(f"Day {program_day}: {original} is not substituted")
        return
    unwrap_or_exit(tracker.reset_day_substitution(program_day, original))
    views.print_success(f"Day {program_day}: {original} restored (was {current})")
