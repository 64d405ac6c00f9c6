"""Enrollment commands: enroll, start-day, complete-day, skip-day, partial-day, pause, resume, cancel, status."""

import json
from typing import Annotated, Optional

import typer

from ...io.serializers import enrollment_to_dict
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

NotesOption = Annotated[
    Optional[str],
    typer.Option("--notes", "-n", help="Free-text notes for the day"),
]
SessionOption = Annotated[
    Optional[str],
    typer.Option("--session", "-s", help="Workout session id the day is linked to"),
]


@app.command()
def enroll(
    program_id: Annotated[str, typer.Argument(help="Program id (see 'programs')")],
    data_dir: DataDirOption = None,
    user: UserOption = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Replace an active enrollment without asking"),
    ] = False,
) -> None:
    """
    Enroll in a program. Any active enrollment is cancelled.
    """
    tracker = get_tracker(data_dir)
    user_id = resolve_user(user)

    current = unwrap_or_exit(tracker.get_active_enrollment(user_id))
    if current is not None and not force:
        views.print_warning(
            f"Active enrollment in '{current.program_id}' (day {current.current_day}) will be cancelled."
        )
        if not views.confirm_action("Continue?"):
            views.print_info("Cancelled.")
            raise typer.Exit(0)

    enrollment = unwrap_or_exit(tracker.enroll(program_id, user_id))
    views.print_success(f"Enrolled {user_id} in {program_id}")
    views.print_info(
        f"Estimated completion: {views.fmt_date(enrollment.estimated_completion_date)}. "
        "Run 'start-day' to begin."
    )


@app.command("start-day")
def start_day(
    data_dir: DataDirOption = None,
    user: UserOption = None,
) -> None:
    """
    Advance to the next program day.
    """
    tracker = get_tracker(data_dir)
    enrollment = require_active_enrollment(tracker, resolve_user(user))

    day = unwrap_or_exit(tracker.start_day(enrollment.id))
    views.print_success(f"Day {day.day_number}: {day.name} ({day.day_type})")
    if day.description:
        views.print_info(day.description)


@app.command("complete-day")
def complete_day(
    data_dir: DataDirOption = None,
    user: UserOption = None,
    session_id: SessionOption = None,
    notes: NotesOption = None,
) -> None:
    """
    Mark the current day as completed.
    """
    tracker = get_tracker(data_dir)
    enrollment = require_active_enrollment(tracker, resolve_user(user))

    updated = unwrap_or_exit(tracker.complete_current_day(enrollment.id, session_id, notes))
    views.print_success(f"Day {updated.current_day} completed")
    if updated.status == "COMPLETED":
        views.print_success("Program completed. Well done!")


@app.command("skip-day")
def skip_day(
    data_dir: DataDirOption = None,
    user: UserOption = None,
    reason: Annotated[
        Optional[str],
        typer.Option("--reason", "-r", help="Why the day was skipped"),
    ] = None,
) -> None:
    """
    Skip the current day. The estimated completion date moves back one day.
    """
    tracker = get_tracker(data_dir)
    enrollment = require_active_enrollment(tracker, resolve_user(user))

    updated = unwrap_or_exit(tracker.skip_current_day(enrollment.id, reason))
    views.print_warning(
        f"Day {updated.current_day} skipped; estimated completion "
        f"{views.fmt_date(updated.estimated_completion_date)}"
    )


@app.command("partial-day")
def partial_day(
    data_dir: DataDirOption = None,
    user: UserOption = None,
    session_id: SessionOption = None,
    notes: NotesOption = None,
) -> None:
    """
    Record the current day as partially done.
    """
    tracker = get_tracker(data_dir)
    enrollment = require_active_enrollment(tracker, resolve_user(user))

    updated = unwrap_or_exit(tracker.mark_partial_day(enrollment.id, session_id, notes))
    views.print_info(f"Day {updated.current_day} recorded as partial")


@app.command()
def pause(
    data_dir: DataDirOption = None,
    user: UserOption = None,
) -> None:
    """
    Pause the active enrollment.
    """
    tracker = get_tracker(data_dir)
    enrollment = require_active_enrollment(tracker, resolve_user(user))
    unwrap_or_exit(tracker.pause(enrollment.id))
    views.print_success(f"Paused {enrollment.program_id} at day {enrollment.current_day}")


@app.command()
def resume(
    data_dir: DataDirOption = None,
    user: UserOption = None,
) -> None:
    """
    Resume a paused enrollment.
    """
    tracker = get_tracker(data_dir)
    enrollment = require_active_enrollment(tracker, resolve_user(user))
    unwrap_or_exit(tracker.resume(enrollment.id))
    views.print_success(f"Resumed {enrollment.program_id} at day {enrollment.current_day}")


@app.command()
def cancel(
    data_dir: DataDirOption = None,
    user: UserOption = None,
    purge: Annotated[
        bool,
        typer.Option("--purge", help="Also delete the enrollment and its day log"),
    ] = False,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation prompt"),
    ] = False,
) -> None:
    """
    Cancel the active enrollment.
    """
    tracker = get_tracker(data_dir)
    enrollment = require_active_enrollment(tracker, resolve_user(user))

    if not force and not views.confirm_action(f"Cancel enrollment in {enrollment.program_id}?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    if purge:
        removed = unwrap_or_exit(tracker.cancel_and_purge(enrollment.id))
        views.print_success(f"Enrollment deleted ({removed} day record(s) removed)")
        return

    unwrap_or_exit(tracker.cancel(enrollment.id))
    views.print_success(f"Enrollment in {enrollment.program_id} cancelled")


@app.command()
def status(
    data_dir: DataDirOption = None,
    user: UserOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show the active enrollment and its progress.
    """
    tracker = get_tracker(data_dir)
    enrollment = require_active_enrollment(tracker, resolve_user(user))
    summary = unwrap_or_exit(tracker.summarize(enrollment.id))

    if json_out:
        print(json.dumps({
            "enrollment": enrollment_to_dict(enrollment),
            "summary": {
                "total_days": summary.total_days,
                "completed_days": summary.completed_days,
                "skipped_days": summary.skipped_days,
                "partial_days": summary.partial_days,
                "current_streak": summary.current_streak,
                "longest_streak": summary.longest_streak,
                "avg_workouts_per_week": round(summary.avg_workouts_per_week, 2),
                "progress_percentage": round(summary.progress_percentage, 2),
                "estimated_completion_date": summary.estimated_completion_date,
            },
        }, indent=2))
        return

    program = tracker.catalog.get_program(enrollment.program_id)
    name = program.name if program is not None else enrollment.program_id
    views.console.print(views.format_status_display(enrollment, name, summary))
