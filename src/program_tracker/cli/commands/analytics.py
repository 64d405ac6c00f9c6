"""Analytics commands: log-sets, process-session, prs, volume, stats."""

import json
import uuid
from typing import Annotated, Optional

import typer

from ...core.clock import now_millis
from ...core.config import DEFAULT_RECENT_RECORDS, DEFAULT_VOLUME_WINDOW_DAYS
from ...core.models import LoggedSet
from ...io.serializers import ValidationError, parse_sets_string, record_to_dict
from .. import views
from ..app import (
    DataDirOption,
    JsonOption,
    UserOption,
    app,
    get_tracker,
    resolve_user,
    unwrap_or_exit,
)


@app.command("log-sets")
def log_sets(
    exercise_id: Annotated[str, typer.Argument(help="Exercise id, e.g. bench_press")],
    sets: Annotated[
        str,
        typer.Argument(help="Sets as WEIGHTxREPS[@RPE], comma-separated: '100x5@8, 3*100x5'"),
    ],
    session_id: Annotated[
        Optional[str],
        typer.Option("--session", "-s", help="Session id (default: a new id)"),
    ] = None,
    progression: Annotated[
        Optional[str],
        typer.Option(
            "--progression",
            help="Update the working weight with this model: linear, double, volume, bodyweight",
        ),
    ] = None,
    rpe_target: Annotated[
        float,
        typer.Option("--rpe-target", help="Prescribed RPE used by --progression"),
    ] = 8.0,
    data_dir: DataDirOption = None,
) -> None:
    """
    Log finished sets of one exercise.
    """
    try:
        parsed = parse_sets_string(sets)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    tracker = get_tracker(data_dir)
    session = session_id or str(uuid.uuid4())
    existing = unwrap_or_exit(tracker.get_session_sets(session))
    first = 1 + sum(1 for s in existing if s.exercise_id == exercise_id)
    now = now_millis(tracker.clock)

    logged = [
        LoggedSet(
            session_id=session,
            exercise_id=exercise_id,
            set_number=first + i,
            weight=weight,
            reps=reps,
            timestamp=now,
            rpe=rpe,
        )
        for i, (weight, reps, rpe) in enumerate(parsed)
    ]
    count = unwrap_or_exit(tracker.log_sets(logged))
    views.print_success(f"Logged {count} set(s) of {exercise_id} in session {session}")

    if progression is not None:
        result = unwrap_or_exit(
            tracker.apply_progression(exercise_id, logged, progression, rpe_target)
        )
        message = f"{result.kind}: {result.reason}"
        if result.new_weight is not None:
            message += f" → next working weight {views.fmt_weight(result.new_weight)}"
        views.print_info(message)


@app.command("process-session")
def process_session(
    session_id: Annotated[str, typer.Argument(help="Session id given to log-sets")],
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Detect personal records in a logged session.
    """
    tracker = get_tracker(data_dir)
    if not unwrap_or_exit(tracker.get_session_sets(session_id)):
        views.print_error(f"No sets logged for session {session_id}")
        raise typer.Exit(1)

    records = unwrap_or_exit(tracker.process_session_for_records(session_id))

    if json_out:
        print(json.dumps([record_to_dict(r) for r in records], indent=2))
        return

    if not records:
        views.print_info("No new personal records this session.")
        return
    views.print_records(records, title="New Personal Records")


@app.command()
def prs(
    exercise_id: Annotated[
        Optional[str],
        typer.Option("--exercise", "-e", help="Show the current bests of one exercise"),
    ] = None,
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", min=1, help="Number of recent records to list"),
    ] = DEFAULT_RECENT_RECORDS,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    List recent personal records.
    """
    tracker = get_tracker(data_dir)

    if exercise_id is not None:
        bests = unwrap_or_exit(tracker.current_bests(exercise_id))
        if json_out:
            print(json.dumps({"exercise_id": exercise_id, "bests": bests}, indent=2))
            return
        views.print_bests(exercise_id, bests)
        return

    records = unwrap_or_exit(tracker.recent_records(limit))
    if json_out:
        print(json.dumps([record_to_dict(r) for r in records], indent=2))
        return
    views.print_records(records)


@app.command()
def volume(
    days: Annotated[
        int,
        typer.Option("--days", "-d", min=1, help="Window length in days, today included"),
    ] = DEFAULT_VOLUME_WINDOW_DAYS,
    exercise_id: Annotated[
        Optional[str],
        typer.Option("--exercise", "-e", help="Restrict to one exercise"),
    ] = None,
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show training volume (kg × reps) over the last N days.
    """
    tracker = get_tracker(data_dir)
    total = unwrap_or_exit(tracker.aggregate_volume(days, exercise_id))

    if exercise_id is not None:
        if json_out:
            print(json.dumps({"exercise_id": exercise_id, "days": days, "volume": total}))
            return
        views.console.print(f"{exercise_id}: {total:,.0f} kg×reps in the last {days} day(s)")
        return

    if json_out:
        print(json.dumps({"days": days, "volume": total}, indent=2))
        return
    views.print_volume(total, days)  # type: ignore[arg-type]


@app.command()
def stats(
    data_dir: DataDirOption = None,
    user: UserOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show statistics across all of the user's enrollments.
    """
    tracker = get_tracker(data_dir)
    statistics = unwrap_or_exit(tracker.program_statistics(resolve_user(user)))

    if json_out:
        print(json.dumps({
            "total_programs_completed": statistics.total_programs_completed,
            "total_enrollments": statistics.total_enrollments,
            "favorite_goal": statistics.favorite_goal,
            "average_program_duration_days": statistics.average_program_duration_days,
            "enrollments_by_status": statistics.enrollments_by_status,
        }, indent=2))
        return

    views.console.print(views.format_statistics_display(statistics))
