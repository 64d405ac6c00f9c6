"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of programs, enrollments, workouts
and records.
"""

from rich.console import Console
from rich.table import Table

from ..core.clock import from_millis
from ..core.models import (
    Enrollment,
    PersonalRecord,
    ProgramStatistics,
    ProgressSummary,
)
from ..core.programs.base import Program
from ..core.tracker import TodaysWorkout

console = Console()

_STATUS_STYLE = {
    "ENROLLED": "cyan",
    "IN_PROGRESS": "green",
    "PAUSED": "yellow",
    "COMPLETED": "bold green",
    "CANCELLED": "dim",
}


def fmt_date(millis: int | None) -> str:
    """Format epoch milliseconds as YYYY-MM-DD (UTC), '-' when missing."""
    if millis is None:
        return "-"
    return from_millis(millis).strftime("%Y-%m-%d")


def fmt_weight(weight: float) -> str:
    return "BW" if weight == 0 else f"{weight:g} kg"


def format_programs_table(programs: list[Program]) -> Table:
    """
    Create a Rich table listing the available programs.

    Args:
        programs: Programs to display

    Returns:
        Rich Table object
    """
    table = Table(title="Programs")

    table.add_column("ID", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Goal", style="magenta")
    table.add_column("Level")
    table.add_column("Weeks", justify="right")
    table.add_column("Days", justify="right")
    table.add_column("Per week", justify="right")

    for program in programs:
        table.add_row(
            program.id,
            program.name,
            program.goal,
            program.experience_level,
            str(program.duration_weeks),
            str(program.total_days),
            str(program.workouts_per_week),
        )

    return table


def print_program_detail(program: Program) -> None:
    """Print one program's metadata, rotation, phases and templates."""
    console.print(f"[bold]{program.name}[/bold] [dim]({program.id})[/dim]")
    if program.description:
        console.print(program.description)
    console.print(
        f"Goal: {program.goal}  Level: {program.experience_level}  "
        f"{program.duration_weeks} weeks, {program.workouts_per_week} workouts/week"
    )
    if program.equipment_required:
        console.print(f"Equipment: {', '.join(program.equipment_required)}")

    rotation = [slot if slot is not None else "rest" for slot in program.schedule.rotation]
    console.print(f"Rotation: {' → '.join(rotation)}")
    phases = ", ".join(
        f"{b.name} ({b.first_day}-{b.last_day})" for b in program.schedule.phase_bands
    )
    console.print(f"Phases: {phases}")

    for key in sorted(program.templates):
        template = program.templates[key]
        table = Table(title=f"{template.name} [{key}]")
        table.add_column("#", justify="right", style="dim", width=3)
        table.add_column("Exercise", style="cyan")
        table.add_column("Sets", justify="right")
        table.add_column("Reps", justify="right")
        table.add_column("RPE", justify="right")
        table.add_column("Rest(s)", justify="right")
        table.add_column("Progression", style="magenta")
        for entry in template.exercises:
            table.add_row(
                str(entry.order_index + 1),
                entry.exercise_id,
                str(entry.sets),
                f"{entry.rep_range_min}-{entry.rep_range_max}",
                f"{entry.rpe_target:g}",
                str(entry.rest_seconds),
                entry.progression_type,
            )
        console.print(table)


def format_status_display(
    enrollment: Enrollment,
    program_name: str,
    summary: ProgressSummary,
) -> str:
    """
    Format an enrollment and its progress summary as a text block.

    Args:
        enrollment: Enrollment to describe
        program_name: Display name of its program
        summary: Progress summary of the enrollment

    Returns:
        Formatted string
    """
    style = _STATUS_STYLE.get(enrollment.status, "white")
    lines = [
        f"[bold]{program_name}[/bold]  [{style}]{enrollment.status}[/{style}]",
        f"- Day: {enrollment.current_day} / {summary.total_days}"
        f"  ({summary.progress_percentage:.1f}%)",
        f"- Completed: {summary.completed_days}  Skipped: {summary.skipped_days}"
        f"  Partial: {summary.partial_days}",
        f"- Streak: {summary.current_streak} (longest {summary.longest_streak})",
        f"- Workouts/week: {summary.avg_workouts_per_week:.1f}",
        f"- Enrolled: {fmt_date(enrollment.enrolled_at)}"
        f"  Started: {fmt_date(enrollment.started_at)}",
        f"- Estimated completion: {fmt_date(summary.estimated_completion_date)}",
    ]
    if enrollment.actual_completion_date is not None:
        lines.append(f"- Completed on: {fmt_date(enrollment.actual_completion_date)}")
    return "\n".join(lines)


def print_todays_workout(workout: TodaysWorkout) -> None:
    """Print the resolved workout for the active enrollment's current day."""
    day = workout.program_day
    resolved = workout.resolved
    console.print(
        f"[bold]Day {day.day_number}: {day.name}[/bold]  "
        f"[dim]week {resolved.week_number}, {resolved.phase} phase, {day.day_type}[/dim]"
    )
    if day.description:
        console.print(f"[dim]{day.description}[/dim]")
    if workout.enrollment.current_day == 0:
        console.print("[yellow]Not started yet: run 'start-day' to begin day 1.[/yellow]")

    if workout.is_rest:
        console.print("[green]No training scheduled. Recover well.[/green]")
        return

    table = Table()
    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Exercise", style="cyan")
    table.add_column("Sets", justify="right")
    table.add_column("Reps", justify="right")
    table.add_column("RPE", justify="right")
    table.add_column("Rest(s)", justify="right")
    table.add_column("Weight", justify="right", style="bold")

    for entry in workout.exercises:
        name = entry.exercise_id
        if entry.substituted_from is not None:
            name += f" [dim](for {entry.substituted_from})[/dim]"
        weight = workout.working_weights.get(entry.exercise_id)
        table.add_row(
            str(entry.order_index + 1),
            name,
            str(entry.sets),
            f"{entry.rep_range_min}-{entry.rep_range_max}",
            f"{entry.rpe_target:g}",
            str(entry.rest_seconds),
            fmt_weight(weight) if weight is not None else "-",
        )

    console.print(table)


def format_records_table(records: list[PersonalRecord], title: str = "Personal Records") -> Table:
    table = Table(title=title)

    table.add_column("Date", style="cyan")
    table.add_column("Exercise", style="bold")
    table.add_column("Type", style="magenta")
    table.add_column("Value", justify="right")
    table.add_column("Session", style="dim")

    for record in records:
        table.add_row(
            fmt_date(record.date),
            record.exercise_id,
            record.type,
            f"{record.value:.2f}",
            record.session_id or "-",
        )

    return table


def print_records(records: list[PersonalRecord], title: str = "Personal Records") -> None:
    if not records:
        console.print("[yellow]No personal records yet.[/yellow]")
        return
    console.print(format_records_table(records, title))


def print_bests(exercise_id: str, bests: dict[str, float | None]) -> None:
    table = Table(title=f"Bests: {exercise_id}")
    table.add_column("Type", style="magenta")
    table.add_column("Value", justify="right", style="bold")
    for record_type, value in bests.items():
        table.add_row(record_type, f"{value:.2f}" if value is not None else "-")
    console.print(table)


def print_volume(volume: dict[str, float], days: int) -> None:
    """Print per-exercise volume (kg × reps) over the last N days."""
    if not volume:
        console.print(f"[yellow]No sets logged in the last {days} day(s).[/yellow]")
        return

    table = Table(title=f"Volume, last {days} day(s)")
    table.add_column("Exercise", style="cyan")
    table.add_column("Volume (kg×reps)", justify="right", style="bold")
    for exercise_id, total in volume.items():
        table.add_row(exercise_id, f"{total:,.0f}")
    table.add_row("[bold]Total[/bold]", f"[bold]{sum(volume.values()):,.0f}[/bold]")
    console.print(table)


def format_statistics_display(stats: ProgramStatistics) -> str:
    lines = [
        "Program statistics",
        f"- Enrollments: {stats.total_enrollments}",
        f"- Programs completed: {stats.total_programs_completed}",
        f"- Favorite goal: {stats.favorite_goal or '-'}",
        f"- Average program duration: {stats.average_program_duration_days} days",
    ]
    for status, count in sorted(stats.enrollments_by_status.items()):
        lines.append(f"  {status}: {count}")
    return "\n".join(lines)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
