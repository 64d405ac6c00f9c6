"""Shared Typer app object, shared option types, and tracker utilities."""

import sys
from pathlib import Path
from typing import Annotated, Optional, TypeVar

import typer
from loguru import logger

from ..core.engine.config_loader import TrackerSettings, load_settings
from ..core.errors import Result
from ..core.models import Enrollment
from ..core.tracker import ProgramTracker
from ..io.stores import open_tracker
from . import views

T = TypeVar("T")

# Shared option types used across all commands
DataDirOption = Annotated[
    Optional[Path],
    typer.Option("--data-dir", "-p", help="Data directory (default: ~/.program-tracker/data)"),
]
UserOption = Annotated[
    Optional[str],
    typer.Option("--user", "-u", help="User id (default from config.yaml)"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="program-tracker",
    help="Track enrollment and progress through structured multi-week training programs.",
    no_args_is_help=True,
)


def configure_logging(level: str) -> None:
    """Send loguru output to stderr at the given level."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format="<level>{level: <8}</level> {message}")


def get_settings() -> TrackerSettings:
    return load_settings()


def get_tracker(data_dir: Path | None) -> ProgramTracker:
    """Open the tracker over the given or configured data directory."""
    settings = get_settings()
    try:
        return open_tracker(
            data_dir if data_dir is not None else settings.data_dir,
            streak_gap_days=settings.streak_gap_days,
        )
    except RuntimeError as e:
        views.print_error(str(e))
        raise typer.Exit(1)


def resolve_user(user: str | None) -> str:
    return user if user else get_settings().default_user_id


def unwrap_or_exit(result: Result[T]) -> T:
    """Return the result's value, or print its error and exit with status 1."""
    if result.error is not None:
        views.print_error(str(result.error))
        raise typer.Exit(1)
    return result.value  # type: ignore[return-value]


def require_active_enrollment(tracker: ProgramTracker, user_id: str) -> Enrollment:
    """The user's active enrollment, or exit with a hint to enroll."""
    enrollment = unwrap_or_exit(tracker.get_active_enrollment(user_id))
    if enrollment is None:
        views.print_error(f"No active enrollment for {user_id}")
        views.print_info("Run 'program-tracker enroll <program-id>' first.")
        raise typer.Exit(1)
    return enrollment
