"""
CLI entry point using Typer.

Provides commands for following a training program:
- programs: List or show program definitions
- enroll / start-day / complete-day / skip-day / partial-day: Move through a program
- pause / resume / cancel / status: Manage the active enrollment
- today / substitute / reset-substitution: Today's workout and exercise swaps
- log-sets / process-session / prs / volume / stats: Sets, records and statistics
"""

from typing import Annotated

import typer

from .app import app, configure_logging, get_settings

# Importing the command modules registers their commands on the shared app
from .commands import analytics, enrollment, programs, workout  # noqa: F401


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug log output"),
    ] = False,
) -> None:
    """
    Track enrollment and progress through structured multi-week training programs.
    """
    configure_logging("DEBUG" if verbose else get_settings().log_level)


if __name__ == "__main__":
    app()
