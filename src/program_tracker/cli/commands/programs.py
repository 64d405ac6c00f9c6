"""Program catalog commands: programs."""

import json
from typing import Annotated, Optional

import typer

from ...core.programs.loader import default_catalog
from .. import views
from ..app import JsonOption, app


@app.command()
def programs(
    program_id: Annotated[
        Optional[str],
        typer.Argument(help="Show the details of one program"),
    ] = None,
    json_out: JsonOption = False,
) -> None:
    """
    List available programs, or show one program in detail.
    """
    try:
        catalog = default_catalog()
    except RuntimeError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if program_id is None:
        listed = catalog.list_programs()
        if json_out:
            print(json.dumps([
                {
                    "id": p.id,
                    "name": p.name,
                    "goal": p.goal,
                    "experience_level": p.experience_level,
                    "duration_weeks": p.duration_weeks,
                    "workouts_per_week": p.workouts_per_week,
                    "total_days": p.total_days,
                }
                for p in listed
            ], indent=2))
            return
        views.console.print(views.format_programs_table(listed))
        return

    program = catalog.get_program(program_id)
    if program is None:
        views.print_error(f"Program not found: {program_id}")
        views.print_info(f"Available: {', '.join(p.id for p in catalog.list_programs())}")
        raise typer.Exit(1)

    if json_out:
        print(json.dumps({
            "id": program.id,
            "name": program.name,
            "description": program.description,
            "goal": program.goal,
            "experience_level": program.experience_level,
            "duration_weeks": program.duration_weeks,
            "workouts_per_week": program.workouts_per_week,
            "equipment_required": list(program.equipment_required),
            "rotation": list(program.schedule.rotation),
            "phase_bands": [
                {"name": b.name, "first_day": b.first_day, "last_day": b.last_day}
                for b in program.schedule.phase_bands
            ],
            "templates": {
                key: [e.exercise_id for e in t.exercises]
                for key, t in sorted(program.templates.items())
            },
        }, indent=2))
        return

    views.print_program_detail(program)
