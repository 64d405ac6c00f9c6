"""
In-memory catalog of loaded programs.

Implements the ProgramDayStore port on top of immutable Program
definitions and exposes the workout templates by key.  Template keys form
one namespace across all programs; a later program redefining a key
replaces the earlier template.
"""

from loguru import logger

from ..models import ProgramDay
from .base import Program, ProgramSchedule, WorkoutTemplate


class ProgramCatalog:
    """Read-only access to program definitions, days and templates."""

    def __init__(self, programs: list[Program] | None = None):
        self._programs: dict[str, Program] = {}
        self._days: dict[str, dict[int, ProgramDay]] = {}
        self._templates: dict[str, WorkoutTemplate] = {}
        for program in programs or []:
            self.add(program)

    def add(self, program: Program) -> None:
        """Register a program, replacing any program with the same id."""
        self._programs[program.id] = program
        self._days[program.id] = {d.day_number: d for d in program.days}
        for key, template in program.templates.items():
            if key in self._templates and self._templates[key] != template:
                logger.debug("Template '{}' redefined by program '{}'", key, program.id)
            self._templates[key] = template

    def __contains__(self, program_id: object) -> bool:
        return program_id in self._programs

    def __len__(self) -> int:
        return len(self._programs)

    # ------------------------------------------------------------------
    # Programs
    # ------------------------------------------------------------------

    def get_program(self, program_id: str) -> Program | None:
        return self._programs.get(program_id)

    def list_programs(self) -> list[Program]:
        """All programs sorted by name."""
        return sorted(self._programs.values(), key=lambda p: p.name)

    def get_schedule(self, program_id: str) -> ProgramSchedule | None:
        program = self._programs.get(program_id)
        return program.schedule if program is not None else None

    # ------------------------------------------------------------------
    # ProgramDayStore port
    # ------------------------------------------------------------------

    def get_by_program_and_day(self, program_id: str, day_number: int) -> ProgramDay | None:
        return self._days.get(program_id, {}).get(day_number)

    def get_total_day_count(self, program_id: str) -> int:
        return len(self._days.get(program_id, {}))

    def get_days(self, program_id: str) -> list[ProgramDay]:
        return sorted(self._days.get(program_id, {}).values(), key=lambda d: d.day_number)

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def get_template(self, template_key: str) -> WorkoutTemplate | None:
        return self._templates.get(template_key)

    def template_keys(self) -> list[str]:
        return sorted(self._templates)
