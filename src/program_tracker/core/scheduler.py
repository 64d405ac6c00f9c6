"""
Template scheduler.

Maps a program-relative day number to a template key, training phase,
week number and rest-day status, and resolves per-day exercise
substitutions against a template's base exercise list.

The module-level functions are pure.  TemplateScheduler binds them to a
ProgramCatalog and a SubstitutionStore so callers can work with ids.
"""

from dataclasses import replace

from .config import CYCLE_LENGTH_DAYS
from .errors import NotFound
from .models import ResolvedDay
from .ports import SubstitutionStore
from .programs.base import ProgramSchedule, TemplateExercise
from .programs.catalog import ProgramCatalog


def _check_day(day_number: int) -> None:
    if day_number < 1:
        raise ValueError(f"day_number must be >= 1, got {day_number}")


def day_in_cycle(day_number: int) -> int:
    """Zero-based position of the day inside the 7-day rotation."""
    _check_day(day_number)
    return (day_number - 1) % CYCLE_LENGTH_DAYS


def calculate_week_number(day_number: int) -> int:
    """Week number (1-based) containing the day."""
    _check_day(day_number)
    return (day_number - 1) // CYCLE_LENGTH_DAYS + 1


def template_for_day(schedule: ProgramSchedule, day_number: int) -> str | None:
    """Template key for the day, or None on the rotation's rest slot."""
    return schedule.rotation[day_in_cycle(day_number)]


def is_rest_day(schedule: ProgramSchedule, day_number: int) -> bool:
    return template_for_day(schedule, day_number) is None


def calculate_phase(schedule: ProgramSchedule, day_number: int) -> str:
    """
    Phase name of the band containing day_number.

    Days outside every band (past the program's length) fall back to the
    first band.  This is a lenient default: callers should not rely on the
    phase of days beyond the program's length.
    """
    _check_day(day_number)
    for band in schedule.phase_bands:
        if band.contains(day_number):
            return band.name
    return schedule.phase_bands[0].name


def resolve_schedule_day(schedule: ProgramSchedule, day_number: int) -> ResolvedDay:
    """Resolve template, phase, week and rest status for one day."""
    template_key = template_for_day(schedule, day_number)
    return ResolvedDay(
        day_number=day_number,
        template_key=template_key,
        phase=calculate_phase(schedule, day_number),
        week_number=calculate_week_number(day_number),
        is_rest=template_key is None,
    )


def substitution_id(template_key: str, substitute_id: str, order_index: int) -> str:
    """Identifier of a substituted entry, distinct from the original row's id."""
    return f"{template_key}_{substitute_id}_{order_index}_sub"


def apply_substitutions(
    exercises: list[TemplateExercise] | tuple[TemplateExercise, ...],
    substitutions: dict[str, str],
) -> list[TemplateExercise]:
    """
    Replace exercises according to a {original_id: substitute_id} map.

    Order and every prescription field are preserved; only the exercise
    reference and the row id change.  The input list is not modified.

    Args:
        exercises: Base ordered exercise list of one template
        substitutions: Active substitutions for the day

    Returns:
        New ordered list with substitutions applied
    """
    resolved: list[TemplateExercise] = []
    for entry in exercises:
        substitute = substitutions.get(entry.exercise_id)
        if substitute is None:
            resolved.append(entry)
            continue
        resolved.append(
            replace(
                entry,
                id=substitution_id(entry.template_key, substitute, entry.order_index),
                exercise_id=substitute,
                substituted_from=entry.exercise_id,
            )
        )
    return resolved


class TemplateScheduler:
    """Resolves days and exercise lists against the catalog and substitutions."""

    def __init__(self, catalog: ProgramCatalog, substitutions: SubstitutionStore):
        self.catalog = catalog
        self.substitutions = substitutions

    def resolve_day(self, program_id: str, day_number: int) -> ResolvedDay:
        """
        Resolve a program day number.

        Raises:
            NotFound: If the program is unknown
            ValueError: If day_number < 1
        """
        program = self.catalog.get_program(program_id)
        if program is None:
            raise NotFound(f"Program not found: {program_id}")
        return resolve_schedule_day(program.schedule, day_number)

    def resolve_exercises(self, template_key: str, day_number: int) -> list[TemplateExercise]:
        """
        Ordered exercise list of a template with the day's substitutions applied.

        Raises:
            NotFound: If the template is unknown
        """
        _check_day(day_number)
        template = self.catalog.get_template(template_key)
        if template is None:
            raise NotFound(f"Template not found: {template_key}")
        ordered = sorted(template.exercises, key=lambda e: e.order_index)
        return apply_substitutions(ordered, self.substitutions.get_all_for_day(day_number))
