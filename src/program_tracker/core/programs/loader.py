"""
YAML → Program loader.

Loads program definitions from individual YAML files in the bundled
``src/program_tracker/programs/`` directory.  Each file (e.g. ppl_90day.yaml)
holds one program: metadata, schedule (rotation + phase bands), workout
templates and, optionally, an explicit list of days.

When a program lists no days, they are expanded from the rotation over
``duration_weeks * 7`` days: rest slots become REST days and workout slots
falling in the deload phase become DELOAD days.

User overrides: place matching files in ``<home>/programs/``.  A user file
is deep-merged over the bundled definition, so only changed keys need to be
listed.  A user file whose stem matches no bundled file is loaded as a new
program.

Usage:
    from program_tracker.core.programs.loader import default_catalog
    catalog = default_catalog()
"""

from __future__ import annotations

import warnings
from functools import lru_cache
from pathlib import Path

from ..config import DAYS_PER_WEEK, DELOAD_PHASE_NAME
from ..engine.config_loader import deep_merge, get_home_dir, load_yaml_file
from ..models import DAY_TYPES, EXPERIENCE_LEVELS, PROGRAM_GOALS, ProgramDay
from ..scheduler import resolve_schedule_day
from .base import PhaseBand, Program, ProgramSchedule, TemplateExercise, WorkoutTemplate
from .catalog import ProgramCatalog

_REQUIRED_PROGRAM_FIELDS: frozenset[str] = frozenset(
    {
        "id",
        "name",
        "goal",
        "experience_level",
        "duration_weeks",
        "workouts_per_week",
    }
)

_REQUIRED_EXERCISE_FIELDS: frozenset[str] = frozenset({"exercise_id"})


def _template_exercise_from_dict(template_key: str, order_index: int, d: dict) -> TemplateExercise:
    """Convert one raw template entry, raising ValueError on missing fields."""
    missing = _REQUIRED_EXERCISE_FIELDS - set(d)
    if missing:
        raise ValueError(f"template '{template_key}' entry {order_index} missing {sorted(missing)}")

    rep_range = d.get("rep_range", [8, 12])
    if len(rep_range) != 2:
        raise ValueError(f"rep_range must be [min, max], got {rep_range!r}")
    exercise_id = str(d["exercise_id"])

    return TemplateExercise(
        id=f"{template_key}_{exercise_id}_{order_index}",
        template_key=template_key,
        exercise_id=exercise_id,
        order_index=order_index,
        sets=int(d.get("sets", 3)),
        rep_range_min=int(rep_range[0]),
        rep_range_max=int(rep_range[1]),
        rpe_target=float(d.get("rpe_target", 8.0)),
        rest_seconds=int(d.get("rest_seconds", 120)),
        progression_type=str(d.get("progression_type", "linear")),
    )


def _template_from_dict(key: str, d: dict) -> WorkoutTemplate:
    entries = d.get("exercises") or []
    return WorkoutTemplate(
        key=key,
        name=str(d.get("name", key)),
        exercises=tuple(
            _template_exercise_from_dict(key, i, entry) for i, entry in enumerate(entries)
        ),
    )


def _schedule_from_dict(d: dict | None) -> ProgramSchedule:
    """Build a ProgramSchedule; absent keys keep the defaults."""
    if not d:
        return ProgramSchedule()
    kwargs: dict = {}
    if "rotation" in d:
        kwargs["rotation"] = tuple(
            None if slot in (None, "", "rest", "Rest") else str(slot) for slot in d["rotation"]
        )
    if "phase_bands" in d:
        kwargs["phase_bands"] = tuple(
            PhaseBand(str(b["name"]), int(b["first_day"]), int(b["last_day"]))
            for b in d["phase_bands"]
        )
    return ProgramSchedule(**kwargs)


def _day_from_dict(program_id: str, d: dict) -> ProgramDay:
    day_number = int(d["day_number"])
    day_type = str(d.get("day_type", "WORKOUT"))
    if day_type not in DAY_TYPES:
        raise ValueError(f"day {day_number}: invalid day_type {day_type!r}")
    return ProgramDay(
        id=str(d.get("id", f"{program_id}_day_{day_number}")),
        program_id=program_id,
        day_number=day_number,
        name=str(d.get("name", f"Day {day_number}")),
        day_type=day_type,  # type: ignore[arg-type]
        template_key=d.get("template_key"),
        description=d.get("description"),
    )


def expand_days(
    program_id: str,
    schedule: ProgramSchedule,
    templates: dict[str, WorkoutTemplate],
    duration_weeks: int,
) -> tuple[ProgramDay, ...]:
    """
    Generate one ProgramDay per day of the program from its rotation.

    Args:
        program_id: Owning program
        schedule: Rotation and phase bands
        templates: Templates used for day names
        duration_weeks: Program length in weeks

    Returns:
        Days 1..duration_weeks*7 in order
    """
    days: list[ProgramDay] = []
    for day_number in range(1, duration_weeks * DAYS_PER_WEEK + 1):
        resolved = resolve_schedule_day(schedule, day_number)
        if resolved.is_rest:
            name, day_type, template_key = "Rest Day", "REST", None
        else:
            template_key = resolved.template_key
            template = templates.get(template_key)  # type: ignore[arg-type]
            name = template.name if template is not None else str(template_key)
            day_type = "DELOAD" if resolved.phase == DELOAD_PHASE_NAME else "WORKOUT"
        days.append(
            ProgramDay(
                id=f"{program_id}_day_{day_number}",
                program_id=program_id,
                day_number=day_number,
                name=name,
                day_type=day_type,  # type: ignore[arg-type]
                template_key=template_key,
                description=f"Week {resolved.week_number}, {resolved.phase} phase",
            )
        )
    return tuple(days)


def program_from_dict(d: dict) -> Program:
    """Convert a raw dict (from YAML) to a Program.

    Raises ValueError if any required field is absent or invalid.
    """
    missing = _REQUIRED_PROGRAM_FIELDS - set(d)
    if missing:
        raise ValueError(f"Program missing fields: {sorted(missing)}")

    program_id = str(d["id"])
    goal = str(d["goal"])
    if goal not in PROGRAM_GOALS:
        raise ValueError(f"Invalid goal: {goal!r}")
    level = str(d["experience_level"])
    if level not in EXPERIENCE_LEVELS:
        raise ValueError(f"Invalid experience_level: {level!r}")
    duration_weeks = int(d["duration_weeks"])
    if duration_weeks <= 0:
        raise ValueError("duration_weeks must be positive")

    schedule = _schedule_from_dict(d.get("schedule"))
    templates = {
        str(key): _template_from_dict(str(key), raw or {})
        for key, raw in (d.get("templates") or {}).items()
    }

    for slot in schedule.rotation:
        if slot is not None and slot not in templates:
            raise ValueError(f"rotation refers to undefined template '{slot}'")

    if d.get("days"):
        days = tuple(sorted((_day_from_dict(program_id, raw) for raw in d["days"]),
                            key=lambda day: day.day_number))
        numbers = [day.day_number for day in days]
        if len(set(numbers)) != len(numbers):
            raise ValueError("day_number values must be unique")
        for day in days:
            if day.template_key is not None and day.template_key not in templates:
                raise ValueError(f"day {day.day_number} refers to undefined template '{day.template_key}'")
    else:
        days = expand_days(program_id, schedule, templates, duration_weeks)

    return Program(
        id=program_id,
        name=str(d["name"]),
        description=str(d.get("description", "")),
        goal=goal,
        experience_level=level,
        duration_weeks=duration_weeks,
        workouts_per_week=int(d["workouts_per_week"]),
        schedule=schedule,
        days=days,
        equipment_required=tuple(str(e) for e in d.get("equipment_required", [])),
        templates=templates,
    )


def _get_bundled_programs_dir() -> Path | None:
    """Return path to the bundled programs/ data directory, or None if not found."""
    # loader.py lives at src/program_tracker/core/programs/loader.py
    # three levels up → src/program_tracker/
    candidate = Path(__file__).parent.parent.parent / "programs"
    return candidate if candidate.is_dir() else None


def _get_user_programs_dir() -> Path | None:
    """Return <home>/programs/ if it exists, else None."""
    p = get_home_dir() / "programs"
    return p if p.is_dir() else None


def load_programs_from_yaml(
    bundled_dir: Path | None = None,
    user_dir: Path | None = None,
) -> list[Program]:
    """Return the programs defined by the bundled and user YAML files.

    Loads each ``<program>.yaml`` from the bundled programs/ directory.
    If a matching file exists in the user directory it is deep-merged over
    the bundled definition.  User-only files are loaded as new programs.
    Invalid files are skipped with a warning.
    """
    if bundled_dir is None:
        bundled_dir = _get_bundled_programs_dir()
    if user_dir is None:
        user_dir = _get_user_programs_dir()

    stems: dict[str, Path] = {}
    if bundled_dir is not None:
        for p in sorted(bundled_dir.glob("*.yaml")):
            stems[p.stem] = p

    user_only: list[Path] = []
    if user_dir is not None:
        for p in sorted(user_dir.glob("*.yaml")):
            if p.stem not in stems:
                user_only.append(p)

    raws: list[tuple[str, dict]] = []
    for stem, bundled_path in stems.items():
        raw = load_yaml_file(bundled_path)
        if not raw:
            continue
        if user_dir is not None:
            user_path = user_dir / f"{stem}.yaml"
            if user_path.exists():
                user_raw = load_yaml_file(user_path)
                if user_raw:
                    raw = deep_merge(raw, user_raw)
        raws.append((stem, raw))
    for p in user_only:
        raw = load_yaml_file(p)
        if raw:
            raws.append((p.stem, raw))

    programs: list[Program] = []
    for stem, raw in raws:
        try:
            programs.append(program_from_dict(raw))
        except (KeyError, TypeError, ValueError) as exc:
            warnings.warn(
                f"program-tracker: skipping program '{stem}': {exc}",
                stacklevel=2,
            )
    return programs


def load_catalog(
    bundled_dir: Path | None = None,
    user_dir: Path | None = None,
) -> ProgramCatalog:
    """Build a ProgramCatalog from YAML program files."""
    return ProgramCatalog(load_programs_from_yaml(bundled_dir, user_dir))


@lru_cache(maxsize=1)
def default_catalog() -> ProgramCatalog:
    """Catalog of the bundled programs plus user overrides (cached)."""
    catalog = load_catalog()
    if not len(catalog):
        raise RuntimeError(
            "program-tracker: no program definitions could be loaded from YAML. "
            "Check that src/program_tracker/programs/*.yaml files are present and valid."
        )
    return catalog
