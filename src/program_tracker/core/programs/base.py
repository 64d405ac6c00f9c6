"""
Base types for program definitions.

A Program bundles its metadata with a ProgramSchedule (the 7-slot template
rotation and the phase bands) and the WorkoutTemplates its rotation refers
to.  These are program-defined data loaded from YAML, never hard-coded in
the scheduler.
"""

from dataclasses import dataclass, field

from ..config import CYCLE_LENGTH_DAYS, DEFAULT_PHASE_BANDS, DEFAULT_ROTATION, REST_SLOT_INDEX
from ..models import ProgramDay


@dataclass(frozen=True)
class PhaseBand:
    """A named inclusive range of program days."""

    name: str
    first_day: int
    last_day: int

    def __post_init__(self) -> None:
        if self.first_day < 1 or self.last_day < self.first_day:
            raise ValueError(
                f"Invalid phase band '{self.name}': {self.first_day}..{self.last_day}"
            )

    def contains(self, day_number: int) -> bool:
        return self.first_day <= day_number <= self.last_day


@dataclass(frozen=True)
class ProgramSchedule:
    """
    Template rotation and phase bands for one program.

    rotation has exactly CYCLE_LENGTH_DAYS slots: six workout template keys
    followed by None, the rest slot.  Lighter weeks are authored as explicit
    program days instead.
    """

    rotation: tuple[str | None, ...] = DEFAULT_ROTATION
    phase_bands: tuple[PhaseBand, ...] = tuple(
        PhaseBand(name, first, last) for name, first, last in DEFAULT_PHASE_BANDS
    )

    def __post_init__(self) -> None:
        if len(self.rotation) != CYCLE_LENGTH_DAYS:
            raise ValueError(
                f"rotation must have {CYCLE_LENGTH_DAYS} slots, got {len(self.rotation)}"
            )
        if self.rotation[REST_SLOT_INDEX] is not None:
            raise ValueError(f"rotation slot {REST_SLOT_INDEX + 1} must be the rest slot")
        missing = [i + 1 for i, slot in enumerate(self.rotation[:REST_SLOT_INDEX]) if not slot]
        if missing:
            raise ValueError(f"rotation slots {missing} must name a workout template")
        if not self.phase_bands:
            raise ValueError("schedule needs at least one phase band")


@dataclass(frozen=True)
class TemplateExercise:
    """
    One exercise entry in a workout template.

    substituted_from is set only on entries produced by a day substitution.
    """

    id: str
    template_key: str
    exercise_id: str
    order_index: int
    sets: int = 3
    rep_range_min: int = 8
    rep_range_max: int = 12
    rpe_target: float = 8.0
    rest_seconds: int = 120
    progression_type: str = "linear"
    substituted_from: str | None = None

    @property
    def is_substituted(self) -> bool:
        return self.substituted_from is not None


@dataclass(frozen=True)
class WorkoutTemplate:
    """A named, ordered list of exercises."""

    key: str
    name: str
    exercises: tuple[TemplateExercise, ...] = ()


@dataclass(frozen=True)
class Program:
    """
    Full definition of one training program.

    days holds the authored ProgramDay rows, ordered by day_number.
    """

    id: str
    name: str
    description: str
    goal: str
    experience_level: str
    duration_weeks: int
    workouts_per_week: int
    schedule: ProgramSchedule
    days: tuple[ProgramDay, ...] = ()
    equipment_required: tuple[str, ...] = ()
    templates: dict[str, WorkoutTemplate] = field(default_factory=dict)

    @property
    def total_days(self) -> int:
        return len(self.days)
