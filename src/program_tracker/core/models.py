"""
Data models for program-tracker.

All core dataclasses representing enrollments, program days, completion
events, personal records and logged sets.  Enumerated fields are plain
strings constrained by Literal aliases and validated in __post_init__.

Timestamps are integer epoch milliseconds (UTC).
"""

from dataclasses import dataclass, field
from typing import Literal

EnrollmentStatus = Literal["ENROLLED", "IN_PROGRESS", "PAUSED", "COMPLETED", "CANCELLED"]
DayType = Literal["WORKOUT", "REST", "ACTIVE_RECOVERY", "OPTIONAL", "DELOAD"]
CompletionStatus = Literal["COMPLETED", "SKIPPED", "PARTIAL"]
RecordType = Literal["ONE_REP_MAX", "BEST_SET", "SESSION_VOLUME"]
ProgramGoal = Literal[
    "FAT_LOSS",
    "MUSCLE_BUILDING",
    "GENERAL_FITNESS",
    "STRENGTH",
    "ENDURANCE",
    "ATHLETIC_PERFORMANCE",
    "OTHER",
]
ExperienceLevel = Literal["BEGINNER", "INTERMEDIATE", "ADVANCED"]
ProgressionType = Literal["linear", "double", "volume", "bodyweight"]

ENROLLMENT_STATUSES: tuple[str, ...] = ("ENROLLED", "IN_PROGRESS", "PAUSED", "COMPLETED", "CANCELLED")
ACTIVE_STATUSES: frozenset[str] = frozenset({"ENROLLED", "IN_PROGRESS", "PAUSED"})
TERMINAL_STATUSES: frozenset[str] = frozenset({"COMPLETED", "CANCELLED"})
DAY_TYPES: tuple[str, ...] = ("WORKOUT", "REST", "ACTIVE_RECOVERY", "OPTIONAL", "DELOAD")
COMPLETION_STATUSES: tuple[str, ...] = ("COMPLETED", "SKIPPED", "PARTIAL")
RECORD_TYPES: tuple[str, ...] = ("ONE_REP_MAX", "BEST_SET", "SESSION_VOLUME")
PROGRAM_GOALS: tuple[str, ...] = (
    "FAT_LOSS",
    "MUSCLE_BUILDING",
    "GENERAL_FITNESS",
    "STRENGTH",
    "ENDURANCE",
    "ATHLETIC_PERFORMANCE",
    "OTHER",
)
EXPERIENCE_LEVELS: tuple[str, ...] = ("BEGINNER", "INTERMEDIATE", "ADVANCED")


@dataclass(frozen=True)
class Enrollment:
    """
    A user's enrollment in one program.

    Transitions never mutate an Enrollment; they return a copy built with
    dataclasses.replace (see core/enrollment.py).

    current_day == 0 means the program has not been started yet.
    """

    id: str
    user_id: str
    program_id: str
    enrolled_at: int
    status: EnrollmentStatus = "ENROLLED"
    current_day: int = 0
    started_at: int | None = None
    estimated_completion_date: int | None = None
    actual_completion_date: int | None = None
    total_days_completed: int = 0
    total_days_skipped: int = 0
    last_activity_date: int | None = None

    def __post_init__(self) -> None:
        """Validate enrollment data."""
        if self.status not in ENROLLMENT_STATUSES:
            raise ValueError(f"Invalid enrollment status: {self.status}")
        if self.current_day < 0:
            raise ValueError("current_day must be non-negative")
        if self.total_days_completed < 0 or self.total_days_skipped < 0:
            raise ValueError("day counters must be non-negative")

    @property
    def is_active(self) -> bool:
        """True while the enrollment can still change (not terminal)."""
        return self.status in ACTIVE_STATUSES

    @property
    def is_started(self) -> bool:
        return self.current_day > 0


@dataclass(frozen=True)
class ProgramDay:
    """
    One scheduled slot (workout or rest) in a program's fixed sequence.

    Immutable once authored; the engine only reads program days.
    """

    id: str
    program_id: str
    day_number: int  # 1-based, unique per program
    name: str
    day_type: DayType = "WORKOUT"
    template_key: str | None = None
    description: str | None = None

    def __post_init__(self) -> None:
        """Validate program day data."""
        if self.day_number < 1:
            raise ValueError("day_number must be >= 1")
        if self.day_type not in DAY_TYPES:
            raise ValueError(f"Invalid day_type: {self.day_type}")

    @property
    def week_number(self) -> int:
        return (self.day_number - 1) // 7 + 1


@dataclass(frozen=True)
class DaySubstitution:
    """User override replacing one exercise on one program day."""

    program_day: int
    original_exercise_id: str
    substitute_exercise_id: str
    timestamp: int

    @property
    def key(self) -> tuple[int, str]:
        return (self.program_day, self.original_exercise_id)


@dataclass(frozen=True)
class DayCompletion:
    """
    One day-resolution event in the append-only completion log.

    Streaks and completion counts are derived from this log.
    """

    id: str
    enrollment_id: str
    program_day_id: str
    program_day_number: int
    status: CompletionStatus
    completion_date: int
    workout_session_id: str | None = None
    skipped_reason: str | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        """Validate completion data."""
        if self.status not in COMPLETION_STATUSES:
            raise ValueError(f"Invalid completion status: {self.status}")
        if self.program_day_number < 1:
            raise ValueError("program_day_number must be >= 1")


@dataclass(frozen=True)
class PersonalRecord:
    """
    A personal record row.

    For a given (exercise_id, type) the highest value is the current record;
    lower rows are kept as history.
    """

    id: str
    exercise_id: str
    type: RecordType
    value: float
    date: int
    session_id: str | None = None

    def __post_init__(self) -> None:
        if self.type not in RECORD_TYPES:
            raise ValueError(f"Invalid record type: {self.type}")


@dataclass(frozen=True)
class LoggedSet:
    """
    A single set logged during a workout session.

    weight is the external load in kg; rpe is optional.
    """

    session_id: str
    exercise_id: str
    set_number: int
    weight: float
    reps: int
    timestamp: int
    rpe: float | None = None

    def __post_init__(self) -> None:
        """Validate set data."""
        if self.weight < 0:
            raise ValueError("weight must be non-negative")
        if self.reps < 0:
            raise ValueError("reps must be non-negative")
        if self.set_number < 1:
            raise ValueError("set_number must be >= 1")

    @property
    def score(self) -> float:
        """weight × reps, the unit of volume."""
        return self.weight * self.reps


@dataclass(frozen=True)
class ProgressionRecord:
    """Current working weight for one exercise."""

    exercise_id: str
    current_weight: float
    last_update_date: int
    last_rpe: float | None = None
    session_count: int = 0


@dataclass(frozen=True)
class ResolvedDay:
    """What a program day number maps to in the template rotation."""

    day_number: int
    template_key: str | None
    phase: str
    week_number: int
    is_rest: bool


@dataclass
class ProgressSummary:
    """
    Progress statistics for one enrollment.

    Every field is derived from the enrollment row and its completion log.
    """

    total_days: int
    completed_days: int
    skipped_days: int
    partial_days: int
    current_streak: int
    longest_streak: int
    avg_workouts_per_week: float
    progress_percentage: float
    estimated_completion_date: int | None = None


@dataclass
class ProgramStatistics:
    """Cross-enrollment statistics for one user."""

    total_programs_completed: int
    total_enrollments: int
    favorite_goal: str | None
    average_program_duration_days: int
    enrollments_by_status: dict[str, int] = field(default_factory=dict)
