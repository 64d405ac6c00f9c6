"""
ProgramTracker: the public operations of the engine.

Wires the persistence ports, the clock, the template scheduler and the pure
cores (enrollment transitions, progress folds, record detection,
progression) together.  Every public method returns a Result; engine
errors and store failures come back as Result.failure instead of being
raised.

Mutations on one enrollment are plain read-modify-write sequences with no
locking.  Callers serialize them.
"""

import functools
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence, TypeVar

from loguru import logger

from . import enrollment as machine
from .clock import Clock, SystemClock, now_millis
from .config import DEFAULT_RECENT_RECORDS, DEFAULT_USER_ID, DEFAULT_VOLUME_WINDOW_DAYS, STREAK_GAP_DAYS
from .errors import (
    InvalidArgument,
    InvariantViolation,
    NotFound,
    ProgramError,
    Result,
    StorageError,
    ValidationError,
)
from .models import (
    DaySubstitution,
    Enrollment,
    LoggedSet,
    PersonalRecord,
    ProgramDay,
    ProgramStatistics,
    ProgressionRecord,
    ProgressSummary,
    ResolvedDay,
)
from .ports import (
    CompletionStore,
    EnrollmentStore,
    ProgressionStore,
    RecordStore,
    SetLogStore,
    SubstitutionStore,
)
from .progress import program_statistics, summarize
from .progression import (
    ProgressionResult,
    average_rpe,
    calculate_progression,
    default_starting_weight,
    next_session_weight,
)
from .programs.base import TemplateExercise
from .programs.catalog import ProgramCatalog
from .records import RecordAnalyzer
from .scheduler import TemplateScheduler

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True)
class TodaysWorkout:
    """The active enrollment's current day, resolved against its template."""

    enrollment: Enrollment
    program_day: ProgramDay
    resolved: ResolvedDay
    exercises: list[TemplateExercise] = field(default_factory=list)
    working_weights: dict[str, float] = field(default_factory=dict)

    @property
    def is_rest(self) -> bool:
        return not self.exercises


def _returns_result(method: F) -> F:
    """Run a tracker method and wrap its value or failure in a Result."""

    @functools.wraps(method)
    def wrapper(self: "ProgramTracker", *args: Any, **kwargs: Any) -> Result:
        try:
            return Result.success(method(self, *args, **kwargs))
        except ProgramError as exc:
            logger.debug("{} failed: {}", method.__name__, exc)
            return Result.failure(exc)
        except (OSError, ValidationError) as exc:
            logger.error("{}: storage failure: {}", method.__name__, exc)
            return Result.failure(StorageError(str(exc)))
        except ValueError as exc:
            return Result.failure(InvalidArgument(str(exc)))

    return wrapper  # type: ignore[return-value]


class ProgramTracker:
    """Program enrollment, progress and record tracking over injected ports."""

    def __init__(
        self,
        catalog: ProgramCatalog,
        enrollments: EnrollmentStore,
        completions: CompletionStore,
        substitutions: SubstitutionStore,
        records: RecordStore,
        set_log: SetLogStore,
        progression: ProgressionStore,
        clock: Clock | None = None,
        streak_gap_days: int = STREAK_GAP_DAYS,
    ):
        self.catalog = catalog
        self.enrollments = enrollments
        self.completions = completions
        self.substitutions = substitutions
        self.records = records
        self.set_log = set_log
        self.progression = progression
        self.clock = clock or SystemClock()
        self.streak_gap_days = streak_gap_days
        self.scheduler = TemplateScheduler(catalog, substitutions)
        self.analyzer = RecordAnalyzer(records, set_log, self.clock)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _now(self) -> int:
        return now_millis(self.clock)

    def _load(self, enrollment_id: str) -> Enrollment:
        enrollment = self.enrollments.get_by_id(enrollment_id)
        if enrollment is None:
            raise NotFound(f"Enrollment not found: {enrollment_id}")
        return enrollment

    def _apply(self, transition: machine.Transition) -> Enrollment:
        """Persist a transition: append its completion rows, then the new state."""
        for completion in transition.completions:
            self.completions.append(completion)
        self.enrollments.update(transition.enrollment)
        return transition.enrollment

    def _program_total_days(self, program_id: str) -> int:
        return self.catalog.get_total_day_count(program_id)

    # ------------------------------------------------------------------
    # Enrollment lifecycle
    # ------------------------------------------------------------------

    @_returns_result
    def enroll(self, program_id: str, user_id: str = DEFAULT_USER_ID) -> Enrollment:
        """
        Enroll a user in a program, cancelling any enrollment still active.

        Returns:
            Result with the new ENROLLED enrollment
        """
        program = self.catalog.get_program(program_id)
        if program is None:
            raise NotFound(f"Program not found: {program_id}")

        cancelled = self.enrollments.deactivate_all_for_user(user_id)
        if cancelled:
            logger.info("Cancelled {} active enrollment(s) of {}", cancelled, user_id)
        if self.enrollments.get_active_for_user(user_id) is not None:
            raise InvariantViolation(f"User {user_id} still has an active enrollment")

        enrollment = machine.enroll(program, user_id, self._now())
        self.enrollments.insert(enrollment)
        logger.info("Enrolled {} in {} ({})", user_id, program_id, enrollment.id)
        return enrollment

    @_returns_result
    def start_day(self, enrollment_id: str) -> ProgramDay:
        """Advance to the next program day and return it."""
        transition = machine.start_day(self._load(enrollment_id), self.catalog, self._now())
        self._apply(transition)
        logger.info("Enrollment {} started day {}", enrollment_id, transition.enrollment.current_day)
        return transition.program_day  # type: ignore[return-value]

    @_returns_result
    def complete_current_day(
        self,
        enrollment_id: str,
        session_id: str | None = None,
        notes: str | None = None,
    ) -> Enrollment:
        transition = machine.complete_current_day(
            self._load(enrollment_id), self.catalog, self._now(), session_id, notes
        )
        enrollment = self._apply(transition)
        if transition.program_completed:
            logger.info("Enrollment {} completed its program", enrollment_id)
        return enrollment

    @_returns_result
    def skip_current_day(self, enrollment_id: str, reason: str | None = None) -> Enrollment:
        transition = machine.skip_current_day(
            self._load(enrollment_id), self.catalog, self._now(), reason
        )
        return self._apply(transition)

    @_returns_result
    def mark_partial_day(
        self,
        enrollment_id: str,
        session_id: str | None = None,
        notes: str | None = None,
    ) -> Enrollment:
        transition = machine.mark_partial_day(
            self._load(enrollment_id), self.catalog, self._now(), session_id, notes
        )
        return self._apply(transition)

    @_returns_result
    def pause(self, enrollment_id: str) -> Enrollment:
        return self._apply(machine.pause(self._load(enrollment_id), self._now()))

    @_returns_result
    def resume(self, enrollment_id: str) -> Enrollment:
        return self._apply(machine.resume(self._load(enrollment_id), self._now()))

    @_returns_result
    def cancel(self, enrollment_id: str) -> Enrollment:
        return self._apply(machine.cancel(self._load(enrollment_id), self._now()))

    @_returns_result
    def cancel_and_purge(self, enrollment_id: str) -> int:
        """
        Cancel an enrollment and physically delete it with its completion log.

        Returns:
            Result with the number of completion rows removed
        """
        enrollment = self._load(enrollment_id)
        if enrollment.is_active:
            self._apply(machine.cancel(enrollment, self._now()))
        removed = self.completions.delete_for_enrollment(enrollment_id)
        self.enrollments.delete(enrollment_id)
        logger.info("Purged enrollment {} ({} completion rows)", enrollment_id, removed)
        return removed

    # ------------------------------------------------------------------
    # Enrollment queries
    # ------------------------------------------------------------------

    @_returns_result
    def get_enrollment(self, enrollment_id: str) -> Enrollment:
        return self._load(enrollment_id)

    @_returns_result
    def get_active_enrollment(self, user_id: str = DEFAULT_USER_ID) -> Enrollment | None:
        return self.enrollments.get_active_for_user(user_id)

    @_returns_result
    def list_enrollments(self, user_id: str = DEFAULT_USER_ID) -> list[Enrollment]:
        return self.enrollments.list_for_user(user_id)

    @_returns_result
    def get_current_program_day(self, enrollment_id: str) -> ProgramDay | None:
        """The day the enrollment is on (None before the first start)."""
        enrollment = self._load(enrollment_id)
        if enrollment.current_day == 0:
            return None
        return self.catalog.get_by_program_and_day(enrollment.program_id, enrollment.current_day)

    @_returns_result
    def get_next_program_day(self, enrollment_id: str) -> ProgramDay | None:
        """The day start_day would move to (None past the last day)."""
        enrollment = self._load(enrollment_id)
        return self.catalog.get_by_program_and_day(enrollment.program_id, enrollment.current_day + 1)

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    @_returns_result
    def summarize(self, enrollment_id: str) -> ProgressSummary:
        enrollment = self._load(enrollment_id)
        return summarize(
            enrollment,
            self._program_total_days(enrollment.program_id),
            self.completions.get_all_for_enrollment(enrollment_id),
            self._now(),
            self.streak_gap_days,
        )

    @_returns_result
    def program_statistics(self, user_id: str = DEFAULT_USER_ID) -> ProgramStatistics:
        def goal_of(program_id: str) -> str | None:
            program = self.catalog.get_program(program_id)
            return program.goal if program is not None else None

        return program_statistics(self.enrollments.list_for_user(user_id), goal_of)

    # ------------------------------------------------------------------
    # Scheduling and substitutions
    # ------------------------------------------------------------------

    @_returns_result
    def resolve_day(self, program_id: str, day_number: int) -> ResolvedDay:
        return self.scheduler.resolve_day(program_id, day_number)

    @_returns_result
    def resolve_exercises(self, template_key: str, day_number: int) -> list[TemplateExercise]:
        return self.scheduler.resolve_exercises(template_key, day_number)

    @_returns_result
    def todays_workout(self, user_id: str = DEFAULT_USER_ID) -> TodaysWorkout:
        """
        Resolve the active enrollment's current day.

        Before the first start_day this previews day 1.  Rest days resolve
        with an empty exercise list.

        Raises (as Result.failure):
            NotFound: No active enrollment, or the day is missing
        """
        enrollment = self.enrollments.get_active_for_user(user_id)
        if enrollment is None:
            raise NotFound(f"No active enrollment for {user_id}")

        day_number = enrollment.current_day or 1
        program_day = self.catalog.get_by_program_and_day(enrollment.program_id, day_number)
        if program_day is None:
            raise NotFound(f"Day {day_number} not found in program '{enrollment.program_id}'")
        resolved = self.scheduler.resolve_day(enrollment.program_id, day_number)

        # The authored day decides the template; it may differ from the rotation slot
        exercises: list[TemplateExercise] = []
        if program_day.template_key is not None:
            exercises = self.scheduler.resolve_exercises(program_day.template_key, day_number)

        weights = {}
        for entry in exercises:
            current = self.progression.get(entry.exercise_id)
            if current is None:
                weights[entry.exercise_id] = default_starting_weight(entry.progression_type)
            else:
                weights[entry.exercise_id] = next_session_weight(
                    current, entry.progression_type, entry.rpe_target
                )

        return TodaysWorkout(
            enrollment=enrollment,
            program_day=program_day,
            resolved=resolved,
            exercises=exercises,
            working_weights=weights,
        )

    @_returns_result
    def set_day_substitution(
        self,
        program_day: int,
        original_exercise_id: str,
        substitute_exercise_id: str,
    ) -> DaySubstitution:
        """Replace one exercise on a program day (last write wins)."""
        if program_day < 1:
            raise InvalidArgument(f"program_day must be >= 1, got {program_day}")
        if original_exercise_id == substitute_exercise_id:
            raise InvalidArgument("An exercise cannot substitute itself")
        substitution = DaySubstitution(
            program_day=program_day,
            original_exercise_id=original_exercise_id,
            substitute_exercise_id=substitute_exercise_id,
            timestamp=self._now(),
        )
        self.substitutions.upsert(substitution)
        logger.info(
            "Day {}: {} substituted by {}", program_day, original_exercise_id, substitute_exercise_id
        )
        return substitution

    @_returns_result
    def reset_day_substitution(self, program_day: int, original_exercise_id: str) -> None:
        self.substitutions.delete(program_day, original_exercise_id)

    @_returns_result
    def get_day_substitution(self, program_day: int, original_exercise_id: str) -> str | None:
        return self.substitutions.get_substitute(program_day, original_exercise_id)

    @_returns_result
    def clear_day_substitutions(self, program_day: int) -> None:
        self.substitutions.clear_day(program_day)

    # ------------------------------------------------------------------
    # Sets, records and volume
    # ------------------------------------------------------------------

    @_returns_result
    def log_sets(self, sets: Sequence[LoggedSet]) -> int:
        """Append finished sets to the set log; returns how many were written."""
        if not sets:
            raise InvalidArgument("No sets to log")
        self.set_log.append_many(list(sets))
        return len(sets)

    @_returns_result
    def get_session_sets(self, session_id: str) -> list[LoggedSet]:
        return self.set_log.get_sets_for_session(session_id)

    @_returns_result
    def process_session_for_records(
        self,
        session_id: str,
        sets: Sequence[LoggedSet] | None = None,
    ) -> list[PersonalRecord]:
        """
        Detect and store personal records for one finished session.

        Args:
            session_id: Session to analyse
            sets: The session's sets; read from the set log when omitted

        Returns:
            Result with the newly inserted records
        """
        if sets is None:
            sets = self.set_log.get_sets_for_session(session_id)
        return self.analyzer.process_session(session_id, sets)

    @_returns_result
    def aggregate_volume(
        self,
        window_days: int = DEFAULT_VOLUME_WINDOW_DAYS,
        exercise_id: str | None = None,
    ) -> float | dict[str, float]:
        return self.analyzer.aggregate_volume(window_days, exercise_id)

    @_returns_result
    def recent_records(self, limit: int = DEFAULT_RECENT_RECORDS) -> list[PersonalRecord]:
        return self.records.list_recent(limit)

    @_returns_result
    def current_bests(self, exercise_id: str) -> dict[str, float | None]:
        return self.analyzer.current_bests(exercise_id)

    # ------------------------------------------------------------------
    # Progression
    # ------------------------------------------------------------------

    @_returns_result
    def get_progression(self, exercise_id: str) -> ProgressionRecord | None:
        return self.progression.get(exercise_id)

    @_returns_result
    def apply_progression(
        self,
        exercise_id: str,
        sets: Sequence[LoggedSet],
        progression_type: str = "linear",
        target_rpe: float = 8.0,
    ) -> ProgressionResult:
        """
        Update the working weight of an exercise from its latest session.

        The stored weight becomes the suggested new weight on a
        WEIGHT_INCREASE, otherwise the heaviest weight used in the session
        (or the previous weight when every set was unloaded).
        """
        exercise_sets = [s for s in sets if s.exercise_id == exercise_id]
        if not exercise_sets:
            raise InvalidArgument(f"No sets for exercise {exercise_id}")

        current = self.progression.get(exercise_id)
        result = calculate_progression(progression_type, current, exercise_sets, target_rpe)

        if result.new_weight is not None:
            weight = result.new_weight
        else:
            used = max(s.weight for s in exercise_sets)
            if used > 0:
                weight = used
            elif current is not None:
                weight = current.current_weight
            else:
                weight = default_starting_weight(progression_type)

        self.progression.upsert(
            ProgressionRecord(
                exercise_id=exercise_id,
                current_weight=weight,
                last_update_date=self._now(),
                last_rpe=average_rpe(exercise_sets),
                session_count=(current.session_count if current is not None else 0) + 1,
            )
        )
        logger.info("{}: {} ({}), working weight {:.1f}", exercise_id, result.kind, result.reason, weight)
        return result
