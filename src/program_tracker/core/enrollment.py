"""
Enrollment state machine.

States: ENROLLED → IN_PROGRESS → COMPLETED, IN_PROGRESS ⇄ PAUSED, and any
non-terminal state → CANCELLED.  COMPLETED and CANCELLED are terminal.

Every transition is a pure function: it takes the current Enrollment (plus
read-only program days and the current time) and returns a Transition with
the new Enrollment and the completion rows to append.  Persisting the
result is the caller's job (see core/tracker.py).
"""

import uuid
from dataclasses import dataclass, replace

from .clock import add_days
from .config import DAYS_PER_WEEK
from .errors import InvalidStateTransition, NotFound, ProgramExhausted
from .models import ACTIVE_STATUSES, DayCompletion, Enrollment, ProgramDay
from .ports import ProgramDayStore
from .programs.base import Program

# Statuses each operation may start from
ALLOWED_FROM: dict[str, frozenset[str]] = {
    "start": frozenset({"ENROLLED", "IN_PROGRESS"}),
    "complete": frozenset({"IN_PROGRESS"}),
    "skip": frozenset({"IN_PROGRESS"}),
    "mark partial": frozenset({"IN_PROGRESS"}),
    "pause": frozenset({"IN_PROGRESS"}),
    "resume": frozenset({"PAUSED"}),
    "cancel": ACTIVE_STATUSES,
}


@dataclass(frozen=True)
class Transition:
    """Outcome of one transition: new state plus side effects to persist."""

    enrollment: Enrollment
    completions: tuple[DayCompletion, ...] = ()
    program_day: ProgramDay | None = None

    @property
    def program_completed(self) -> bool:
        return self.enrollment.status == "COMPLETED"


def new_id() -> str:
    return str(uuid.uuid4())


def _require(operation: str, enrollment: Enrollment) -> None:
    if enrollment.status not in ALLOWED_FROM[operation]:
        raise InvalidStateTransition(operation, enrollment.status)


def _current_program_day(enrollment: Enrollment, program_days: ProgramDayStore) -> ProgramDay:
    day = None
    if enrollment.current_day > 0:
        day = program_days.get_by_program_and_day(enrollment.program_id, enrollment.current_day)
    if day is None:
        raise NotFound(
            f"Current day {enrollment.current_day} not found in program '{enrollment.program_id}'"
        )
    return day


def enroll(
    program: Program,
    user_id: str,
    now: int,
    enrollment_id: str | None = None,
) -> Enrollment:
    """
    Create a fresh ENROLLED enrollment.

    The estimated completion date is enrolled_at + program.duration_weeks weeks.
    Deactivating the user's previous enrollment is done by the caller.
    """
    return Enrollment(
        id=enrollment_id or new_id(),
        user_id=user_id,
        program_id=program.id,
        enrolled_at=now,
        status="ENROLLED",
        current_day=0,
        estimated_completion_date=add_days(now, program.duration_weeks * DAYS_PER_WEEK),
    )


def start_day(enrollment: Enrollment, program_days: ProgramDayStore, now: int) -> Transition:
    """
    Advance to the next program day.

    The first call (current_day == 0) moves the enrollment to IN_PROGRESS and
    stamps started_at.  Nothing changes if the next day does not exist.

    Raises:
        InvalidStateTransition: If paused or terminal
        ProgramExhausted: If the program has no next day
    """
    _require("start", enrollment)

    next_day = enrollment.current_day + 1
    program_day = program_days.get_by_program_and_day(enrollment.program_id, next_day)
    if program_day is None:
        raise ProgramExhausted(enrollment.program_id, next_day)

    updated = replace(enrollment, current_day=next_day, last_activity_date=now)
    if enrollment.current_day == 0:
        updated = replace(updated, status="IN_PROGRESS", started_at=now)

    return Transition(enrollment=updated, program_day=program_day)


def complete_current_day(
    enrollment: Enrollment,
    program_days: ProgramDayStore,
    now: int,
    session_id: str | None = None,
    notes: str | None = None,
) -> Transition:
    """
    Record the current day as COMPLETED.

    Completion of the program is driven by the day number: the enrollment
    becomes COMPLETED once current_day >= the program's total day count,
    regardless of how many completion rows exist.

    Raises:
        InvalidStateTransition: If not IN_PROGRESS
        NotFound: If the current program day is missing
    """
    _require("complete", enrollment)
    program_day = _current_program_day(enrollment, program_days)

    completion = DayCompletion(
        id=new_id(),
        enrollment_id=enrollment.id,
        program_day_id=program_day.id,
        program_day_number=enrollment.current_day,
        status="COMPLETED",
        completion_date=now,
        workout_session_id=session_id,
        notes=notes,
    )
    updated = replace(
        enrollment,
        total_days_completed=enrollment.total_days_completed + 1,
        last_activity_date=now,
    )
    if enrollment.current_day >= program_days.get_total_day_count(enrollment.program_id):
        updated = replace(updated, status="COMPLETED", actual_completion_date=now)

    return Transition(enrollment=updated, completions=(completion,), program_day=program_day)


def skip_current_day(
    enrollment: Enrollment,
    program_days: ProgramDayStore,
    now: int,
    reason: str | None = None,
) -> Transition:
    """
    Record the current day as SKIPPED and push the estimate back one day.

    current_day is left alone; the next start_day advances it.

    Raises:
        InvalidStateTransition: If not IN_PROGRESS
        NotFound: If the current program day is missing
    """
    _require("skip", enrollment)
    program_day = _current_program_day(enrollment, program_days)

    completion = DayCompletion(
        id=new_id(),
        enrollment_id=enrollment.id,
        program_day_id=program_day.id,
        program_day_number=enrollment.current_day,
        status="SKIPPED",
        completion_date=now,
        skipped_reason=reason,
    )
    estimate = enrollment.estimated_completion_date
    updated = replace(
        enrollment,
        total_days_skipped=enrollment.total_days_skipped + 1,
        estimated_completion_date=add_days(estimate, 1) if estimate is not None else None,
        last_activity_date=now,
    )
    return Transition(enrollment=updated, completions=(completion,), program_day=program_day)


def mark_partial_day(
    enrollment: Enrollment,
    program_days: ProgramDayStore,
    now: int,
    session_id: str | None = None,
    notes: str | None = None,
) -> Transition:
    """Record the current day as PARTIAL; counters and current_day are unchanged."""
    _require("mark partial", enrollment)
    program_day = _current_program_day(enrollment, program_days)

    completion = DayCompletion(
        id=new_id(),
        enrollment_id=enrollment.id,
        program_day_id=program_day.id,
        program_day_number=enrollment.current_day,
        status="PARTIAL",
        completion_date=now,
        workout_session_id=session_id,
        notes=notes,
    )
    updated = replace(enrollment, last_activity_date=now)
    return Transition(enrollment=updated, completions=(completion,), program_day=program_day)


def pause(enrollment: Enrollment, now: int) -> Transition:
    _require("pause", enrollment)
    return Transition(enrollment=replace(enrollment, status="PAUSED", last_activity_date=now))


def resume(enrollment: Enrollment, now: int) -> Transition:
    _require("resume", enrollment)
    return Transition(enrollment=replace(enrollment, status="IN_PROGRESS", last_activity_date=now))


def cancel(enrollment: Enrollment, now: int) -> Transition:
    """Move any non-terminal enrollment to CANCELLED."""
    _require("cancel", enrollment)
    return Transition(enrollment=replace(enrollment, status="CANCELLED", last_activity_date=now))
