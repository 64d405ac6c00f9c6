"""
Persistence ports.

Abstract read/write contracts for the entity collections the engine works
on.  Core logic only talks to these protocols; io/stores.py provides the
file-backed implementations and ProgramCatalog implements ProgramDayStore.
"""

from typing import Protocol

from .models import (
    DayCompletion,
    DaySubstitution,
    Enrollment,
    LoggedSet,
    PersonalRecord,
    ProgramDay,
    ProgressionRecord,
)


class EnrollmentStore(Protocol):
    """Enrollment rows keyed by id."""

    def get_by_id(self, enrollment_id: str) -> Enrollment | None: ...

    def get_active_for_user(self, user_id: str) -> Enrollment | None:
        """The user's non-terminal enrollment, if any."""
        ...

    def list_for_user(self, user_id: str) -> list[Enrollment]: ...

    def insert(self, enrollment: Enrollment) -> None: ...

    def update(self, enrollment: Enrollment) -> None:
        """Replace the stored row with the same id."""
        ...

    def update_current_day(self, enrollment_id: str, new_day: int) -> None: ...

    def update_status(self, enrollment_id: str, status: str) -> None: ...

    def deactivate_all_for_user(self, user_id: str) -> int:
        """Cancel every non-terminal enrollment of the user; return how many."""
        ...

    def delete(self, enrollment_id: str) -> None: ...


class ProgramDayStore(Protocol):
    """Read-only access to authored program days."""

    def get_by_program_and_day(self, program_id: str, day_number: int) -> ProgramDay | None: ...

    def get_total_day_count(self, program_id: str) -> int: ...


class SubstitutionStore(Protocol):
    """Per-day exercise overrides keyed by (program_day, original_exercise_id)."""

    def get_all_for_day(self, program_day: int) -> dict[str, str]:
        """Map of original exercise id to substitute id for one day."""
        ...

    def get_substitute(self, program_day: int, original_exercise_id: str) -> str | None: ...

    def upsert(self, substitution: DaySubstitution) -> None: ...

    def delete(self, program_day: int, original_exercise_id: str) -> None: ...

    def clear_day(self, program_day: int) -> None: ...


class CompletionStore(Protocol):
    """Append-only day completion log."""

    def append(self, completion: DayCompletion) -> None: ...

    def get_all_for_enrollment(self, enrollment_id: str) -> list[DayCompletion]: ...

    def delete_for_enrollment(self, enrollment_id: str) -> int: ...


class RecordStore(Protocol):
    """Personal record history."""

    def get_best(self, exercise_id: str, record_type: str) -> float | None: ...

    def insert(self, record: PersonalRecord) -> None: ...

    def list_recent(self, limit: int) -> list[PersonalRecord]: ...


class SetLogStore(Protocol):
    """Logged sets from finished workout sessions."""

    def append_many(self, sets: list[LoggedSet]) -> None: ...

    def get_sets_between(self, from_ts: int, to_ts: int) -> list[LoggedSet]:
        """Sets with from_ts <= timestamp <= to_ts."""
        ...

    def get_sets_for_session(self, session_id: str) -> list[LoggedSet]: ...


class ProgressionStore(Protocol):
    """Per-exercise working weight."""

    def get(self, exercise_id: str) -> ProgressionRecord | None: ...

    def upsert(self, record: ProgressionRecord) -> None: ...
