"""
Personal record detection and volume aggregation.

Three records are tracked per exercise:

    ONE_REP_MAX     max over sets of the Epley estimate  w × (1 + r/30)
    BEST_SET        max over sets of  w × r
    SESSION_VOLUME  sum over sets of  w × r  (one session)

A new PersonalRecord row is written only when the session's candidate is
strictly greater than the stored best for that (exercise, type) pair.
"""

from collections import defaultdict
from datetime import datetime, time, timedelta, timezone
from typing import Iterable, Sequence

from loguru import logger

from .clock import Clock, now_millis, to_millis
from .config import EPLEY_REP_DIVISOR
from .enrollment import new_id
from .models import RECORD_TYPES, LoggedSet, PersonalRecord
from .ports import RecordStore, SetLogStore


def epley_1rm(weight: float, reps: int) -> float:
    """
    Estimated one-rep max (Epley).

    1RM = w × (1 + r / 30)

    Args:
        weight: Load lifted (kg)
        reps: Repetitions performed

    Returns:
        Estimated 1RM in kg
    """
    return weight * (1 + reps / EPLEY_REP_DIVISOR)


def set_score(weight: float, reps: int) -> float:
    """Single-set score and volume unit: w × r."""
    return weight * reps


def group_by_exercise(sets: Iterable[LoggedSet]) -> dict[str, list[LoggedSet]]:
    """Group sets by exercise id, preserving first-seen exercise order."""
    grouped: dict[str, list[LoggedSet]] = defaultdict(list)
    for s in sets:
        grouped[s.exercise_id].append(s)
    return dict(grouped)


def session_candidates(sets: Sequence[LoggedSet]) -> dict[str, dict[str, float]]:
    """
    Record candidates per exercise for one session.

    Returns:
        {exercise_id: {"ONE_REP_MAX": x, "BEST_SET": y, "SESSION_VOLUME": z}}
    """
    candidates: dict[str, dict[str, float]] = {}
    for exercise_id, ex_sets in group_by_exercise(sets).items():
        candidates[exercise_id] = {
            "ONE_REP_MAX": max(epley_1rm(s.weight, s.reps) for s in ex_sets),
            "BEST_SET": max(set_score(s.weight, s.reps) for s in ex_sets),
            "SESSION_VOLUME": sum(set_score(s.weight, s.reps) for s in ex_sets),
        }
    return candidates


def volume_window(now: datetime, window_days: int) -> tuple[int, int]:
    """
    Inclusive epoch-ms bounds of the last window_days calendar days (UTC).

    The window runs from the start of (today - window_days + 1) to the last
    millisecond of today.

    Raises:
        ValueError: If window_days < 1
    """
    if window_days < 1:
        raise ValueError(f"window_days must be >= 1, got {window_days}")
    today = now.astimezone(timezone.utc).date()
    start = datetime.combine(today - timedelta(days=window_days - 1), time.min, tzinfo=timezone.utc)
    end = datetime.combine(today + timedelta(days=1), time.min, tzinfo=timezone.utc)
    return to_millis(start), to_millis(end) - 1


def volume_by_exercise(sets: Iterable[LoggedSet]) -> dict[str, float]:
    """Total w × r per exercise, sorted descending by total."""
    totals: dict[str, float] = defaultdict(float)
    for s in sets:
        totals[s.exercise_id] += set_score(s.weight, s.reps)
    return dict(sorted(totals.items(), key=lambda kv: kv[1], reverse=True))


class RecordAnalyzer:
    """Detects and stores personal records; aggregates volume from the set log."""

    def __init__(self, records: RecordStore, set_log: SetLogStore, clock: Clock):
        self.records = records
        self.set_log = set_log
        self.clock = clock

    def process_session(self, session_id: str, sets: Sequence[LoggedSet]) -> list[PersonalRecord]:
        """
        Compare a finished session against stored bests and persist new records.

        Ties and lower values create nothing.  Exercises without sets in the
        session are untouched.  A missing stored best counts as 0.

        Args:
            session_id: Session the sets belong to
            sets: The session's logged sets

        Returns:
            Newly inserted records
        """
        now = now_millis(self.clock)
        inserted: list[PersonalRecord] = []

        for exercise_id, values in session_candidates(sets).items():
            for record_type in RECORD_TYPES:
                candidate = values[record_type]
                previous = self.records.get_best(exercise_id, record_type) or 0.0
                if candidate <= previous:
                    continue
                record = PersonalRecord(
                    id=new_id(),
                    exercise_id=exercise_id,
                    type=record_type,  # type: ignore[arg-type]
                    value=candidate,
                    date=now,
                    session_id=session_id,
                )
                self.records.insert(record)
                inserted.append(record)
                logger.info(
                    "New {} record for {}: {:.2f} (previous {:.2f})",
                    record_type, exercise_id, candidate, previous,
                )

        return inserted

    def current_bests(self, exercise_id: str) -> dict[str, float | None]:
        """Stored best value per record type for one exercise."""
        return {t: self.records.get_best(exercise_id, t) for t in RECORD_TYPES}

    def aggregate_volume(
        self,
        window_days: int,
        exercise_id: str | None = None,
    ) -> float | dict[str, float]:
        """
        Sum w × r over sets logged in the last window_days calendar days.

        Args:
            window_days: Window length in days, today included
            exercise_id: Restrict to one exercise

        Returns:
            Total for exercise_id, or {exercise_id: total} sorted descending
        """
        start, end = volume_window(self.clock.now(), window_days)
        sets = self.set_log.get_sets_between(start, end)
        if exercise_id is not None:
            return sum(set_score(s.weight, s.reps) for s in sets if s.exercise_id == exercise_id)
        return volume_by_exercise(sets)
