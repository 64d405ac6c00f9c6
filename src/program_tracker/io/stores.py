"""
JSON / JSONL file-backed implementations of the persistence ports.

Layout of a data directory:

    enrollments.json     list of enrollment objects (rewritten on change)
    substitutions.json   list of day substitutions (rewritten on change)
    progression.json     {exercise_id: progression record}
    completions.jsonl    append-only day completion log
    records.jsonl        append-only personal record history
    sets.jsonl           append-only logged sets

Missing files read as empty collections; parent directories are created on
first write.  The stores are single-process and last-writer-wins.
"""

import json
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Callable, Iterator, TypeVar

from loguru import logger

from ..core.clock import Clock
from ..core.config import STREAK_GAP_DAYS
from ..core.engine.config_loader import get_home_dir
from ..core.errors import NotFound
from ..core.models import (
    ACTIVE_STATUSES,
    ENROLLMENT_STATUSES,
    DayCompletion,
    DaySubstitution,
    Enrollment,
    LoggedSet,
    PersonalRecord,
    ProgressionRecord,
)
from ..core.programs.catalog import ProgramCatalog
from ..core.programs.loader import default_catalog
from ..core.tracker import ProgramTracker
from .serializers import (
    ValidationError,
    completion_to_dict,
    dict_to_completion,
    dict_to_enrollment,
    dict_to_logged_set,
    dict_to_progression,
    dict_to_record,
    dict_to_substitution,
    enrollment_to_dict,
    logged_set_to_dict,
    progression_to_dict,
    record_to_dict,
    substitution_to_dict,
    to_json_line,
    validate_choice,
)

T = TypeVar("T")


# =============================================================================
# File helpers
# =============================================================================


def _read_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Error parsing {path}: {e}") from e


def _write_json(path: Path, data: Any) -> None:
    """Write atomically: dump to a sibling temp file, then replace."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with open(tmp, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
    os.replace(tmp, path)


def _iter_jsonl(path: Path, convert: Callable[[dict], T]) -> Iterator[T]:
    """Yield converted records from a JSONL file, skipping blank lines."""
    if not path.exists():
        return
    with open(path, "r", encoding="utf-8") as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                yield convert(json.loads(line))
            except (ValidationError, ValueError, TypeError, KeyError, AttributeError) as e:
                raise ValidationError(f"Error parsing line {line_num} in {path}: {e}") from e


def _append_jsonl(path: Path, rows: list[dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        for row in rows:
            f.write(to_json_line(row) + "\n")


def _rewrite_jsonl(path: Path, rows: list[dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        for row in rows:
            f.write(to_json_line(row) + "\n")


# =============================================================================
# Enrollments
# =============================================================================


class JsonEnrollmentStore:
    """Enrollments stored as one JSON list."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load_all(self) -> list[Enrollment]:
        raw = _read_json(self.path, [])
        try:
            return [dict_to_enrollment(d) for d in raw]
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            raise ValidationError(f"Invalid enrollment in {self.path}: {e}") from e

    def _save_all(self, enrollments: list[Enrollment]) -> None:
        _write_json(self.path, [enrollment_to_dict(e) for e in enrollments])

    def get_by_id(self, enrollment_id: str) -> Enrollment | None:
        return next((e for e in self.load_all() if e.id == enrollment_id), None)

    def get_active_for_user(self, user_id: str) -> Enrollment | None:
        """Most recently enrolled non-terminal enrollment of the user."""
        active = [e for e in self.load_all() if e.user_id == user_id and e.is_active]
        return max(active, key=lambda e: e.enrolled_at) if active else None

    def list_for_user(self, user_id: str) -> list[Enrollment]:
        """All enrollments of the user, newest first."""
        rows = [e for e in self.load_all() if e.user_id == user_id]
        return sorted(rows, key=lambda e: e.enrolled_at, reverse=True)

    def insert(self, enrollment: Enrollment) -> None:
        rows = self.load_all()
        if any(e.id == enrollment.id for e in rows):
            raise ValueError(f"Enrollment {enrollment.id} already exists")
        rows.append(enrollment)
        self._save_all(rows)

    def _modify(self, enrollment_id: str, change: Callable[[Enrollment], Enrollment]) -> None:
        rows = self.load_all()
        for i, e in enumerate(rows):
            if e.id == enrollment_id:
                rows[i] = change(e)
                self._save_all(rows)
                return
        raise NotFound(f"Enrollment not found: {enrollment_id}")

    def update(self, enrollment: Enrollment) -> None:
        self._modify(enrollment.id, lambda _: enrollment)

    def update_current_day(self, enrollment_id: str, new_day: int) -> None:
        if new_day < 0:
            raise ValueError("current_day must be non-negative")
        self._modify(enrollment_id, lambda e: replace(e, current_day=new_day))

    def update_status(self, enrollment_id: str, status: str) -> None:
        validate_choice(status, ENROLLMENT_STATUSES, "status")
        self._modify(enrollment_id, lambda e: replace(e, status=status))  # type: ignore[arg-type]

    def deactivate_all_for_user(self, user_id: str) -> int:
        rows = self.load_all()
        count = 0
        for i, e in enumerate(rows):
            if e.user_id == user_id and e.status in ACTIVE_STATUSES:
                rows[i] = replace(e, status="CANCELLED")
                count += 1
        if count:
            self._save_all(rows)
        return count

    def delete(self, enrollment_id: str) -> None:
        rows = self.load_all()
        kept = [e for e in rows if e.id != enrollment_id]
        if len(kept) == len(rows):
            raise NotFound(f"Enrollment not found: {enrollment_id}")
        self._save_all(kept)


# =============================================================================
# Completions
# =============================================================================


class JsonlCompletionStore:
    """Append-only completion log."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def append(self, completion: DayCompletion) -> None:
        _append_jsonl(self.path, [completion_to_dict(completion)])

    def load_all(self) -> list[DayCompletion]:
        return list(_iter_jsonl(self.path, dict_to_completion))

    def get_all_for_enrollment(self, enrollment_id: str) -> list[DayCompletion]:
        """Completion rows of one enrollment in append order."""
        return [c for c in self.load_all() if c.enrollment_id == enrollment_id]

    def delete_for_enrollment(self, enrollment_id: str) -> int:
        """Purge one enrollment's rows; only used by cancel-and-purge."""
        rows = self.load_all()
        kept = [c for c in rows if c.enrollment_id != enrollment_id]
        removed = len(rows) - len(kept)
        if removed:
            _rewrite_jsonl(self.path, [completion_to_dict(c) for c in kept])
        return removed


# =============================================================================
# Substitutions
# =============================================================================


class JsonSubstitutionStore:
    """Day substitutions keyed by (program_day, original_exercise_id)."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load_all(self) -> list[DaySubstitution]:
        raw = _read_json(self.path, [])
        try:
            return [dict_to_substitution(d) for d in raw]
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            raise ValidationError(f"Invalid substitution in {self.path}: {e}") from e

    def _save_all(self, subs: list[DaySubstitution]) -> None:
        subs = sorted(subs, key=lambda s: s.key)
        _write_json(self.path, [substitution_to_dict(s) for s in subs])

    def get_all_for_day(self, program_day: int) -> dict[str, str]:
        return {
            s.original_exercise_id: s.substitute_exercise_id
            for s in self.load_all()
            if s.program_day == program_day
        }

    def get_substitute(self, program_day: int, original_exercise_id: str) -> str | None:
        return self.get_all_for_day(program_day).get(original_exercise_id)

    def upsert(self, substitution: DaySubstitution) -> None:
        """Insert or replace the substitution for its (day, original) pair."""
        subs = [s for s in self.load_all() if s.key != substitution.key]
        subs.append(substitution)
        self._save_all(subs)

    def delete(self, program_day: int, original_exercise_id: str) -> None:
        subs = self.load_all()
        kept = [s for s in subs if s.key != (program_day, original_exercise_id)]
        if len(kept) != len(subs):
            self._save_all(kept)

    def clear_day(self, program_day: int) -> None:
        subs = self.load_all()
        kept = [s for s in subs if s.program_day != program_day]
        if len(kept) != len(subs):
            self._save_all(kept)


# =============================================================================
# Personal records
# =============================================================================


class JsonlRecordStore:
    """Append-only personal record history."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load_all(self) -> list[PersonalRecord]:
        return list(_iter_jsonl(self.path, dict_to_record))

    def get_best(self, exercise_id: str, record_type: str) -> float | None:
        values = [
            r.value for r in self.load_all()
            if r.exercise_id == exercise_id and r.type == record_type
        ]
        return max(values) if values else None

    def insert(self, record: PersonalRecord) -> None:
        _append_jsonl(self.path, [record_to_dict(record)])

    def list_recent(self, limit: int) -> list[PersonalRecord]:
        """Newest records first."""
        rows = sorted(self.load_all(), key=lambda r: r.date, reverse=True)
        return rows[: max(0, limit)]


# =============================================================================
# Logged sets
# =============================================================================


class JsonlSetLogStore:
    """Append-only log of sets from finished sessions."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load_all(self) -> list[LoggedSet]:
        return list(_iter_jsonl(self.path, dict_to_logged_set))

    def append_many(self, sets: list[LoggedSet]) -> None:
        if sets:
            _append_jsonl(self.path, [logged_set_to_dict(s) for s in sets])

    def get_sets_between(self, from_ts: int, to_ts: int) -> list[LoggedSet]:
        return [s for s in self.load_all() if from_ts <= s.timestamp <= to_ts]

    def get_sets_for_session(self, session_id: str) -> list[LoggedSet]:
        rows = [s for s in self.load_all() if s.session_id == session_id]
        return sorted(rows, key=lambda s: (s.exercise_id, s.set_number))


# =============================================================================
# Progression
# =============================================================================


class JsonProgressionStore:
    """Working weight per exercise, one JSON object."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load_all(self) -> dict[str, ProgressionRecord]:
        raw = _read_json(self.path, {})
        try:
            return {k: dict_to_progression(v) for k, v in raw.items()}
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            raise ValidationError(f"Invalid progression record in {self.path}: {e}") from e

    def get(self, exercise_id: str) -> ProgressionRecord | None:
        return self.load_all().get(exercise_id)

    def upsert(self, record: ProgressionRecord) -> None:
        rows = self.load_all()
        rows[record.exercise_id] = record
        _write_json(self.path, {k: progression_to_dict(v) for k, v in sorted(rows.items())})


# =============================================================================
# Bundle
# =============================================================================


@dataclass
class FileStorage:
    """All file-backed stores of one data directory."""

    data_dir: Path
    enrollments: JsonEnrollmentStore
    completions: JsonlCompletionStore
    substitutions: JsonSubstitutionStore
    records: JsonlRecordStore
    set_log: JsonlSetLogStore
    progression: JsonProgressionStore

    def exists(self) -> bool:
        return self.data_dir.is_dir()


def open_storage(data_dir: str | Path) -> FileStorage:
    """Create the store bundle for a data directory (files are created lazily)."""
    base = Path(data_dir)
    logger.debug("Using data directory {}", base)
    return FileStorage(
        data_dir=base,
        enrollments=JsonEnrollmentStore(base / "enrollments.json"),
        completions=JsonlCompletionStore(base / "completions.jsonl"),
        substitutions=JsonSubstitutionStore(base / "substitutions.json"),
        records=JsonlRecordStore(base / "records.jsonl"),
        set_log=JsonlSetLogStore(base / "sets.jsonl"),
        progression=JsonProgressionStore(base / "progression.json"),
    )


def get_default_data_dir() -> Path:
    """Default data directory: <home>/data."""
    return get_home_dir() / "data"


def open_tracker(
    data_dir: str | Path | None = None,
    catalog: ProgramCatalog | None = None,
    clock: Clock | None = None,
    streak_gap_days: int = STREAK_GAP_DAYS,
) -> ProgramTracker:
    """
    Build a ProgramTracker over the file stores of a data directory.

    Args:
        data_dir: Data directory (default: <home>/data)
        catalog: Program catalog (default: bundled programs plus user overrides)
        clock: Time source (default: system clock)
        streak_gap_days: Streak gap tolerance

    Returns:
        ProgramTracker
    """
    storage = open_storage(data_dir if data_dir is not None else get_default_data_dir())
    return ProgramTracker(
        catalog=catalog if catalog is not None else default_catalog(),
        enrollments=storage.enrollments,
        completions=storage.completions,
        substitutions=storage.substitutions,
        records=storage.records,
        set_log=storage.set_log,
        progression=storage.progression,
        clock=clock,
        streak_gap_days=streak_gap_days,
    )
