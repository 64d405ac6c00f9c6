"""
JSON serialization for program-tracker data models.

Handles conversion between dataclasses and JSON-compatible dicts, plus
parsing of compact set strings typed on the command line.
"""

import json
import re
from typing import Any

from ..core.errors import ValidationError
from ..core.models import (
    COMPLETION_STATUSES,
    ENROLLMENT_STATUSES,
    RECORD_TYPES,
    DayCompletion,
    DaySubstitution,
    Enrollment,
    LoggedSet,
    PersonalRecord,
    ProgressionRecord,
)


def validate_choice(value: Any, choices: tuple[str, ...], name: str) -> str:
    """
    Validate that a value is one of the allowed strings.

    Raises:
        ValidationError: If value is not in choices
    """
    if value not in choices:
        raise ValidationError(f"Invalid {name}: {value!r}. Must be one of {choices}")
    return value


def validate_non_negative(value: int | float, name: str) -> int | float:
    """
    Validate that a value is non-negative.

    Raises:
        ValidationError: If value is negative
    """
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def _require(data: dict[str, Any], *keys: str) -> None:
    missing = [k for k in keys if k not in data]
    if missing:
        raise ValidationError(f"Missing fields: {missing}")


def _opt_int(value: Any) -> int | None:
    return int(value) if value is not None else None


# =============================================================================
# Enrollment
# =============================================================================


def enrollment_to_dict(enrollment: Enrollment) -> dict[str, Any]:
    return {
        "id": enrollment.id,
        "user_id": enrollment.user_id,
        "program_id": enrollment.program_id,
        "enrolled_at": enrollment.enrolled_at,
        "started_at": enrollment.started_at,
        "current_day": enrollment.current_day,
        "status": enrollment.status,
        "estimated_completion_date": enrollment.estimated_completion_date,
        "actual_completion_date": enrollment.actual_completion_date,
        "total_days_completed": enrollment.total_days_completed,
        "total_days_skipped": enrollment.total_days_skipped,
        "last_activity_date": enrollment.last_activity_date,
    }


def dict_to_enrollment(data: dict[str, Any]) -> Enrollment:
    """
    Convert dict to Enrollment.

    Raises:
        ValidationError: If data is invalid
    """
    _require(data, "id", "user_id", "program_id", "enrolled_at")
    status = validate_choice(data.get("status", "ENROLLED"), ENROLLMENT_STATUSES, "status")
    validate_non_negative(data.get("current_day", 0), "current_day")
    validate_non_negative(data.get("total_days_completed", 0), "total_days_completed")
    validate_non_negative(data.get("total_days_skipped", 0), "total_days_skipped")

    return Enrollment(
        id=str(data["id"]),
        user_id=str(data["user_id"]),
        program_id=str(data["program_id"]),
        enrolled_at=int(data["enrolled_at"]),
        status=status,  # type: ignore[arg-type]
        current_day=int(data.get("current_day", 0)),
        started_at=_opt_int(data.get("started_at")),
        estimated_completion_date=_opt_int(data.get("estimated_completion_date")),
        actual_completion_date=_opt_int(data.get("actual_completion_date")),
        total_days_completed=int(data.get("total_days_completed", 0)),
        total_days_skipped=int(data.get("total_days_skipped", 0)),
        last_activity_date=_opt_int(data.get("last_activity_date")),
    )


# =============================================================================
# Completions
# =============================================================================


def completion_to_dict(completion: DayCompletion) -> dict[str, Any]:
    d: dict[str, Any] = {
        "id": completion.id,
        "enrollment_id": completion.enrollment_id,
        "program_day_id": completion.program_day_id,
        "program_day_number": completion.program_day_number,
        "status": completion.status,
        "completion_date": completion.completion_date,
    }
    # Optional fields are omitted when empty to keep the log compact
    if completion.workout_session_id is not None:
        d["workout_session_id"] = completion.workout_session_id
    if completion.skipped_reason is not None:
        d["skipped_reason"] = completion.skipped_reason
    if completion.notes is not None:
        d["notes"] = completion.notes
    return d


def dict_to_completion(data: dict[str, Any]) -> DayCompletion:
    _require(data, "id", "enrollment_id", "program_day_id", "program_day_number", "status", "completion_date")
    status = validate_choice(data["status"], COMPLETION_STATUSES, "status")
    return DayCompletion(
        id=str(data["id"]),
        enrollment_id=str(data["enrollment_id"]),
        program_day_id=str(data["program_day_id"]),
        program_day_number=int(data["program_day_number"]),
        status=status,  # type: ignore[arg-type]
        completion_date=int(data["completion_date"]),
        workout_session_id=data.get("workout_session_id"),
        skipped_reason=data.get("skipped_reason"),
        notes=data.get("notes"),
    )


# =============================================================================
# Substitutions
# =============================================================================


def substitution_to_dict(sub: DaySubstitution) -> dict[str, Any]:
    return {
        "program_day": sub.program_day,
        "original_exercise_id": sub.original_exercise_id,
        "substitute_exercise_id": sub.substitute_exercise_id,
        "timestamp": sub.timestamp,
    }


def dict_to_substitution(data: dict[str, Any]) -> DaySubstitution:
    _require(data, "program_day", "original_exercise_id", "substitute_exercise_id")
    return DaySubstitution(
        program_day=int(data["program_day"]),
        original_exercise_id=str(data["original_exercise_id"]),
        substitute_exercise_id=str(data["substitute_exercise_id"]),
        timestamp=int(data.get("timestamp", 0)),
    )


# =============================================================================
# Personal records
# =============================================================================


def record_to_dict(record: PersonalRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "exercise_id": record.exercise_id,
        "type": record.type,
        "value": record.value,
        "date": record.date,
        "session_id": record.session_id,
    }


def dict_to_record(data: dict[str, Any]) -> PersonalRecord:
    _require(data, "id", "exercise_id", "type", "value", "date")
    record_type = validate_choice(data["type"], RECORD_TYPES, "type")
    return PersonalRecord(
        id=str(data["id"]),
        exercise_id=str(data["exercise_id"]),
        type=record_type,  # type: ignore[arg-type]
        value=float(data["value"]),
        date=int(data["date"]),
        session_id=data.get("session_id"),
    )


# =============================================================================
# Logged sets
# =============================================================================


def logged_set_to_dict(s: LoggedSet) -> dict[str, Any]:
    return {
        "session_id": s.session_id,
        "exercise_id": s.exercise_id,
        "set_number": s.set_number,
        "weight": s.weight,
        "reps": s.reps,
        "rpe": s.rpe,
        "timestamp": s.timestamp,
    }


def dict_to_logged_set(data: dict[str, Any]) -> LoggedSet:
    _require(data, "session_id", "exercise_id", "set_number", "weight", "reps", "timestamp")
    validate_non_negative(data["weight"], "weight")
    validate_non_negative(data["reps"], "reps")
    rpe = data.get("rpe")
    return LoggedSet(
        session_id=str(data["session_id"]),
        exercise_id=str(data["exercise_id"]),
        set_number=int(data["set_number"]),
        weight=float(data["weight"]),
        reps=int(data["reps"]),
        timestamp=int(data["timestamp"]),
        rpe=float(rpe) if rpe is not None else None,
    )


# =============================================================================
# Progression
# =============================================================================


def progression_to_dict(p: ProgressionRecord) -> dict[str, Any]:
    return {
        "exercise_id": p.exercise_id,
        "current_weight": p.current_weight,
        "last_update_date": p.last_update_date,
        "last_rpe": p.last_rpe,
        "session_count": p.session_count,
    }


def dict_to_progression(data: dict[str, Any]) -> ProgressionRecord:
    _require(data, "exercise_id", "current_weight", "last_update_date")
    validate_non_negative(data["current_weight"], "current_weight")
    last_rpe = data.get("last_rpe")
    return ProgressionRecord(
        exercise_id=str(data["exercise_id"]),
        current_weight=float(data["current_weight"]),
        last_update_date=int(data["last_update_date"]),
        last_rpe=float(last_rpe) if last_rpe is not None else None,
        session_count=int(data.get("session_count", 0)),
    )


def to_json_line(data: dict[str, Any]) -> str:
    """Serialize one record as a compact single JSON line."""
    return json.dumps(data, separators=(",", ":"))


# =============================================================================
# Set strings
# =============================================================================

_SET_RE = re.compile(
    r"^\s*(?P<weight>\d+(?:\.\d+)?)\s*[xX×]\s*(?P<reps>\d+)\s*(?:@\s*(?P<rpe>\d+(?:\.\d+)?))?\s*$"
)


def parse_sets_string(sets_str: str) -> list[tuple[float, int, float | None]]:
    """
    Parse a comma-separated list of sets.

    Format per set: ``WEIGHTxREPS[@RPE]``, e.g. ``100x5@8, 100x5, 102.5x4@9``.
    A leading ``N*`` repeats a set: ``3*100x5`` is three identical sets.

    Args:
        sets_str: Sets typed by the user

    Returns:
        List of (weight, reps, rpe) tuples in order

    Raises:
        ValidationError: If any set does not match the format
    """
    parsed: list[tuple[float, int, float | None]] = []
    for part in sets_str.split(","):
        part = part.strip()
        if not part:
            continue
        repeat = 1
        if "*" in part:
            count, _, rest = part.partition("*")
            if not count.strip().isdigit() or int(count) < 1:
                raise ValidationError(f"Invalid repeat count in {part!r}")
            repeat, part = int(count), rest
        m = _SET_RE.match(part)
        if m is None:
            raise ValidationError(
                f"Invalid set {part!r}. Expected WEIGHTxREPS[@RPE], e.g. 100x5@8"
            )
        rpe = float(m.group("rpe")) if m.group("rpe") is not None else None
        parsed.extend([(float(m.group("weight")), int(m.group("reps")), rpe)] * repeat)

    if not parsed:
        raise ValidationError("No sets given")
    return parsed
