"""
Working-weight progression.

Suggests the next working weight for an exercise from the sets of its most
recent session.  Four models are supported, selected by the template
entry's progression_type:

    linear      +2.5 kg when avg RPE <= 7.5 and every set has reps
    double      +2.5 kg when avg RPE <= 7 and the top of the rep range is hit;
                otherwise add reps first
    volume      add a rep per set while avg RPE <= 7.5
    bodyweight  add 2.5 kg once 30 total reps are reached at avg RPE <= 7.5
"""

from dataclasses import dataclass
from typing import Literal, Sequence

from .config import (
    BODYWEIGHT_PROGRESSION_INCREMENT_KG,
    BODYWEIGHT_TOTAL_REPS_FOR_WEIGHT,
    DEFAULT_STARTING_WEIGHT_KG,
    DOUBLE_PROGRESSION_INCREMENT_KG,
    FALLBACK_STARTING_WEIGHT_KG,
    LINEAR_PROGRESSION_INCREMENT_KG,
    RPE_THRESHOLD_DOUBLE_WEIGHT,
    RPE_THRESHOLD_FOR_PROGRESSION,
    VOLUME_PROGRESSION_REP_INCREMENT,
    target_max_reps,
)
from .models import LoggedSet, ProgressionRecord

ProgressionKind = Literal["WEIGHT_INCREASE", "REP_INCREASE", "NO_CHANGE"]


@dataclass(frozen=True)
class ProgressionResult:
    """Suggested change; new_weight is set only for WEIGHT_INCREASE."""

    kind: ProgressionKind
    reason: str
    new_weight: float | None = None


def default_starting_weight(progression_type: str) -> float:
    return DEFAULT_STARTING_WEIGHT_KG.get(progression_type.lower(), FALLBACK_STARTING_WEIGHT_KG)


def average_rpe(sets: Sequence[LoggedSet]) -> float | None:
    """Mean RPE over sets that report one (None if none do)."""
    rated = [s.rpe for s in sets if s.rpe is not None]
    return sum(rated) / len(rated) if rated else None


def _linear(current: float, avg_rpe: float, all_sets_completed: bool) -> ProgressionResult:
    if avg_rpe <= RPE_THRESHOLD_FOR_PROGRESSION and all_sets_completed:
        return ProgressionResult(
            "WEIGHT_INCREASE",
            f"Average RPE {avg_rpe:.1f} <= {RPE_THRESHOLD_FOR_PROGRESSION}, all sets completed",
            current + LINEAR_PROGRESSION_INCREMENT_KG,
        )
    if avg_rpe > RPE_THRESHOLD_FOR_PROGRESSION:
        return ProgressionResult("NO_CHANGE", f"Average RPE {avg_rpe:.1f} too high")
    return ProgressionResult("NO_CHANGE", "Not all sets completed")


def _double(current: float, avg_rpe: float, sets: Sequence[LoggedSet], target_rpe: float) -> ProgressionResult:
    max_reps = max((s.reps for s in sets), default=0)
    if avg_rpe <= RPE_THRESHOLD_DOUBLE_WEIGHT and max_reps >= target_max_reps(target_rpe):
        return ProgressionResult(
            "WEIGHT_INCREASE",
            "Hit top of rep range with good RPE",
            current + DOUBLE_PROGRESSION_INCREMENT_KG,
        )
    if avg_rpe <= RPE_THRESHOLD_FOR_PROGRESSION:
        return ProgressionResult("REP_INCREASE", "Focus on adding reps before weight")
    return ProgressionResult("NO_CHANGE", "RPE too high or reps too low")


def _volume(avg_rpe: float) -> ProgressionResult:
    if avg_rpe <= RPE_THRESHOLD_FOR_PROGRESSION:
        return ProgressionResult(
            "REP_INCREASE", f"Add {VOLUME_PROGRESSION_REP_INCREMENT} rep(s) per set"
        )
    return ProgressionResult("NO_CHANGE", "RPE too high for volume increase")


def _bodyweight(current: float, avg_rpe: float, sets: Sequence[LoggedSet]) -> ProgressionResult:
    if avg_rpe > RPE_THRESHOLD_FOR_PROGRESSION:
        return ProgressionResult("NO_CHANGE", "RPE too high")
    if sum(s.reps for s in sets) >= BODYWEIGHT_TOTAL_REPS_FOR_WEIGHT:
        return ProgressionResult(
            "WEIGHT_INCREASE",
            "High rep count achieved, add external weight",
            current + BODYWEIGHT_PROGRESSION_INCREMENT_KG,
        )
    return ProgressionResult("REP_INCREASE", "Focus on rep progression before adding weight")


def calculate_progression(
    progression_type: str,
    current: ProgressionRecord | None,
    recent_sets: Sequence[LoggedSet],
    target_rpe: float,
) -> ProgressionResult:
    """
    Suggest the next step for one exercise.

    Args:
        progression_type: "linear" | "double" | "volume" | "bodyweight"
        current: Stored working weight (None → type's default starting weight)
        recent_sets: Sets of the exercise from the latest session
        target_rpe: Prescribed RPE of the template entry

    Returns:
        ProgressionResult
    """
    if not recent_sets:
        return ProgressionResult("NO_CHANGE", "No sets completed")

    kind = progression_type.lower()
    weight = current.current_weight if current is not None else default_starting_weight(kind)
    avg_rpe = average_rpe(recent_sets)
    if avg_rpe is None:
        return ProgressionResult("NO_CHANGE", "No RPE recorded")

    if kind == "linear":
        return _linear(weight, avg_rpe, all(s.reps > 0 for s in recent_sets))
    if kind == "double":
        return _double(weight, avg_rpe, recent_sets, target_rpe)
    if kind == "volume":
        return _volume(avg_rpe)
    if kind == "bodyweight":
        return _bodyweight(weight, avg_rpe, recent_sets)
    return ProgressionResult("NO_CHANGE", f"Unknown progression type: {progression_type}")


def next_session_weight(current: ProgressionRecord, progression_type: str, rpe_target: float) -> float:
    """
    Suggested starting weight for the next session.

    Uses the last recorded RPE (or the prescription when none is stored).
    """
    last_rpe = current.last_rpe if current.last_rpe is not None else rpe_target
    kind = progression_type.lower()
    if kind == "linear" and last_rpe <= RPE_THRESHOLD_FOR_PROGRESSION:
        return current.current_weight + LINEAR_PROGRESSION_INCREMENT_KG
    if kind == "double" and last_rpe <= RPE_THRESHOLD_DOUBLE_WEIGHT:
        return current.current_weight + DOUBLE_PROGRESSION_INCREMENT_KG
    return current.current_weight
