"""
Configuration constants for the program progression engine.

All adjustable parameters are centralized here for easy tuning.
Runtime overrides (data directory, default user, streak gap) are read
from YAML by core/engine/config_loader.py.
"""

from typing import Final

# =============================================================================
# TIME
# =============================================================================

MS_PER_DAY: Final[int] = 24 * 60 * 60 * 1000
DAYS_PER_WEEK: Final[int] = 7

# =============================================================================
# TEMPLATE ROTATION (Template Scheduler)
# =============================================================================

CYCLE_LENGTH_DAYS: Final[int] = 7  # Rotation period in program days
REST_SLOT_INDEX: Final[int] = 6  # Last slot of every cycle is the rest day

# Six workout slots followed by one rest slot (None)
DEFAULT_ROTATION: Final[tuple[str | None, ...]] = (
    "push_a",
    "pull_a",
    "legs_a",
    "push_b",
    "pull_b",
    "legs_b",
    None,
)

# (phase name, first day, last day), inclusive, for a 13-week program
DEFAULT_PHASE_BANDS: Final[tuple[tuple[str, int, int], ...]] = (
    ("foundation", 1, 28),   # Weeks 1-4
    ("strength", 29, 56),    # Weeks 5-8
    ("intensity", 57, 84),   # Weeks 9-12
    ("deload", 85, 91),      # Week 13
)

DELOAD_PHASE_NAME: Final[str] = "deload"

# =============================================================================
# ENROLLMENT
# =============================================================================

DEFAULT_USER_ID: Final[str] = "default_user"

# =============================================================================
# STREAKS (Progress Aggregator)
# =============================================================================

STREAK_GAP_DAYS: Final[int] = 2  # One rest day tolerated between sessions

# =============================================================================
# PERSONAL RECORDS
# =============================================================================

EPLEY_REP_DIVISOR: Final[float] = 30.0
DEFAULT_VOLUME_WINDOW_DAYS: Final[int] = 7
DEFAULT_RECENT_RECORDS: Final[int] = 10

# =============================================================================
# PROGRESSION (working weight suggestions)
# =============================================================================

LINEAR_PROGRESSION_INCREMENT_KG: Final[float] = 2.5
DOUBLE_PROGRESSION_INCREMENT_KG: Final[float] = 2.5  # per hand
BODYWEIGHT_PROGRESSION_INCREMENT_KG: Final[float] = 2.5
RPE_THRESHOLD_FOR_PROGRESSION: Final[float] = 7.5
RPE_THRESHOLD_DOUBLE_WEIGHT: Final[float] = 7.0
VOLUME_PROGRESSION_REP_INCREMENT: Final[int] = 1
BODYWEIGHT_TOTAL_REPS_FOR_WEIGHT: Final[int] = 30

DEFAULT_STARTING_WEIGHT_KG: Final[dict[str, float]] = {
    "linear": 60.0,      # compound barbell movements
    "double": 15.0,      # per dumbbell
    "volume": 20.0,      # accessory work
    "bodyweight": 0.0,
}
FALLBACK_STARTING_WEIGHT_KG: Final[float] = 20.0


def target_max_reps(target_rpe: float) -> int:
    """
    Top of the rep range implied by a target RPE.

    Lower target RPE leaves room for more reps before adding load.

    Args:
        target_rpe: Prescribed RPE for the exercise

    Returns:
        Rep count that must be reached before a weight increase
    """
    if target_rpe <= 7.0:
        return 15
    if target_rpe <= 8.0:
        return 12
    return 8
