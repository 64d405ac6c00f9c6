"""
Progress aggregation.

Pure folds over an enrollment's append-only completion log.  Nothing here
reads the enrollment's own day counters for completion counts, so the
summary cannot drift from the log.
"""

from collections import Counter
from typing import Callable, Sequence

from .clock import day_of
from .config import DAYS_PER_WEEK, MS_PER_DAY, STREAK_GAP_DAYS
from .models import DayCompletion, Enrollment, ProgramStatistics, ProgressSummary


def _completed_newest_first(completions: Sequence[DayCompletion]) -> list[DayCompletion]:
    done = [c for c in completions if c.status == "COMPLETED"]
    done.sort(key=lambda c: c.completion_date, reverse=True)
    return done


def _within_gap(newer: DayCompletion, older: DayCompletion, gap_days: int) -> bool:
    """True if the calendar-day gap between two completions keeps a streak."""
    gap = (day_of(newer.completion_date) - day_of(older.completion_date)).days
    return gap <= gap_days


def current_streak(
    completions: Sequence[DayCompletion],
    gap_days: int = STREAK_GAP_DAYS,
) -> int:
    """
    Consecutive completed days counting back from the most recent one.

    Walks COMPLETED rows newest first and stops at the first gap larger than
    gap_days calendar days.  With the default gap of 2, one rest day between
    sessions keeps the streak alive.

    Args:
        completions: Completion log of one enrollment (any order, any status)
        gap_days: Largest tolerated calendar-day gap

    Returns:
        Streak length (0 if nothing was completed)
    """
    done = _completed_newest_first(completions)
    if not done:
        return 0

    streak = 1
    for newer, older in zip(done, done[1:]):
        if not _within_gap(newer, older, gap_days):
            break
        streak += 1
    return streak


def longest_streak(
    completions: Sequence[DayCompletion],
    gap_days: int = STREAK_GAP_DAYS,
) -> int:
    """Longest run anywhere in the history, using the same gap rule."""
    done = _completed_newest_first(completions)
    if not done:
        return 0

    best = run = 1
    for newer, older in zip(done, done[1:]):
        run = run + 1 if _within_gap(newer, older, gap_days) else 1
        best = max(best, run)
    return best


def days_since_start(enrollment: Enrollment, now: int) -> int:
    """Whole days since the first program day was started (0 if never)."""
    if enrollment.started_at is None:
        return 0
    return max(0, (now - enrollment.started_at) // MS_PER_DAY)


def summarize(
    enrollment: Enrollment,
    total_days: int,
    completions: Sequence[DayCompletion],
    now: int,
    gap_days: int = STREAK_GAP_DAYS,
) -> ProgressSummary:
    """
    Build the progress summary for one enrollment.

    avg_workouts_per_week = completed / max(1, days_since_start / 7)
    progress_percentage   = 100 * current_day / total_days

    Args:
        enrollment: Enrollment being summarized
        total_days: Number of days in the enrollment's program
        completions: The enrollment's completion log
        now: Current time (epoch ms)
        gap_days: Streak gap tolerance

    Returns:
        ProgressSummary
    """
    counts = Counter(c.status for c in completions)
    completed = counts["COMPLETED"]

    weeks_elapsed = max(1.0, days_since_start(enrollment, now) / DAYS_PER_WEEK)
    percentage = 100.0 * enrollment.current_day / total_days if total_days > 0 else 0.0

    return ProgressSummary(
        total_days=total_days,
        completed_days=completed,
        skipped_days=counts["SKIPPED"],
        partial_days=counts["PARTIAL"],
        current_streak=current_streak(completions, gap_days),
        longest_streak=longest_streak(completions, gap_days),
        avg_workouts_per_week=completed / weeks_elapsed,
        progress_percentage=percentage,
        estimated_completion_date=enrollment.estimated_completion_date,
    )


def program_statistics(
    enrollments: Sequence[Enrollment],
    goal_of: Callable[[str], str | None],
) -> ProgramStatistics:
    """
    Cross-enrollment statistics for one user.

    Args:
        enrollments: Every enrollment of the user (any status)
        goal_of: Maps a program id to its goal (None if unknown)

    Returns:
        ProgramStatistics
    """
    by_status = Counter(e.status for e in enrollments)

    goals = Counter(
        goal for goal in (goal_of(e.program_id) for e in enrollments) if goal is not None
    )
    favorite = goals.most_common(1)[0][0] if goals else None

    finished = [
        e for e in enrollments
        if e.status == "COMPLETED"
        and e.started_at is not None
        and e.actual_completion_date is not None
    ]
    if finished:
        total = sum(
            (e.actual_completion_date - e.started_at) // MS_PER_DAY  # type: ignore[operator]
            for e in finished
        )
        average = total // len(finished)
    else:
        average = 0

    return ProgramStatistics(
        total_programs_completed=by_status["COMPLETED"],
        total_enrollments=len(enrollments),
        favorite_goal=favorite,
        average_program_duration_days=average,
        enrollments_by_status=dict(by_status),
    )
