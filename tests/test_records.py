"""
Tests for personal record detection and volume aggregation.

Formula values are hand-computed:
    Epley 1RM(100 kg × 5) = 100 × (1 + 5/30) = 116.67
    Epley 1RM(110 kg × 5) = 110 × (1 + 5/30) = 128.33
"""

from datetime import datetime, timedelta, timezone

import pytest

from program_tracker.core.clock import FixedClock, to_millis
from program_tracker.core.models import LoggedSet
from program_tracker.core.records import (
    RecordAnalyzer,
    epley_1rm,
    session_candidates,
    set_score,
    volume_by_exercise,
    volume_window,
)
from program_tracker.io.stores import JsonlRecordStore, JsonlSetLogStore

NOW = datetime(2024, 3, 15, 18, 30, tzinfo=timezone.utc)

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _sets(
    session: str,
    exercise: str,
    weight: float,
    reps: int,
    count: int = 1,
    when: datetime = NOW,
) -> list[LoggedSet]:
    return [
        LoggedSet(
            session_id=session,
            exercise_id=exercise,
            set_number=i + 1,
            weight=weight,
            reps=reps,
            timestamp=to_millis(when),
        )
        for i in range(count)
    ]


@pytest.fixture
def analyzer(tmp_path):
    return RecordAnalyzer(
        JsonlRecordStore(tmp_path / "records.jsonl"),
        JsonlSetLogStore(tmp_path / "sets.jsonl"),
        FixedClock(NOW),
    )


# ---------------------------------------------------------------------------
# Formulas
# ---------------------------------------------------------------------------


class TestFormulas:
    """Epley estimate and set score."""

    def test_epley(self):
        assert epley_1rm(100, 5) == pytest.approx(116.6667, rel=1e-4)
        assert epley_1rm(110, 5) == pytest.approx(128.3333, rel=1e-4)

    def test_epley_single_rep_is_above_weight(self):
        assert epley_1rm(100, 1) == pytest.approx(103.3333, rel=1e-4)

    def test_epley_zero_reps_is_weight(self):
        assert epley_1rm(80, 0) == 80

    def test_set_score(self):
        assert set_score(100, 5) == 500

    def test_session_candidates(self):
        sets = _sets("s", "bench", 100, 5) + _sets("s", "bench", 90, 8) + _sets("s", "row", 60, 10)
        c = session_candidates(sets)

        assert set(c) == {"bench", "row"}
        assert c["bench"]["ONE_REP_MAX"] == pytest.approx(max(epley_1rm(100, 5), epley_1rm(90, 8)))
        assert c["bench"]["BEST_SET"] == 720  # 90 × 8
        assert c["bench"]["SESSION_VOLUME"] == 1220
        assert c["row"]["SESSION_VOLUME"] == 600


# ---------------------------------------------------------------------------
# Record detection
# ---------------------------------------------------------------------------


class TestProcessSession:
    """Strictly-greater record insertion."""

    def test_first_session_sets_all_records(self, analyzer):
        inserted = analyzer.process_session("s1", _sets("s1", "bench", 100, 5))
        assert {r.type for r in inserted} == {"ONE_REP_MAX", "BEST_SET", "SESSION_VOLUME"}
        assert all(r.session_id == "s1" for r in inserted)
        assert all(r.date == to_millis(NOW) for r in inserted)

    def test_heavier_session_sets_new_1rm(self, analyzer):
        analyzer.process_session("s1", _sets("s1", "bench", 100, 5))
        inserted = analyzer.process_session("s2", _sets("s2", "bench", 110, 5))

        one_rm = [r for r in inserted if r.type == "ONE_REP_MAX"]
        assert len(one_rm) == 1
        assert one_rm[0].value == pytest.approx(128.3333, rel=1e-4)

    def test_lighter_session_sets_nothing(self, analyzer):
        analyzer.process_session("s1", _sets("s1", "bench", 100, 5))
        analyzer.process_session("s2", _sets("s2", "bench", 110, 5))
        assert analyzer.process_session("s3", _sets("s3", "bench", 105, 5)) == []

    def test_tie_creates_nothing(self, analyzer):
        analyzer.process_session("s1", _sets("s1", "bench", 100, 5))
        assert analyzer.process_session("s2", _sets("s2", "bench", 100, 5)) == []

    def test_volume_record_independent_of_intensity(self, analyzer):
        analyzer.process_session("s1", _sets("s1", "bench", 100, 5))
        inserted = analyzer.process_session("s2", _sets("s2", "bench", 80, 5, count=3))
        assert [r.type for r in inserted] == ["SESSION_VOLUME"]
        assert inserted[0].value == 1200

    def test_exercises_tracked_separately(self, analyzer):
        analyzer.process_session("s1", _sets("s1", "bench", 100, 5))
        inserted = analyzer.process_session("s2", _sets("s2", "squat", 60, 5))
        assert {r.exercise_id for r in inserted} == {"squat"}
        assert analyzer.current_bests("bench")["ONE_REP_MAX"] == pytest.approx(116.6667, rel=1e-4)

    def test_bodyweight_sets_never_create_records(self, analyzer):
        assert analyzer.process_session("s1", _sets("s1", "pull_up", 0, 10, count=3)) == []

    def test_empty_session(self, analyzer):
        assert analyzer.process_session("s1", []) == []

    def test_current_bests_unknown_exercise(self, analyzer):
        assert analyzer.current_bests("nothing") == {
            "ONE_REP_MAX": None, "BEST_SET": None, "SESSION_VOLUME": None,
        }


# ---------------------------------------------------------------------------
# Volume
# ---------------------------------------------------------------------------


class TestVolumeWindow:
    """Calendar-day windows for volume aggregation."""

    def test_one_day_window_is_today(self):
        start, end = volume_window(NOW, 1)
        assert start == to_millis(datetime(2024, 3, 15, tzinfo=timezone.utc))
        assert end == to_millis(datetime(2024, 3, 16, tzinfo=timezone.utc)) - 1

    def test_seven_day_window(self):
        start, _ = volume_window(NOW, 7)
        assert start == to_millis(datetime(2024, 3, 9, tzinfo=timezone.utc))

    def test_invalid_window(self):
        with pytest.raises(ValueError):
            volume_window(NOW, 0)

    def test_volume_sorted_descending(self):
        sets = _sets("s", "a", 10, 10) + _sets("s", "b", 100, 10) + _sets("s", "a", 10, 5)
        assert list(volume_by_exercise(sets).items()) == [("b", 1000.0), ("a", 150.0)]


class TestAggregateVolume:
    """Volume over the set log."""

    def test_excludes_set_from_seven_days_ago(self, analyzer):
        analyzer.set_log.append_many(
            _sets("old", "bench", 100, 5, when=NOW - timedelta(days=7))
            + _sets("edge", "bench", 50, 2, when=datetime(2024, 3, 9, 0, 0, tzinfo=timezone.utc))
            + _sets("new", "bench", 100, 5, when=NOW)
        )
        # Window is March 9 .. March 15; March 8 is out
        assert analyzer.aggregate_volume(7, "bench") == 600

    def test_per_exercise_breakdown(self, analyzer):
        analyzer.set_log.append_many(
            _sets("s", "bench", 100, 5, count=2) + _sets("s", "squat", 120, 5, count=3)
        )
        assert analyzer.aggregate_volume(7) == {"squat": 1800.0, "bench": 1000.0}

    def test_empty_log(self, analyzer):
        assert analyzer.aggregate_volume(7) == {}
        assert analyzer.aggregate_volume(7, "bench") == 0
