"""
Tests for the JSON / JSONL file stores and the serializers they use.
"""

import json

import pytest

from program_tracker.core.errors import NotFound
from program_tracker.core.errors import ValidationError as CoreValidationError
from program_tracker.core.models import (
    DayCompletion,
    DaySubstitution,
    Enrollment,
    LoggedSet,
    PersonalRecord,
    ProgressionRecord,
)
from program_tracker.io.serializers import ValidationError, parse_sets_string
from program_tracker.io.stores import (
    JsonEnrollmentStore,
    JsonlCompletionStore,
    JsonlRecordStore,
    JsonlSetLogStore,
    JsonProgressionStore,
    JsonSubstitutionStore,
    open_storage,
)

# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _enrollment(eid: str, user: str = "u1", status: str = "ENROLLED", enrolled_at: int = 1000) -> Enrollment:
    return Enrollment(
        id=eid,
        user_id=user,
        program_id="ppl_90day",
        enrolled_at=enrolled_at,
        status=status,  # type: ignore[arg-type]
    )


def _completion(cid: str, enrollment_id: str = "e1", status: str = "COMPLETED") -> DayCompletion:
    return DayCompletion(
        id=cid,
        enrollment_id=enrollment_id,
        program_day_id="ppl_90day_day_1",
        program_day_number=1,
        status=status,  # type: ignore[arg-type]
        completion_date=5000,
    )


def _record(rid: str, value: float, date: int, exercise: str = "bench", rtype: str = "ONE_REP_MAX") -> PersonalRecord:
    return PersonalRecord(rid, exercise, rtype, value, date, session_id="s1")  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# Enrollments
# ---------------------------------------------------------------------------


class TestEnrollmentStore:
    """Whole-file JSON enrollment store."""

    def test_missing_file_is_empty(self, tmp_path):
        store = JsonEnrollmentStore(tmp_path / "enrollments.json")
        assert store.load_all() == []
        assert store.get_by_id("x") is None
        assert store.get_active_for_user("u1") is None

    def test_insert_and_get(self, tmp_path):
        store = JsonEnrollmentStore(tmp_path / "nested" / "enrollments.json")
        store.insert(_enrollment("e1"))
        assert store.get_by_id("e1") == _enrollment("e1")

    def test_duplicate_insert_rejected(self, tmp_path):
        store = JsonEnrollmentStore(tmp_path / "enrollments.json")
        store.insert(_enrollment("e1"))
        with pytest.raises(ValueError):
            store.insert(_enrollment("e1"))

    def test_active_for_user_ignores_terminal(self, tmp_path):
        store = JsonEnrollmentStore(tmp_path / "enrollments.json")
        store.insert(_enrollment("old", status="COMPLETED"))
        store.insert(_enrollment("cur", status="IN_PROGRESS", enrolled_at=2000))
        store.insert(_enrollment("other", user="u2"))
        assert store.get_active_for_user("u1").id == "cur"

    def test_list_for_user_newest_first(self, tmp_path):
        store = JsonEnrollmentStore(tmp_path / "enrollments.json")
        store.insert(_enrollment("a", enrolled_at=1))
        store.insert(_enrollment("b", enrolled_at=3))
        store.insert(_enrollment("c", enrolled_at=2))
        assert [e.id for e in store.list_for_user("u1")] == ["b", "c", "a"]

    def test_updates(self, tmp_path):
        store = JsonEnrollmentStore(tmp_path / "enrollments.json")
        store.insert(_enrollment("e1"))
        store.update_current_day("e1", 4)
        store.update_status("e1", "PAUSED")
        e = store.get_by_id("e1")
        assert (e.current_day, e.status) == (4, "PAUSED")

    def test_update_missing_raises(self, tmp_path):
        store = JsonEnrollmentStore(tmp_path / "enrollments.json")
        with pytest.raises(NotFound):
            store.update(_enrollment("ghost"))

    def test_invalid_status_rejected(self, tmp_path):
        store = JsonEnrollmentStore(tmp_path / "enrollments.json")
        store.insert(_enrollment("e1"))
        with pytest.raises(ValidationError):
            store.update_status("e1", "FINISHED")

    def test_deactivate_all_for_user(self, tmp_path):
        store = JsonEnrollmentStore(tmp_path / "enrollments.json")
        store.insert(_enrollment("a", status="IN_PROGRESS"))
        store.insert(_enrollment("b", status="COMPLETED"))
        store.insert(_enrollment("c", user="u2"))

        assert store.deactivate_all_for_user("u1") == 1
        assert store.get_by_id("a").status == "CANCELLED"
        assert store.get_by_id("b").status == "COMPLETED"
        assert store.get_by_id("c").status == "ENROLLED"

    def test_delete(self, tmp_path):
        store = JsonEnrollmentStore(tmp_path / "enrollments.json")
        store.insert(_enrollment("e1"))
        store.delete("e1")
        assert store.load_all() == []
        with pytest.raises(NotFound):
            store.delete("e1")

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "enrollments.json"
        path.write_text("{not json")
        with pytest.raises(ValidationError):
            JsonEnrollmentStore(path).load_all()

    def test_invalid_row(self, tmp_path):
        path = tmp_path / "enrollments.json"
        path.write_text(json.dumps([{"id": "e1", "user_id": "u1", "program_id": "p",
                                     "enrolled_at": 1, "status": "BOGUS"}]))
        with pytest.raises(ValidationError):
            JsonEnrollmentStore(path).load_all()


# ---------------------------------------------------------------------------
# Completions
# ---------------------------------------------------------------------------


class TestCompletionStore:
    """Append-only completion log."""

    def test_append_preserves_order(self, tmp_path):
        store = JsonlCompletionStore(tmp_path / "completions.jsonl")
        store.append(_completion("c1"))
        store.append(_completion("c2", status="SKIPPED"))
        store.append(_completion("x", enrollment_id="e2"))

        assert [c.id for c in store.get_all_for_enrollment("e1")] == ["c1", "c2"]
        assert len((tmp_path / "completions.jsonl").read_text().splitlines()) == 3

    def test_optional_fields_round_trip(self, tmp_path):
        store = JsonlCompletionStore(tmp_path / "completions.jsonl")
        row = DayCompletion("c1", "e1", "d1", 1, "SKIPPED", 10, skipped_reason="travel", notes="n")
        store.append(row)
        assert store.get_all_for_enrollment("e1") == [row]

    def test_delete_for_enrollment(self, tmp_path):
        store = JsonlCompletionStore(tmp_path / "completions.jsonl")
        store.append(_completion("c1"))
        store.append(_completion("c2", enrollment_id="e2"))

        assert store.delete_for_enrollment("e1") == 1
        assert store.get_all_for_enrollment("e1") == []
        assert [c.id for c in store.get_all_for_enrollment("e2")] == ["c2"]

    def test_bad_line_reports_line_number(self, tmp_path):
        path = tmp_path / "completions.jsonl"
        path.write_text(json.dumps({"id": "c1"}) + "\n")
        with pytest.raises(ValidationError, match="line 1"):
            JsonlCompletionStore(path).load_all()

    def test_null_number_is_validation_error(self, tmp_path):
        store = JsonlCompletionStore(tmp_path / "completions.jsonl")
        store.append(_completion("c1"))
        row = json.loads(store.path.read_text())
        row["completion_date"] = None
        store.path.write_text(json.dumps(row) + "\n")
        with pytest.raises(ValidationError, match="line 1"):
            store.load_all()

    def test_blank_lines_skipped(self, tmp_path):
        store = JsonlCompletionStore(tmp_path / "completions.jsonl")
        store.append(_completion("c1"))
        with open(store.path, "a") as f:
            f.write("\n\n")
        store.append(_completion("c2"))
        assert len(store.load_all()) == 2


# ---------------------------------------------------------------------------
# Substitutions
# ---------------------------------------------------------------------------


class TestSubstitutionStore:
    """Per-day substitutions, last write wins."""

    def test_upsert_and_lookup(self, tmp_path):
        store = JsonSubstitutionStore(tmp_path / "subs.json")
        store.upsert(DaySubstitution(3, "bench_press", "db_press", 1))
        store.upsert(DaySubstitution(3, "squat", "leg_press", 1))
        store.upsert(DaySubstitution(4, "bench_press", "dips", 1))

        assert store.get_all_for_day(3) == {"bench_press": "db_press", "squat": "leg_press"}
        assert store.get_substitute(4, "bench_press") == "dips"
        assert store.get_substitute(5, "bench_press") is None

    def test_upsert_replaces(self, tmp_path):
        store = JsonSubstitutionStore(tmp_path / "subs.json")
        store.upsert(DaySubstitution(3, "bench_press", "db_press", 1))
        store.upsert(DaySubstitution(3, "bench_press", "machine_press", 2))
        assert store.get_all_for_day(3) == {"bench_press": "machine_press"}
        assert len(store.load_all()) == 1

    def test_delete_and_clear(self, tmp_path):
        store = JsonSubstitutionStore(tmp_path / "subs.json")
        store.upsert(DaySubstitution(3, "bench_press", "db_press", 1))
        store.upsert(DaySubstitution(3, "squat", "leg_press", 1))
        store.upsert(DaySubstitution(4, "squat", "hack_squat", 1))

        store.delete(3, "bench_press")
        assert store.get_all_for_day(3) == {"squat": "leg_press"}
        store.clear_day(3)
        assert store.get_all_for_day(3) == {}
        assert store.get_all_for_day(4) == {"squat": "hack_squat"}

    def test_delete_missing_is_noop(self, tmp_path):
        store = JsonSubstitutionStore(tmp_path / "subs.json")
        store.delete(1, "nothing")
        assert not store.path.exists()


# ---------------------------------------------------------------------------
# Records, sets and progression
# ---------------------------------------------------------------------------


class TestRecordStore:
    """Personal record history."""

    def test_best_is_max_value(self, tmp_path):
        store = JsonlRecordStore(tmp_path / "records.jsonl")
        store.insert(_record("r1", 100.0, 1))
        store.insert(_record("r2", 120.0, 2))
        store.insert(_record("r3", 500.0, 3, rtype="BEST_SET"))
        assert store.get_best("bench", "ONE_REP_MAX") == 120.0
        assert store.get_best("bench", "SESSION_VOLUME") is None
        assert store.get_best("squat", "ONE_REP_MAX") is None

    def test_list_recent(self, tmp_path):
        store = JsonlRecordStore(tmp_path / "records.jsonl")
        for i in range(5):
            store.insert(_record(f"r{i}", 100.0 + i, date=i))
        assert [r.id for r in store.list_recent(3)] == ["r4", "r3", "r2"]
        assert store.list_recent(0) == []


class TestSetLogStore:
    """Logged sets."""

    def _set(self, session: str, exercise: str, n: int, ts: int) -> LoggedSet:
        return LoggedSet(session, exercise, n, 100.0, 5, ts, rpe=8.0)

    def test_between_is_inclusive(self, tmp_path):
        store = JsonlSetLogStore(tmp_path / "sets.jsonl")
        store.append_many([self._set("s", "bench", i + 1, ts) for i, ts in enumerate([10, 20, 30])])
        assert [s.timestamp for s in store.get_sets_between(10, 20)] == [10, 20]

    def test_sets_for_session_sorted(self, tmp_path):
        store = JsonlSetLogStore(tmp_path / "sets.jsonl")
        store.append_many([
            self._set("s1", "squat", 1, 1),
            self._set("s1", "bench", 2, 1),
            self._set("s2", "bench", 1, 1),
            self._set("s1", "bench", 1, 1),
        ])
        got = [(s.exercise_id, s.set_number) for s in store.get_sets_for_session("s1")]
        assert got == [("bench", 1), ("bench", 2), ("squat", 1)]

    def test_append_nothing_creates_no_file(self, tmp_path):
        store = JsonlSetLogStore(tmp_path / "sets.jsonl")
        store.append_many([])
        assert not store.path.exists()


class TestProgressionStore:
    """Working weight per exercise."""

    def test_upsert(self, tmp_path):
        store = JsonProgressionStore(tmp_path / "progression.json")
        assert store.get("bench") is None
        store.upsert(ProgressionRecord("bench", 60.0, 1, 7.0, 1))
        store.upsert(ProgressionRecord("bench", 62.5, 2, 7.5, 2))
        assert store.get("bench") == ProgressionRecord("bench", 62.5, 2, 7.5, 2)

    def test_malformed_record_is_validation_error(self, tmp_path):
        path = tmp_path / "progression.json"
        path.write_text(json.dumps({"bench": {"exercise_id": "bench"}}))
        with pytest.raises(ValidationError):
            JsonProgressionStore(path).get("bench")

    def test_validation_error_is_the_core_type(self):
        assert ValidationError is CoreValidationError


class TestOpenStorage:
    """Store bundle for a data directory."""

    def test_files_created_lazily(self, tmp_path):
        storage = open_storage(tmp_path / "data")
        assert not storage.exists()
        storage.enrollments.insert(_enrollment("e1"))
        assert storage.exists()
        assert (tmp_path / "data" / "enrollments.json").exists()


# ---------------------------------------------------------------------------
# Set strings
# ---------------------------------------------------------------------------


class TestParseSetsString:
    """WEIGHTxREPS[@RPE] parsing."""

    def test_basic(self):
        assert parse_sets_string("100x5@8, 102.5x4") == [(100.0, 5, 8.0), (102.5, 4, None)]

    def test_repeat(self):
        assert parse_sets_string("3*60x10@7") == [(60.0, 10, 7.0)] * 3

    def test_bodyweight(self):
        assert parse_sets_string("0x12") == [(0.0, 12, None)]

    @pytest.mark.parametrize("bad", ["", "100", "x5", "100x", "0*100x5", "abc"])
    def test_invalid(self, bad):
        with pytest.raises(ValidationError):
            parse_sets_string(bad)
