"""
Minimal smoke tests for the program-tracker CLI.

Tests basic functionality:
- App runs without errors
- Enrollment and day flow persist to the data directory
- Sets can be logged and records detected
- Errors exit with status 1
"""

import json

import pytest
from typer.testing import CliRunner

from program_tracker.cli.main import app


runner = CliRunner()


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    """Isolate the user directory and return a data directory inside it."""
    monkeypatch.setenv("PROGRAM_TRACKER_HOME", str(tmp_path))
    return tmp_path / "data"


def _invoke(data_dir, *args):
    return runner.invoke(app, [*args, "--data-dir", str(data_dir)])


def _enroll_and_start(data_dir):
    assert _invoke(data_dir, "enroll", "ppl_90day", "--force").exit_code == 0
    assert _invoke(data_dir, "start-day").exit_code == 0


class TestCLISmoke:
    """Basic smoke tests for CLI commands."""

    def test_app_help(self):
        """Test that app runs and shows help."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "enroll" in result.output

    def test_programs_lists_bundled(self, data_dir):
        result = runner.invoke(app, ["programs", "--json"])
        assert result.exit_code == 0
        ids = {p["id"] for p in json.loads(result.stdout)}
        assert {"ppl_90day", "beginner_fullbody"} <= ids

    def test_program_detail(self, data_dir):
        result = runner.invoke(app, ["programs", "ppl_90day", "--json"])
        assert result.exit_code == 0
        detail = json.loads(result.stdout)
        assert detail["duration_weeks"] == 13
        assert detail["rotation"][6] is None

    def test_unknown_program_fails(self, data_dir):
        result = runner.invoke(app, ["programs", "nope"])
        assert result.exit_code == 1

    def test_enroll_creates_enrollments_file(self, data_dir):
        result = _invoke(data_dir, "enroll", "ppl_90day", "--force")
        assert result.exit_code == 0
        assert "Enrolled" in result.output
        assert (data_dir / "enrollments.json").exists()

    def test_enroll_unknown_program_fails(self, data_dir):
        result = _invoke(data_dir, "enroll", "nope", "--force")
        assert result.exit_code == 1

    def test_day_flow_and_status(self, data_dir):
        _enroll_and_start(data_dir)
        result = _invoke(data_dir, "complete-day", "--notes", "felt strong")
        assert result.exit_code == 0
        assert "Day 1 completed" in result.output

        result = _invoke(data_dir, "status", "--json")
        assert result.exit_code == 0
        status = json.loads(result.stdout)
        assert status["enrollment"]["status"] == "IN_PROGRESS"
        assert status["summary"]["completed_days"] == 1
        assert status["summary"]["total_days"] == 91

    def test_skip_day(self, data_dir):
        _enroll_and_start(data_dir)
        result = _invoke(data_dir, "skip-day", "--reason", "sick")
        assert result.exit_code == 0
        status = json.loads(_invoke(data_dir, "status", "--json").stdout)
        assert status["summary"]["skipped_days"] == 1

    def test_pause_blocks_start(self, data_dir):
        _enroll_and_start(data_dir)
        assert _invoke(data_dir, "pause").exit_code == 0
        assert _invoke(data_dir, "start-day").exit_code == 1
        assert _invoke(data_dir, "resume").exit_code == 0
        assert _invoke(data_dir, "start-day").exit_code == 0

    def test_complete_without_start_fails(self, data_dir):
        _invoke(data_dir, "enroll", "ppl_90day", "--force")
        result = _invoke(data_dir, "complete-day")
        assert result.exit_code == 1

    def test_commands_need_enrollment(self, data_dir):
        result = _invoke(data_dir, "start-day")
        assert result.exit_code == 1
        assert "No active enrollment" in result.output

    def test_cancel_with_purge(self, data_dir):
        _enroll_and_start(data_dir)
        result = _invoke(data_dir, "cancel", "--purge", "--force")
        assert result.exit_code == 0
        assert _invoke(data_dir, "status").exit_code == 1


class TestWorkoutCommands:
    """today, substitute and reset-substitution."""

    def test_today_shows_first_template(self, data_dir):
        _enroll_and_start(data_dir)
        result = _invoke(data_dir, "today", "--json")
        assert result.exit_code == 0
        workout = json.loads(result.stdout)
        assert workout["day_number"] == 1
        assert workout["template_key"] == "push_a"
        assert workout["exercises"][0]["exercise_id"] == "bench_press"

    def test_substitute_and_reset(self, data_dir):
        _enroll_and_start(data_dir)
        result = _invoke(data_dir, "substitute", "bench_press", "dumbbell_press")
        assert result.exit_code == 0

        workout = json.loads(_invoke(data_dir, "today", "--json").stdout)
        first = workout["exercises"][0]
        assert first["exercise_id"] == "dumbbell_press"
        assert first["substituted_from"] == "bench_press"

        assert _invoke(data_dir, "reset-substitution", "bench_press").exit_code == 0
        workout = json.loads(_invoke(data_dir, "today", "--json").stdout)
        assert workout["exercises"][0]["exercise_id"] == "bench_press"

    def test_substitute_itself_fails(self, data_dir):
        result = _invoke(data_dir, "substitute", "squat", "squat", "--day", "3")
        assert result.exit_code == 1


class TestAnalyticsCommands:
    """log-sets, process-session, prs, volume and stats."""

    def test_log_sets_and_records(self, data_dir):
        result = _invoke(data_dir, "log-sets", "bench_press", "3*100x5@8", "--session", "s1")
        assert result.exit_code == 0
        assert "Logged 3 set(s)" in result.output
        assert (data_dir / "sets.jsonl").exists()

        result = _invoke(data_dir, "process-session", "s1", "--json")
        assert result.exit_code == 0
        types = {r["type"] for r in json.loads(result.stdout)}
        assert types == {"ONE_REP_MAX", "BEST_SET", "SESSION_VOLUME"}

        # Same session again: nothing is strictly greater
        result = _invoke(data_dir, "process-session", "s1", "--json")
        assert json.loads(result.stdout) == []

        result = _invoke(data_dir, "prs", "--exercise", "bench_press", "--json")
        assert json.loads(result.stdout)["bests"]["BEST_SET"] == 500

    def test_log_sets_with_progression(self, data_dir):
        result = _invoke(
            data_dir, "log-sets", "bench_press", "60x5@7, 60x5@7", "--progression", "linear",
        )
        assert result.exit_code == 0
        assert "WEIGHT_INCREASE" in result.output

    def test_log_sets_without_rpe_keeps_weight(self, data_dir):
        result = _invoke(data_dir, "log-sets", "bench_press", "100x5", "--progression", "linear")
        assert result.exit_code == 0
        assert "NO_CHANGE" in result.output
        assert "WEIGHT_INCREASE" not in result.output

    def test_log_sets_bad_format(self, data_dir):
        result = _invoke(data_dir, "log-sets", "bench_press", "heavy")
        assert result.exit_code == 1

    def test_process_unknown_session(self, data_dir):
        assert _invoke(data_dir, "process-session", "missing").exit_code == 1

    def test_volume(self, data_dir):
        _invoke(data_dir, "log-sets", "squat", "2*100x5", "--session", "s1")
        result = _invoke(data_dir, "volume", "--days", "7", "--json")
        assert result.exit_code == 0
        assert json.loads(result.stdout)["volume"] == {"squat": 1000.0}

    def test_prs_and_stats_empty(self, data_dir):
        assert _invoke(data_dir, "prs").exit_code == 0
        result = _invoke(data_dir, "stats", "--json")
        assert result.exit_code == 0
        assert json.loads(result.stdout)["total_enrollments"] == 0
