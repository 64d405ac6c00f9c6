"""
Tests for the YAML program loader and the in-memory catalog.
"""

import warnings

import pytest
import yaml

from program_tracker.core.programs.catalog import ProgramCatalog
from program_tracker.core.programs.loader import (
    default_catalog,
    load_catalog,
    load_programs_from_yaml,
    program_from_dict,
)
from program_tracker.core.scheduler import resolve_schedule_day


def _raw(**overrides) -> dict:
    raw = {
        "id": "mini",
        "name": "Mini",
        "goal": "STRENGTH",
        "experience_level": "BEGINNER",
        "duration_weeks": 2,
        "workouts_per_week": 3,
        "schedule": {
            "rotation": ["a", "b", "a", "b", "a", "b", "Rest"],
            "phase_bands": [
                {"name": "base", "first_day": 1, "last_day": 7},
                {"name": "deload", "first_day": 8, "last_day": 14},
            ],
        },
        "templates": {
            "a": {"name": "Day A", "exercises": [
                {"exercise_id": "squat", "sets": 5, "rep_range": [5, 5], "rpe_target": 7.5},
                {"exercise_id": "bench_press"},
            ]},
            "b": {"name": "Day B", "exercises": [{"exercise_id": "deadlift"}]},
        },
    }
    raw.update(overrides)
    return raw


def _write(directory, name: str, data: dict) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / f"{name}.yaml").write_text(yaml.safe_dump(data))


class TestProgramFromDict:
    """Raw dict → Program conversion."""

    def test_expanded_days(self):
        program = program_from_dict(_raw())
        assert program.total_days == 14
        day1, day2, day7 = program.days[0], program.days[1], program.days[6]
        assert (day1.day_type, day1.template_key, day1.name) == ("WORKOUT", "a", "Day A")
        assert (day2.day_type, day2.template_key, day2.name) == ("WORKOUT", "b", "Day B")
        assert (day7.day_type, day7.template_key, day7.name) == ("REST", None, "Rest Day")
        assert day1.id == "mini_day_1"
        assert day1.description == "Week 1, base phase"

    def test_deload_phase_days(self):
        program = program_from_dict(_raw())
        day8 = program.days[7]
        assert day8.day_type == "DELOAD"
        assert day8.template_key == "a"
        # Rest slots stay REST inside the deload phase
        assert program.days[13].day_type == "REST"

    def test_template_entries(self):
        template = program_from_dict(_raw()).templates["a"]
        squat, bench = template.exercises
        assert squat.id == "a_squat_0"
        assert (squat.sets, squat.rep_range_min, squat.rep_range_max, squat.rpe_target) == (5, 5, 5, 7.5)
        assert bench.order_index == 1
        assert (bench.sets, bench.rep_range_min, bench.rep_range_max) == (3, 8, 12)
        assert bench.progression_type == "linear"

    def test_explicit_days(self):
        days = [
            {"day_number": 2, "name": "B", "template_key": "b"},
            {"day_number": 1, "name": "A", "template_key": "a"},
            {"day_number": 3, "name": "Walk", "day_type": "ACTIVE_RECOVERY"},
        ]
        program = program_from_dict(_raw(days=days))
        assert [d.day_number for d in program.days] == [1, 2, 3]
        assert program.days[2].day_type == "ACTIVE_RECOVERY"

    def test_default_schedule(self):
        raw = _raw()
        del raw["schedule"]
        raw["templates"] = {k: {"exercises": []} for k in
                            ("push_a", "pull_a", "legs_a", "push_b", "pull_b", "legs_b")}
        raw["duration_weeks"] = 13
        program = program_from_dict(raw)
        assert program.schedule.rotation[0] == "push_a"
        assert program.days[90].day_type == "REST"
        assert program.days[84].day_type == "DELOAD"

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"goal": "GET_HUGE"}, "goal"),
            ({"experience_level": "GOD"}, "experience_level"),
            ({"duration_weeks": 0}, "duration_weeks"),
            ({"templates": {"a": {"exercises": []}}}, "undefined template 'b'"),
            ({"schedule": {"rotation": ["a", "rest", "b", "a", "b", "a", "rest"]}}, "rotation slot"),
            ({"schedule": {"rotation": ["a", "b", "a", "b", "a", "b", "a"]}}, "rest slot"),
            ({"days": [{"day_number": 1}, {"day_number": 1}]}, "unique"),
            ({"days": [{"day_number": 1, "template_key": "zzz"}]}, "undefined template 'zzz'"),
            ({"days": [{"day_number": 1, "day_type": "NAP"}]}, "day_type"),
        ],
    )
    def test_invalid(self, overrides, message):
        with pytest.raises(ValueError, match=message):
            program_from_dict(_raw(**overrides))

    def test_missing_fields(self):
        raw = _raw()
        del raw["name"]
        with pytest.raises(ValueError, match="missing"):
            program_from_dict(raw)


class TestLoadProgramsFromYaml:
    """Directory loading with user overrides."""

    def test_bundled_only(self, tmp_path):
        _write(tmp_path / "bundled", "mini", _raw())
        programs = load_programs_from_yaml(tmp_path / "bundled", tmp_path / "nouser")
        assert [p.id for p in programs] == ["mini"]

    def test_user_override_is_deep_merged(self, tmp_path):
        _write(tmp_path / "bundled", "mini", _raw())
        _write(tmp_path / "user", "mini", {"name": "Mini (mine)", "templates": {"b": {"name": "Pulls"}}})

        program = load_programs_from_yaml(tmp_path / "bundled", tmp_path / "user")[0]
        assert program.name == "Mini (mine)"
        assert program.templates["b"].name == "Pulls"
        # Untouched keys survive the merge
        assert program.templates["b"].exercises[0].exercise_id == "deadlift"
        assert program.goal == "STRENGTH"

    def test_user_only_program(self, tmp_path):
        _write(tmp_path / "bundled", "mini", _raw())
        _write(tmp_path / "user", "custom", _raw(id="custom", name="Custom"))
        ids = sorted(p.id for p in load_programs_from_yaml(tmp_path / "bundled", tmp_path / "user"))
        assert ids == ["custom", "mini"]

    def test_invalid_file_skipped_with_warning(self, tmp_path):
        _write(tmp_path / "bundled", "good", _raw())
        _write(tmp_path / "bundled", "bad", _raw(id="bad", goal="NOPE"))
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            programs = load_programs_from_yaml(tmp_path / "bundled", tmp_path / "nouser")
        assert [p.id for p in programs] == ["mini"]
        assert any("bad" in str(w.message) for w in caught)


class TestCatalog:
    """ProgramCatalog lookups."""

    def test_day_store_port(self, tmp_path):
        _write(tmp_path / "bundled", "mini", _raw())
        catalog = load_catalog(tmp_path / "bundled", tmp_path / "nouser")

        assert "mini" in catalog
        assert catalog.get_total_day_count("mini") == 14
        assert catalog.get_by_program_and_day("mini", 2).template_key == "b"
        assert catalog.get_by_program_and_day("mini", 15) is None
        assert catalog.get_total_day_count("missing") == 0

    def test_templates_share_one_namespace(self):
        first = program_from_dict(_raw())
        second = program_from_dict(_raw(id="other", templates={
            "a": {"name": "Other A", "exercises": [{"exercise_id": "press"}]},
            "b": {"exercises": []},
        }))
        catalog = ProgramCatalog([first, second])
        assert catalog.get_template("a").name == "Other A"
        assert catalog.template_keys() == ["a", "b"]

    def test_list_programs_sorted_by_name(self):
        catalog = ProgramCatalog([
            program_from_dict(_raw(id="z", name="Zeta")),
            program_from_dict(_raw(id="a", name="Alpha")),
        ])
        assert [p.id for p in catalog.list_programs()] == ["a", "z"]


class TestBundledPrograms:
    """The programs shipped with the package."""

    def test_bundled_programs_load(self):
        catalog = default_catalog()
        assert "ppl_90day" in catalog
        assert "beginner_fullbody" in catalog

    def test_ppl_90day_shape(self):
        catalog = default_catalog()
        assert catalog.get_total_day_count("ppl_90day") == 91
        day85 = catalog.get_by_program_and_day("ppl_90day", 85)
        assert day85.day_type == "DELOAD"
        assert catalog.get_by_program_and_day("ppl_90day", 7).day_type == "REST"
        assert catalog.get_template("push_a").exercises[0].exercise_id == "bench_press"

    def test_beginner_explicit_days(self):
        catalog = default_catalog()
        assert catalog.get_total_day_count("beginner_fullbody") == 14
        assert catalog.get_by_program_and_day("beginner_fullbody", 8).template_key == "fullbody_b"

    def test_beginner_rotation_rests_only_on_last_slot(self):
        program = default_catalog().get_program("beginner_fullbody")
        rest = [d for d in range(1, 8) if resolve_schedule_day(program.schedule, d).is_rest]
        assert rest == [7]
        # The lighter week comes from the authored days
        assert default_catalog().get_by_program_and_day("beginner_fullbody", 2).day_type == "REST"
