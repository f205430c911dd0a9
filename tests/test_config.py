"""Tests for project configuration and settings."""

from datetime import date

from tui_gantt.config import (
    deep_merge,
    get_calendar,
    get_default_zoom,
    get_holidays,
    get_propagation,
    get_task_defaults,
    get_working_days,
    get_zoom_limits,
    load_config,
    load_settings,
    save_config,
)
from tui_gantt.models import ProjectConfig
from tui_gantt.reschedule import Propagation


def write_settings(tmp_path, text):
    cfg_dir = tmp_path / ".tui-gantt"
    cfg_dir.mkdir(exist_ok=True)
    (cfg_dir / "settings.yaml").write_text(text, encoding="utf-8")


class TestLoadConfig:
    def test_load_nonexistent(self, tmp_path):
        config = load_config(tmp_path)
        assert config.name == ""
        assert config.date_format == "YYYY-MM-DD"
        assert config.zoom == 3
        assert config.data_file == "project.gantt.json"

    def test_save_and_load(self, tmp_path):
        save_config(tmp_path, ProjectConfig(name="Plan", date_format="DD.MM.YYYY", zoom=5,
                                            data_file="plan.json"))
        config = load_config(tmp_path)
        assert config.name == "Plan"
        assert config.date_format == "DD.MM.YYYY"
        assert config.zoom == 5
        assert config.data_file == "plan.json"

    def test_invalid_values_fall_back(self, tmp_path):
        cfg_dir = tmp_path / ".tui-gantt"
        cfg_dir.mkdir()
        (cfg_dir / "config.toml").write_text(
            '[project]\nname = "X"\ndate_format = "weird"\nzoom = "big"\n', encoding="utf-8"
        )
        config = load_config(tmp_path)
        assert config.name == "X"
        assert config.date_format == "YYYY-MM-DD"
        assert config.zoom == 3

    def test_broken_toml(self, tmp_path):
        cfg_dir = tmp_path / ".tui-gantt"
        cfg_dir.mkdir()
        (cfg_dir / "config.toml").write_text("[project\nname=", encoding="utf-8")
        assert load_config(tmp_path) == ProjectConfig()

    def test_project_key_not_a_table(self, tmp_path):
        cfg_dir = tmp_path / ".tui-gantt"
        cfg_dir.mkdir()
        (cfg_dir / "config.toml").write_text('project = "flat"\n', encoding="utf-8")
        assert load_config(tmp_path) == ProjectConfig()


class TestSettings:
    def test_defaults(self):
        settings = load_settings()
        assert get_working_days(settings) == frozenset({0, 1, 2, 3, 4})
        assert get_holidays(settings) == []
        assert get_zoom_limits(settings) == (1, 8, 1)
        assert get_default_zoom(settings) == 3
        assert get_task_defaults(settings) == (5, 2)
        assert get_propagation(settings) is Propagation.BOTH

    def test_project_override(self, tmp_path):
        write_settings(tmp_path, (
            "calendar:\n"
            "  working_days: [sun, 1, 2, 3, 4]\n"
            "  holidays: [2024-12-25, '2024-01-01', nonsense]\n"
            "drag:\n"
            "  propagation: successors\n"
        ))
        settings = load_settings(tmp_path)
        assert get_working_days(settings) == frozenset({6, 0, 1, 2, 3})
        assert get_holidays(settings) == [date(2024, 12, 25), date(2024, 1, 1)]
        assert get_propagation(settings) is Propagation.SUCCESSORS
        # untouched sections keep their defaults
        assert get_task_defaults(settings) == (5, 2)

    def test_calendar(self, tmp_path):
        write_settings(tmp_path, "calendar:\n  holidays: [2024-01-02]\n")
        cal = get_calendar(load_settings(tmp_path))
        assert not cal.is_business_day(date(2024, 1, 2))
        assert cal.is_business_day(date(2024, 1, 3))

    def test_invalid_values_fall_back(self, tmp_path):
        write_settings(tmp_path, (
            "calendar:\n  working_days: [never]\n"
            "zoom:\n  default: 99\n  min: 2\n  max: 6\n"
            "drag:\n  propagation: sideways\n"
        ))
        settings = load_settings(tmp_path)
        assert get_working_days(settings) == frozenset({0, 1, 2, 3, 4})
        assert get_default_zoom(settings) == 6
        assert get_propagation(settings) is Propagation.BOTH

    def test_broken_yaml_uses_defaults(self, tmp_path):
        write_settings(tmp_path, "calendar: [unclosed\n")
        assert load_settings(tmp_path) == load_settings()

    def test_deep_merge_replaces_lists(self):
        base = {"a": {"x": 1, "y": [1, 2]}, "b": 2}
        merged = deep_merge(base, {"a": {"y": [3]}})
        assert merged == {"a": {"x": 1, "y": [3]}, "b": 2}
        assert base["a"]["y"] == [1, 2]
