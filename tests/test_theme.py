"""Tests for the YAML color theme."""

import pytest

from tui_gantt import theme
from tui_gantt.models import TaskStatus


@pytest.fixture(autouse=True)
def reset_theme():
    yield
    theme.load_theme()


def test_defaults_loaded():
    assert set(theme.STATUS_COLORS) == set(TaskStatus)
    assert theme.BAR_CONFLICT.resolve(True) == "#ff5f5f"
    assert theme.BAR_CONFLICT.resolve(False) == "#b91c1c"


def test_project_override_merges(tmp_path):
    cfg = tmp_path / ".tui-gantt"
    cfg.mkdir()
    (cfg / "theme.yaml").write_text(
        'gantt:\n  bar_conflict: {dark: "#123456"}\n', encoding="utf-8"
    )
    theme.load_theme(tmp_path)
    assert theme.BAR_CONFLICT.dark == "#123456"
    # sibling keys keep their defaults
    assert theme.BAR_SUMMARY.dark == "#d7d7ff"


def test_init_theme(tmp_path):
    dest = theme.init_theme(tmp_path)
    assert dest == tmp_path / ".tui-gantt" / "theme.yaml"
    assert "bar_conflict" in dest.read_text(encoding="utf-8")
    with pytest.raises(FileExistsError):
        theme.init_theme(tmp_path)


class _Theme:
    dark = False


class _App:
    current_theme = _Theme()


def test_is_dark():
    assert theme.is_dark(_App()) is False
    assert theme.is_dark(object()) is True
