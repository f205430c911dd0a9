"""Dark/light colour pairs for the chart and table, read from YAML.

``default_theme.yaml`` ships with the package; ``.tui-gantt/theme.yaml`` in a
project overrides individual keys. Colours are published as module constants
so widgets can read ``theme.BAR_CONFLICT.resolve(dark)`` at render time.
"""

from __future__ import annotations

import shutil
import sys
from pathlib import Path
from typing import NamedTuple

from tui_gantt.config import CONFIG_DIR, load_layered
from tui_gantt.models import TaskStatus

THEME_FILE = "theme.yaml"


class ColorPair(NamedTuple):
    dark: str
    light: str

    def resolve(self, is_dark: bool) -> str:
        return self.dark if is_dark else self.light


STATUS_COLORS: dict[TaskStatus, ColorPair]

BAR_SUMMARY: ColorPair
BAR_CONFLICT: ColorPair
BAR_OVERDUE: ColorPair
RESIZE_HANDLE: ColorPair
HEADER: ColorPair
TODAY_MARKER: ColorPair
DEPENDENCY_ARROW: ColorPair
BAND_BG: ColorPair
BASE_BG: ColorPair
HIGHLIGHT_BG: ColorPair
WEEKEND_BG: ColorPair
HOLIDAY_BG: ColorPair
CONFLICT_TEXT: ColorPair
OVERDUE_TEXT: ColorPair

# constant name -> (yaml section, key)
_CONSTANTS = {
    "BAR_SUMMARY": ("gantt", "bar_summary"),
    "BAR_CONFLICT": ("gantt", "bar_conflict"),
    "BAR_OVERDUE": ("gantt", "bar_overdue"),
    "RESIZE_HANDLE": ("gantt", "resize_handle"),
    "HEADER": ("gantt", "header"),
    "TODAY_MARKER": ("gantt", "today_marker"),
    "DEPENDENCY_ARROW": ("gantt", "dependency_arrow"),
    "BAND_BG": ("gantt", "band_bg"),
    "BASE_BG": ("gantt", "base_bg"),
    "HIGHLIGHT_BG": ("gantt", "highlight_bg"),
    "WEEKEND_BG": ("gantt", "weekend_bg"),
    "HOLIDAY_BG": ("gantt", "holiday_bg"),
    "CONFLICT_TEXT": ("ui", "conflict_text"),
    "OVERDUE_TEXT": ("ui", "overdue_text"),
}


def _lookup(data: dict, section: str, key: str) -> ColorPair:
    group = data.get(section)
    entry = group.get(key) if isinstance(group, dict) else None
    if not isinstance(entry, dict):
        entry = {}
    return ColorPair(str(entry.get("dark", "white")), str(entry.get("light", "black")))


def _publish(data: dict) -> None:
    module = sys.modules[__name__]
    for name, (section, key) in _CONSTANTS.items():
        setattr(module, name, _lookup(data, section, key))
    # TaskStatus.NOT_STARTED -> status.not_started
    module.STATUS_COLORS = {
        status: _lookup(data, "status", status.name.lower()) for status in TaskStatus
    }


def is_dark(app: object) -> bool:
    """Whether *app* is showing a dark Textual theme."""
    try:
        return bool(app.current_theme.dark)  # type: ignore[attr-defined]
    except AttributeError:
        return bool(getattr(app, "dark", True))


def init_theme(project_dir: Path) -> Path:
    """Write the bundled theme to ``.tui-gantt/theme.yaml`` for editing.

    Refuses with FileExistsError rather than overwrite a customised file.
    """
    dest = project_dir / CONFIG_DIR / THEME_FILE
    if dest.exists():
        raise FileExistsError(str(dest))
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(Path(__file__).parent / f"default_{THEME_FILE}", dest)
    return dest


def load_theme(project_dir: Path | None = None) -> None:
    _publish(load_layered(THEME_FILE, project_dir))


load_theme()
