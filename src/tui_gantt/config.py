"""Project configuration (tomlkit) and calendar/drag settings (YAML)."""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Any

import tomlkit
import yaml
from tomlkit.exceptions import TOMLKitError

from tui_gantt.dates import (
    DATE_FORMAT_PRESETS,
    DEFAULT_DATE_FORMAT,
    DEFAULT_WORKING_DAYS,
    WorkCalendar,
    parse_weekday,
)
from tui_gantt.models import DEFAULT_ZOOM, ProjectConfig
from tui_gantt.ops import DEFAULT_DURATION, DEFAULT_GAP
from tui_gantt.reschedule import Propagation

log = logging.getLogger(__name__)

CONFIG_DIR = ".tui-gantt"
CONFIG_FILE = "config.toml"
SETTINGS_FILE = "settings.yaml"

_PACKAGE_DIR = Path(__file__).parent


def config_path(project_dir: Path) -> Path:
    return project_dir / CONFIG_DIR / CONFIG_FILE


def load_config(project_dir: Path) -> ProjectConfig:
    """Read ``[project]`` from config.toml; a missing or broken file gives defaults."""
    config = ProjectConfig()
    path = config_path(project_dir)
    if not path.is_file():
        return config
    try:
        table = tomlkit.parse(path.read_text(encoding="utf-8")).get("project")
    except (OSError, TOMLKitError) as e:
        log.warning("ignoring unreadable %s: %s", path, e)
        return config

    if not isinstance(table, dict):
        return config
    config.name = str(table.get("name", config.name))
    fmt = str(table.get("date_format", config.date_format))
    if fmt in DATE_FORMAT_PRESETS:
        config.date_format = fmt
    try:
        config.zoom = max(1, int(table.get("zoom", config.zoom)))
    except (TypeError, ValueError):
        pass
    config.data_file = str(table.get("data_file", "")).strip() or config.data_file
    return config


def save_config(project_dir: Path, config: ProjectConfig) -> None:
    path = config_path(project_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    doc = tomlkit.document()
    doc["project"] = {
        "name": config.name,
        "date_format": config.date_format,
        "zoom": config.zoom,
        "data_file": config.data_file,
    }
    path.write_text(tomlkit.dumps(doc), encoding="utf-8")
    log.debug("saved %s", path)


# ── Layered YAML files ──────────────────────────────────────────

def load_yaml(path: Path) -> dict:
    """Parse a YAML mapping; anything unreadable or non-mapping is ``{}``."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        log.warning("ignoring unreadable %s: %s", path, e)
        return {}
    return data if isinstance(data, dict) else {}


def deep_merge(base: dict, override: dict) -> dict:
    """Return *base* updated by *override*; nested mappings merge, other values replace."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            value = deep_merge(current, value)
        merged[key] = value
    return merged


def load_layered(filename: str, project_dir: Path | None = None) -> dict:
    """Bundled ``default_<filename>`` with ``.tui-gantt/<filename>`` merged over it."""
    data = load_yaml(_PACKAGE_DIR / f"default_{filename}")
    if project_dir is None:
        return data
    override = project_dir / CONFIG_DIR / filename
    if not override.is_file():
        return data
    return deep_merge(data, load_yaml(override))


def load_settings(project_dir: Path | None = None) -> dict[str, Any]:
    return load_layered(SETTINGS_FILE, project_dir)


def _section(settings: dict[str, Any], name: str) -> dict[str, Any]:
    value = settings.get(name, {})
    return value if isinstance(value, dict) else {}


def get_holidays(settings: dict[str, Any]) -> list[date]:
    """ISO dates under ``calendar.holidays``; bad entries are skipped."""
    raw = _section(settings, "calendar").get("holidays")
    if not isinstance(raw, list):
        return []
    holidays: list[date] = []
    for item in raw:
        # PyYAML already turns unquoted ISO dates into date objects
        if isinstance(item, date):
            holidays.append(item)
            continue
        try:
            holidays.append(date.fromisoformat(str(item)))
        except ValueError:
            log.warning("skipping invalid holiday %r", item)
    return holidays


def get_working_days(settings: dict[str, Any]) -> frozenset[int]:
    """Weekday numbers (Mon=0) that are business days; Mon–Fri if unset or invalid."""
    raw = _section(settings, "calendar").get("working_days")
    if not isinstance(raw, list):
        return DEFAULT_WORKING_DAYS
    days = {d for d in (parse_weekday(item) for item in raw) if d is not None}
    return frozenset(days) if days else DEFAULT_WORKING_DAYS


def get_calendar(settings: dict[str, Any]) -> WorkCalendar:
    return WorkCalendar.from_settings(get_working_days(settings), get_holidays(settings))


def _get_int(section: dict[str, Any], key: str, default: int) -> int:
    try:
        return int(section.get(key, default))
    except (TypeError, ValueError):
        return default


def get_zoom_limits(settings: dict[str, Any]) -> tuple[int, int, int]:
    """Return ``(min, max, step)`` columns per day."""
    zoom = _section(settings, "zoom")
    low = max(1, _get_int(zoom, "min", 1))
    high = max(low, _get_int(zoom, "max", 8))
    step = max(1, _get_int(zoom, "step", 1))
    return low, high, step


def get_default_zoom(settings: dict[str, Any]) -> int:
    low, high, _ = get_zoom_limits(settings)
    return max(low, min(high, _get_int(_section(settings, "zoom"), "default", DEFAULT_ZOOM)))


def get_task_defaults(settings: dict[str, Any]) -> tuple[int, int]:
    """Return ``(duration, gap)`` used for newly added tasks."""
    tasks = _section(settings, "tasks")
    duration = max(1, _get_int(tasks, "default_duration", DEFAULT_DURATION))
    gap = max(1, _get_int(tasks, "gap", DEFAULT_GAP))
    return duration, gap


def get_propagation(settings: dict[str, Any]) -> Propagation:
    raw = str(_section(settings, "drag").get("propagation", Propagation.BOTH.value)).lower()
    try:
        return Propagation(raw)
    except ValueError:
        return Propagation.BOTH
