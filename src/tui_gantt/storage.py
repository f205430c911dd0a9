"""JSON project files: load with warnings, save atomically.

The on-disk shape uses the interchange field names (``startDate``,
``endDate``, ``isCollapsed`` ...) so other tools can read the file verbatim.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Any

from tui_gantt.dates import DEFAULT_CALENDAR, WorkCalendar, add_days, diff_days, parse_date
from tui_gantt.models import Attachment, LoadWarning, Project, Task, TaskStatus, new_id

log = logging.getLogger(__name__)

FILE_VERSION = 1


class ProjectFileError(Exception):
    """Raised when a project file cannot be read as a project at all."""


# ── Encoding ────────────────────────────────────────────────────


def _attachment_to_dict(att: Attachment) -> dict[str, Any]:
    return {
        "id": att.id,
        "name": att.name,
        "url": att.url,
        "type": att.type,
        "createdAt": att.created_at,
    }


def task_to_dict(task: Task) -> dict[str, Any]:
    d: dict[str, Any] = {
        "id": task.id,
        "name": task.name,
        "startDate": task.start.isoformat(),
        "endDate": task.end.isoformat(),
        "duration": task.duration,
        "progress": task.progress,
        "dependencies": list(task.dependencies),
        "attachments": [_attachment_to_dict(a) for a in task.attachments],
        "status": task.status.value,
        "level": task.level,
    }
    if task.collapsed:
        d["isCollapsed"] = True
    if task.assignee:
        d["assignee"] = task.assignee
    if task.color:
        d["color"] = task.color
    return d


def project_to_dict(project: Project) -> dict[str, Any]:
    return {
        "version": FILE_VERSION,
        "id": project.id,
        "name": project.name,
        "createdAt": project.created_at,
        "updatedAt": project.updated_at,
        "tasks": [task_to_dict(t) for t in project.tasks],
    }


# ── Decoding ────────────────────────────────────────────────────


def _parse_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _parse_attachments(raw: Any) -> tuple[Attachment, ...]:
    if not isinstance(raw, list):
        return ()
    result = []
    for item in raw:
        if isinstance(item, dict) and item.get("url"):
            result.append(Attachment(
                name=str(item.get("name", "")),
                url=str(item["url"]),
                type="file" if item.get("type") == "file" else "link",
                id=str(item.get("id") or new_id()),
                created_at=str(item.get("createdAt", "")),
            ))
    return tuple(result)


def task_from_dict(
    data: dict[str, Any],
    file_path: str,
    index: int,
    warnings: list[LoadWarning],
    calendar: WorkCalendar = DEFAULT_CALENDAR,
) -> Task | None:
    """Build a Task from a file record. Returns None when the record is unusable."""

    def warn(message: str) -> None:
        warnings.append(LoadWarning(file_path, index, message))

    raw_start = data.get("startDate")
    try:
        start: date = parse_date(str(raw_start))
    except ValueError:
        warn(f"Invalid startDate: '{raw_start}', task skipped")
        return None

    duration = _parse_int(data.get("duration"), 0)
    end: date | None = None
    raw_end = data.get("endDate")
    if raw_end:
        try:
            end = parse_date(str(raw_end))
        except ValueError:
            warn(f"Invalid endDate: '{raw_end}', derived from duration")
    if end is not None and end < start:
        warn("endDate before startDate, derived from duration")
        end = None
    if end is None:
        duration = max(1, duration)
        end = add_days(start, duration, True, calendar)
    elif duration < 1:
        duration = max(1, diff_days(start, end, True, calendar))

    progress = _parse_int(data.get("progress"), 0)
    if not 0 <= progress <= 100:
        warn(f"Progress out of range: {progress}, clamped")
        progress = max(0, min(100, progress))

    raw_status = data.get("status", TaskStatus.NOT_STARTED.value)
    try:
        status = TaskStatus(raw_status)
    except (ValueError, TypeError):
        warn(f"Invalid status: '{raw_status}', defaulting to {TaskStatus.NOT_STARTED.value}")
        status = TaskStatus.NOT_STARTED

    level = _parse_int(data.get("level"), 0)
    if level < 0:
        warn(f"Negative level: {level}, using 0")
        level = 0

    deps = data.get("dependencies") or []
    if not isinstance(deps, list):
        warn("dependencies is not a list, ignored")
        deps = []

    return Task(
        id=str(data.get("id") or new_id()),
        name=str(data.get("name", "")),
        start=start,
        end=end,
        duration=duration,
        progress=progress,
        dependencies=tuple(str(d) for d in deps),
        level=level,
        collapsed=bool(data.get("isCollapsed", False)),
        status=status,
        assignee=str(data.get("assignee") or ""),
        color=str(data.get("color") or ""),
        attachments=_parse_attachments(data.get("attachments")),
    )


def project_from_dict(
    data: dict[str, Any],
    file_path: str = "<memory>",
    calendar: WorkCalendar = DEFAULT_CALENDAR,
) -> Project:
    warnings: list[LoadWarning] = []
    raw_tasks = data.get("tasks", [])
    if not isinstance(raw_tasks, list):
        warnings.append(LoadWarning(file_path, -1, "'tasks' is not a list, no tasks loaded"))
        raw_tasks = []

    tasks: list[Task] = []
    seen: set[str] = set()
    for index, raw in enumerate(raw_tasks):
        if not isinstance(raw, dict):
            warnings.append(LoadWarning(file_path, index, "Task record is not an object, skipped"))
            continue
        task = task_from_dict(raw, file_path, index, warnings, calendar)
        if task is None:
            continue
        if task.id in seen:
            fresh = new_id()
            warnings.append(LoadWarning(file_path, index, f"Duplicate id '{task.id}', reassigned"))
            task = replace(task, id=fresh)
        seen.add(task.id)
        tasks.append(task)

    return Project(
        id=str(data.get("id") or new_id()),
        name=str(data.get("name", "")),
        tasks=tasks,
        created_at=str(data.get("createdAt", "")),
        updated_at=str(data.get("updatedAt", "")),
        load_warnings=warnings,
    )


# ── File I/O ────────────────────────────────────────────────────


def load_project(path: Path, calendar: WorkCalendar = DEFAULT_CALENDAR) -> Project:
    """Read a project file. Record-level problems end up in ``load_warnings``."""
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ProjectFileError(f"Cannot read {path}: {e}") from e
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ProjectFileError(f"{path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ProjectFileError(f"{path} does not contain a project object")

    project = project_from_dict(data, str(path), calendar)
    log.info("loaded %d task(s) from %s with %d warning(s)",
             len(project.tasks), path, len(project.load_warnings))
    return project


def serialize_project(project: Project) -> str:
    return json.dumps(project_to_dict(project), indent=2, ensure_ascii=False) + "\n"


def save_project(project: Project, path: Path, backup: bool = True) -> None:
    """Write a project with backup and atomic write.

    1. Create .bak backup of current file (if it exists)
    2. Write to a temp file in the same directory
    3. Atomic rename (os.replace) temp -> target
    """
    content = serialize_project(project)

    if backup and path.exists():
        bak_path = path.with_suffix(path.suffix + ".bak")
        try:
            bak_path.write_text(path.read_text(encoding="utf-8"), encoding="utf-8")
        except OSError as e:
            log.warning("could not write backup %s: %s", bak_path, e)

    target_dir = path.parent
    target_dir.mkdir(parents=True, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=target_dir, suffix=".tmp", prefix=".tui-gantt-")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_path, path)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise
    log.info("saved %d task(s) to %s", len(project.tasks), path)
