"""Task list edit operations.

Each function takes the current list and returns a new one; nothing is
mutated in place, so independent handlers compose by replacing the whole list.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone
from typing import Any, Iterable, Sequence

from tui_gantt.dates import (
    DEFAULT_CALENDAR,
    WorkCalendar,
    add_days,
    diff_days,
    next_business_day,
    today_utc,
)
from tui_gantt.models import Project, Task, TaskStatus, new_id
from tui_gantt.rollup import parent_ids

DEFAULT_DURATION = 5
DEFAULT_GAP = 2
DEFAULT_TASK_NAME = "New Task"

_EDITABLE_FIELDS = {
    "name", "start", "end", "duration", "progress", "dependencies", "level",
    "collapsed", "status", "assignee", "color", "attachments",
}


def _clamp_progress(value: int) -> int:
    return max(0, min(100, int(value)))


def update_task(
    tasks: Sequence[Task],
    task_id: str,
    calendar: WorkCalendar = DEFAULT_CALENDAR,
    **changes: Any,
) -> list[Task]:
    """Apply a field patch to one task and re-derive end or duration.

    A change to ``start`` or ``duration`` re-derives ``end``; otherwise a
    change to ``end`` re-derives ``duration``.
    """
    unknown = set(changes) - _EDITABLE_FIELDS
    if unknown:
        raise TypeError(f"unknown task fields: {', '.join(sorted(unknown))}")

    result: list[Task] = []
    for task in tasks:
        if task.id != task_id:
            result.append(task)
            continue
        patch = dict(changes)
        if "progress" in patch:
            patch["progress"] = _clamp_progress(patch["progress"])
        if "dependencies" in patch:
            patch["dependencies"] = tuple(d for d in patch["dependencies"] if d != task_id)
        if "level" in patch:
            patch["level"] = max(0, int(patch["level"]))
        start = patch.get("start", task.start)
        if "start" in patch or "duration" in patch:
            duration = max(1, int(patch.get("duration", task.duration)))
            patch["duration"] = duration
            patch["end"] = add_days(start, duration, True, calendar)
        elif "end" in patch:
            end = max(patch["end"], start)
            patch["end"] = end
            patch["duration"] = max(1, diff_days(start, end, True, calendar))
        result.append(replace(task, **patch))
    return result


def new_task(
    tasks: Sequence[Task],
    today: date | None = None,
    calendar: WorkCalendar = DEFAULT_CALENDAR,
    duration: int = DEFAULT_DURATION,
    gap: int = DEFAULT_GAP,
    name: str = DEFAULT_TASK_NAME,
) -> Task:
    """Build the task that "add task" appends after the last row."""
    if today is None:
        today = today_utc()
    last = tasks[-1] if tasks else None
    start = add_days(last.end, gap, True, calendar) if last else today
    start = next_business_day(start, calendar)
    duration = max(1, duration)
    return Task(
        name=name,
        start=start,
        duration=duration,
        end=add_days(start, duration, True, calendar),
        level=last.level if last else 0,
    )


def append_task(tasks: Sequence[Task], task: Task) -> list[Task]:
    return [*tasks, task]


def delete_tasks(tasks: Sequence[Task], task_ids: Iterable[str]) -> list[Task]:
    """Remove rows by id. Dependencies on removed rows are left dangling."""
    doomed = set(task_ids)
    return [t for t in tasks if t.id not in doomed]


def indent_tasks(tasks: Sequence[Task], task_ids: Iterable[str]) -> list[Task]:
    """Indent rows by one level, only where the row above is at least as deep."""
    result = list(tasks)
    for task_id in task_ids:
        idx = next((i for i, t in enumerate(result) if t.id == task_id), -1)
        if idx <= 0:
            continue
        if result[idx].level <= result[idx - 1].level:
            result[idx] = replace(result[idx], level=result[idx].level + 1)
    return result


def outdent_tasks(tasks: Sequence[Task], task_ids: Iterable[str]) -> list[Task]:
    result = list(tasks)
    for task_id in task_ids:
        idx = next((i for i, t in enumerate(result) if t.id == task_id), -1)
        if idx != -1 and result[idx].level > 0:
            result[idx] = replace(result[idx], level=result[idx].level - 1)
    return result


def move_row(tasks: Sequence[Task], from_index: int, to_index: int) -> list[Task]:
    """Move a single row to a new position (drag-to-reorder)."""
    result = list(tasks)
    if not (0 <= from_index < len(result)) or from_index == to_index:
        return result
    to_index = max(0, min(to_index, len(result) - 1))
    row = result.pop(from_index)
    result.insert(to_index, row)
    return result


def toggle_collapsed(tasks: Sequence[Task], task_id: str) -> list[Task]:
    return [replace(t, collapsed=not t.collapsed) if t.id == task_id else t for t in tasks]


def set_collapsed(tasks: Sequence[Task], collapsed: bool) -> list[Task]:
    """Fold or unfold every summary row; expanding also clears stray leaf flags."""
    summary = parent_ids(tasks)
    return [
        replace(t, collapsed=collapsed)
        if t.collapsed != collapsed and (t.id in summary or not collapsed)
        else t
        for t in tasks
    ]


def copy_tasks(tasks: Sequence[Task], task_ids: Iterable[str]) -> list[Task]:
    """Return the selected rows in list order, for a clipboard."""
    wanted = set(task_ids)
    return [t for t in tasks if t.id in wanted]


def paste_tasks(tasks: Sequence[Task], clipboard: Sequence[Task]) -> tuple[list[Task], list[str]]:
    """Append fresh copies of *clipboard*; returns the new list and the new ids.

    Copies get new ids, lose their dependencies, and restart at 0% progress.
    """
    pasted = [
        replace(
            t,
            id=new_id(),
            dependencies=(),
            progress=0,
            status=TaskStatus.NOT_STARTED,
        )
        for t in clipboard
    ]
    return [*tasks, *pasted], [t.id for t in pasted]


@dataclass(frozen=True)
class TaskSuggestion:
    """A generated task proposal: name, duration, predecessor names."""

    name: str
    duration: int = DEFAULT_DURATION
    dependencies: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TaskSuggestion:
        try:
            duration = int(data.get("duration") or DEFAULT_DURATION)
        except (TypeError, ValueError):
            duration = DEFAULT_DURATION
        deps = data.get("dependencies") or []
        if isinstance(deps, str):
            deps = [deps]
        return cls(
            name=str(data.get("name") or "Untitled Task"),
            duration=max(1, duration),
            dependencies=tuple(str(d) for d in deps),
        )


def tasks_from_suggestions(
    suggestions: Iterable[TaskSuggestion],
    start: date,
    calendar: WorkCalendar = DEFAULT_CALENDAR,
    gap: int = DEFAULT_GAP,
) -> list[Task]:
    """Turn suggestions into fresh root-level tasks laid out back to back.

    Dependency names are resolved against the suggestions themselves; names
    that match nothing are dropped.
    """
    drafts: list[tuple[Task, tuple[str, ...]]] = []
    current = start
    for suggestion in suggestions:
        duration = max(1, suggestion.duration)
        end = add_days(current, duration, True, calendar)
        drafts.append((Task(name=suggestion.name, start=current, end=end, duration=duration),
                       suggestion.dependencies))
        current = add_days(end, gap, True, calendar)

    ids_by_name: dict[str, str] = {}
    for task, _ in drafts:
        ids_by_name.setdefault(task.name, task.id)
    return [
        replace(
            task,
            dependencies=tuple(
                ids_by_name[name]
                for name in dep_names
                if name in ids_by_name and ids_by_name[name] != task.id
            ),
        )
        for task, dep_names in drafts
    ]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def new_project(name: str = "", tasks: Sequence[Task] = ()) -> Project:
    if not name:
        name = "Imported Project" if tasks else "Untitled Project"
    now = _now_iso()
    return Project(name=name, tasks=list(tasks), created_at=now, updated_at=now)


def duplicate_project(project: Project) -> Project:
    now = _now_iso()
    return Project(
        name=f"{project.name} (Copy)",
        tasks=list(project.tasks),
        created_at=now,
        updated_at=now,
    )
