"""Dependency conflict and overdue detection."""

from __future__ import annotations

from datetime import date
from typing import Sequence

from tui_gantt.models import Task


def _index_by_id(tasks: Sequence[Task]) -> dict[str, Task]:
    by_id: dict[str, Task] = {}
    for task in tasks:
        by_id.setdefault(task.id, task)
    return by_id


def find_conflicts(tasks: Sequence[Task]) -> set[str]:
    """Return ids of tasks that start before one of their predecessors ends.

    The check is local: each dependency is compared on its own and nothing is
    rescheduled. Dependency ids that match no task are ignored.
    """
    by_id = _index_by_id(tasks)
    conflicts: set[str] = set()
    for task in tasks:
        for dep_id in task.dependencies:
            source = by_id.get(dep_id)
            if source is not None and source.end > task.start:
                conflicts.add(task.id)
                break
    return conflicts


def conflicting_dependencies(tasks: Sequence[Task], task_id: str) -> list[Task]:
    """Predecessors of *task_id* that are still running when it starts."""
    by_id = _index_by_id(tasks)
    task = by_id.get(task_id)
    if task is None:
        return []
    result = []
    for dep_id in task.dependencies:
        source = by_id.get(dep_id)
        if source is not None and source.end > task.start:
            result.append(source)
    return result


def find_overdue(tasks: Sequence[Task], today: date) -> set[str]:
    """Return ids of unfinished tasks whose end date is already past."""
    return {t.id for t in tasks if t.end < today and t.progress < 100}
