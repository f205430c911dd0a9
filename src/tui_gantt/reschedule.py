"""Move/resize propagation for an interactive drag on one task.

A drag keeps a frozen snapshot of the task list taken when the gesture
started. Every motion event recomputes from that snapshot plus the total
pointer offset so far, never from the previous frame, so rounding of pixel
deltas cannot accumulate across events.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Sequence

from tui_gantt.dates import DEFAULT_CALENDAR, WorkCalendar, add_days, round_half_up
from tui_gantt.models import Task
from tui_gantt.rollup import is_parent

log = logging.getLogger(__name__)


class DragKind(Enum):
    MOVE = "move"
    RESIZE = "resize"


class Propagation(Enum):
    """Which dependency edges a move follows."""

    BOTH = "both"  # predecessors and successors, transitively
    SUCCESSORS = "successors"  # only tasks that depend on the moved one
    NONE = "none"  # only the dragged task


@dataclass(frozen=True)
class DragSession:
    """State held from pointer-down to pointer-up."""

    task_id: str
    kind: DragKind
    origin_x: float
    original_start: date
    original_duration: int
    snapshot: tuple[Task, ...]
    affected: frozenset[str]

    def original_tasks(self) -> list[Task]:
        """The task list as it was before the gesture."""
        return list(self.snapshot)


def day_delta(delta_x: float, zoom: float) -> int:
    """Convert a horizontal pointer offset to whole days."""
    if zoom <= 0:
        raise ValueError(f"zoom must be positive, got {zoom!r}")
    return round_half_up(delta_x / zoom)


def affected_ids(
    tasks: Sequence[Task],
    task_id: str,
    propagation: Propagation = Propagation.BOTH,
) -> set[str]:
    """Breadth-first walk of the dependency graph from *task_id*.

    Successors are tasks that list a member of the set as a dependency;
    predecessors are the dependencies a member lists. Ids that match no task
    are skipped.
    """
    known = {t.id for t in tasks}
    if task_id not in known:
        return set()
    affected = {task_id}
    if propagation is Propagation.NONE:
        return affected

    successors: dict[str, list[str]] = {}
    predecessors: dict[str, tuple[str, ...]] = {}
    for task in tasks:
        predecessors.setdefault(task.id, task.dependencies)
        for dep_id in task.dependencies:
            successors.setdefault(dep_id, []).append(task.id)

    queue = deque([task_id])
    while queue:
        current = queue.popleft()
        neighbours = list(successors.get(current, ()))
        if propagation is Propagation.BOTH:
            neighbours.extend(predecessors.get(current, ()))
        for other in neighbours:
            if other in known and other not in affected:
                affected.add(other)
                queue.append(other)
    return affected


def start_drag(
    tasks: Sequence[Task],
    task_id: str,
    kind: DragKind,
    origin_x: float,
    propagation: Propagation = Propagation.BOTH,
) -> DragSession | None:
    """Open a drag session on a leaf task. Returns None for unknown or summary rows."""
    for index, task in enumerate(tasks):
        if task.id == task_id:
            break
    else:
        return None
    if is_parent(tasks, index):
        return None

    snapshot = tuple(tasks)
    affected = (
        affected_ids(snapshot, task_id, propagation)
        if kind is DragKind.MOVE
        else {task_id}
    )
    log.debug("drag %s started on %s, %d task(s) affected", kind.value, task_id, len(affected))
    return DragSession(
        task_id=task_id,
        kind=kind,
        origin_x=origin_x,
        original_start=task.start,
        original_duration=task.duration,
        snapshot=snapshot,
        affected=frozenset(affected),
    )


def apply_delta(
    session: DragSession,
    tasks: Sequence[Task],
    delta_days: int,
    calendar: WorkCalendar = DEFAULT_CALENDAR,
) -> list[Task]:
    """Return a new task list with the gesture applied at *delta_days*.

    *tasks* is the current list; only rows in the session's affected set are
    rewritten, and always from their snapshot values.
    """
    if session.kind is DragKind.RESIZE:
        duration = max(1, session.original_duration + delta_days)
        end = add_days(session.original_start, duration, True, calendar)
        return [
            replace(t, start=session.original_start, duration=duration, end=end)
            if t.id == session.task_id
            else t
            for t in tasks
        ]

    originals = {t.id: t for t in session.snapshot if t.id in session.affected}
    result: list[Task] = []
    for task in tasks:
        original = originals.get(task.id)
        if original is None:
            result.append(task)
            continue
        start = add_days(original.start, delta_days, False, calendar)
        end = add_days(start, original.duration, True, calendar)
        result.append(replace(task, start=start, end=end))
    return result


def apply_motion(
    session: DragSession,
    tasks: Sequence[Task],
    pointer_x: float,
    zoom: float,
    calendar: WorkCalendar = DEFAULT_CALENDAR,
) -> list[Task]:
    """Apply one motion event at *pointer_x* with *zoom* columns per day."""
    delta = day_delta(pointer_x - session.origin_x, zoom)
    return apply_delta(session, tasks, delta, calendar)


def shift_task(
    tasks: Sequence[Task],
    task_id: str,
    days: int,
    calendar: WorkCalendar = DEFAULT_CALENDAR,
    propagation: Propagation = Propagation.BOTH,
) -> list[Task]:
    """Move a task by whole days as a complete one-step gesture."""
    session = start_drag(tasks, task_id, DragKind.MOVE, 0, propagation)
    if session is None:
        return list(tasks)
    return apply_delta(session, tasks, days, calendar)
