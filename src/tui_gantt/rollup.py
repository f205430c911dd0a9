"""Summary-task rollup over the flat, level-indented task list.

Hierarchy is implicit: a task's children are the contiguous run of rows after
it whose level is deeper, ending at the first row whose level is not. Only
rows exactly one level deeper are direct children; a row that jumps more than
one level is nobody's direct child and is left alone.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Sequence

from tui_gantt.dates import DEFAULT_CALENDAR, WorkCalendar, diff_days, round_half_up
from tui_gantt.models import Task

log = logging.getLogger(__name__)


def is_parent(tasks: Sequence[Task], index: int) -> bool:
    """A row is a summary row iff the next row is indented deeper."""
    if index < 0 or index >= len(tasks) - 1:
        return False
    return tasks[index + 1].level > tasks[index].level


def child_indices(tasks: Sequence[Task], index: int) -> list[int]:
    """Indices of the direct children (level + 1) of the row at *index*."""
    level = tasks[index].level
    result: list[int] = []
    for j in range(index + 1, len(tasks)):
        if tasks[j].level <= level:
            break
        if tasks[j].level == level + 1:
            result.append(j)
    return result


def descendant_indices(tasks: Sequence[Task], index: int) -> list[int]:
    """Indices of every row in the subtree under *index*, at any depth."""
    level = tasks[index].level
    result: list[int] = []
    for j in range(index + 1, len(tasks)):
        if tasks[j].level <= level:
            break
        result.append(j)
    return result


def parent_ids(tasks: Sequence[Task]) -> set[str]:
    return {task.id for i, task in enumerate(tasks) if is_parent(tasks, i)}


def rollup_tasks(
    tasks: Sequence[Task], calendar: WorkCalendar = DEFAULT_CALENDAR
) -> list[Task]:
    """Return a copy of *tasks* with every summary row derived from its children.

    Rows are visited from last to first and children are read from the list
    being built, so by the time a row is visited every deeper row after it is
    already final. A multi-level tree therefore settles in one pass.
    """
    result = list(tasks)
    rolled = 0
    for i in range(len(result) - 1, -1, -1):
        children = [result[j] for j in child_indices(result, i)]
        if not children:
            continue
        start = min(c.start for c in children)
        end = max(c.end for c in children)
        progress = round_half_up(sum(c.progress for c in children) / len(children))
        result[i] = replace(
            result[i],
            start=start,
            end=end,
            # children all on non-working days would count 0
            duration=max(1, diff_days(start, end, True, calendar)),
            progress=progress,
        )
        rolled += 1
    log.debug("rolled up %d summary rows out of %d", rolled, len(result))
    return result
