"""Which rows are shown once collapsed summary rows hide their subtrees."""

from __future__ import annotations

from typing import Sequence

from tui_gantt.models import Task, VisibleRow


def visible_rows(tasks: Sequence[Task]) -> list[VisibleRow]:
    """Return the displayed rows in order, each with its index in *tasks*.

    A visible collapsed row hides every following row that is indented deeper
    than it, however deep, until a row at its level or shallower appears.
    """
    visible: list[VisibleRow] = []
    hidden_level: int | None = None
    for index, task in enumerate(tasks):
        if hidden_level is not None and task.level > hidden_level:
            continue
        hidden_level = None
        visible.append(VisibleRow(task, index))
        if task.collapsed:
            hidden_level = task.level
    return visible
