"""Task grid shown to the left of the Gantt chart."""

from __future__ import annotations

from textual.message import Message
from textual.widgets import DataTable

from rich.text import Text

from tui_gantt import theme
from tui_gantt.dates import DEFAULT_DATE_FORMAT, format_date
from tui_gantt.models import (
    COLLAPSED_ICON,
    CONFLICT_ICON,
    EXPANDED_ICON,
    Task,
    VisibleRow,
)

COLUMNS: list[tuple[str, int]] = [
    ("#", 4),
    ("Task", 28),
    ("Start", 12),
    ("End", 12),
    ("Days", 5),
    ("%", 4),
    ("Deps", 10),
]

_INDENT = 2


class TaskTable(DataTable):
    """DataTable of the visible rows; emits scroll changes for the chart."""

    class ScrollChanged(Message):
        """Emitted when vertical scroll position changes."""

        def __init__(self, scroll_y: float) -> None:
            super().__init__()
            self.scroll_y = scroll_y

    DEFAULT_CSS = """
    TaskTable {
        width: auto;
        height: 1fr;
        margin-top: 1;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(cursor_type="row", zebra_stripes=True, **kwargs)
        self._row_ids: list[str] = []

    def on_mount(self) -> None:
        for label, width in COLUMNS:
            self.add_column(label, width=width, key=label)

    @property
    def row_ids(self) -> list[str]:
        return list(self._row_ids)

    @property
    def highlighted_task_id(self) -> str | None:
        if 0 <= self.cursor_row < len(self._row_ids):
            return self._row_ids[self.cursor_row]
        return None

    def watch_scroll_y(self, old_value: float, new_value: float) -> None:
        super().watch_scroll_y(old_value, new_value)
        self.post_message(self.ScrollChanged(new_value))

    def update_rows(
        self,
        rows: list[VisibleRow],
        summary_ids: set[str],
        conflicts: set[str],
        overdue: set[str],
        row_numbers: dict[str, int],
        date_format: str = DEFAULT_DATE_FORMAT,
    ) -> None:
        """Replace the table contents, keeping the cursor on the same task."""
        keep_id = self.highlighted_task_id
        self.clear()
        self._row_ids = []
        try:
            dark = theme.is_dark(self.app)
        except Exception:
            dark = True

        for task, index in rows:
            self._row_ids.append(task.id)
            self.add_row(
                str(index + 1),
                self._title_cell(task, task.id in summary_ids, task.id in conflicts,
                                 task.id in overdue, dark),
                format_date(task.start, date_format),
                format_date(task.end, date_format),
                str(task.duration),
                str(task.progress),
                ",".join(str(row_numbers[d]) for d in task.dependencies if d in row_numbers),
                key=task.id,
            )

        if keep_id in self._row_ids:
            self.move_cursor(row=self._row_ids.index(keep_id))

    def select_task(self, task_id: str) -> None:
        if task_id in self._row_ids:
            self.move_cursor(row=self._row_ids.index(task_id))

    @staticmethod
    def _title_cell(task: Task, summary: bool, conflict: bool, overdue: bool, dark: bool) -> Text:
        text = Text(" " * (task.level * _INDENT))
        if summary:
            text.append(COLLAPSED_ICON if task.collapsed else EXPANDED_ICON)
            text.append(" ")
        else:
            text.append(task.status_icon + " ",
                        style=theme.STATUS_COLORS[task.status].resolve(dark))
        name_style = "bold" if summary else ""
        if overdue:
            name_style = f"{name_style} {theme.OVERDUE_TEXT.resolve(dark)}".strip()
        text.append(task.name or "(untitled)", style=name_style)
        if conflict:
            text.append(f" {CONFLICT_ICON}", style=theme.CONFLICT_TEXT.resolve(dark))
        return text
