"""Main Textual App for TUI Gantt."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timezone
from pathlib import Path

from rich.markup import escape
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import DataTable, Footer, Header, Static

from tui_gantt import theme
from tui_gantt.config import (
    CONFIG_DIR,
    CONFIG_FILE,
    get_calendar,
    get_default_zoom,
    get_propagation,
    get_task_defaults,
    get_zoom_limits,
    load_config,
    load_settings,
    save_config,
)
from tui_gantt.conflicts import conflicting_dependencies, find_conflicts, find_overdue
from tui_gantt.dates import DEFAULT_CALENDAR, format_date, parse_date, to_iso, today_utc
from tui_gantt.models import CONFLICT_ICON, Project, ProjectConfig, Task, TimelineRange
from tui_gantt.ops import (
    DEFAULT_DURATION,
    DEFAULT_GAP,
    append_task,
    copy_tasks,
    delete_tasks,
    indent_tasks,
    move_row,
    new_project,
    new_task,
    outdent_tasks,
    paste_tasks,
    set_collapsed,
    toggle_collapsed,
    update_task,
)
from tui_gantt.reschedule import DragSession, Propagation, apply_motion, shift_task, start_drag
from tui_gantt.rollup import descendant_indices, parent_ids, rollup_tasks
from tui_gantt.screens.confirm_screen import ConfirmScreen
from tui_gantt.screens.edit_screen import EditScreen
from tui_gantt.screens.warning_screen import WarningScreen
from tui_gantt.storage import ProjectFileError, load_project, save_project
from tui_gantt.timeline import timeline_range, today_offset
from tui_gantt.visibility import visible_rows
from tui_gantt.widgets.gantt_chart import GanttChart, GanttView
from tui_gantt.widgets.task_table import TaskTable

log = logging.getLogger(__name__)

_AUTOSAVE_DELAY = 2.0  # seconds
_UNDO_LIMIT = 50

_DERIVED_FIELDS = {"start", "duration", "progress"}

_FIELD_LABELS = {
    "name": "Task name",
    "start": "Start date (YYYY-MM-DD)",
    "duration": "Duration (business days)",
    "progress": "Progress (0-100)",
    "dependencies": "Depends on rows (comma separated, e.g. 1,3)",
}


class GanttApp(App):
    """TUI Gantt Application."""

    TITLE = "TUI Gantt"
    CSS = """
    #main-content {
        height: 1fr;
        border: round $surface-lighten-2;
        border-title-align: left;
    }
    #main-content:focus-within {
        border: round $accent;
        border-title-color: $accent;
    }
    #status-bar {
        dock: bottom;
        height: 1;
        padding: 0 1;
        background: $primary-background;
        color: $text;
    }
    """

    BINDINGS = [
        Binding("ctrl+s", "save", "Save", priority=True),
        Binding("q", "quit_app", "Quit"),
        Binding("a", "add_task", "Add"),
        Binding("d", "delete_task", "Delete"),
        Binding("e", "edit_name", "Rename"),
        Binding("s", "edit_start", "Start", show=False),
        Binding("u", "edit_duration", "Days", show=False),
        Binding("p", "edit_progress", "Progress", show=False),
        Binding("x", "edit_dependencies", "Deps", show=False),
        Binding("space", "toggle_collapse", "Fold/Unfold", show=False),
        Binding("left_square_bracket", "collapse_all(True)", "Fold all", show=False),
        Binding("right_square_bracket", "collapse_all(False)", "Unfold all", show=False),
        # Row structure
        Binding("K", "move_up", show=False),
        Binding("J", "move_down", show=False),
        Binding("H", "outdent", show=False),
        Binding("L", "indent", show=False),
        # Schedule
        Binding("less_than_sign", "nudge(-1)", "-1 day", show=False),
        Binding("greater_than_sign", "nudge(1)", "+1 day", show=False),
        Binding("plus", "zoom_in", "Zoom in", show=False),
        Binding("equals_sign", "zoom_in", show=False),
        Binding("minus", "zoom_out", "Zoom out", show=False),
        Binding("t", "scroll_today", "Today", show=False),
        # Clipboard
        Binding("c", "copy", "Copy", show=False),
        Binding("v", "paste", "Paste", show=False),
        # Undo/Redo
        Binding("ctrl+z", "undo", "Undo", show=False, priority=True),
        Binding("ctrl+y", "redo", "Redo", show=False, priority=True),
        Binding("exclamation_mark", "warnings", "Warnings", show=False),
        Binding("escape", "cancel_drag", show=False),
    ]

    def __init__(self, project_dir: Path, no_color: bool = False) -> None:
        if no_color:
            os.environ["NO_COLOR"] = "1"
        super().__init__()
        self.project_dir = project_dir
        self.no_color = no_color
        self.project: Project | None = None
        self.config: ProjectConfig = ProjectConfig()
        self.read_only: bool = False
        self._modified: bool = False
        self._undo_stack: list[list[Task]] = []
        self._redo_stack: list[list[Task]] = []
        self._clipboard: list[Task] = []
        self._drag: DragSession | None = None
        self._autosave_timer: object | None = None
        self._scroll_syncing: bool = False
        self._calendar = DEFAULT_CALENDAR
        self._zoom_limits: tuple[int, int, int] = (1, 8, 1)
        self._task_defaults: tuple[int, int] = (DEFAULT_DURATION, DEFAULT_GAP)
        self._propagation = Propagation.BOTH
        self._range: TimelineRange | None = None
        self._conflicts: set[str] = set()
        self._overdue: set[str] = set()

    @property
    def data_path(self) -> Path:
        return self.project_dir / self.config.data_file

    @property
    def modified(self) -> bool:
        return self._modified

    def on_mount(self) -> None:
        self.set_timer(0.01, self._load_project)

    def _load_project(self) -> None:
        self.config = load_config(self.project_dir)
        settings = load_settings(self.project_dir)
        self._calendar = get_calendar(settings)
        self._zoom_limits = get_zoom_limits(settings)
        self._task_defaults = get_task_defaults(settings)
        self._propagation = get_propagation(settings)
        low, high, _ = self._zoom_limits
        if not (self.project_dir / CONFIG_DIR / CONFIG_FILE).exists():
            self.config.zoom = get_default_zoom(settings)
        self.config.zoom = max(low, min(high, self.config.zoom))
        theme.load_theme(self.project_dir)

        path = self.data_path
        if path.exists():
            try:
                self.project = load_project(path, self._calendar)
            except ProjectFileError as e:
                log.error("%s", e)
                self.read_only = True
                self.project = new_project(self.config.name or self.project_dir.name)
                self.notify(f"{e}. Saving is disabled.", severity="error", timeout=10)
        else:
            self.project = new_project(self.config.name or self.project_dir.name)

        if self.project.load_warnings:
            self.notify(
                f"{len(self.project.load_warnings)} problem(s) while loading, press ! to view",
                severity="warning",
            )
        self._refresh_ui()
        self.query_one(TaskTable).focus()

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-content"):
            yield TaskTable(id="task-table")
            yield GanttChart(id="gantt-chart")
        yield Static("", id="status-bar")
        yield Footer()

    # ── UI Refresh ──

    def _refresh_ui(self) -> None:
        if self.project is None:
            return
        tasks = rollup_tasks(self.project.tasks, self._calendar)
        self.project.tasks = tasks

        today = today_utc()
        rows = visible_rows(tasks)
        summary = parent_ids(tasks)
        self._conflicts = find_conflicts(tasks)
        self._overdue = find_overdue(tasks, today)
        # The window is frozen while dragging so bars don't slide under the pointer.
        if self._drag is None or self._range is None:
            self._range = timeline_range(tasks, today)
        row_numbers = {t.id: i + 1 for i, t in enumerate(tasks)}

        table = self.query_one(TaskTable)
        table.update_rows(rows, summary, self._conflicts, self._overdue, row_numbers,
                          self.config.date_format)
        chart = self.query_one(GanttChart)
        chart.update_chart(rows, self._range, self.config.zoom, today, summary,
                           self._conflicts, self._overdue, self._calendar)
        self._gantt_view().highlight_row(table.cursor_row)

        self._update_status_bar()
        self._update_title()
        content = self.query_one("#main-content", Horizontal)
        content.border_title = self.project.name or self.project_dir.name
        fmt = self.config.date_format
        content.border_subtitle = (
            f"{format_date(self._range.start, fmt)} - {format_date(self._range.end, fmt)}"
        )

    def _gantt_view(self) -> GanttView:
        return self.query_one(GanttChart).query_one("#gantt-view", GanttView)

    def _status_parts(self) -> list[str]:
        dark = theme.is_dark(self)
        parts: list[str] = [f"{len(self.project.tasks) if self.project else 0} tasks"]
        if self._conflicts:
            color = theme.CONFLICT_TEXT.resolve(dark)
            parts.append(f"[{color}]{CONFLICT_ICON} {len(self._conflicts)} conflict(s)[/{color}]")
        if self._overdue:
            color = theme.OVERDUE_TEXT.resolve(dark)
            parts.append(f"[{color}]{len(self._overdue)} overdue[/{color}]")
        current = self._get_highlighted_task()
        if current is not None and current.id in self._conflicts:
            blockers = conflicting_dependencies(self.project.tasks, current.id)
            parts.append("waits on: " + escape(", ".join(t.name for t in blockers)))
        if self.project and self.project.load_warnings:
            parts.append(f"{len(self.project.load_warnings)} warning(s)")
        parts.append(f"Zoom: {self.config.zoom}")
        if self.read_only:
            parts.append("READ-ONLY")
        return parts

    def _update_status_bar(self) -> None:
        try:
            bar = self.query_one("#status-bar", Static)
        except Exception:
            return
        bar.update(" | ".join(self._status_parts()))

    def _update_title(self) -> None:
        project_name = (
            self.config.name
            or (self.project.name if self.project else "")
            or self.project_dir.name
        )
        mod = " [*]" if self._modified else ""
        self.title = f"TUI Gantt - {project_name}{mod}"

    # ── Table/chart sync ──

    def on_data_table_row_highlighted(self, event: DataTable.RowHighlighted) -> None:
        self._gantt_view().highlight_row(event.cursor_row)
        self._update_status_bar()

    def on_gantt_view_task_clicked(self, event: GanttView.TaskClicked) -> None:
        self.query_one(TaskTable).select_task(event.task_id)

    def _reset_scroll_syncing(self) -> None:
        self._scroll_syncing = False

    def on_task_table_scroll_changed(self, event: TaskTable.ScrollChanged) -> None:
        if self._scroll_syncing:
            return
        self._scroll_syncing = True
        self._gantt_view().scroll_y = event.scroll_y
        # Delay flag reset so bounce-back messages are caught
        self.set_timer(0.05, self._reset_scroll_syncing)

    def on_gantt_view_scroll_y_changed(self, event: GanttView.ScrollYChanged) -> None:
        if self._scroll_syncing:
            return
        self._scroll_syncing = True
        self.query_one(TaskTable).scroll_y = event.scroll_y
        self.set_timer(0.05, self._reset_scroll_syncing)

    # ── Drag ──

    def on_gantt_view_drag_started(self, event: GanttView.DragStarted) -> None:
        if self.project is None:
            return
        self._drag = start_drag(
            self.project.tasks, event.task_id, event.kind, event.x, self._propagation
        )

    def on_gantt_view_drag_moved(self, event: GanttView.DragMoved) -> None:
        if self._drag is None or self.project is None:
            return
        self.project.tasks = apply_motion(
            self._drag, self.project.tasks, event.x, self.config.zoom, self._calendar
        )
        self._refresh_ui()

    def on_gantt_view_drag_ended(self, event: GanttView.DragEnded) -> None:
        self._finish_drag()

    def _finish_drag(self) -> None:
        """Keep the dragged positions as one undoable step."""
        session, self._drag = self._drag, None
        if session is None or self.project is None:
            return
        original = session.original_tasks()
        if self.project.tasks != original:
            self._push_undo(original)
            self._mark_modified()
        log.debug("drag on %s ended", session.task_id)
        self._refresh_ui()

    def _drag_active(self) -> bool:
        """True (with a hint) while a drag owns the task list."""
        if self._drag is None:
            return False
        self.notify("Finish or cancel (Esc) the drag first", severity="warning")
        return True

    def action_cancel_drag(self) -> None:
        """Abort the current drag and put every task back where it was."""
        session, self._drag = self._drag, None
        if session is None or self.project is None:
            return
        self.project.tasks = session.original_tasks()
        self._gantt_view().end_drag()
        self._refresh_ui()

    def on_app_blur(self, event: events.AppBlur) -> None:
        if self._drag is not None:
            self._gantt_view().end_drag()
            self._finish_drag()

    # ── Autosave ──

    def _mark_modified(self) -> None:
        self._modified = True
        self._update_title()
        self._schedule_autosave()

    def _schedule_autosave(self) -> None:
        if self._autosave_timer is not None:
            self._autosave_timer.stop()
        self._autosave_timer = self.set_timer(_AUTOSAVE_DELAY, self._do_autosave)

    def _do_autosave(self) -> None:
        self._autosave_timer = None
        if self._modified:
            self._write()

    def _write(self) -> bool:
        if self.project is None or self.read_only:
            return False
        self.project.updated_at = datetime.now(timezone.utc).isoformat(timespec="seconds")
        try:
            save_project(self.project, self.data_path)
            save_config(self.project_dir, self.config)
        except OSError as e:
            log.error("save failed: %s", e)
            self.notify(f"Save failed: {e}", severity="error")
            return False
        self._modified = False
        self._update_title()
        return True

    # ── Helpers for task mutation ──

    def _push_undo(self, tasks: list[Task]) -> None:
        self._undo_stack.append(list(tasks))
        self._redo_stack.clear()
        if len(self._undo_stack) > _UNDO_LIMIT:
            self._undo_stack.pop(0)

    def _commit(self, tasks: list[Task]) -> bool:
        """Replace the task list as one undoable step."""
        if self.project is None or self._drag_active():
            return False
        self._push_undo(self.project.tasks)
        self.project.tasks = tasks
        self._mark_modified()
        self._refresh_ui()
        return True

    def _get_highlighted_task(self) -> Task | None:
        if self.project is None:
            return None
        task_id = self.query_one(TaskTable).highlighted_task_id
        return self.project.find_task(task_id) if task_id else None

    def _is_summary(self, task: Task) -> bool:
        return self.project is not None and task.id in parent_ids(self.project.tasks)

    # ── Actions ──

    def action_save(self) -> None:
        if self.read_only:
            self.notify("Project file could not be read: saving disabled", severity="warning")
            return
        if self._autosave_timer is not None:
            self._autosave_timer.stop()
            self._autosave_timer = None
        if self._write():
            self.notify("Saved", severity="information")

    def action_warnings(self) -> None:
        warnings = self.project.load_warnings if self.project else []
        self.push_screen(WarningScreen(warnings))

    def action_quit_app(self) -> None:
        if self._modified and not self.read_only:
            self.push_screen(
                ConfirmScreen("Unsaved changes. Quit anyway?"),
                callback=self._on_quit_confirmed,
            )
        else:
            self.exit()

    def _on_quit_confirmed(self, confirmed: bool) -> None:
        if confirmed:
            self.exit()

    def action_add_task(self) -> None:
        if self.project is None:
            return
        duration, gap = self._task_defaults
        task = new_task(self.project.tasks, today_utc(), self._calendar, duration, gap)
        if self._commit(append_task(self.project.tasks, task)):
            self.query_one(TaskTable).select_task(task.id)

    def action_delete_task(self) -> None:
        task = self._get_highlighted_task()
        if task is None:
            return
        if self._commit(delete_tasks(self.project.tasks, [task.id])):
            self.notify(f"Deleted '{task.name}'", severity="information")

    def action_toggle_collapse(self) -> None:
        task = self._get_highlighted_task()
        if task is None or not self._is_summary(task):
            return
        self._commit(toggle_collapsed(self.project.tasks, task.id))

    def action_collapse_all(self, collapsed: bool) -> None:
        if self.project is None:
            return
        tasks = set_collapsed(self.project.tasks, collapsed)
        if tasks != self.project.tasks:
            self._commit(tasks)

    def action_indent(self) -> None:
        task = self._get_highlighted_task()
        if task is not None:
            self._commit(indent_tasks(self.project.tasks, [task.id]))

    def action_outdent(self) -> None:
        task = self._get_highlighted_task()
        if task is not None:
            self._commit(outdent_tasks(self.project.tasks, [task.id]))

    def action_move_up(self) -> None:
        self._move_highlighted(-1)

    def action_move_down(self) -> None:
        self._move_highlighted(1)

    def _move_highlighted(self, direction: int) -> None:
        task = self._get_highlighted_task()
        if task is None:
            return
        index = self.project.index_of(task.id)
        target = index + direction
        if not 0 <= target < len(self.project.tasks):
            return
        if self._commit(move_row(self.project.tasks, index, target)):
            self.query_one(TaskTable).select_task(task.id)

    def action_nudge(self, days: int) -> None:
        task = self._get_highlighted_task()
        if task is None:
            return
        if self._is_summary(task):
            self.notify("Summary tasks follow their subtasks", severity="warning")
            return
        self._commit(
            shift_task(self.project.tasks, task.id, days, self._calendar, self._propagation)
        )

    def action_zoom_in(self) -> None:
        low, high, step = self._zoom_limits
        self._set_zoom(min(high, self.config.zoom + step))

    def action_zoom_out(self) -> None:
        low, high, step = self._zoom_limits
        self._set_zoom(max(low, self.config.zoom - step))

    def _set_zoom(self, zoom: int) -> None:
        if zoom == self.config.zoom or self._drag_active():
            return
        self.config.zoom = zoom
        self._mark_modified()
        self._refresh_ui()

    def action_scroll_today(self) -> None:
        if self._range is None:
            return
        col = int(today_offset(self._range, self.config.zoom))
        view = self._gantt_view()
        view.scroll_to(x=max(0, col - view.size.width // 3), animate=False)

    def action_copy(self) -> None:
        task = self._get_highlighted_task()
        if task is None:
            return
        tasks = self.project.tasks
        index = self.project.index_of(task.id)
        ids = [task.id] + [tasks[j].id for j in descendant_indices(tasks, index)]
        self._clipboard = copy_tasks(tasks, ids)
        self.notify(f"Copied {len(self._clipboard)} task(s)", severity="information")

    def action_paste(self) -> None:
        if self.project is None or not self._clipboard:
            self.notify("Clipboard is empty", severity="warning")
            return
        tasks, new_ids = paste_tasks(self.project.tasks, self._clipboard)
        if self._commit(tasks):
            self.query_one(TaskTable).select_task(new_ids[0])

    def action_undo(self) -> None:
        if self._drag_active():
            return
        if not self._undo_stack or self.project is None:
            self.notify("Nothing to undo", severity="warning")
            return
        self._redo_stack.append(list(self.project.tasks))
        self.project.tasks = self._undo_stack.pop()
        self._mark_modified()
        self._refresh_ui()
        self.notify("Undone", severity="information")

    def action_redo(self) -> None:
        if self._drag_active():
            return
        if not self._redo_stack or self.project is None:
            self.notify("Nothing to redo", severity="warning")
            return
        self._undo_stack.append(list(self.project.tasks))
        self.project.tasks = self._redo_stack.pop()
        self._mark_modified()
        self._refresh_ui()
        self.notify("Redone", severity="information")

    # ── Field editing ──

    def action_edit_name(self) -> None:
        self._edit_field("name")

    def action_edit_start(self) -> None:
        self._edit_field("start")

    def action_edit_duration(self) -> None:
        self._edit_field("duration")

    def action_edit_progress(self) -> None:
        self._edit_field("progress")

    def action_edit_dependencies(self) -> None:
        self._edit_field("dependencies")

    def _field_text(self, task: Task, field: str) -> str:
        if field == "start":
            return to_iso(task.start)
        if field == "dependencies":
            numbers = {t.id: i + 1 for i, t in enumerate(self.project.tasks)}
            return ",".join(str(numbers[d]) for d in task.dependencies if d in numbers)
        return str(getattr(task, field))

    def _edit_field(self, field: str) -> None:
        task = self._get_highlighted_task()
        if task is None:
            return
        if field in _DERIVED_FIELDS and self._is_summary(task):
            self.notify("Summary task dates and progress come from subtasks", severity="warning")
            return
        task_id = task.id
        self.push_screen(
            EditScreen(_FIELD_LABELS[field], self._field_text(task, field)),
            callback=lambda value: self._apply_field_edit(task_id, field, value),
        )

    def _apply_field_edit(self, task_id: str, field: str, value: str | None) -> None:
        if value is None or self.project is None:
            return
        value = value.strip()
        changes: dict = {}
        if field == "name":
            if not value:
                self.notify("Task name cannot be empty", severity="error")
                return
            changes["name"] = value
        elif field == "start":
            try:
                changes["start"] = parse_date(value)
            except ValueError:
                self.notify(f"Invalid date format: {value} (use YYYY-MM-DD)", severity="error")
                return
        elif field == "duration":
            try:
                duration = int(value)
            except ValueError:
                duration = 0
            if duration < 1:
                self.notify("Duration must be a whole number of days, at least 1", severity="error")
                return
            changes["duration"] = duration
        elif field == "progress":
            try:
                progress = int(value)
            except ValueError:
                progress = -1
            if not 0 <= progress <= 100:
                self.notify("Progress must be 0-100", severity="error")
                return
            changes["progress"] = progress
        elif field == "dependencies":
            deps = self._parse_row_numbers(value)
            if deps is None:
                return
            changes["dependencies"] = deps
        self._commit(update_task(self.project.tasks, task_id, self._calendar, **changes))

    def _parse_row_numbers(self, value: str) -> tuple[str, ...] | None:
        tasks = self.project.tasks
        ids: list[str] = []
        for part in value.replace(" ", "").split(","):
            if not part:
                continue
            if not part.isdigit() or not 1 <= int(part) <= len(tasks):
                self.notify(f"No row {part}", severity="error")
                return None
            dep_id = tasks[int(part) - 1].id
            if dep_id not in ids:
                ids.append(dep_id)
        return tuple(ids)
