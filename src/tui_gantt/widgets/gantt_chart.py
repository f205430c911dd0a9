"""Timeline header and bar view with mouse drag support."""

from __future__ import annotations

from datetime import date, timedelta

from textual import events
from textual.app import ComposeResult
from textual.containers import Container
from textual.css.query import NoMatches
from textual.geometry import Size
from textual.message import Message
from textual.scroll_view import ScrollView
from textual.strip import Strip
from textual.widget import Widget

from rich.segment import Segment
from rich.style import Style

from tui_gantt import theme
from tui_gantt.dates import DEFAULT_CALENDAR, WorkCalendar, today_utc
from tui_gantt.models import DEFAULT_ZOOM, Task, TimelineRange, VisibleRow
from tui_gantt.reschedule import DragKind
from tui_gantt.timeline import bar_span, chart_width, col_to_date, date_to_col

_DAY_ABBR = "MTWTFSS"  # Mon=0..Sun=6


def hit_test(task: Task, col: int, rng: TimelineRange, zoom: int) -> DragKind | None:
    """What a press at *col* on this task's row grabs: the resize handle, the bar, or nothing."""
    first, width = bar_span(task, rng, zoom)
    if not first <= col < first + width:
        return None
    if width > 1 and col == first + width - 1:
        return DragKind.RESIZE
    return DragKind.MOVE


class _TimelineMixin:
    """Shared background logic for header and bar rows."""

    _range: TimelineRange
    _zoom: int
    _calendar: WorkCalendar

    @property
    def _is_dark(self) -> bool:
        try:
            return theme.is_dark(self.app)
        except Exception:
            return True

    def _day_bg(self, col: int, band_row: bool = False) -> Style:
        dark = self._is_dark
        day = col_to_date(col, self._range, self._zoom)
        if day in self._calendar.holidays:
            return Style(bgcolor=theme.HOLIDAY_BG.resolve(dark))
        if day.weekday() not in self._calendar.working_days:
            return Style(bgcolor=theme.WEEKEND_BG.resolve(dark))
        if band_row:
            return Style(bgcolor=theme.BAND_BG.resolve(dark))
        return Style(bgcolor=theme.BASE_BG.resolve(dark))


class GanttHeader(_TimelineMixin, Widget):
    """Fixed two-line header: month labels, then day labels."""

    DEFAULT_CSS = """
    GanttHeader {
        height: 2;
        background: $background;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        today = today_utc()
        self._range = TimelineRange(today, today + timedelta(days=30))
        self._zoom = DEFAULT_ZOOM
        self._calendar = DEFAULT_CALENDAR
        self._today = today
        self.scroll_x_offset: int = 0

    def update_header(
        self, rng: TimelineRange, zoom: int, today: date, calendar: WorkCalendar
    ) -> None:
        self._range = rng
        self._zoom = zoom
        self._today = today
        self._calendar = calendar
        self.refresh()

    def render_line(self, y: int) -> Strip:
        width = max(self.size.width, chart_width(self._range, self._zoom))
        if y == 0:
            full = self._render_month_row(width)
        elif y == 1:
            full = self._render_day_row(width)
        else:
            return Strip.blank(self.size.width)
        return full.crop(self.scroll_x_offset, self.scroll_x_offset + self.size.width)

    def _render_month_row(self, width: int) -> Strip:
        dark = self._is_dark
        label_style = Style(bold=True, color=theme.HEADER.resolve(dark))
        band = Style(bgcolor=theme.BAND_BG.resolve(dark))
        base = Style(bgcolor=theme.BASE_BG.resolve(dark))

        # (label, span) per calendar month
        spans: list[tuple[str, int]] = []
        prev: tuple[int, int] | None = None
        for col in range(0, width, self._zoom):
            day = col_to_date(col, self._range, self._zoom)
            key = (day.year, day.month)
            if key != prev:
                spans.append((day.strftime("%b %Y"), self._zoom))
                prev = key
            else:
                label, span = spans[-1]
                spans[-1] = (label, span + self._zoom)

        segments: list[Segment] = []
        for i, (label, span) in enumerate(spans):
            bg = band if i % 2 else base
            segments.append(Segment(f" {label}"[:span].ljust(span), label_style + bg))
        return Strip(segments).crop(0, width)

    def _render_day_row(self, width: int) -> Strip:
        dark = self._is_dark
        label_style = Style(color=theme.HEADER.resolve(dark))
        today_style = Style(bold=True, color=theme.TODAY_MARKER.resolve(dark))
        segments: list[Segment] = []
        for col in range(0, width, self._zoom):
            day = col_to_date(col, self._range, self._zoom)
            if self._zoom >= 2:
                label = f"{day.day:>2}"[: self._zoom].ljust(self._zoom)
            else:
                label = _DAY_ABBR[day.weekday()]
            style = today_style if day == self._today else label_style
            segments.append(Segment(label, style + self._day_bg(col)))
        return Strip(segments).crop(0, width)


class GanttView(_TimelineMixin, ScrollView):
    """Renders one bar per visible row and turns mouse drags into messages."""

    can_focus = True

    class ScrollXChanged(Message):
        def __init__(self, scroll_x: float) -> None:
            super().__init__()
            self.scroll_x = scroll_x

    class ScrollYChanged(Message):
        def __init__(self, scroll_y: float) -> None:
            super().__init__()
            self.scroll_y = scroll_y

    class TaskClicked(Message):
        def __init__(self, task_id: str) -> None:
            super().__init__()
            self.task_id = task_id

    class DragStarted(Message):
        def __init__(self, task_id: str, kind: DragKind, x: int) -> None:
            super().__init__()
            self.task_id = task_id
            self.kind = kind
            self.x = x

    class DragMoved(Message):
        def __init__(self, x: int) -> None:
            super().__init__()
            self.x = x

    class DragEnded(Message):
        pass

    DEFAULT_CSS = """
    GanttView {
        height: 1fr;
        background: $background;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        today = today_utc()
        self._rows: list[VisibleRow] = []
        self._summary_ids: set[str] = set()
        self._conflicts: set[str] = set()
        self._overdue: set[str] = set()
        self._range = TimelineRange(today, today + timedelta(days=30))
        self._zoom = DEFAULT_ZOOM
        self._calendar = DEFAULT_CALENDAR
        self._today = today
        self._highlighted_row: int = -1
        self._dragging: bool = False

    @property
    def dragging(self) -> bool:
        return self._dragging

    def update_gantt(
        self,
        rows: list[VisibleRow],
        rng: TimelineRange,
        zoom: int,
        today: date,
        summary_ids: set[str] | None = None,
        conflicts: set[str] | None = None,
        overdue: set[str] | None = None,
        calendar: WorkCalendar = DEFAULT_CALENDAR,
    ) -> None:
        self._rows = rows
        self._range = rng
        self._zoom = zoom
        self._today = today
        self._summary_ids = summary_ids or set()
        self._conflicts = conflicts or set()
        self._overdue = overdue or set()
        self._calendar = calendar
        self.virtual_size = Size(chart_width(rng, zoom), len(rows))
        self.refresh()

    def highlight_row(self, row: int) -> None:
        self._highlighted_row = row
        self.refresh()

    def watch_scroll_x(self, old: float, new: float) -> None:
        super().watch_scroll_x(old, new)
        self.post_message(self.ScrollXChanged(new))

    def watch_scroll_y(self, old: float, new: float) -> None:
        super().watch_scroll_y(old, new)
        self.post_message(self.ScrollYChanged(new))

    # ── Rendering ──

    def render_line(self, y: int) -> Strip:
        scroll_x, scroll_y = self.scroll_offset
        virtual_y = y + scroll_y
        width = max(self.size.width, chart_width(self._range, self._zoom))

        if 0 <= virtual_y < len(self._rows):
            strip = self._render_bar(self._rows[virtual_y].task, width, virtual_y)
        else:
            strip = Strip([Segment(" ", self._day_bg(c)) for c in range(width)])
        return strip.crop(scroll_x, scroll_x + self.size.width)

    def _render_bar(self, task: Task, width: int, row_y: int) -> Strip:
        dark = self._is_dark
        first, bar_w = bar_span(task, self._range, self._zoom)
        today_col = date_to_col(self._today, self._range, self._zoom)
        highlight = row_y == self._highlighted_row
        hl_bg = Style(bgcolor=theme.HIGHLIGHT_BG.resolve(dark))
        summary = task.id in self._summary_ids

        if task.id in self._conflicts:
            bar_style = Style(color=theme.BAR_CONFLICT.resolve(dark))
        elif task.id in self._overdue:
            bar_style = Style(color=theme.BAR_OVERDUE.resolve(dark))
        elif summary:
            bar_style = Style(color=theme.BAR_SUMMARY.resolve(dark), bold=True)
        else:
            bar_style = Style(color=theme.STATUS_COLORS[task.status].resolve(dark))
        if highlight:
            bar_style += Style(underline=True)
        dep_style = Style(color=theme.DEPENDENCY_ARROW.resolve(dark))
        today_style = Style(color=theme.TODAY_MARKER.resolve(dark))
        handle_style = Style(color=theme.RESIZE_HANDLE.resolve(dark))

        filled = bar_w * task.progress // 100
        segments: list[Segment] = []
        for c in range(width):
            bg = hl_bg if highlight else self._day_bg(c, band_row=row_y % 2 == 1)
            pos = c - first
            if 0 <= pos < bar_w:
                if summary:
                    ch = "▀"
                elif bar_w > 1 and pos == bar_w - 1:
                    segments.append(Segment("▐", handle_style + bg))
                    continue
                else:
                    ch = "█" if pos < filled else "▓"
                segments.append(Segment(ch, bar_style + bg))
            elif task.dependencies and c == first - 1:
                segments.append(Segment("→", dep_style + bg))
            elif c == today_col:
                segments.append(Segment("│", today_style + bg))
            else:
                segments.append(Segment(" ", bg))
        return Strip(segments)

    # ── Mouse handling ──

    def _event_position(self, event: events.MouseEvent) -> tuple[int, int]:
        scroll_x, scroll_y = self.scroll_offset
        return int(event.x) + scroll_x, int(event.y) + scroll_y

    def on_mouse_down(self, event: events.MouseDown) -> None:
        col, row = self._event_position(event)
        if not 0 <= row < len(self._rows):
            return
        task = self._rows[row].task
        self.post_message(self.TaskClicked(task.id))
        if task.id in self._summary_ids:
            return
        kind = hit_test(task, col, self._range, self._zoom)
        if kind is None:
            return
        self._dragging = True
        self.capture_mouse()
        self.post_message(self.DragStarted(task.id, kind, col))
        event.stop()

    def on_mouse_move(self, event: events.MouseMove) -> None:
        if self._dragging:
            col, _ = self._event_position(event)
            self.post_message(self.DragMoved(col))

    def on_mouse_up(self, event: events.MouseUp) -> None:
        if self._dragging:
            self.end_drag()
            event.stop()

    def on_blur(self, event: events.Blur) -> None:
        if self._dragging:
            self.end_drag()

    def end_drag(self) -> None:
        """Stop tracking the pointer and tell the app the gesture is over."""
        if not self._dragging:
            return
        self._dragging = False
        self.release_mouse()
        self.post_message(self.DragEnded())


class GanttChart(Container):
    """Header plus bar view, kept horizontally in sync."""

    DEFAULT_CSS = """
    GanttChart {
        width: 1fr;
        height: 1fr;
    }
    GanttChart #gantt-header {
        height: 2;
    }
    GanttChart #gantt-view {
        height: 1fr;
    }
    """

    def compose(self) -> ComposeResult:
        yield GanttHeader(id="gantt-header")
        yield GanttView(id="gantt-view")

    def update_chart(
        self,
        rows: list[VisibleRow],
        rng: TimelineRange,
        zoom: int,
        today: date,
        summary_ids: set[str],
        conflicts: set[str],
        overdue: set[str],
        calendar: WorkCalendar,
    ) -> None:
        try:
            view = self.query_one("#gantt-view", GanttView)
            header = self.query_one("#gantt-header", GanttHeader)
        except NoMatches:
            return
        view.update_gantt(rows, rng, zoom, today, summary_ids, conflicts, overdue, calendar)
        header.update_header(rng, zoom, today, calendar)

    def on_gantt_view_scroll_x_changed(self, event: GanttView.ScrollXChanged) -> None:
        header = self.query_one("#gantt-header", GanttHeader)
        header.scroll_x_offset = int(event.scroll_x)
        header.refresh()
