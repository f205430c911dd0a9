"""Data models for TUI Gantt."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import NamedTuple

from tui_gantt.dates import DEFAULT_DATE_FORMAT, diff_days


class TaskStatus(Enum):
    """Task status."""

    NOT_STARTED = "Not Started"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    BLOCKED = "Blocked"


STATUS_ICONS = {
    TaskStatus.NOT_STARTED: "○",
    TaskStatus.IN_PROGRESS: "◐",
    TaskStatus.COMPLETED: "●",
    TaskStatus.BLOCKED: "✕",
}

COLLAPSED_ICON = "▸"
EXPANDED_ICON = "▾"
CONFLICT_ICON = "⚠"

DEFAULT_ZOOM = 3


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Attachment:
    """A file or link attached to a task. Not used by scheduling."""

    name: str
    url: str
    type: str = "link"  # file, link
    id: str = field(default_factory=new_id)
    created_at: str = ""


@dataclass(frozen=True)
class Task:
    """A single schedulable row. Immutable; edit with dataclasses.replace().

    ``end`` is the day the task finishes, so a one-day task has
    ``start == end``. ``duration`` counts business days.
    """

    name: str
    start: date
    end: date
    duration: int = 1
    id: str = field(default_factory=new_id)
    progress: int = 0  # 0-100
    dependencies: tuple[str, ...] = ()  # predecessor ids
    level: int = 0  # indentation depth, 0 = root
    collapsed: bool = False
    status: TaskStatus = TaskStatus.NOT_STARTED
    assignee: str = ""
    color: str = ""
    attachments: tuple[Attachment, ...] = ()

    @property
    def status_icon(self) -> str:
        return STATUS_ICONS[self.status]

    @property
    def calendar_days(self) -> int:
        """Wall-clock length of the bar, both ends included."""
        return diff_days(self.start, self.end) + 1


class VisibleRow(NamedTuple):
    """A displayed task and its position in the full task list."""

    task: Task
    index: int


class TimelineRange(NamedTuple):
    """The visible date window of the chart, both ends included."""

    start: date
    end: date

    @property
    def days(self) -> int:
        return diff_days(self.start, self.end) + 1


@dataclass(frozen=True)
class LoadWarning:
    """A problem found while reading a project file."""

    file_path: str
    index: int  # task index in the file, -1 for file-level problems
    message: str

    def __str__(self) -> str:
        if self.index < 0:
            return f"{self.file_path}: {self.message}"
        return f"{self.file_path}: task #{self.index + 1}: {self.message}"


@dataclass
class Project:
    """An ordered task list plus identity metadata."""

    name: str
    tasks: list[Task] = field(default_factory=list)
    id: str = field(default_factory=new_id)
    created_at: str = ""
    updated_at: str = ""
    load_warnings: list[LoadWarning] = field(default_factory=list)

    def find_task(self, task_id: str) -> Task | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def index_of(self, task_id: str) -> int:
        for i, task in enumerate(self.tasks):
            if task.id == task_id:
                return i
        return -1


@dataclass
class ProjectConfig:
    """Project-level configuration stored in .tui-gantt/config.toml."""

    name: str = ""
    date_format: str = DEFAULT_DATE_FORMAT
    zoom: int = DEFAULT_ZOOM  # terminal columns per calendar day
    data_file: str = "project.gantt.json"
