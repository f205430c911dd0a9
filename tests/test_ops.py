"""Tests for task list edit operations."""

from datetime import date

import pytest

from tui_gantt.dates import add_days
from tui_gantt.models import Task, TaskStatus
from tui_gantt.ops import (
    TaskSuggestion,
    append_task,
    copy_tasks,
    delete_tasks,
    duplicate_project,
    indent_tasks,
    move_row,
    new_project,
    new_task,
    outdent_tasks,
    paste_tasks,
    set_collapsed,
    tasks_from_suggestions,
    toggle_collapsed,
    update_task,
)

MONDAY = date(2024, 1, 1)


def make(task_id, level=0, start=MONDAY, duration=1, **kw):
    return Task(id=task_id, name=task_id, start=start, duration=duration,
                end=add_days(start, duration, True), level=level, **kw)


class TestUpdateTask:
    def test_start_rederives_end(self):
        tasks = [make("a", duration=3)]
        result = update_task(tasks, "a", start=date(2024, 1, 4))
        assert result[0].start == date(2024, 1, 4)
        assert result[0].end == date(2024, 1, 8)  # Thu + 3 business days

    def test_duration_rederives_end(self):
        result = update_task([make("a")], "a", duration=5)
        assert result[0].end == date(2024, 1, 5)

    def test_end_rederives_duration(self):
        result = update_task([make("a")], "a", end=date(2024, 1, 10))
        assert result[0].duration == 8

    def test_end_before_start_clamped(self):
        result = update_task([make("a", start=date(2024, 1, 3))], "a", end=MONDAY)
        assert result[0].end == date(2024, 1, 3)
        assert result[0].duration == 1

    def test_progress_clamped(self):
        assert update_task([make("a")], "a", progress=150)[0].progress == 100
        assert update_task([make("a")], "a", progress=-5)[0].progress == 0

    def test_self_dependency_dropped(self):
        result = update_task([make("a"), make("b")], "a", dependencies=("a", "b"))
        assert result[0].dependencies == ("b",)

    def test_unknown_field(self):
        with pytest.raises(TypeError):
            update_task([make("a")], "a", colour="red")

    def test_other_tasks_untouched(self):
        tasks = [make("a"), make("b")]
        result = update_task(tasks, "a", name="renamed")
        assert result[1] is tasks[1]
        assert result[0].name == "renamed"


class TestNewTask:
    def test_empty_list_starts_today(self):
        task = new_task([], today=MONDAY)
        assert task.start == MONDAY
        assert task.duration == 5
        assert task.end == date(2024, 1, 5)
        assert task.name == "New Task"

    def test_after_last_task(self):
        last = make("a", level=2, start=MONDAY, duration=3)  # ends Wed
        task = new_task([last], today=date(2030, 1, 1))
        # Wed + 2 business-day duration -> Thu
        assert task.start == date(2024, 1, 4)
        assert task.level == 2

    def test_start_moves_off_weekend(self):
        last = make("a", start=date(2024, 1, 5))  # Fri, ends Fri
        task = new_task([last], gap=2)  # Fri + 2 -> Mon
        assert task.start == date(2024, 1, 8)

    def test_today_on_weekend(self):
        assert new_task([], today=date(2024, 1, 6)).start == date(2024, 1, 8)


class TestListOps:
    def test_append(self):
        tasks = [make("a")]
        result = append_task(tasks, make("b"))
        assert [t.id for t in result] == ["a", "b"]
        assert len(tasks) == 1

    def test_delete_leaves_dangling(self):
        tasks = [make("a"), make("b", dependencies=("a",))]
        result = delete_tasks(tasks, ["a"])
        assert [t.id for t in result] == ["b"]
        assert result[0].dependencies == ("a",)

    def test_indent_only_under_previous(self):
        tasks = [make("a"), make("b"), make("c", level=1)]
        result = indent_tasks(tasks, ["b"])
        assert result[1].level == 1
        result = indent_tasks(result, ["b"])  # previous row is level 0 now
        assert result[1].level == 1

    def test_indent_first_row_noop(self):
        tasks = [make("a")]
        assert indent_tasks(tasks, ["a"])[0].level == 0

    def test_outdent(self):
        tasks = [make("a"), make("b", level=1)]
        assert outdent_tasks(tasks, ["b"])[1].level == 0
        assert outdent_tasks(tasks, ["a"])[0].level == 0

    def test_move_row(self):
        tasks = [make("a"), make("b"), make("c")]
        assert [t.id for t in move_row(tasks, 0, 2)] == ["b", "c", "a"]
        assert [t.id for t in move_row(tasks, 2, 0)] == ["c", "a", "b"]
        assert [t.id for t in move_row(tasks, 5, 0)] == ["a", "b", "c"]

    def test_toggle_and_set_collapsed(self):
        tasks = [make("a"), make("b", level=1)]
        result = toggle_collapsed(tasks, "a")
        assert result[0].collapsed
        assert not set_collapsed(result, False)[0].collapsed
        folded = set_collapsed(tasks, True)
        # only the summary row carries the flag
        assert [t.collapsed for t in folded] == [True, False]

    def test_copy_paste(self):
        tasks = [
            make("a"),
            make("b", dependencies=("a",), progress=40, status=TaskStatus.IN_PROGRESS),
        ]
        clipboard = copy_tasks(tasks, ["b"])
        result, new_ids = paste_tasks(tasks, clipboard)
        assert len(result) == 3
        pasted = result[2]
        assert pasted.id == new_ids[0] != "b"
        assert pasted.name == "b"
        assert pasted.dependencies == ()
        assert pasted.progress == 0
        assert pasted.status == TaskStatus.NOT_STARTED


class TestSuggestions:
    def test_sequential_dates_and_dependencies(self):
        suggestions = [
            TaskSuggestion("Design", 3),
            TaskSuggestion("Build", 2, ("Design", "Unknown")),
        ]
        tasks = tasks_from_suggestions(suggestions, MONDAY, gap=2)
        design, build = tasks
        assert (design.start, design.end) == (MONDAY, date(2024, 1, 3))
        assert build.start == date(2024, 1, 4)
        assert build.end == date(2024, 1, 5)
        assert build.dependencies == (design.id,)

    def test_from_dict(self):
        s = TaskSuggestion.from_dict({"name": "X", "duration": "bad", "dependencies": "Y"})
        assert s.duration == 5
        assert s.dependencies == ("Y",)
        assert TaskSuggestion.from_dict({}).name == "Untitled Task"


class TestProjects:
    def test_new_project_names(self):
        assert new_project().name == "Untitled Project"
        assert new_project(tasks=[make("a")]).name == "Imported Project"
        assert new_project("Mine").name == "Mine"

    def test_duplicate(self):
        original = new_project("Plan", [make("a")])
        copy = duplicate_project(original)
        assert copy.name == "Plan (Copy)"
        assert copy.id != original.id
        assert copy.tasks == original.tasks
        assert copy.tasks is not original.tasks
