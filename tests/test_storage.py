"""Tests for JSON project files."""

import json
from datetime import date

import pytest

from tui_gantt.models import Attachment, Project, Task, TaskStatus
from tui_gantt.storage import (
    ProjectFileError,
    load_project,
    project_from_dict,
    save_project,
    task_to_dict,
)


def write_json(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def sample_project():
    return Project(
        id="p1",
        name="Sample",
        created_at="2024-01-01T00:00:00+00:00",
        tasks=[
            Task(id="a", name="Design", start=date(2024, 1, 1), end=date(2024, 1, 3), duration=3,
                 progress=40, status=TaskStatus.IN_PROGRESS, collapsed=True,
                 attachments=(Attachment(name="brief", url="https://example.com", id="att"),)),
            Task(id="b", name="Build", start=date(2024, 1, 4), end=date(2024, 1, 4),
                 dependencies=("a",), level=1, assignee="Kim"),
        ],
    )


class TestEncoding:
    def test_camel_case_keys(self, sample_project):
        d = task_to_dict(sample_project.tasks[0])
        assert d["startDate"] == "2024-01-01"
        assert d["endDate"] == "2024-01-03"
        assert d["isCollapsed"] is True
        assert d["status"] == "In Progress"
        assert d["attachments"][0]["url"] == "https://example.com"

    def test_optional_keys_omitted(self, sample_project):
        d = task_to_dict(sample_project.tasks[1])
        assert "isCollapsed" not in d
        assert "color" not in d
        assert d["assignee"] == "Kim"


class TestSaveLoad:
    def test_save_then_load(self, tmp_path, sample_project):
        path = tmp_path / "project.gantt.json"
        save_project(sample_project, path)
        loaded = load_project(path)
        assert loaded.name == "Sample"
        assert loaded.id == "p1"
        assert loaded.tasks == sample_project.tasks
        assert loaded.load_warnings == []

    def test_backup_created(self, tmp_path, sample_project):
        path = tmp_path / "project.gantt.json"
        save_project(sample_project, path)
        sample_project.name = "Renamed"
        save_project(sample_project, path)
        backup = tmp_path / "project.gantt.json.bak"
        assert backup.exists()
        assert json.loads(backup.read_text(encoding="utf-8"))["name"] == "Sample"
        assert json.loads(path.read_text(encoding="utf-8"))["name"] == "Renamed"

    def test_no_temp_files_left(self, tmp_path, sample_project):
        save_project(sample_project, tmp_path / "p.json", backup=False)
        assert sorted(p.name for p in tmp_path.iterdir()) == ["p.json"]


class TestLoadErrors:
    def test_missing_file(self, tmp_path):
        with pytest.raises(ProjectFileError):
            load_project(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ProjectFileError):
            load_project(path)

    def test_not_an_object(self, tmp_path):
        path = write_json(tmp_path / "list.json", [1, 2, 3])
        with pytest.raises(ProjectFileError):
            load_project(path)


class TestLoadWarnings:
    def test_bad_start_skips_task(self):
        project = project_from_dict({"tasks": [
            {"id": "a", "name": "ok", "startDate": "2024-01-01", "duration": 1},
            {"id": "b", "name": "bad", "startDate": "soon"},
        ]})
        assert [t.id for t in project.tasks] == ["a"]
        assert len(project.load_warnings) == 1
        assert project.load_warnings[0].index == 1

    def test_missing_end_derived_from_duration(self):
        project = project_from_dict({"tasks": [
            {"id": "a", "startDate": "2024-01-05", "duration": 2},
        ]})
        assert project.tasks[0].end == date(2024, 1, 8)
        assert project.load_warnings == []

    def test_missing_duration_derived_from_end(self):
        project = project_from_dict({"tasks": [
            {"id": "a", "startDate": "2024-01-01", "endDate": "2024-01-05"},
        ]})
        assert project.tasks[0].duration == 5

    def test_defaults_and_clamps(self):
        project = project_from_dict({"tasks": [
            {"id": "a", "startDate": "2024-01-01", "duration": 1, "progress": 250,
             "status": "Someday", "level": -2, "dependencies": "a"},
        ]})
        task = project.tasks[0]
        assert task.progress == 100
        assert task.status == TaskStatus.NOT_STARTED
        assert task.level == 0
        assert task.dependencies == ()
        assert len(project.load_warnings) == 4

    def test_duplicate_ids_reissued(self):
        project = project_from_dict({"tasks": [
            {"id": "a", "startDate": "2024-01-01", "duration": 1},
            {"id": "a", "startDate": "2024-01-02", "duration": 1},
        ]})
        assert project.tasks[0].id == "a"
        assert project.tasks[1].id != "a"
        assert "Duplicate id" in project.load_warnings[0].message

    def test_tasks_not_a_list(self):
        project = project_from_dict({"tasks": {"a": 1}}, "file.json")
        assert project.tasks == []
        assert str(project.load_warnings[0]).startswith("file.json:")
