"""CLI entry point using Click."""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

import click

_LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s: %(message)s"
_LOG_FILE = "tui-gantt.log"


class _DefaultGroup(click.Group):
    """Insert 'run' when the first arg is not a registered subcommand."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.no_args_is_help = False  # bare `tui-gantt` opens the current folder

    def invoke(self, ctx):
        if not ctx._protected_args and not ctx.args:
            ctx._protected_args = ["run"]
        return super().invoke(ctx)

    def resolve_command(self, ctx, args):
        cmd_name = args[0] if args else None
        if cmd_name and cmd_name in self.commands:
            return super().resolve_command(ctx, args)
        return super().resolve_command(ctx, ["run"] + list(args))


def _setup_logging(verbose: bool, log_file: Path | None = None) -> None:
    """Configure the root logger; *log_file* keeps output off the terminal."""
    level = logging.DEBUG if verbose else logging.WARNING
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logging.basicConfig(level=level, format=_LOG_FORMAT, filename=str(log_file))
    else:
        logging.basicConfig(level=level, format=_LOG_FORMAT)


def _ensure_project_dir(project_dir: Path) -> None:
    if not project_dir.exists():
        if click.confirm(f"'{project_dir}' does not exist. Create it?"):
            project_dir.mkdir(parents=True, exist_ok=True)
            click.echo(f"Created folder {project_dir}")
        else:
            raise SystemExit(0)
    elif not project_dir.is_dir():
        click.echo(f"Error: '{project_dir}' is not a directory.", err=True)
        raise SystemExit(1)


def _build_sample_project(name: str, today: date | None = None, calendar=None):
    """A small two-phase plan starting today, already rolled up."""
    from dataclasses import replace

    from tui_gantt.dates import DEFAULT_CALENDAR, today_utc
    from tui_gantt.ops import TaskSuggestion, new_project, tasks_from_suggestions
    from tui_gantt.rollup import rollup_tasks

    calendar = calendar or DEFAULT_CALENDAR
    outline = [
        (0, TaskSuggestion("Phase 1: Design", 1)),
        (1, TaskSuggestion("Requirements", 3)),
        (1, TaskSuggestion("Technical review", 2, ("Requirements",))),
        (0, TaskSuggestion("Phase 2: Build", 1)),
        (1, TaskSuggestion("Implementation", 8, ("Technical review",))),
        (1, TaskSuggestion("Testing", 4, ("Implementation",))),
        (0, TaskSuggestion("Release", 1, ("Testing",))),
    ]
    tasks = tasks_from_suggestions([s for _, s in outline], today or today_utc(), calendar)
    tasks = [replace(t, level=level) for t, (level, _) in zip(tasks, outline)]
    return new_project(name, rollup_tasks(tasks, calendar))


@click.group(cls=_DefaultGroup)
@click.option("--no-color", is_flag=True, help="Disable color output")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output")
@click.version_option(package_name="tui-gantt")
@click.pass_context
def main(ctx, no_color: bool, verbose: bool) -> None:
    """TUI Gantt - Terminal UI Gantt chart scheduler."""
    ctx.ensure_object(dict)
    ctx.obj["no_color"] = no_color
    ctx.obj["verbose"] = verbose


@main.command()
@click.argument("path", default=".", type=click.Path())
@click.pass_context
def run(ctx, path: str) -> None:
    """Open the project in PATH in the interactive chart."""
    from tui_gantt.app import GanttApp
    from tui_gantt.config import CONFIG_DIR

    project_dir = Path(path).resolve()
    _ensure_project_dir(project_dir)
    if ctx.obj["verbose"]:
        _setup_logging(True, project_dir / CONFIG_DIR / _LOG_FILE)
    else:
        # no stderr fallback while the TUI owns the terminal
        logging.getLogger("tui_gantt").addHandler(logging.NullHandler())
    app = GanttApp(project_dir=project_dir, no_color=ctx.obj["no_color"])
    app.run()


@main.command("init")
@click.argument("path", default=".", type=click.Path())
@click.option("--name", prompt="Project name", default="My Project", help="Project name")
@click.pass_context
def init_cmd(ctx, path: str, name: str) -> None:
    """Initialize a new project (config.toml + sample project file)."""
    from tui_gantt.config import CONFIG_DIR, CONFIG_FILE, get_calendar, load_settings, save_config
    from tui_gantt.models import ProjectConfig
    from tui_gantt.storage import save_project

    _setup_logging(ctx.obj["verbose"])
    project_dir = Path(path).resolve()
    config = ProjectConfig(name=name)
    data_path = project_dir / config.data_file
    if data_path.exists():
        click.echo(f"Project file already exists: {data_path}", err=True)
        raise SystemExit(1)

    project_dir.mkdir(parents=True, exist_ok=True)
    save_config(project_dir, config)
    click.echo(f"Created {project_dir / CONFIG_DIR / CONFIG_FILE}")

    calendar = get_calendar(load_settings(project_dir))
    save_project(_build_sample_project(name, calendar=calendar), data_path, backup=False)
    click.echo(f"Created {data_path}")

    click.echo(f"\nProject initialized at {project_dir}")
    click.echo("Run 'tui-gantt' to open the project.")


@main.command("show")
@click.argument("path", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("--all", "show_all", is_flag=True, help="Include rows inside collapsed tasks")
@click.pass_context
def show_cmd(ctx, path: str, show_all: bool) -> None:
    """Print the rolled-up schedule as a table."""
    from rich.console import Console
    from rich.markup import escape
    from rich.table import Table
    from rich.text import Text

    from tui_gantt.config import get_calendar, load_config, load_settings
    from tui_gantt.conflicts import find_conflicts, find_overdue
    from tui_gantt.dates import format_date, today_utc
    from tui_gantt.models import CONFLICT_ICON, VisibleRow
    from tui_gantt.rollup import parent_ids, rollup_tasks
    from tui_gantt.storage import ProjectFileError, load_project
    from tui_gantt.timeline import timeline_range
    from tui_gantt.visibility import visible_rows

    _setup_logging(ctx.obj["verbose"])
    project_dir = Path(path).resolve()
    config = load_config(project_dir)
    calendar = get_calendar(load_settings(project_dir))
    data_path = project_dir / config.data_file
    if not data_path.exists():
        click.echo(f"No project file: {data_path}", err=True)
        raise SystemExit(1)
    try:
        project = load_project(data_path, calendar)
    except ProjectFileError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    console = Console(no_color=ctx.obj["no_color"], highlight=False)
    for warning in project.load_warnings:
        console.print(f"[yellow]warning:[/yellow] {escape(str(warning))}")

    tasks = rollup_tasks(project.tasks, calendar)
    today = today_utc()
    summary = parent_ids(tasks)
    conflicts = find_conflicts(tasks)
    overdue = find_overdue(tasks, today)
    rows = (
        [VisibleRow(t, i) for i, t in enumerate(tasks)] if show_all else visible_rows(tasks)
    )
    numbers = {t.id: i + 1 for i, t in enumerate(tasks)}
    fmt = config.date_format

    table = Table(title=config.name or project.name or project_dir.name)
    table.add_column("#", justify="right")
    table.add_column("Task")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Days", justify="right")
    table.add_column("%", justify="right")
    table.add_column("Deps")
    for task, index in rows:
        title = Text("  " * task.level + task.name, style="bold" if task.id in summary else "")
        if task.id in conflicts:
            title.append(f" {CONFLICT_ICON}", style="red")
        if task.id in overdue:
            title.append(" overdue", style="yellow")
        table.add_row(
            str(index + 1),
            title,
            format_date(task.start, fmt),
            format_date(task.end, fmt),
            str(task.duration),
            str(task.progress),
            ",".join(str(numbers[d]) for d in task.dependencies if d in numbers),
        )
    console.print(table)

    rng = timeline_range(tasks, today)
    console.print(
        f"{len(tasks)} tasks, {len(conflicts)} conflict(s), {len(overdue)} overdue. "
        f"Timeline {format_date(rng.start, fmt)} - {format_date(rng.end, fmt)} ({rng.days} days)"
    )


@main.command("duplicate")
@click.argument("path", type=click.Path(exists=True, file_okay=False))
@click.argument("dest", type=click.Path())
@click.pass_context
def duplicate_cmd(ctx, path: str, dest: str) -> None:
    """Copy the project in PATH to DEST under a fresh id and a "(Copy)" name."""
    from dataclasses import replace

    from tui_gantt.config import get_calendar, load_config, load_settings, save_config
    from tui_gantt.ops import duplicate_project
    from tui_gantt.storage import ProjectFileError, load_project, save_project

    _setup_logging(ctx.obj["verbose"])
    src_dir = Path(path).resolve()
    dest_dir = Path(dest).resolve()
    config = load_config(src_dir)
    data_path = src_dir / config.data_file
    if not data_path.exists():
        click.echo(f"No project file: {data_path}", err=True)
        raise SystemExit(1)
    target = dest_dir / config.data_file
    if target.exists():
        click.echo(f"Project file already exists: {target}", err=True)
        raise SystemExit(1)
    try:
        project = load_project(data_path, get_calendar(load_settings(src_dir)))
    except ProjectFileError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    copy = duplicate_project(project)
    dest_dir.mkdir(parents=True, exist_ok=True)
    save_config(dest_dir, replace(config, name=copy.name))
    save_project(copy, target, backup=False)
    click.echo(f"Created {target}")


@main.command("init-theme")
@click.argument("path", default=".", type=click.Path())
def init_theme_cmd(path: str) -> None:
    """Copy default theme to .tui-gantt/theme.yaml for customization."""
    from tui_gantt.theme import init_theme

    project_dir = Path(path).resolve()
    _ensure_project_dir(project_dir)
    try:
        dest = init_theme(project_dir)
        click.echo(f"Created {dest}")
    except FileExistsError as e:
        click.echo(f"Already exists: {e}", err=True)
        raise SystemExit(1)
