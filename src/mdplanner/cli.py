"""Command-line interface for the planner.

Every command loads the active project's records, runs one store or view
operation and exits. Records that fail to parse are reported on stderr
but never stop the command.
"""
from __future__ import annotations
import functools
import logging
import shutil
from datetime import date
from pathlib import Path
from typing import Optional, Tuple

import click

from mdplanner.board import KanbanBoard, render_backlog, render_gantt
from mdplanner.config import load_settings
from mdplanner.errors import PlannerError
from mdplanner.filters import FilterEngine
from mdplanner.layout import build_gantt_layout
from mdplanner.logging_setup import setup_logging
from mdplanner.models import ALL_PRIORITIES, ALL_STATUSES, GanttZoom, SortColumn, SortDirection, Status
from mdplanner.projects import ProjectCatalog
from mdplanner.store import TaskStore
from mdplanner.transitions import get_allowed_transitions

logger = logging.getLogger(__name__)

STATUS_ALIASES = {
    'b': Status.BACKLOG,
    'ip': Status.IN_PROGRESS,
    'r': Status.REVIEW,
    'd': Status.DONE,
    'a': Status.ARCHIVED,
}

STATUS_CHOICE = click.Choice([str(s) for s in ALL_STATUSES] + list(STATUS_ALIASES), case_sensitive=False)
PRIORITY_CHOICE = click.Choice([str(p) for p in ALL_PRIORITIES], case_sensitive=False)


class Context:
    def __init__(self, root: Path, project: Optional[str], zoom: GanttZoom, unit_width: int):
        self.catalog = ProjectCatalog(root)
        self.project = project
        self.zoom = zoom
        self.unit_width = unit_width
        self.store = TaskStore()

    def load(self) -> TaskStore:
        self.catalog.scan()
        for err in self.store.load(self.catalog.resolve_path(self.project)):
            click.secho(f"warning: {err}", fg='yellow', err=True)
        return self.store


pass_ctx = click.make_pass_decorator(Context)


def _status(value: str) -> Status:
    return STATUS_ALIASES.get(value.lower()) or Status(value.lower())


def _split_tags(value: Optional[str]) -> Optional[list]:
    if value is None:
        return None
    return [t.strip() for t in value.split(',') if t.strip()]


def _term_width() -> int:
    return shutil.get_terminal_size((120, 30)).columns


@click.group()
@click.option('--root', type=click.Path(file_okay=False, path_type=Path), help='Planner data root.')
@click.option('--project', '-p', help='Active project folder under the root.')
@click.option('--verbose', '-v', is_flag=True, help='Log debug output to stderr.')
@click.pass_context
def cli(ctx: click.Context, root: Optional[Path], project: Optional[str], verbose: bool) -> None:
    """Plan tasks stored as Markdown files: backlog, kanban and Gantt views."""
    settings = load_settings()
    setup_logging(logging.DEBUG if verbose else settings.log_level, settings.log_file)
    ctx.obj = Context(
        root=(root or settings.root).expanduser(),
        project=project or settings.project,
        zoom=settings.zoom,
        unit_width=settings.unit_width,
    )


def _planner_command(fn):
    """Turn planner errors raised inside a command into clean CLI errors."""
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except PlannerError as exc:
            logger.debug("Command failed", exc_info=True)
            raise click.ClickException(str(exc)) from exc
    return wrapper


# -------------------- projects --------------------
@cli.command('projects')
@pass_ctx
@_planner_command
def projects_cmd(obj: Context) -> None:
    """List project folders under the root."""
    projects, errors = obj.catalog.scan()
    for err in errors:
        click.secho(f"warning: {err}", fg='yellow', err=True)
    if not projects:
        click.echo(f"No projects in {obj.catalog.root}")
    for p in projects:
        marker = '*' if p.name == obj.project else ' '
        click.echo(f"{marker} {p.name} ({p.task_count} tasks)")


@cli.command('new-project')
@click.argument('name')
@pass_ctx
@_planner_command
def new_project_cmd(obj: Context, name: str) -> None:
    """Create a project folder."""
    obj.catalog.scan()
    project = obj.catalog.create(name)
    click.echo(f"Created project {project.name} at {project.path}")


# -------------------- views --------------------
@cli.command('list')
@click.option('--status', '-s', 'statuses', multiple=True, type=STATUS_CHOICE, help='Repeatable.')
@click.option('--priority', 'priorities', multiple=True, type=PRIORITY_CHOICE, help='Repeatable.')
@click.option('--tag', '-t', 'tags', multiple=True, help='Task must carry every given tag.')
@click.option('--search', '-q', default='', help='Case-insensitive text in title or description.')
@click.option('--sort', 'sort_column', type=click.Choice([str(c) for c in SortColumn]), default=str(SortColumn.ORDER))
@click.option('--desc', is_flag=True, help='Sort descending.')
@pass_ctx
@_planner_command
def list_cmd(obj: Context, statuses: Tuple[str, ...], priorities: Tuple[str, ...], tags: Tuple[str, ...],
             search: str, sort_column: str, desc: bool) -> None:
    """Backlog table with filters and sorting."""
    store = obj.load()
    engine = FilterEngine()
    engine.set_state(
        status_filter=[_status(s) for s in statuses],
        priority_filter=[p.lower() for p in priorities],
        tag_filter=tags,
        search_query=search,
        sort_column=sort_column,
        sort_direction=SortDirection.DESC if desc else SortDirection.ASC,
    )
    for line in render_backlog(engine.filter_and_sort(store.tasks)):
        click.echo(line)


@cli.command('board')
@click.option('--tag', '-t', 'tags', multiple=True)
@click.option('--search', '-q', default='')
@pass_ctx
@_planner_command
def board_cmd(obj: Context, tags: Tuple[str, ...], search: str) -> None:
    """Kanban board (archived tasks hidden)."""
    store = obj.load()
    engine = FilterEngine()
    engine.set_state(tag_filter=tags, search_query=search)
    board = KanbanBoard(store.by_status(engine.filter_and_sort(store.tasks)))
    for line in board.render(_term_width()):
        click.echo(line)


@cli.command('gantt')
@click.option('--zoom', '-z', type=click.Choice([str(z) for z in GanttZoom]), default=None)
@click.option('--unit-width', type=click.IntRange(min=1), default=None, help='Characters per grid unit.')
@click.option('--include-archived', is_flag=True)
@pass_ctx
@_planner_command
def gantt_cmd(obj: Context, zoom: Optional[str], unit_width: Optional[int], include_archived: bool) -> None:
    """Gantt chart of task date ranges."""
    store = obj.load()
    tasks = [t for t in store.tasks if include_archived or t.status != Status.ARCHIVED]
    layout = build_gantt_layout(tasks, GanttZoom(zoom or obj.zoom), unit_width or obj.unit_width, min_width=1)
    for line in render_gantt(layout):
        click.echo(line)


@cli.command('tags')
@pass_ctx
@_planner_command
def tags_cmd(obj: Context) -> None:
    """All tags in the project."""
    for tag in obj.load().all_tags():
        click.echo(tag)


@cli.command('overdue')
@pass_ctx
@_planner_command
def overdue_cmd(obj: Context) -> None:
    """Tasks past their end date that are not done or archived."""
    for line in render_backlog(obj.load().overdue()):
        click.echo(line)


# -------------------- mutations --------------------
@cli.command('add')
@click.argument('title', nargs=-1, required=True)
@click.option('--start', type=click.DateTime(formats=['%Y-%m-%d']), default=None, help='Defaults to today.')
@click.option('--end', type=click.DateTime(formats=['%Y-%m-%d']), default=None)
@click.option('--priority', type=PRIORITY_CHOICE, default=None)
@click.option('--tags', default=None, help='Comma separated.')
@click.option('--description', '-d', default='')
@pass_ctx
@_planner_command
def add_cmd(obj: Context, title: Tuple[str, ...], start, end, priority: Optional[str],
            tags: Optional[str], description: str) -> None:
    """Create a task in the backlog."""
    store = obj.load()
    task = store.create(
        ' '.join(title),
        start=start.date() if start else date.today(),
        end=end.date() if end else None,
        priority=priority.lower() if priority else None,
        tags=_split_tags(tags),
        description=description,
    )
    click.echo(f"Created {task.id}")


@cli.command('move')
@click.argument('task_id')
@click.argument('status', type=STATUS_CHOICE)
@pass_ctx
@_planner_command
def move_cmd(obj: Context, task_id: str, status: str) -> None:
    """Change a task's status (aliases: b, ip, r, d, a)."""
    store = obj.load()
    task = store.update(task_id, status=_status(status))
    allowed = ', '.join(sorted(get_allowed_transitions(task.status)))
    click.echo(f"{task.id} is now {task.status} (next: {allowed})")


@cli.command('edit')
@click.argument('task_id')
@click.option('--title', default=None)
@click.option('--description', '-d', default=None)
@click.option('--priority', type=PRIORITY_CHOICE, default=None)
@click.option('--start', type=click.DateTime(formats=['%Y-%m-%d']), default=None)
@click.option('--end', type=click.DateTime(formats=['%Y-%m-%d']), default=None)
@click.option('--clear-end', is_flag=True)
@click.option('--tags', default=None, help='Comma separated; replaces existing tags.')
@pass_ctx
@_planner_command
def edit_cmd(obj: Context, task_id: str, title: Optional[str], description: Optional[str],
             priority: Optional[str], start, end, clear_end: bool, tags: Optional[str]) -> None:
    """Edit task fields. A new title renames the record."""
    store = obj.load()
    changes = {}
    if title is not None:
        changes['title'] = title
    if description is not None:
        changes['description'] = description
    if priority is not None:
        changes['priority'] = priority.lower()
    if start is not None:
        changes['start'] = start.date()
    if end is not None:
        changes['end'] = end.date()
    elif clear_end:
        changes['end'] = None
    if tags is not None:
        changes['tags'] = _split_tags(tags)
    if not changes:
        raise click.UsageError('Nothing to change.')
    task = store.update(task_id, **changes)
    click.echo(f"Updated {task.id}")


@cli.command('reorder')
@click.argument('task_id')
@click.argument('order', type=int)
@pass_ctx
@_planner_command
def reorder_cmd(obj: Context, task_id: str, order: int) -> None:
    """Set a task's manual order value."""
    task = obj.load().reorder(task_id, order)
    click.echo(f"{task.id} order = {task.order}")


@cli.command('rm')
@click.argument('task_id')
@pass_ctx
@_planner_command
def rm_cmd(obj: Context, task_id: str) -> None:
    """Delete a task and its record."""
    obj.load().delete(task_id)
    click.echo(f"Task {task_id} removed.")
