"""In-memory task collection for the active project.

Every mutation is written to the record store first and only committed to
memory once the write succeeded, so a failing disk leaves the collection at
its last committed value. Subscribers get a fresh list after each commit.
"""
from __future__ import annotations
import dataclasses
import logging
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Type, TypeVar, Union

from mdplanner.errors import NotFoundError, PersistenceError, ValidationError
from mdplanner.models import KANBAN_STATUSES, Priority, Status, Task, now_iso
from mdplanner.schema import title_to_slug, validate_date_range, validate_start, validate_title
from mdplanner.storage import Storage
from mdplanner.transitions import check_transition

logger = logging.getLogger(__name__)

TaskListener = Callable[[List[Task]], None]
E = TypeVar("E", Status, Priority)

IMMUTABLE_FIELDS = frozenset({"id", "created"})
EDITABLE_FIELDS = frozenset(
    f.name for f in dataclasses.fields(Task)
) - IMMUTABLE_FIELDS - {"updated"}


def is_overdue(task: Task, today: Optional[date] = None) -> bool:
    """Past its end date and not yet done/archived."""
    if not task.end:
        return False
    if task.status in (Status.DONE, Status.ARCHIVED):
        return False
    return task.end < (today or date.today())


def _enum_value(kind: Type[E], value: Any, name: str) -> E:
    try:
        return kind(value)
    except ValueError:
        allowed = ", ".join(str(v) for v in kind)
        raise ValidationError(f'invalid {name} "{value}". Allowed: {allowed}') from None


def _check_dates(start: Optional[date], end: Optional[date]) -> None:
    for problem in (validate_start(start), validate_date_range(start, end)):
        if problem:
            raise problem


class TaskStore:
    def __init__(self, records: Any = Storage):
        self._records = records
        self._tasks: List[Task] = []
        self._directory: Optional[Path] = None
        self._listeners: List[TaskListener] = []

    @property
    def directory(self) -> Optional[Path]:
        return self._directory

    # -------------------- loading --------------------
    def load(self, directory: Union[str, Path]) -> List[ValidationError]:
        """Replace the collection with the records in directory.

        Returns the records that could not be ingested; the rest are loaded.
        """
        self._directory = Path(directory)
        tasks, errors = self._records.read_tasks(self._directory)
        self._tasks = list(tasks)
        logger.info("Loaded %d tasks from %s (%d skipped)", len(self._tasks), self._directory, len(errors))
        self._notify()
        return list(errors)

    # -------------------- queries --------------------
    @property
    def tasks(self) -> List[Task]:
        return list(self._tasks)

    def find(self, task_id: str) -> Optional[Task]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def get(self, task_id: str) -> Task:
        task = self.find(task_id)
        if task is None:
            raise NotFoundError(task_id)
        return task

    def all_tags(self) -> List[str]:
        return sorted({tag for task in self._tasks for tag in task.tags})

    def overdue(self, today: Optional[date] = None) -> List[Task]:
        return [t for t in self._tasks if is_overdue(t, today)]

    def by_status(self, tasks: Optional[Iterable[Task]] = None) -> Dict[Status, List[Task]]:
        """Kanban columns; archived tasks are left out."""
        columns: Dict[Status, List[Task]] = {s: [] for s in KANBAN_STATUSES}
        for task in self._tasks if tasks is None else tasks:
            if task.status in columns:
                columns[task.status].append(task)
        return columns

    # -------------------- task operations --------------------
    def create(
        self,
        title: str,
        start: date,
        description: str = "",
        status: Optional[Status] = None,
        priority: Optional[Priority] = None,
        end: Optional[date] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> Task:
        directory = self._require_directory()
        title = title.strip()
        problem = validate_title(title)
        if problem:
            raise problem
        _check_dates(start, end)
        status = _enum_value(Status, status or Status.BACKLOG, "status")
        priority = _enum_value(Priority, priority or Priority.P3, "priority")
        now = now_iso()
        task = Task(
            id=self._records.generate_identity(title, directory),
            title=title,
            description=description,
            status=status,
            priority=priority,
            start=start,
            end=end,
            tags=list(tags or []),
            order=len(self._tasks),
            created=now,
            updated=now,
        )
        self._records.write_task(task, directory)
        self._tasks.append(task)
        logger.info("Created task %s", task.id)
        self._notify()
        return task

    def update(self, task_id: str, **changes: Any) -> Task:
        """Apply field changes to a task.

        A new title moves the record to a fresh id: the new record is written
        before the old one is removed, and removed again if that delete fails.
        """
        directory = self._require_directory()
        idx = self._index(task_id)
        existing = self._tasks[idx]

        bad = set(changes) - EDITABLE_FIELDS
        if bad:
            raise ValidationError(f"cannot change field(s): {', '.join(sorted(bad))}")
        if "status" in changes:
            changes["status"] = _enum_value(Status, changes["status"], "status")
            check_transition(existing.status, changes["status"])
        if "priority" in changes:
            changes["priority"] = _enum_value(Priority, changes["priority"], "priority")
        if "title" in changes:
            changes["title"] = str(changes["title"]).strip()
            problem = validate_title(changes["title"])
            if problem:
                raise problem
        if "tags" in changes:
            changes["tags"] = list(changes["tags"] or [])
        updated = dataclasses.replace(existing, **changes, updated=now_iso())
        _check_dates(updated.start, updated.end)

        if updated.title != existing.title and title_to_slug(updated.title) != existing.id:
            updated.id = self._records.generate_identity(updated.title, directory)
            self._move(existing, updated, directory)
            logger.info("Renamed task %s -> %s", existing.id, updated.id)
        else:
            self._records.write_task(updated, directory)
            logger.info("Updated task %s (%s)", updated.id, ", ".join(sorted(changes)) or "no fields")

        self._tasks[idx] = updated
        self._notify()
        return updated

    def delete(self, task_id: str) -> None:
        directory = self._require_directory()
        idx = self._index(task_id)
        self._records.delete_task(task_id, directory)
        del self._tasks[idx]
        logger.info("Deleted task %s", task_id)
        self._notify()

    def reorder(self, task_id: str, new_order: int) -> Task:
        return self.update(task_id, order=int(new_order))

    # -------------------- observers --------------------
    def subscribe(self, listener: TaskListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -------------------- internals --------------------
    def _move(self, existing: Task, updated: Task, directory: Path) -> None:
        self._records.write_task(updated, directory)
        try:
            self._records.delete_task(existing.id, directory)
        except PersistenceError as exc:
            logger.warning("Rename of %s failed; removing new record %s", existing.id, updated.id)
            try:
                self._records.delete_task(updated.id, directory)
            except PersistenceError as cleanup_exc:
                logger.error("Could not remove %s after failed rename: %s", updated.id, cleanup_exc)
                raise PersistenceError(f"{exc}; duplicate record {updated.id} may remain") from exc
            raise

    def _index(self, task_id: str) -> int:
        for i, task in enumerate(self._tasks):
            if task.id == task_id:
                return i
        raise NotFoundError(task_id)

    def _require_directory(self) -> Path:
        if self._directory is None:
            raise PersistenceError("no project loaded")
        return self._directory

    def _notify(self) -> None:
        snapshot = list(self._tasks)
        for listener in list(self._listeners):
            listener(snapshot)
