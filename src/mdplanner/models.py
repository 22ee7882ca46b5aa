"""Data models for the Markdown planner.

Status and priority values are the exact strings stored in frontmatter
("in-progress" keeps its hyphen). Display labels live beside them so the
stored keys never have to change for presentation.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import StrEnum
from typing import Dict, List, Optional, Tuple


class Status(StrEnum):
    BACKLOG = "backlog"
    IN_PROGRESS = "in-progress"
    REVIEW = "review"
    DONE = "done"
    ARCHIVED = "archived"


class Priority(StrEnum):
    P0 = "p0"
    P1 = "p1"
    P2 = "p2"
    P3 = "p3"


class SortColumn(StrEnum):
    TITLE = "title"
    STATUS = "status"
    PRIORITY = "priority"
    START = "start"
    END = "end"
    ORDER = "order"


class SortDirection(StrEnum):
    ASC = "asc"
    DESC = "desc"


class GanttZoom(StrEnum):
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"


ALL_STATUSES: Tuple[Status, ...] = tuple(Status)
# Archived tasks never get a kanban column.
KANBAN_STATUSES: Tuple[Status, ...] = (Status.BACKLOG, Status.IN_PROGRESS, Status.REVIEW, Status.DONE)
ALL_PRIORITIES: Tuple[Priority, ...] = tuple(Priority)

STATUS_LABELS: Dict[Status, str] = {
    Status.BACKLOG: "Backlog",
    Status.IN_PROGRESS: "In Progress",
    Status.REVIEW: "Review",
    Status.DONE: "Done",
    Status.ARCHIVED: "Archived",
}
PRIORITY_LABELS: Dict[Priority, str] = {
    Priority.P0: "P0 Critical",
    Priority.P1: "P1 High",
    Priority.P2: "P2 Medium",
    Priority.P3: "P3 Low",
}
# lower weight = more urgent
PRIORITY_WEIGHT: Dict[Priority, int] = {p: i for i, p in enumerate(ALL_PRIORITIES)}

MAX_TITLE_LENGTH = 200


def now_iso() -> str:
    """UTC timestamp with millisecond precision, e.g. 2024-03-05T09:15:00.000Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class Task:
    """A single planner task, backed by one Markdown record.

    Fields:
        id: Filename slug without the .md extension.
        title: Non-empty, at most MAX_TITLE_LENGTH characters.
        description: Markdown body below the frontmatter (may be empty).
        start / end: Calendar dates; end is optional. start <= end.
        tags: Free-text labels, stored in the order written.
        order: Manual ordering key used by drag/reorder; not unique.
        created / updated: ISO timestamps, compared as strings.
    """
    id: str
    title: str
    start: date
    description: str = ""
    status: Status = Status.BACKLOG
    priority: Priority = Priority.P3
    end: Optional[date] = None
    tags: List[str] = field(default_factory=list)
    order: int = 0
    created: str = field(default_factory=now_iso)
    updated: str = field(default_factory=now_iso)

    def __repr__(self) -> str:  # pragma: no cover - convenience only
        return f"Task(id={self.id}, title={self.title}, status={self.status})"


@dataclass
class Project:
    """A named task folder under the planner root. task_count is informational."""
    name: str
    path: str
    task_count: int = 0


@dataclass(frozen=True)
class FilterState:
    """View configuration shared by the backlog, kanban and Gantt views.

    Empty filter tuples mean "no filter". Instances are immutable so the
    same object can be handed to observers as a snapshot.
    """
    status_filter: Tuple[Status, ...] = ()
    priority_filter: Tuple[Priority, ...] = ()
    tag_filter: Tuple[str, ...] = ()
    search_query: str = ""
    sort_column: SortColumn = SortColumn.ORDER
    sort_direction: SortDirection = SortDirection.ASC
