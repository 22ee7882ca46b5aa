"""Filter and sort pipeline for task views.

The pure functions apply_filters/apply_sort take an explicit FilterState.
FilterEngine owns the live state for one view and notifies subscribers
after every change.
"""
from __future__ import annotations
import dataclasses
import logging
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from mdplanner.models import (
    FilterState,
    Priority,
    PRIORITY_WEIGHT,
    SortColumn,
    SortDirection,
    Status,
    Task,
)

logger = logging.getLogger(__name__)

FilterListener = Callable[[FilterState], None]

# Missing end dates sort after every real date.
END_SENTINEL = date.max

SORT_KEYS: Dict[SortColumn, Callable[[Task], Any]] = {
    SortColumn.TITLE: lambda t: t.title,
    SortColumn.STATUS: lambda t: str(t.status),
    SortColumn.PRIORITY: lambda t: PRIORITY_WEIGHT[t.priority],
    SortColumn.START: lambda t: t.start,
    SortColumn.END: lambda t: t.end or END_SENTINEL,
    SortColumn.ORDER: lambda t: t.order,
}


def matches(task: Task, state: FilterState) -> bool:
    if state.status_filter and task.status not in state.status_filter:
        return False
    if state.priority_filter and task.priority not in state.priority_filter:
        return False
    # every selected tag must be present
    if state.tag_filter and not all(tag in task.tags for tag in state.tag_filter):
        return False
    if state.search_query:
        q = state.search_query.lower()
        if q not in task.title.lower() and q not in task.description.lower():
            return False
    return True


def apply_filters(tasks: Iterable[Task], state: FilterState) -> List[Task]:
    return [t for t in tasks if matches(t, state)]


def apply_sort(tasks: Iterable[Task], state: FilterState) -> List[Task]:
    """Return a sorted copy of tasks.

    Equal keys always fall back to created ascending, whatever the
    direction: the list is ordered by created first and Python's sort keeps
    equal elements in place even with reverse=True.
    """
    ordered = sorted(tasks, key=lambda t: t.created)
    ordered.sort(key=SORT_KEYS[state.sort_column], reverse=state.sort_direction == SortDirection.DESC)
    return ordered


def filter_and_sort(tasks: Iterable[Task], state: FilterState) -> List[Task]:
    return apply_sort(apply_filters(tasks, state), state)


def _toggled(values: Tuple[Any, ...], value: Any) -> Tuple[Any, ...]:
    if value in values:
        return tuple(v for v in values if v != value)
    return values + (value,)


class FilterEngine:
    """Holds the current FilterState of a view and its subscribers."""

    def __init__(self, state: Optional[FilterState] = None):
        self._state: FilterState = state or FilterState()
        self._listeners: List[FilterListener] = []

    @property
    def state(self) -> FilterState:
        return self._state

    # -------------------- mutations --------------------
    def set_state(self, **changes: Any) -> FilterState:
        """Shallow-merge changes into the state; omitted fields keep their value."""
        self._commit(dataclasses.replace(self._state, **_coerce(changes)))
        return self._state

    def reset(self) -> FilterState:
        self._commit(FilterState())
        return self._state

    def toggle_status(self, status: Status) -> None:
        self._commit(dataclasses.replace(self._state, status_filter=_toggled(self._state.status_filter, Status(status))))

    def toggle_priority(self, priority: Priority) -> None:
        self._commit(dataclasses.replace(self._state, priority_filter=_toggled(self._state.priority_filter, Priority(priority))))

    def toggle_tag(self, tag: str) -> None:
        self._commit(dataclasses.replace(self._state, tag_filter=_toggled(self._state.tag_filter, tag)))

    def set_search_query(self, query: str) -> None:
        self._commit(dataclasses.replace(self._state, search_query=query))

    def set_sort(self, column: SortColumn, direction: SortDirection = SortDirection.ASC) -> None:
        self._commit(dataclasses.replace(
            self._state, sort_column=SortColumn(column), sort_direction=SortDirection(direction)
        ))

    def toggle_sort(self, column: SortColumn) -> None:
        """Same column flips direction; a new column starts ascending."""
        column = SortColumn(column)
        if self._state.sort_column == column:
            direction = SortDirection.DESC if self._state.sort_direction == SortDirection.ASC else SortDirection.ASC
        else:
            direction = SortDirection.ASC
        self._commit(dataclasses.replace(self._state, sort_column=column, sort_direction=direction))

    # -------------------- queries --------------------
    def apply_filters(self, tasks: Iterable[Task]) -> List[Task]:
        return apply_filters(tasks, self._state)

    def apply_sort(self, tasks: Iterable[Task]) -> List[Task]:
        return apply_sort(tasks, self._state)

    def filter_and_sort(self, tasks: Iterable[Task]) -> List[Task]:
        return filter_and_sort(tasks, self._state)

    # -------------------- observers --------------------
    def subscribe(self, listener: FilterListener) -> Callable[[], None]:
        """Register listener; returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, state: FilterState) -> None:
        self._state = state
        logger.debug("Filter state changed: %s", state)
        # iterate over a copy: listeners may unsubscribe while being notified
        for listener in list(self._listeners):
            listener(state)


def _coerce(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Normalise raw setter input to the FilterState field types."""
    converters: Dict[str, Callable[[Any], Any]] = {
        "status_filter": lambda v: tuple(Status(s) for s in v),
        "priority_filter": lambda v: tuple(Priority(p) for p in v),
        "tag_filter": lambda v: tuple(str(t) for t in v),
        "search_query": str,
        "sort_column": SortColumn,
        "sort_direction": SortDirection,
    }
    out: Dict[str, Any] = {}
    for name, value in changes.items():
        if name not in converters:
            raise TypeError(f"Unknown filter field: {name}")
        out[name] = converters[name](value)
    return out
