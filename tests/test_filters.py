# tests/test_filters.py

from __future__ import annotations

from datetime import date

import pytest

from mdplanner.filters import FilterEngine, apply_filters, apply_sort
from mdplanner.models import FilterState, Priority, SortColumn, SortDirection, Status


@pytest.fixture()
def tasks(make_task):
    return [
        make_task("write-docs", index=2, status=Status.BACKLOG, priority=Priority.P2,
                  tags=["docs"], description="Explain the API", order=2),
        make_task("fix-login", index=0, status=Status.IN_PROGRESS, priority=Priority.P0,
                  tags=["bug", "auth"], end=date(2024, 3, 4), order=1),
        make_task("ship-release", index=1, status=Status.REVIEW, priority=Priority.P0,
                  tags=["release", "auth"], end=date(2024, 3, 2), order=0),
    ]


def ids(items):
    return [t.id for t in items]


# -------------------- filters --------------------
def test_default_state_keeps_everything(tasks) -> None:
    assert ids(apply_filters(tasks, FilterState())) == ["write-docs", "fix-login", "ship-release"]


def test_status_and_priority_filters_compose_with_and(tasks) -> None:
    state = FilterState(status_filter=(Status.IN_PROGRESS, Status.BACKLOG), priority_filter=(Priority.P0,))
    assert ids(apply_filters(tasks, state)) == ["fix-login"]


def test_tag_filter_requires_every_selected_tag(tasks) -> None:
    assert ids(apply_filters(tasks, FilterState(tag_filter=("auth",)))) == ["fix-login", "ship-release"]
    assert ids(apply_filters(tasks, FilterState(tag_filter=("auth", "bug")))) == ["fix-login"]
    assert apply_filters(tasks, FilterState(tag_filter=("auth", "docs"))) == []


def test_search_matches_title_or_description_case_insensitively(tasks) -> None:
    assert ids(apply_filters(tasks, FilterState(search_query="LOGIN"))) == ["fix-login"]
    assert ids(apply_filters(tasks, FilterState(search_query="the api"))) == ["write-docs"]


def test_filters_are_idempotent(tasks) -> None:
    state = FilterState(tag_filter=("auth",), search_query="i")
    once = apply_filters(tasks, state)
    assert apply_filters(once, state) == once


# -------------------- sorting --------------------
def test_sort_by_priority_breaks_ties_by_created_in_both_directions(tasks) -> None:
    asc = apply_sort(tasks, FilterState(sort_column=SortColumn.PRIORITY))
    assert ids(asc) == ["fix-login", "ship-release", "write-docs"]
    desc = apply_sort(tasks, FilterState(sort_column=SortColumn.PRIORITY, sort_direction=SortDirection.DESC))
    # p0 pair still ordered by created (fix-login first) even when descending
    assert ids(desc) == ["write-docs", "fix-login", "ship-release"]


def test_missing_end_sorts_after_real_dates(tasks) -> None:
    asc = apply_sort(tasks, FilterState(sort_column=SortColumn.END))
    assert ids(asc) == ["ship-release", "fix-login", "write-docs"]
    desc = apply_sort(tasks, FilterState(sort_column=SortColumn.END, sort_direction=SortDirection.DESC))
    assert ids(desc) == ["write-docs", "fix-login", "ship-release"]


def test_sort_by_title_and_order(tasks) -> None:
    assert ids(apply_sort(tasks, FilterState(sort_column=SortColumn.TITLE))) == ["fix-login", "ship-release", "write-docs"]
    assert ids(apply_sort(tasks, FilterState())) == ["ship-release", "fix-login", "write-docs"]


def test_sort_does_not_mutate_input(tasks) -> None:
    before = list(tasks)
    apply_sort(tasks, FilterState(sort_column=SortColumn.TITLE, sort_direction=SortDirection.DESC))
    assert tasks == before


# -------------------- engine state --------------------
def test_toggles_add_then_remove() -> None:
    engine = FilterEngine()
    engine.toggle_status(Status.DONE)
    engine.toggle_priority("p1")
    engine.toggle_tag("ui")
    assert engine.state.status_filter == (Status.DONE,)
    assert engine.state.priority_filter == (Priority.P1,)
    assert engine.state.tag_filter == ("ui",)
    engine.toggle_status(Status.DONE)
    engine.toggle_tag("ui")
    assert engine.state.status_filter == ()
    assert engine.state.tag_filter == ()


def test_toggle_sort_flips_or_switches() -> None:
    engine = FilterEngine()
    engine.toggle_sort(SortColumn.ORDER)
    assert engine.state.sort_direction == SortDirection.DESC
    engine.toggle_sort(SortColumn.TITLE)
    assert (engine.state.sort_column, engine.state.sort_direction) == (SortColumn.TITLE, SortDirection.ASC)


def test_set_state_merges_and_rejects_unknown_fields() -> None:
    engine = FilterEngine()
    engine.set_state(search_query="bug", sort_column="priority")
    engine.set_state(tag_filter=["a"])
    assert engine.state.search_query == "bug"
    assert engine.state.sort_column == SortColumn.PRIORITY
    before = engine.state
    with pytest.raises(TypeError):
        engine.set_state(search_query="x", colour="red")
    assert engine.state is before


def test_reset_restores_defaults() -> None:
    engine = FilterEngine()
    engine.set_state(search_query="x", status_filter=["done"])
    assert engine.reset() == FilterState()


# -------------------- observers --------------------
def test_listeners_receive_snapshots_in_registration_order() -> None:
    engine = FilterEngine()
    calls = []
    engine.subscribe(lambda s: calls.append(("a", s.search_query)))
    engine.subscribe(lambda s: calls.append(("b", s.search_query)))
    engine.set_search_query("hello")
    assert calls == [("a", "hello"), ("b", "hello")]


def test_unsubscribe_during_notification_keeps_current_pass() -> None:
    engine = FilterEngine()
    calls = []
    unsubscribe_b = None

    def a(state):
        calls.append("a")
        unsubscribe_b()

    def b(state):
        calls.append("b")

    engine.subscribe(a)
    unsubscribe_b = engine.subscribe(b)
    engine.set_search_query("one")
    engine.set_search_query("two")
    assert calls == ["a", "b", "a"]


def test_snapshot_is_immutable() -> None:
    engine = FilterEngine()
    seen = []
    engine.subscribe(seen.append)
    engine.toggle_tag("x")
    with pytest.raises(AttributeError):
        seen[0].search_query = "changed"
