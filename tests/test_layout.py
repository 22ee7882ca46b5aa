# tests/test_layout.py

from __future__ import annotations

from datetime import date

import pytest

from mdplanner.layout import (
    BAR_HEIGHT,
    MIN_BAR_WIDTH,
    ROW_HEIGHT,
    build_gantt_layout,
    calculate_bars,
    get_total_height,
)
from mdplanner.models import GanttZoom
from mdplanner.timeline import MS_PER_DAY

ORIGIN = date(2024, 3, 1)
TEN_DAYS = 10 * MS_PER_DAY


def test_bars_stack_by_start_then_order(make_task) -> None:
    tasks = [
        make_task("late", start=date(2024, 3, 5), end=date(2024, 3, 6)),
        make_task("second", start=date(2024, 3, 2), order=2),
        make_task("first", start=date(2024, 3, 2), order=1),
    ]
    bars = calculate_bars(tasks, ORIGIN, TEN_DAYS, 1000)
    assert [b.task_id for b in bars] == ["first", "second", "late"]
    assert [b.y for b in bars] == [0, ROW_HEIGHT, 2 * ROW_HEIGHT]
    assert all(b.height == BAR_HEIGHT for b in bars)


def test_bar_position_and_width_follow_the_date_axis(make_task) -> None:
    bar = calculate_bars([make_task("a", start=date(2024, 3, 3), end=date(2024, 3, 6))], ORIGIN, TEN_DAYS, 1000)[0]
    assert bar.x == pytest.approx(200)
    assert bar.width == pytest.approx(300)


def test_missing_end_is_drawn_one_day_long(make_task) -> None:
    task = make_task("open", start=date(2024, 3, 3))
    bar = calculate_bars([task], ORIGIN, TEN_DAYS, 1000)[0]
    assert bar.width == pytest.approx(100)
    assert task.end is None


def test_zero_duration_bar_gets_minimum_width(make_task) -> None:
    task = make_task("zero", start=date(2024, 3, 3), end=date(2024, 3, 3))
    bar = calculate_bars([task], ORIGIN, TEN_DAYS, 1000)[0]
    assert bar.width == MIN_BAR_WIDTH


def test_zoomed_out_bars_never_shrink_below_minimum(make_task) -> None:
    tasks = [make_task(f"t{i}", start=date(2024, 3, 1 + i)) for i in range(5)]
    bars = calculate_bars(tasks, ORIGIN, 3650 * MS_PER_DAY, 200)
    assert all(b.width >= MIN_BAR_WIDTH for b in bars)


def test_total_height() -> None:
    assert get_total_height(0) == 6
    assert get_total_height(3) == 3 * ROW_HEIGHT + 6


def test_empty_layout_still_has_a_timeline() -> None:
    layout = build_gantt_layout([], GanttZoom.WEEK, today=date(2024, 6, 15))
    assert (layout.min_date, layout.max_date) == (date(2024, 6, 8), date(2024, 6, 22))
    assert len(layout.units) == 15
    assert layout.width == 15 * 40
    assert layout.bars == []
    assert layout.height == get_total_height(0)


def test_layout_bars_line_up_with_grid(make_task) -> None:
    tasks = [
        make_task("a", start=date(2024, 3, 6), end=date(2024, 3, 13)),
        make_task("b", start=date(2024, 4, 1)),
    ]
    layout = build_gantt_layout(tasks, GanttZoom.MONTH, unit_width=70)
    # month grid starts on the Monday before the padded range start
    assert layout.units[0].start == date(2024, 2, 26)
    first = layout.bars[0]
    # 2024-03-06 is 9 days after the grid origin; one week = 70 px
    assert first.x == pytest.approx(90)
    assert first.width == pytest.approx(70)
    assert all(0 <= b.x <= layout.width for b in layout.bars)
