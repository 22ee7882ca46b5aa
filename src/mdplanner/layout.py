"""Gantt bar geometry.

Rows are stacked by start date then manual order; that ordering is fixed
and independent of whatever sort the backlog view is using.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, List, Optional

from mdplanner.models import GanttZoom, Task
from mdplanner.timeline import (
    TimeUnit,
    calculate_date_range,
    date_to_pixel,
    generate_time_units,
    get_timeline_width,
    timeline_span_ms,
    to_ms,
)

logger = logging.getLogger(__name__)

BAR_HEIGHT = 28
BAR_GAP = 6
ROW_HEIGHT = BAR_HEIGHT + BAR_GAP
LABEL_COLUMN_WIDTH = 200
MIN_BAR_WIDTH = 20


@dataclass
class GanttBar:
    task_id: str
    x: float
    y: float
    width: float
    height: float
    task: Task


@dataclass
class GanttLayout:
    """Everything a renderer needs to draw one chart."""
    min_date: date
    max_date: date
    units: List[TimeUnit]
    bars: List[GanttBar]
    width: int
    height: int


def _bar_end(task: Task) -> date:
    # open-ended tasks are drawn one day long; the task itself is not changed
    return task.end or task.start + timedelta(days=1)


def calculate_bars(
    tasks: Iterable[Task],
    min_date: date,
    total_ms: float,
    total_width: float,
    min_width: float = MIN_BAR_WIDTH,
) -> List[GanttBar]:
    ordered = sorted(tasks, key=lambda t: (t.start, t.order))
    bars: List[GanttBar] = []
    for row, task in enumerate(ordered):
        x = date_to_pixel(task.start, min_date, total_ms, total_width)
        duration_ms = to_ms(_bar_end(task)) - to_ms(task.start)
        width = max(duration_ms / total_ms * total_width, min_width)
        bars.append(GanttBar(task.id, x, row * ROW_HEIGHT, width, BAR_HEIGHT, task))
    return bars


def get_total_height(bar_count: int) -> int:
    return bar_count * ROW_HEIGHT + BAR_GAP


def get_row_height() -> int:
    return ROW_HEIGHT


def get_label_column_width() -> int:
    return LABEL_COLUMN_WIDTH


def build_gantt_layout(
    tasks: Iterable[Task],
    zoom: GanttZoom,
    unit_width: int = 40,
    min_width: float = MIN_BAR_WIDTH,
    today: Optional[date] = None,
) -> GanttLayout:
    """Frame the tasks, build the grid for zoom and place one bar per task."""
    tasks = list(tasks)
    min_date, max_date = calculate_date_range(
        [t.start for t in tasks], [t.end for t in tasks], today=today
    )
    units = generate_time_units(min_date, max_date, zoom, unit_width)
    width = get_timeline_width(units)
    # the grid may start before min_date (week/month snapping), so bars use
    # the first bucket as their origin to stay aligned with the columns
    origin = units[0].start
    bars = calculate_bars(tasks, origin, timeline_span_ms(units), width, min_width)
    logger.debug("Gantt layout zoom=%s units=%d bars=%d width=%d", zoom, len(units), len(bars), width)
    return GanttLayout(min_date, max_date, units, bars, width, get_total_height(len(bars)))
