"""Gantt timeline framing: visible date range, grid buckets and the
date -> pixel axis shared by the grid and the bars.

Zoom policy:
    week    -> one bucket per day, width = unit_width
    month   -> one bucket per week (Monday start), width = unit_width
    quarter -> one bucket per calendar month, width = 2 * unit_width
"""
from __future__ import annotations
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from mdplanner.models import GanttZoom

DateLike = Union[date, datetime]

MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
MS_PER_DAY = 86_400_000


@dataclass(frozen=True)
class TimeUnit:
    """One grid column covering the half-open interval [start, end)."""
    label: str
    start: date
    end: date
    width: int


def calculate_date_range(
    starts: Iterable[Optional[date]],
    ends: Iterable[Optional[date]],
    padding_days: int = 7,
    today: Optional[date] = None,
) -> Tuple[date, date]:
    """Span every given date, padded by padding_days on both sides.

    With no dates at all the window is centred on today.
    """
    dates = [d for d in (*starts, *ends) if d]
    pad = timedelta(days=padding_days)
    if not dates:
        anchor = today or date.today()
        return anchor - pad, anchor + pad
    return min(dates) - pad, max(dates) + pad


def _day_label(d: date) -> str:
    return f"{MONTHS[d.month - 1]} {d.day}"


def _month_label(d: date) -> str:
    return f"{MONTHS[d.month - 1]} {d.year}"


def _next_month(d: date) -> date:
    if d.month == 12:
        return date(d.year + 1, 1, 1)
    return date(d.year, d.month + 1, 1)


def generate_time_units(
    min_date: date,
    max_date: date,
    zoom: GanttZoom,
    unit_width: int = 40,
) -> List[TimeUnit]:
    """Contiguous buckets covering [min_date, max_date] for the zoom level."""
    zoom = GanttZoom(zoom)
    units: List[TimeUnit] = []
    if zoom == GanttZoom.WEEK:
        current = min_date
        while current <= max_date:
            nxt = current + timedelta(days=1)
            units.append(TimeUnit(_day_label(current), current, nxt, unit_width))
            current = nxt
    elif zoom == GanttZoom.MONTH:
        current = min_date - timedelta(days=min_date.weekday())  # back to Monday
        while current <= max_date:
            nxt = current + timedelta(days=7)
            units.append(TimeUnit(_day_label(current), current, nxt, unit_width))
            current = nxt
    else:
        current = min_date.replace(day=1)
        while current <= max_date:
            nxt = _next_month(current)
            units.append(TimeUnit(_month_label(current), current, nxt, unit_width * 2))
            current = nxt
    return units


def get_timeline_width(units: Sequence[TimeUnit]) -> int:
    return sum(u.width for u in units)


def to_ms(value: DateLike) -> float:
    """Milliseconds since the epoch, treating plain dates as midnight."""
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    return (value - datetime(1970, 1, 1, tzinfo=value.tzinfo)).total_seconds() * 1000


def timeline_span_ms(units: Sequence[TimeUnit]) -> float:
    """Duration covered by the grid, first bucket start to last bucket end."""
    if not units:
        return 0.0
    return to_ms(units[-1].end) - to_ms(units[0].start)


def date_to_pixel(value: DateLike, min_date: DateLike, total_ms: float, total_width: float) -> float:
    """Linear position of value on the axis starting at min_date."""
    return (to_ms(value) - to_ms(min_date)) / total_ms * total_width
