"""Terminal renderers: kanban columns, backlog table and a text Gantt chart.

Renderers return lines instead of printing so the command layer decides
where output goes. Archived tasks never get a kanban column.
"""
from __future__ import annotations
import math
import re
from datetime import date
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from mdplanner.layout import GanttLayout
from mdplanner.models import KANBAN_STATUSES, PRIORITY_LABELS, STATUS_LABELS, Status, Task
from mdplanner.store import is_overdue
from mdplanner.theme import DIM, color, header_color, palette_color, priority_color, status_color

MIN_COL_WIDTH = 18
SEP = " | "
ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")
GANTT_LABEL_WIDTH = 24
BAR_CHAR = "█"


def visible_len(s: str) -> int:
    return len(ANSI_RE.sub('', s))


def _pad(s: str, width: int) -> str:
    pad = width - visible_len(s)
    return s + ' ' * pad if pad > 0 else s


def _truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    return text[: max(0, width - 1)] + "…"


class KanbanBoard:
    def __init__(self, columns: Mapping[Status, Sequence[Task]], today: Optional[date] = None):
        self.columns: Dict[Status, List[Task]] = {s: list(columns.get(s, [])) for s in KANBAN_STATUSES}
        self.today = today

    # ---- width calculation ----
    def compute_column_widths(self, term_width: int) -> Dict[Status, int]:
        sep_total = len(SEP) * (len(KANBAN_STATUSES) - 1)
        widths: Dict[Status, int] = {}
        for status in KANBAN_STATUSES:
            longest = len(STATUS_LABELS[status])
            for t in self.columns[status]:
                longest = max(longest, len(self._card_prefix(t)) + len(t.title))
            widths[status] = max(MIN_COL_WIDTH, longest)
        total = sum(widths.values()) + sep_total
        if total > term_width:
            target_space = max(term_width - sep_total, len(KANBAN_STATUSES) * MIN_COL_WIDTH)
            while sum(widths.values()) > target_space:
                widest = max(KANBAN_STATUSES, key=lambda s: widths[s])
                if widths[widest] <= MIN_COL_WIDTH:
                    break
                widths[widest] -= 1
        else:
            extra = term_width - total
            i = 0
            while extra > 0:
                widths[KANBAN_STATUSES[i % len(KANBAN_STATUSES)]] += 1
                extra -= 1
                i += 1
        return widths

    # ---- wrapping ----
    @staticmethod
    def _card_prefix(task: Task) -> str:
        return f"[{task.priority}] "

    def wrap_task(self, task: Task, col_width: int) -> List[str]:
        prefix = self._card_prefix(task)
        limit = max(1, col_width - len(prefix))
        lines: List[str] = []
        current = ''
        for w in (task.title or '<untitled>').split():
            candidate = w if not current else current + ' ' + w
            if len(candidate) <= limit:
                current = candidate
            else:
                if current:
                    lines.append(current)
                current = w[:limit]
        if current:
            lines.append(current)
        title_style = palette_color('OVERDUE') if is_overdue(task, self.today) else status_color(task.status)
        out: List[str] = []
        for idx, raw in enumerate(lines):
            lead = color(prefix, priority_color(task.priority)) if idx == 0 else ' ' * len(prefix)
            out.append(lead + color(raw, title_style))
        return out

    # ---- rendering ----
    def render(self, term_width: int = 120) -> List[str]:
        widths = self.compute_column_widths(term_width)
        wrapped: Dict[Status, List[str]] = {}
        for status in KANBAN_STATUSES:
            acc: List[str] = []
            for t in self.columns[status]:
                acc.extend(self.wrap_task(t, widths[status]))
            wrapped[status] = acc or [color('(empty)', DIM)]
        lines = [
            SEP.join(_pad(color(STATUS_LABELS[s].upper(), header_color()), widths[s]) for s in KANBAN_STATUSES),
            SEP.join(color('-' * widths[s], header_color()) for s in KANBAN_STATUSES),
        ]
        rows = max(len(wrapped[s]) for s in KANBAN_STATUSES)
        for r in range(rows):
            cells = [
                _pad(wrapped[s][r], widths[s]) if r < len(wrapped[s]) else ' ' * widths[s]
                for s in KANBAN_STATUSES
            ]
            lines.append(SEP.join(cells))
        return lines

    def __str__(self) -> str:
        return ', '.join(f'{STATUS_LABELS[s]}: {len(self.columns[s])} tasks' for s in KANBAN_STATUSES)


# ---- backlog table ----
BACKLOG_COLUMNS: Tuple[Tuple[str, int], ...] = (
    ("ID", 28), ("TITLE", 36), ("STATUS", 12), ("PRIORITY", 12), ("START", 10), ("END", 10), ("TAGS", 20),
)


def render_backlog(tasks: Sequence[Task], today: Optional[date] = None) -> List[str]:
    header = ' '.join(_pad(color(name, header_color()), width) for name, width in BACKLOG_COLUMNS)
    lines = [header]
    for t in tasks:
        end_text = t.end.isoformat() if t.end else '-'
        if is_overdue(t, today):
            end_text = color(end_text, palette_color('OVERDUE'))
        cells = [
            _truncate(t.id, 28),
            _truncate(t.title, 36),
            color(STATUS_LABELS[t.status], status_color(t.status)),
            color(PRIORITY_LABELS[t.priority], priority_color(t.priority)),
            t.start.isoformat(),
            end_text,
            _truncate(', '.join(t.tags), 20),
        ]
        lines.append(' '.join(_pad(cell, width) for cell, (_, width) in zip(cells, BACKLOG_COLUMNS)))
    if not tasks:
        lines.append(color('(no tasks)', DIM))
    return lines


# ---- gantt ----
def render_gantt(layout: GanttLayout, label_width: int = GANTT_LABEL_WIDTH, today: Optional[date] = None) -> List[str]:
    """Draw each bar as a run of block characters; one character per layout pixel."""
    header = [' '] * layout.width
    next_free = 0
    pos = 0
    for unit in layout.units:
        if pos >= next_free and pos + len(unit.label) <= layout.width:
            header[pos:pos + len(unit.label)] = unit.label
            next_free = pos + len(unit.label) + 1
        pos += unit.width
    lines = [' ' * label_width + ' ' + color(''.join(header), header_color())]
    for bar in layout.bars:
        start = min(layout.width, int(math.floor(bar.x)))
        length = max(1, int(round(bar.width)))
        end = min(layout.width, start + length)
        style = palette_color('OVERDUE') if is_overdue(bar.task, today) else status_color(bar.task.status)
        row = ' ' * start + color(BAR_CHAR * (end - start), style) + ' ' * (layout.width - end)
        lines.append(_pad(_truncate(bar.task.title, label_width), label_width) + ' ' + row)
    if not layout.bars:
        lines.append(color('(no tasks)', DIM))
    return lines
