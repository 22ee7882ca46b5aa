"""Color & style helpers for terminal output.

Decisions:
- Truecolor preferred; falls back to 256-color cube if unsupported.
- Disables automatically when not a TTY unless FORCE_COLOR=1.
- Honors NO_COLOR for complete disable.
- Palette overrides come from PLANNER_COLOR_* variables (environment or the
  .env file loaded by config); they are read at call time so a .env loaded
  after import still applies.
"""
from __future__ import annotations
import os
import sys
from typing import Dict, Tuple

from mdplanner.models import Priority, Status

_TRUTHY = {"1", "true", "yes", "on"}
_ENABLE = "NO_COLOR" not in os.environ and (
    os.environ.get("FORCE_COLOR", "").lower() in _TRUTHY or sys.stdout.isatty()
)
_TRUECOLOR = _ENABLE and any(tok in os.environ.get("COLORTERM", "").lower() for tok in ("truecolor", "24bit"))

HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def _sgr(*params: int) -> str:
    """Select Graphic Rendition escape; empty when color is off."""
    if not _ENABLE:
        return ''
    return "\033[" + ';'.join(str(p) for p in params) + "m"


def _cube_index(rgb: Tuple[int, int, int]) -> int:
    """Nearest entry of the xterm 6x6x6 color cube."""
    r, g, b = (int(round(c / 255 * 5)) for c in rgb)
    return 16 + 36 * r + 6 * g + b


RESET = _sgr(0)
BOLD = _sgr(1)
DIM = _sgr(2)

DEFAULT_PALETTE: Dict[str, str] = {
    'PRIMARY': '#476EAE',
    'BACKLOG': '#48B3AF',
    'IN_PROGRESS': '#F6FF99',
    'REVIEW': '#F2A65A',
    'DONE': '#A7E399',
    'ARCHIVED': '#8A8A8A',
    'OVERDUE': '#E5484D',
}
PRIORITY_PALETTE_KEY: Dict[Priority, str] = {
    Priority.P0: 'OVERDUE',
    Priority.P1: 'REVIEW',
    Priority.P2: 'PRIMARY',
    Priority.P3: 'ARCHIVED',
}


def palette_hex(key: str) -> str:
    """Resolved hex for a palette key: PLANNER_COLOR_<KEY> or the default."""
    override = os.environ.get(f"PLANNER_COLOR_{key}", "").strip().lstrip('#')
    if len(override) == 6 and set(override) <= HEX_DIGITS:
        return '#' + override
    return DEFAULT_PALETTE[key]


def palette_rgb(key: str) -> Tuple[int, int, int]:
    digits = palette_hex(key)[1:]
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def palette_color(key: str) -> str:
    rgb = palette_rgb(key)
    if _TRUECOLOR:
        return _sgr(38, 2, *rgb)
    return _sgr(38, 5, _cube_index(rgb))


def status_color(status: Status) -> str:
    return palette_color(Status(status).name)


def priority_color(priority: Priority) -> str:
    return palette_color(PRIORITY_PALETTE_KEY[Priority(priority)])


def header_color() -> str:
    return palette_color('PRIMARY') + BOLD


def color(text: str, *styles: str) -> str:
    """Apply ANSI styles to a given text."""
    if not _ENABLE:
        return text
    return ''.join(styles) + text + RESET


__all__ = [
    'color', 'RESET', 'BOLD', 'DIM', 'DEFAULT_PALETTE', 'palette_hex', 'palette_rgb', 'palette_color',
    'status_color', 'priority_color', 'header_color',
]
