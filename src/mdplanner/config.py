"""Settings loaded from environment variables (+ optional .env).

Real environment variables win over values in .env. Malformed values fall
back to the defaults instead of failing at startup.
"""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from mdplanner.models import GanttZoom

ENV_PREFIX = "PLANNER"
DEFAULT_ROOT = "~/planner-data"


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Optional[str]) -> Optional[Path]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return Path(default).expanduser() if default else None
    return Path(raw).expanduser()


def _env_zoom(name: str, default: GanttZoom) -> GanttZoom:
    raw = (os.getenv(name) or "").strip().lower()
    try:
        return GanttZoom(raw) if raw else default
    except ValueError:
        return default


def _env_log_level(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip().upper()
    level = logging.getLevelName(raw) if raw else default
    return level if isinstance(level, int) else default


@dataclass
class Settings:
    root: Path
    project: Optional[str]
    zoom: GanttZoom
    unit_width: int
    log_level: int
    log_file: Optional[Path]


def load_settings(dotenv_path: Optional[Path] = None) -> Settings:
    load_dotenv(dotenv_path=dotenv_path, override=False)
    return Settings(
        root=_env_path(_k("ROOT"), DEFAULT_ROOT) or Path(DEFAULT_ROOT).expanduser(),
        project=(os.getenv(_k("PROJECT")) or "").strip() or None,
        zoom=_env_zoom(_k("ZOOM"), GanttZoom.MONTH),
        unit_width=max(1, _env_int(_k("UNIT_WIDTH"), 4)),
        log_level=_env_log_level(_k("LOG_LEVEL"), logging.WARNING),
        log_file=_env_path(_k("LOG_FILE"), None),
    )
