"""Frontmatter validation and slug rules for task records.

Invalid status/priority values are reported with the default they would
fall back to, but any reported problem makes the whole record invalid and
it is left out of the load.
"""
from __future__ import annotations
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

from mdplanner.errors import ValidationError
from mdplanner.models import MAX_TITLE_LENGTH, Priority, Status, now_iso

SLUG_MAX_LENGTH = 80


@dataclass
class FrontmatterResult:
    valid: bool
    errors: List[ValidationError] = field(default_factory=list)
    fields: Dict[str, Any] = field(default_factory=dict)


def _as_date(value: Any) -> Optional[date]:
    """YAML gives date objects for bare dates; quoted ones arrive as str."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def _as_timestamp(value: Any) -> Optional[str]:
    if isinstance(value, datetime):
        return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def validate_title(title: str, filename: Optional[str] = None) -> Optional[ValidationError]:
    if not title:
        return ValidationError("title is required and must be non-empty", filename)
    if len(title) > MAX_TITLE_LENGTH:
        return ValidationError(f"title exceeds {MAX_TITLE_LENGTH} characters", filename)
    return None


def validate_start(start: Optional[date], filename: Optional[str] = None) -> Optional[ValidationError]:
    if start is None:
        return ValidationError("start date is required", filename)
    return None


def validate_date_range(start: Optional[date], end: Optional[date], filename: Optional[str] = None) -> Optional[ValidationError]:
    if start and end and start > end:
        return ValidationError(f"start date ({start}) must be <= end date ({end})", filename)
    return None


def validate_frontmatter(data: Mapping[str, Any], filename: str) -> FrontmatterResult:
    """Check raw frontmatter and fill in defaults for optional fields."""
    errors: List[ValidationError] = []

    raw_title = data.get("title")
    title = raw_title.strip() if isinstance(raw_title, str) else ""
    problem = validate_title(title, filename)
    if problem:
        errors.append(problem)

    status = Status.BACKLOG
    if data.get("status") is not None:
        try:
            status = Status(str(data["status"]).lower())
        except ValueError:
            errors.append(ValidationError(f'invalid status "{data["status"]}", defaulting to backlog', filename))

    priority = Priority.P3
    if data.get("priority") is not None:
        try:
            priority = Priority(str(data["priority"]).lower())
        except ValueError:
            errors.append(ValidationError(f'invalid priority "{data["priority"]}", defaulting to p3', filename))

    start: Optional[date] = None
    try:
        start = _as_date(data.get("start"))
    except ValueError:
        errors.append(ValidationError(f'start date "{data.get("start")}" is not a valid date', filename))
    else:
        problem = validate_start(start, filename)
        if problem:
            errors.append(problem)

    end: Optional[date] = None
    try:
        end = _as_date(data.get("end"))
    except ValueError:
        errors.append(ValidationError(f'end date "{data.get("end")}" is not a valid date', filename))

    problem = validate_date_range(start, end, filename)
    if problem:
        errors.append(problem)

    raw_tags = data.get("tags")
    tags = [str(t) for t in raw_tags] if isinstance(raw_tags, list) else []

    raw_order = data.get("order")
    order = int(raw_order) if isinstance(raw_order, (int, float)) and not isinstance(raw_order, bool) else 0

    now = now_iso()
    return FrontmatterResult(
        valid=not errors,
        errors=errors,
        fields={
            "title": title,
            "status": status,
            "priority": priority,
            "start": start,
            "end": end,
            "tags": tags,
            "order": order,
            "created": _as_timestamp(data.get("created")) or now,
            "updated": _as_timestamp(data.get("updated")) or now,
        },
    )


def title_to_slug(title: str) -> str:
    slug = re.sub(r"[^a-z0-9\s-]", "", title.lower())
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug).strip("-")
    return slug[:SLUG_MAX_LENGTH]
