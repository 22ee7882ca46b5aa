"""Persistence helpers (read/write/delete) for Markdown task records.

One task per file: ``<id>.md`` with a YAML frontmatter block followed by
the description body. Reads are best-effort: a broken file becomes a
ValidationError in the returned list and the other files still load.
"""
from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from mdplanner.errors import PersistenceError, ValidationError
from mdplanner.models import Task
from mdplanner.schema import title_to_slug, validate_frontmatter

logger = logging.getLogger(__name__)

RECORD_SUFFIX = ".md"
FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)^---[ \t]*\r?\n?(.*)\Z", re.DOTALL | re.MULTILINE)

PathLike = Union[str, Path]


@dataclass
class ParseResult:
    task: Optional[Task]
    errors: List[ValidationError] = field(default_factory=list)


def split_frontmatter(content: str) -> Tuple[Dict[str, Any], str]:
    """Return (metadata, body). Content without a frontmatter block has no metadata."""
    match = FRONTMATTER_RE.match(content)
    if not match:
        return {}, content
    data = yaml.safe_load(match.group(1)) or {}
    if not isinstance(data, dict):
        raise ValueError("frontmatter is not a mapping")
    return data, match.group(2)


def parse_task_markdown(content: str, filename: str) -> ParseResult:
    try:
        data, body = split_frontmatter(content)
    except (yaml.YAMLError, ValueError) as exc:
        return ParseResult(None, [ValidationError(f"failed to parse markdown: {exc}", filename)])
    result = validate_frontmatter(data, filename)
    if not result.valid:
        return ParseResult(None, result.errors)
    task = Task(id=filename[: -len(RECORD_SUFFIX)] if filename.endswith(RECORD_SUFFIX) else filename,
                description=body.strip(), **result.fields)
    return ParseResult(task)


def serialize_task(task: Task) -> str:
    """Render a task as frontmatter + body. ``end`` is omitted when unset."""
    meta: Dict[str, Any] = {
        "title": task.title,
        "status": str(task.status),
        "priority": str(task.priority),
        "start": task.start,
    }
    if task.end:
        meta["end"] = task.end
    meta.update({
        "tags": list(task.tags),
        "order": task.order,
        "created": task.created,
        "updated": task.updated,
    })
    header = yaml.safe_dump(meta, sort_keys=False, allow_unicode=True, default_flow_style=False)
    body = f"\n{task.description}\n" if task.description else ""
    return f"---\n{header}---\n{body}"


class Storage:
    @staticmethod
    def record_path(task_id: str, directory: PathLike) -> Path:
        return Path(directory) / f"{task_id}{RECORD_SUFFIX}"

    @staticmethod
    def read_tasks(directory: PathLike) -> Tuple[List[Task], List[ValidationError]]:
        """Parse every *.md file in directory.

        Missing/unreadable directory -> no tasks and a single error.
        """
        directory = Path(directory)
        tasks: List[Task] = []
        errors: List[ValidationError] = []
        try:
            files = sorted(p for p in directory.iterdir() if p.is_file() and p.suffix == RECORD_SUFFIX)
        except OSError as exc:
            logger.warning("Could not read directory %s: %s", directory, exc)
            return [], [ValidationError(f"Could not read directory: {directory}")]
        for path in files:
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                errors.append(ValidationError(f"could not read file: {exc}", path.name))
                continue
            result = parse_task_markdown(content, path.name)
            if result.task:
                tasks.append(result.task)
            errors.extend(result.errors)
        if errors:
            logger.warning("Skipped %d record(s) in %s", len(errors), directory)
        logger.debug("Read %d tasks from %s (%d errors)", len(tasks), directory, len(errors))
        return tasks, errors

    @staticmethod
    def write_task(task: Task, directory: PathLike) -> Path:
        """Persist task, creating directory if needed; overwrites an existing record."""
        path = Storage.record_path(task.id, directory)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(serialize_task(task), encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(f"could not write {path}: {exc}") from exc
        return path

    @staticmethod
    def delete_task(task_id: str, directory: PathLike) -> None:
        path = Storage.record_path(task_id, directory)
        try:
            path.unlink()
        except OSError as exc:
            raise PersistenceError(f"could not delete {path}: {exc}") from exc

    @staticmethod
    def generate_identity(title: str, directory: PathLike) -> str:
        """Slug for title that does not clash with a record in directory.

        Collisions get -2, -3, ... appended; an empty slug becomes "untitled".
        """
        base = title_to_slug(title) or "untitled"
        candidate = base
        suffix = 2
        while Storage.record_path(candidate, directory).exists():
            candidate = f"{base}-{suffix}"
            suffix += 1
        return candidate
