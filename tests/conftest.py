# tests/conftest.py

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path
from typing import Callable

import pytest

from mdplanner.models import Priority, Status, Task
from mdplanner.storage import Storage
from mdplanner.store import TaskStore


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """setup_logging() binds handlers to whatever stderr the CLI runner had."""
    yield
    logger = logging.getLogger("mdplanner")
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.setLevel(logging.NOTSET)


@pytest.fixture()
def project_dir(tmp_path: Path) -> Path:
    path = tmp_path / "demo"
    path.mkdir()
    return path


@pytest.fixture()
def make_task() -> Callable[..., Task]:
    """
    Task factory with deterministic timestamps.

    created defaults to a fixed minute plus the given index so ordering by
    created is predictable in sort tests.
    """

    def _make(
        task_id: str,
        *,
        title: str | None = None,
        index: int = 0,
        status: Status = Status.BACKLOG,
        priority: Priority = Priority.P3,
        start: date = date(2024, 3, 1),
        end: date | None = None,
        tags: list[str] | None = None,
        order: int = 0,
        description: str = "",
    ) -> Task:
        stamp = f"2024-01-01T00:{index:02d}:00.000Z"
        return Task(
            id=task_id,
            title=title or task_id.replace("-", " ").title(),
            description=description,
            status=status,
            priority=priority,
            start=start,
            end=end,
            tags=list(tags or []),
            order=order,
            created=stamp,
            updated=stamp,
        )

    return _make


@pytest.fixture()
def seeded_dir(project_dir: Path, make_task) -> Path:
    """Project folder holding three backlog tasks written through Storage."""
    for i, slug in enumerate(("alpha", "beta", "gamma")):
        Storage.write_task(make_task(slug, index=i, order=i, tags=["core"] if i else ["core", "ui"]), project_dir)
    return project_dir


@pytest.fixture()
def store(seeded_dir: Path) -> TaskStore:
    s = TaskStore()
    assert s.load(seeded_dir) == []
    return s
