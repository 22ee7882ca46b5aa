"""Error types raised by the planner.

Ingestion problems are collected as ValidationError instances and returned
in bulk; everything else is raised for the single operation that failed.
"""
from __future__ import annotations
from typing import FrozenSet, Optional


class PlannerError(Exception):
    """Base class for all planner errors."""


class ValidationError(PlannerError):
    """Malformed or missing task fields."""

    def __init__(self, message: str, filename: Optional[str] = None):
        self.message = message
        self.filename = filename
        super().__init__(f"{filename}: {message}" if filename else message)


class TransitionError(PlannerError):
    """A status change the workflow does not allow."""

    def __init__(self, current: str, attempted: str, allowed: FrozenSet[str]):
        self.current = current
        self.attempted = attempted
        self.allowed = allowed
        allowed_text = ", ".join(sorted(allowed)) or "none"
        super().__init__(f"Invalid state transition: {current} -> {attempted}. Allowed: {allowed_text}")


class NotFoundError(PlannerError):
    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task not found: {task_id}")


class PersistenceError(PlannerError):
    """The record store could not read, write or delete a file."""
