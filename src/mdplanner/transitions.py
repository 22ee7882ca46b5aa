"""Status workflow.

VALID_TRANSITIONS is the only place the workflow is defined; adding a
status means adding a row here and nothing else.
"""
from __future__ import annotations
from typing import Dict, FrozenSet

from mdplanner.errors import TransitionError
from mdplanner.models import Status

VALID_TRANSITIONS: Dict[Status, FrozenSet[Status]] = {
    Status.BACKLOG: frozenset({Status.IN_PROGRESS, Status.ARCHIVED}),
    Status.IN_PROGRESS: frozenset({Status.REVIEW, Status.ARCHIVED}),
    Status.REVIEW: frozenset({Status.DONE, Status.IN_PROGRESS, Status.ARCHIVED}),
    Status.DONE: frozenset({Status.ARCHIVED}),
    Status.ARCHIVED: frozenset({Status.BACKLOG}),
}


def is_valid_transition(from_status: Status, to_status: Status) -> bool:
    if from_status == to_status:
        return True
    return to_status in VALID_TRANSITIONS[Status(from_status)]


def get_allowed_transitions(from_status: Status) -> FrozenSet[Status]:
    return VALID_TRANSITIONS[Status(from_status)]


def check_transition(from_status: Status, to_status: Status) -> None:
    """Raise TransitionError unless from_status -> to_status is allowed."""
    if not is_valid_transition(from_status, to_status):
        raise TransitionError(from_status, to_status, get_allowed_transitions(from_status))
