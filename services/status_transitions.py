"""Allowed status transitions for assessments and RD/patient assignments.

Statuses only move along the edges listed here; anything else raises
`InvalidStatusTransitionError`.
"""

from typing import Dict, FrozenSet, Type
from enum import Enum

from core.exceptions import InvalidStatusTransitionError, ValidationError
from database.enums import AssessmentStatus, AssignmentStatus

ASSESSMENT_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    AssessmentStatus.SUBMITTED.value: frozenset({AssessmentStatus.REVIEWED.value, AssessmentStatus.APPROVED.value}),
    AssessmentStatus.REVIEWED.value: frozenset({AssessmentStatus.APPROVED.value}),
    AssessmentStatus.APPROVED.value: frozenset(),
}

ASSIGNMENT_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    AssignmentStatus.ACTIVE.value: frozenset({AssignmentStatus.PAUSED.value, AssignmentStatus.DISCHARGED.value}),
    AssignmentStatus.PAUSED.value: frozenset({AssignmentStatus.ACTIVE.value, AssignmentStatus.DISCHARGED.value}),
    AssignmentStatus.DISCHARGED.value: frozenset({AssignmentStatus.ACTIVE.value}),
}


def parse_status(enum_cls: Type[Enum], value, field: str = "status") -> str:
    """Return the canonical string for `value` or raise `ValidationError`."""
    if not value:
        raise ValidationError(f"{field} is required", field=field)
    try:
        return enum_cls(str(value).strip().lower()).value
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field} must be one of: {allowed}", field=field)


def is_allowed(table: Dict[str, FrozenSet[str]], current: str, requested: str) -> bool:
    return requested in table.get(current, frozenset())


def check_transition(entity: str, table: Dict[str, FrozenSet[str]], current: str, requested: str) -> str:
    """Validate a status change against `table` and return the new status.

    Raises:
        InvalidStatusTransitionError: If the edge is not in the table.
    """
    if not is_allowed(table, current, requested):
        raise InvalidStatusTransitionError(entity, current, requested)
    return requested
