"""Enumerations persisted as plain strings on the ORM models."""

from enum import Enum


class Role(str, Enum):
    PATIENT = "patient"
    RD = "rd"
    ADMIN = "admin"


# Roles with standing in the RD area
CLINICIAN_ROLES = (Role.RD.value, Role.ADMIN.value)


class AssessmentStatus(str, Enum):
    SUBMITTED = "submitted"
    REVIEWED = "reviewed"
    APPROVED = "approved"


class AssignmentStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    DISCHARGED = "discharged"
