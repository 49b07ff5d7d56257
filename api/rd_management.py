"""RD patient-management API: look up a patient by email and claim them.

The role dependency runs before the body is read, and the body is taken
loosely typed so that a malformed field is reported by the service as a
400 after the role check rather than as a 422 ahead of it.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from core.auth import require_roles
from database import models
from database.deps import get_db_write
from database.enums import CLINICIAN_ROLES
from schemas.care_schema import PatientIdentity, AssignPatientResponse
from services import care_relationship

router = APIRouter(prefix="/api/rd", tags=["rd"])

require_clinician = require_roles(*CLINICIAN_ROLES)


@router.post("/lookup-patient", response_model=PatientIdentity)
def lookup_patient(
    payload: Any = Body(None, examples=[{"email": "patient@example.com"}]),
    account: models.Account = Depends(require_clinician),
    db: Session = Depends(get_db_write),
):
    """Find a patient account by (case-insensitive, trimmed) email.

    Raises:
        UnauthorizedError: No session (401).
        ForbiddenError: Caller is not an RD or admin (403).
        ValidationError: Email missing or not a string (400).
        NotFoundError: No patient with that email (404).
    """
    email = care_relationship.body_field(payload, "email")
    return care_relationship.lookup_patient_by_email(db, account, email)


@router.post("/assign-patient", response_model=AssignPatientResponse, response_model_exclude_none=True)
def assign_patient(
    payload: Any = Body(None, examples=[{"patient_id": 42}]),
    account: models.Account = Depends(require_clinician),
    db: Session = Depends(get_db_write),
):
    """Assign a patient to the calling RD, reactivating a paused/discharged link.

    Raises:
        UnauthorizedError: No session (401).
        ForbiddenError: Caller is not an RD or admin (403).
        ValidationError: patient_id missing or not an integer (400).
        NotFoundError: No such patient (404).
        ConflictError: Already actively assigned (409).
    """
    patient_id = care_relationship.body_field(payload, "patient_id")
    _, reactivated = care_relationship.assign_patient(db, account, patient_id)
    return AssignPatientResponse(success=True, reactivated=True if reactivated else None)
