"""Row-level authorization for patient-scoped records.

A single predicate decides whether a caller may read or write one
patient's assessment, nutrient targets or symptom logs. Patients see only
their own rows; RDs and admins see a patient's rows only while an active
assignment links them to that patient.
"""

from enum import Enum

from sqlalchemy.orm import Session

from core.exceptions import ForbiddenError, NotFoundError
from database import models
from database.enums import Role, AssignmentStatus, CLINICIAN_ROLES


class RecordType(str, Enum):
    ASSESSMENT = "assessment"
    NUTRIENT_TARGETS = "nutrient_targets"
    SYMPTOM_LOG = "symptom_log"


class AccessMode(str, Enum):
    READ = "read"
    WRITE = "write"
    REVIEW = "review"


# (record type, mode) pairs a patient may perform on their own rows
_PATIENT_PERMISSIONS = {
    (RecordType.ASSESSMENT, AccessMode.READ),
    (RecordType.ASSESSMENT, AccessMode.WRITE),
    (RecordType.NUTRIENT_TARGETS, AccessMode.READ),
    (RecordType.SYMPTOM_LOG, AccessMode.READ),
    (RecordType.SYMPTOM_LOG, AccessMode.WRITE),
}

# (record type, mode) pairs an assigned RD may perform
_CLINICIAN_PERMISSIONS = {
    (RecordType.ASSESSMENT, AccessMode.READ),
    (RecordType.ASSESSMENT, AccessMode.REVIEW),
    (RecordType.NUTRIENT_TARGETS, AccessMode.READ),
    (RecordType.NUTRIENT_TARGETS, AccessMode.WRITE),
    (RecordType.SYMPTOM_LOG, AccessMode.READ),
    (RecordType.SYMPTOM_LOG, AccessMode.WRITE),
}


def has_active_assignment(db: Session, rd_id: int, patient_id: int) -> bool:
    return db.query(models.RDPatientAssignment.id).filter(
        models.RDPatientAssignment.rd_id == rd_id,
        models.RDPatientAssignment.patient_id == patient_id,
        models.RDPatientAssignment.status == AssignmentStatus.ACTIVE.value,
    ).first() is not None


def role_permits(role: str, record_type: RecordType, mode: AccessMode) -> bool:
    """Whether `role` may ever perform `mode` on `record_type`, ignoring ownership."""
    if role in CLINICIAN_ROLES:
        return (record_type, mode) in _CLINICIAN_PERMISSIONS
    return (record_type, mode) in _PATIENT_PERMISSIONS


def can_access_patient_record(
    db: Session,
    caller: models.Account,
    patient_id: int,
    record_type: RecordType,
    mode: AccessMode = AccessMode.READ,
) -> bool:
    """Return True when `caller` may perform `mode` on the patient's `record_type` rows."""
    if not role_permits(caller.role, record_type, mode):
        return False
    if caller.role in CLINICIAN_ROLES:
        return has_active_assignment(db, caller.id, patient_id)
    return caller.id == patient_id


def ensure_patient_record_access(
    db: Session,
    caller: models.Account,
    patient_id: int,
    record_type: RecordType,
    mode: AccessMode = AccessMode.READ,
) -> None:
    """Raise unless `caller` may perform `mode` on the patient's records.

    Raises:
        ForbiddenError: The caller's role never performs this operation.
        NotFoundError: No ownership or active assignment links caller and
            patient. The same error is used whether or not the patient
            exists.
    """
    if not role_permits(caller.role or Role.PATIENT.value, record_type, mode):
        raise ForbiddenError(f"Role '{caller.role}' may not {mode.value} {record_type.value} records")
    if not can_access_patient_record(db, caller, patient_id, record_type, mode):
        raise NotFoundError("Patient", patient_id, message="No active care relationship with this patient")
