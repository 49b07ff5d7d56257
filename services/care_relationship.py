"""Care-relationship service: RD patient lookup and assignment lifecycle.

Each operation checks the caller's role before it touches any data, then
validates its input. The unique (rd_id, patient_id) constraint arbitrates
concurrent assignment; losing that race is reported as a conflict.
"""

from typing import Any, List, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from core.logger import get_logger
from core.repository import save
from database import models
from database.enums import Role, AssignmentStatus, CLINICIAN_ROLES
from services.account_service import normalize_email
from services.status_transitions import ASSIGNMENT_TRANSITIONS, check_transition, parse_status

logger = get_logger("services.care_relationship")


def _require_clinician(caller: models.Account) -> None:
    if caller.role not in CLINICIAN_ROLES:
        raise ForbiddenError(required_roles=list(CLINICIAN_ROLES))


def body_field(payload: Any, name: str) -> Any:
    """Return `payload[name]`, or None when the body is missing or not an object."""
    return payload.get(name) if isinstance(payload, dict) else None


def _coerce_patient_id(value: Any) -> int:
    if value is None or value == "":
        raise ValidationError("patient_id is required", field="patient_id")
    if isinstance(value, bool):
        raise ValidationError("patient_id must be an integer", field="patient_id")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValidationError("patient_id must be an integer", field="patient_id")


def lookup_patient_by_email(db: Session, caller: models.Account, email: Any) -> dict:
    """Find a patient account by email.

    The email is trimmed and lower-cased before an exact match, and only
    patient-role accounts can match.

    Args:
        db: Database session.
        caller: RD or admin performing the lookup.
        email: Email as typed by the RD.

    Returns:
        Dict with the patient's `id`, `full_name` and `email`.

    Raises:
        ForbiddenError: Caller is not an RD or admin.
        ValidationError: Email missing, blank or not a string.
        NotFoundError: No patient account has this email.
    """
    _require_clinician(caller)
    if email is not None and not isinstance(email, str):
        raise ValidationError("Email must be a string", field="email")
    normalized = normalize_email(email)
    if not normalized:
        raise ValidationError("Email is required", field="email")

    patient = db.query(models.Account).filter(
        models.Account.email == normalized,
        models.Account.role == Role.PATIENT.value,
    ).first()
    if patient is None:
        raise NotFoundError("Patient", normalized, message="No patient found with that email address")

    return {"id": patient.id, "full_name": patient.full_name or "Unknown", "email": patient.email}


def _get_assignment(db: Session, rd_id: int, patient_id: int):
    return db.query(models.RDPatientAssignment).filter(
        models.RDPatientAssignment.rd_id == rd_id,
        models.RDPatientAssignment.patient_id == patient_id,
    ).first()


def assign_patient(db: Session, caller: models.Account, patient_id) -> Tuple[models.RDPatientAssignment, bool]:
    """Create or reactivate the caller's assignment to a patient.

    Returns:
        Tuple of (assignment, reactivated). `reactivated` is True when a
        paused or discharged assignment was moved back to active.

    Raises:
        ForbiddenError: Caller is not an RD or admin.
        ValidationError: `patient_id` missing or not an integer.
        NotFoundError: No patient account has this id.
        ConflictError: The assignment is already active.
    """
    _require_clinician(caller)
    patient_id = _coerce_patient_id(patient_id)

    patient = db.get(models.Account, patient_id)
    if patient is None or patient.role != Role.PATIENT.value:
        raise NotFoundError("Patient", patient_id)

    existing = _get_assignment(db, caller.id, patient_id)
    if existing is not None:
        if existing.status == AssignmentStatus.ACTIVE.value:
            raise ConflictError("This patient is already assigned to you", resource="Assignment")
        existing.status = check_transition(
            "Assignment", ASSIGNMENT_TRANSITIONS, existing.status, AssignmentStatus.ACTIVE.value
        )
        db.commit()
        db.refresh(existing)
        logger.info("Assignment reactivated: rd=%s patient=%s", caller.id, patient_id)
        return existing, True

    assignment = models.RDPatientAssignment(
        rd_id=caller.id,
        patient_id=patient_id,
        status=AssignmentStatus.ACTIVE.value,
    )
    try:
        assignment = save(db, assignment)
    except IntegrityError:
        db.rollback()
        raise ConflictError("This patient is already assigned to you", resource="Assignment")
    logger.info("Assignment created: rd=%s patient=%s", caller.id, patient_id)
    return assignment, False


def update_assignment_status(db: Session, caller: models.Account, patient_id: int, status) -> models.RDPatientAssignment:
    """Move the caller's assignment to `status` along the allowed transitions.

    Raises:
        ForbiddenError: Caller is not an RD or admin.
        ValidationError: Unknown or missing status.
        NotFoundError: Caller has no assignment with this patient.
        InvalidStatusTransitionError: Transition not allowed.
    """
    _require_clinician(caller)
    requested = parse_status(AssignmentStatus, status)
    assignment = _get_assignment(db, caller.id, patient_id)
    if assignment is None:
        raise NotFoundError("Assignment", patient_id)

    previous = assignment.status
    assignment.status = check_transition("Assignment", ASSIGNMENT_TRANSITIONS, previous, requested)
    db.commit()
    db.refresh(assignment)
    logger.info("Assignment status changed: rd=%s patient=%s %s -> %s", caller.id, patient_id, previous, requested)
    return assignment


def list_assignments(db: Session, caller: models.Account) -> List[dict]:
    """Return every assignment of the caller, newest first, with patient identity."""
    _require_clinician(caller)
    rows = db.query(models.RDPatientAssignment, models.Account).join(
        models.Account, models.Account.id == models.RDPatientAssignment.patient_id
    ).filter(
        models.RDPatientAssignment.rd_id == caller.id
    ).order_by(models.RDPatientAssignment.created_at.desc()).all()

    return [
        {
            "id": assignment.id,
            "patient_id": patient.id,
            "full_name": patient.full_name or "Unknown",
            "email": patient.email,
            "status": assignment.status,
            "created_at": assignment.created_at.isoformat(),
        }
        for assignment, patient in rows
    ]


def active_patient_ids(db: Session, rd_id: int) -> List[int]:
    rows = db.query(models.RDPatientAssignment.patient_id).filter(
        models.RDPatientAssignment.rd_id == rd_id,
        models.RDPatientAssignment.status == AssignmentStatus.ACTIVE.value,
    ).all()
    return [r[0] for r in rows]
