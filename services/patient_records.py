"""Patient-scoped clinical records: assessment, nutrient targets, symptom logs.

All reads and writes go through `PatientRecordRepository`, so the record
access policy runs before each query regardless of which endpoint calls in.
"""

import json
from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.exceptions import ConflictError, NotFoundError
from core.logger import get_logger
from core.policy import RecordType, AccessMode
from core.repository import PatientRecordRepository
from database import models
from database.enums import AssessmentStatus
from schemas.assessment_schema import AssessmentSubmitRequest, NutrientTargetsRequest
from schemas.tracking_schema import SymptomLogCreateRequest
from services.status_transitions import ASSESSMENT_TRANSITIONS, check_transition, parse_status

logger = get_logger("services.patient_records")

_ASSESSMENT_LIST_FIELDS = ("gi_symptoms", "dietary_preferences")
_TARGET_FIELDS = tuple(NutrientTargetsRequest.model_fields)


def load_json_list(value) -> list:
    if not value:
        return []
    try:
        parsed = json.loads(value)
    except (TypeError, ValueError):
        return []
    return parsed if isinstance(parsed, list) else []


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def assessments(db: Session, caller: models.Account) -> PatientRecordRepository:
    return PatientRecordRepository(models.Assessment, db, caller, RecordType.ASSESSMENT)


def nutrient_targets(db: Session, caller: models.Account) -> PatientRecordRepository:
    return PatientRecordRepository(models.NutrientTargets, db, caller, RecordType.NUTRIENT_TARGETS)


def symptom_logs(db: Session, caller: models.Account) -> PatientRecordRepository:
    return PatientRecordRepository(models.SymptomLog, db, caller, RecordType.SYMPTOM_LOG)


# Assessment

def assessment_to_dict(a: models.Assessment) -> dict:
    data = {field: getattr(a, field) for field in AssessmentSubmitRequest.model_fields}
    for field in _ASSESSMENT_LIST_FIELDS:
        data[field] = load_json_list(getattr(a, field))
    data.update(
        id=a.id,
        patient_id=a.patient_id,
        status=a.status,
        reviewed_by=a.reviewed_by,
        reviewed_at=_iso(a.reviewed_at),
        created_at=_iso(a.created_at),
        updated_at=_iso(a.updated_at),
    )
    return data


def get_assessment(db: Session, caller: models.Account, patient_id: int) -> Optional[models.Assessment]:
    return assessments(db, caller).latest(patient_id)


def submit_assessment(db: Session, caller: models.Account, payload: AssessmentSubmitRequest) -> models.Assessment:
    """Create or replace the caller's own assessment content.

    A new assessment starts as `submitted`; re-submitting keeps the current
    review status.
    """
    repo = assessments(db, caller)
    values = payload.model_dump()
    for field in _ASSESSMENT_LIST_FIELDS:
        values[field] = json.dumps(values[field])

    existing = repo.latest(caller.id, mode=AccessMode.WRITE)
    if existing is None:
        assessment = models.Assessment(status=AssessmentStatus.SUBMITTED.value, **values)
        try:
            assessment = repo.add(caller.id, assessment)
        except IntegrityError:
            db.rollback()
            raise ConflictError("Assessment was submitted concurrently, please retry", resource="Assessment")
        logger.info("Assessment submitted: patient=%s", caller.id)
        return assessment

    for field, value in values.items():
        setattr(existing, field, value)
    logger.info("Assessment updated: patient=%s", caller.id)
    return repo.update(caller.id, existing)


def review_assessment(db: Session, caller: models.Account, patient_id: int, status) -> models.Assessment:
    """Advance a patient's assessment status as the reviewing RD.

    Raises:
        ValidationError: Unknown or missing status.
        NotFoundError: No active assignment, or the patient has no assessment.
        InvalidStatusTransitionError: Transition not allowed.
    """
    requested = parse_status(AssessmentStatus, status)
    repo = assessments(db, caller)
    assessment = repo.latest(patient_id, mode=AccessMode.REVIEW)
    if assessment is None:
        raise NotFoundError("Assessment", patient_id, message="Patient has not submitted an assessment")

    previous = assessment.status
    assessment.status = check_transition("Assessment", ASSESSMENT_TRANSITIONS, previous, requested)
    assessment.reviewed_by = caller.id
    assessment.reviewed_at = datetime.utcnow()
    assessment = repo.update(patient_id, assessment, mode=AccessMode.REVIEW)
    logger.info("Assessment status changed: patient=%s %s -> %s by rd=%s", patient_id, previous, requested, caller.id)
    return assessment


# Nutrient targets

def targets_to_dict(t: models.NutrientTargets) -> dict:
    data = {field: getattr(t, field) for field in _TARGET_FIELDS}
    data.update(
        id=t.id,
        patient_id=t.patient_id,
        set_by=t.set_by,
        created_at=_iso(t.created_at),
        updated_at=_iso(t.updated_at),
    )
    return data


def get_current_targets(db: Session, caller: models.Account, patient_id: int) -> Optional[models.NutrientTargets]:
    return nutrient_targets(db, caller).latest(patient_id)


def save_targets(db: Session, caller: models.Account, patient_id: int,
                 payload: NutrientTargetsRequest) -> models.NutrientTargets:
    """Update the patient's current targets, or create them if none exist."""
    repo = nutrient_targets(db, caller)
    current = repo.latest(patient_id, mode=AccessMode.WRITE)
    values = payload.model_dump()

    if current is None:
        targets = repo.add(patient_id, models.NutrientTargets(set_by=caller.id, **values))
        logger.info("Nutrient targets created: patient=%s by rd=%s", patient_id, caller.id)
        return targets

    for field, value in values.items():
        setattr(current, field, value)
    current.set_by = caller.id
    logger.info("Nutrient targets updated: patient=%s by rd=%s", patient_id, caller.id)
    return repo.update(patient_id, current)


# Symptom logs

def log_to_dict(log: models.SymptomLog) -> dict:
    return {
        "id": log.id,
        "patient_id": log.patient_id,
        "date": log.log_date.isoformat(),
        "weight": log.weight,
        "symptoms": load_json_list(log.symptoms),
        "severity": log.severity,
        "intake_completed": log.intake_completed,
        "notes": log.notes,
    }


def create_symptom_log(db: Session, caller: models.Account, payload: SymptomLogCreateRequest,
                       log_date: Optional[date] = None) -> models.SymptomLog:
    """Record the caller's entry for `log_date` (today by default).

    Raises:
        ConflictError: An entry already exists for that day.
    """
    log = models.SymptomLog(
        log_date=log_date or date.today(),
        weight=payload.weight,
        symptoms=json.dumps(payload.symptoms),
        severity=payload.severity,
        intake_completed=payload.intake_completed,
        notes=payload.notes,
    )
    try:
        log = symptom_logs(db, caller).add(caller.id, log)
    except IntegrityError:
        db.rollback()
        raise ConflictError("A log entry already exists for this day", resource="SymptomLog")
    logger.info("Symptom log recorded: patient=%s date=%s", caller.id, log.log_date)
    return log


def list_symptom_logs(db: Session, caller: models.Account, patient_id: int, limit: int = 30) -> List[models.SymptomLog]:
    return symptom_logs(db, caller).list(
        patient_id, order_by=models.SymptomLog.log_date.desc(), limit=limit
    )


def count_recent_logs(db: Session, patient_ids: List[int], days: int = 7) -> int:
    """Count logs created in the last `days` days across `patient_ids`.

    Callers pass only ids they were already authorized for.
    """
    if not patient_ids:
        return 0
    since = datetime.utcnow() - timedelta(days=days)
    return db.query(models.SymptomLog).filter(
        models.SymptomLog.patient_id.in_(patient_ids),
        models.SymptomLog.created_at >= since,
    ).count()
