"""Read models for the RD area: dashboard counts, assessment queue, patient chart."""

import json
from typing import Optional

from sqlalchemy.orm import Session

from core.exceptions import NotFoundError
from core.logger import get_logger
from core.policy import RecordType, ensure_patient_record_access
from core.repository import save
from database import models
from database.enums import AssessmentStatus
from schemas.account_schema import RDSettingsRequest
from services import patient_records
from services.care_relationship import active_patient_ids
from services.patient_records import load_json_list

logger = get_logger("services.rd_dashboard")


def dashboard_stats(db: Session, caller: models.Account) -> dict:
    """Counts shown on the RD home page.

    The three counts come from independent read-only queries scoped to the
    caller's active patients.
    """
    patient_ids = active_patient_ids(db, caller.id)
    pending = 0
    if patient_ids:
        pending = db.query(models.Assessment).filter(
            models.Assessment.patient_id.in_(patient_ids),
            models.Assessment.status == AssessmentStatus.SUBMITTED.value,
        ).count()
    return {
        "full_name": caller.full_name,
        "active_patients": len(patient_ids),
        "pending_assessments": pending,
        "recent_logs": patient_records.count_recent_logs(db, patient_ids, days=7),
    }


def assessment_queue(db: Session, caller: models.Account, status: Optional[str] = None) -> dict:
    """Assessments of the caller's active patients, newest first.

    `counts` always covers every status; `status` only filters the list.
    """
    patient_ids = active_patient_ids(db, caller.id)
    rows = []
    if patient_ids:
        rows = db.query(models.Assessment, models.Account).join(
            models.Account, models.Account.id == models.Assessment.patient_id
        ).filter(
            models.Assessment.patient_id.in_(patient_ids)
        ).order_by(models.Assessment.created_at.desc()).all()

    counts = {s.value: 0 for s in AssessmentStatus}
    items = []
    for assessment, patient in rows:
        counts[assessment.status] = counts.get(assessment.status, 0) + 1
        if status and assessment.status != status:
            continue
        items.append({
            "id": assessment.id,
            "patient_id": patient.id,
            "patient_name": patient.full_name or "Unknown",
            "diagnosis": assessment.diagnosis,
            "tube_type": assessment.tube_type,
            "feeding_goal": assessment.feeding_goal,
            "status": assessment.status,
            "created_at": assessment.created_at.isoformat(),
        })
    counts["all"] = len(rows)
    return {"counts": counts, "assessments": items}


def patient_chart(db: Session, caller: models.Account, patient_id: int) -> dict:
    """Everything an assigned RD sees on a patient's page."""
    ensure_patient_record_access(db, caller, patient_id, RecordType.ASSESSMENT)
    patient = db.get(models.Account, patient_id)
    if patient is None:
        raise NotFoundError("Patient", patient_id)

    assessment = patient_records.get_assessment(db, caller, patient_id)
    targets = patient_records.get_current_targets(db, caller, patient_id)
    logs = patient_records.list_symptom_logs(db, caller, patient_id, limit=30)
    return {
        "patient": {"id": patient.id, "full_name": patient.full_name or "Unknown", "email": patient.email},
        "assessment": patient_records.assessment_to_dict(assessment) if assessment else None,
        "nutrient_targets": patient_records.targets_to_dict(targets) if targets else None,
        "symptom_logs": [patient_records.log_to_dict(log) for log in logs],
    }


def get_rd_settings(db: Session, caller: models.Account) -> dict:
    profile = db.get(models.RDProfile, caller.id)
    data = {
        "full_name": caller.full_name,
        "email": caller.email,
        "license_number": None,
        "license_state": None,
        "specializations": [],
        "bio": None,
        "accepting_patients": True,
    }
    if profile is not None:
        data.update(
            license_number=profile.license_number,
            license_state=profile.license_state,
            specializations=load_json_list(profile.specializations),
            bio=profile.bio,
            accepting_patients=profile.accepting_patients,
        )
    return data


def update_rd_settings(db: Session, caller: models.Account, payload: RDSettingsRequest) -> dict:
    """Update the caller's name and upsert their RD profile."""
    account = db.get(models.Account, caller.id)
    if payload.full_name:
        account.full_name = payload.full_name.strip()

    profile = db.get(models.RDProfile, caller.id) or models.RDProfile(account_id=caller.id)
    profile.license_number = payload.license_number
    profile.license_state = payload.license_state
    profile.specializations = json.dumps(payload.specializations)
    profile.bio = payload.bio
    profile.accepting_patients = payload.accepting_patients
    save(db, profile)
    db.refresh(account)
    logger.info("RD settings updated: rd=%s", caller.id)
    return get_rd_settings(db, account)
