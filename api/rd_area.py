"""RD area page data (`/rd/...`).

Every route requires an RD or admin account. Routes that touch one
patient's records go through the record access policy, so they answer 404
unless the caller holds an active assignment for that patient.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.access_control import RD_AREA
from core.auth import require_roles
from database import models
from database.deps import get_db_read, get_db_write
from database.enums import AssessmentStatus, CLINICIAN_ROLES
from schemas.account_schema import RDSettingsRequest, RDSettingsResponse
from schemas.assessment_schema import AssessmentResponse, NutrientTargetsRequest, NutrientTargetsResponse
from schemas.care_schema import (
    AssignmentSummary, AssignmentStatusRequest, AssessmentReviewRequest, AssessmentListResponse, RDDashboardResponse,
)
from services import care_relationship, patient_records, rd_dashboard
from services.status_transitions import parse_status

router = APIRouter(prefix=RD_AREA, tags=["rd-area"])

require_clinician = require_roles(*CLINICIAN_ROLES)


@router.get("", response_model=RDDashboardResponse)
def rd_home(account: models.Account = Depends(require_clinician), db: Session = Depends(get_db_read)):
    return rd_dashboard.dashboard_stats(db, account)


@router.get("/patients", response_model=List[AssignmentSummary])
def list_patients(account: models.Account = Depends(require_clinician), db: Session = Depends(get_db_read)):
    """All of the caller's assignments, whatever their status."""
    return care_relationship.list_assignments(db, account)


@router.get("/patients/{patient_id}")
def patient_chart(patient_id: int,
                  account: models.Account = Depends(require_clinician),
                  db: Session = Depends(get_db_read)):
    """Profile, assessment, current targets and recent logs of an assigned patient."""
    return rd_dashboard.patient_chart(db, account, patient_id)


@router.post("/patients/{patient_id}/assessment/review", response_model=AssessmentResponse)
def review_assessment(patient_id: int, payload: AssessmentReviewRequest,
                      account: models.Account = Depends(require_clinician),
                      db: Session = Depends(get_db_write)):
    """Move the patient's assessment to `reviewed` or `approved`.

    Raises:
        NotFoundError: No active assignment or no assessment.
        InvalidStatusTransitionError: Not the next status.
    """
    assessment = patient_records.review_assessment(db, account, patient_id, payload.status)
    return patient_records.assessment_to_dict(assessment)


@router.put("/patients/{patient_id}/targets", response_model=NutrientTargetsResponse)
def save_targets(patient_id: int, payload: NutrientTargetsRequest,
                 account: models.Account = Depends(require_clinician),
                 db: Session = Depends(get_db_write)):
    targets = patient_records.save_targets(db, account, patient_id, payload)
    return patient_records.targets_to_dict(targets)


@router.patch("/patients/{patient_id}/assignment", response_model=AssignmentSummary)
def update_assignment(patient_id: int, payload: AssignmentStatusRequest,
                      account: models.Account = Depends(require_clinician),
                      db: Session = Depends(get_db_write)):
    """Pause, discharge or reactivate the caller's assignment to a patient."""
    care_relationship.update_assignment_status(db, account, patient_id, payload.status)
    summaries = care_relationship.list_assignments(db, account)
    return next(s for s in summaries if s["patient_id"] == patient_id)


@router.get("/assessments", response_model=AssessmentListResponse)
def assessment_queue(status: Optional[str] = None,
                     account: models.Account = Depends(require_clinician),
                     db: Session = Depends(get_db_read)):
    """Assessments of active patients, optionally filtered by status."""
    if status and status != "all":
        status = parse_status(AssessmentStatus, status)
    else:
        status = None
    return rd_dashboard.assessment_queue(db, account, status)


@router.get("/settings", response_model=RDSettingsResponse)
def get_settings(account: models.Account = Depends(require_clinician), db: Session = Depends(get_db_read)):
    return rd_dashboard.get_rd_settings(db, account)


@router.put("/settings", response_model=RDSettingsResponse)
def update_settings(payload: RDSettingsRequest,
                    account: models.Account = Depends(require_clinician),
                    db: Session = Depends(get_db_write)):
    return rd_dashboard.update_rd_settings(db, account, payload)
