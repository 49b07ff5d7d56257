"""Schemas for the RD/patient care relationship and RD dashboards.

Lookup and assignment bodies are read loosely by the RD API and checked
in the service; status fields below are optional for the same reason.
"""

from pydantic import BaseModel, Field
from typing import List, Optional


class PatientIdentity(BaseModel):
    """Minimal identity returned by a patient lookup."""

    id: int
    full_name: str
    email: str


class AssignPatientResponse(BaseModel):
    success: bool = True
    reactivated: Optional[bool] = None


class AssignmentStatusRequest(BaseModel):
    status: Optional[str] = Field(None, examples=["paused"], description="active, paused or discharged")


class AssignmentSummary(BaseModel):
    id: int
    patient_id: int
    full_name: str
    email: str
    status: str
    created_at: str


class AssessmentReviewRequest(BaseModel):
    status: Optional[str] = Field(None, examples=["reviewed"], description="reviewed or approved")


class AssessmentListItem(BaseModel):
    id: int
    patient_id: int
    patient_name: str
    diagnosis: Optional[str] = None
    tube_type: Optional[str] = None
    feeding_goal: Optional[str] = None
    status: str
    created_at: str


class AssessmentListResponse(BaseModel):
    counts: dict
    assessments: List[AssessmentListItem]


class RDDashboardResponse(BaseModel):
    full_name: Optional[str] = None
    active_patients: int
    pending_assessments: int
    recent_logs: int
