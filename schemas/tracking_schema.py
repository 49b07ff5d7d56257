"""Schemas for daily weight and symptom logging."""

from pydantic import BaseModel, Field
from typing import List, Optional


class SymptomLogCreateRequest(BaseModel):
    weight: Optional[float] = Field(None, gt=0, examples=[145.0])
    symptoms: List[str] = Field(default_factory=list, examples=[["Bloating"]])
    severity: int = Field(1, ge=1, le=3, description="1 mild, 2 moderate, 3 severe")
    intake_completed: bool = True
    notes: Optional[str] = None


class SymptomLogResponse(BaseModel):
    id: int
    patient_id: int
    date: str
    weight: Optional[float] = None
    symptoms: List[str]
    severity: int
    intake_completed: bool
    notes: Optional[str] = None
