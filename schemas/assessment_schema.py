"""Schemas for the clinical intake and RD-set nutrient targets."""

from pydantic import BaseModel, Field, model_validator
from typing import List, Optional


class AssessmentSubmitRequest(BaseModel):
    """Assessment content a patient submits. Review fields are not accepted."""

    diagnosis: Optional[str] = Field(None, examples=["Head and neck cancer"])
    tube_type: Optional[str] = Field(None, examples=["G-tube"])
    tube_placement_date: Optional[str] = Field(None, examples=["2025-11-02"])
    current_formula: Optional[str] = None
    feeding_schedule: Optional[str] = None
    daily_volume: Optional[str] = None
    gi_symptoms: List[str] = Field(default_factory=list, examples=[["Diarrhea", "Bloating"]])
    gi_notes: Optional[str] = None
    allergies: Optional[str] = Field(None, examples=["peanuts"])
    intolerances: Optional[str] = None
    dietary_preferences: List[str] = Field(default_factory=list, examples=[["Dairy-free"]])
    dietary_notes: Optional[str] = None
    has_blender: bool = False
    blender_type: Optional[str] = None
    has_food_storage: bool = False
    has_kitchen_scale: bool = False
    feeding_goal: Optional[str] = None
    additional_notes: Optional[str] = None
    payment_method: Optional[str] = None
    insurance_provider: Optional[str] = None


class AssessmentResponse(AssessmentSubmitRequest):
    id: int
    patient_id: int
    status: str
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[str] = None
    created_at: str
    updated_at: Optional[str] = None


class NutrientTargetsRequest(BaseModel):
    """Per-patient nutrient ranges. Each max must not be below its min."""

    calories_min: Optional[float] = Field(None, ge=0, examples=[1800])
    calories_max: Optional[float] = Field(None, ge=0, examples=[2000])
    protein_min: Optional[float] = Field(None, ge=0)
    protein_max: Optional[float] = Field(None, ge=0)
    carbs_min: Optional[float] = Field(None, ge=0)
    carbs_max: Optional[float] = Field(None, ge=0)
    fat_min: Optional[float] = Field(None, ge=0)
    fat_max: Optional[float] = Field(None, ge=0)
    fiber_min: Optional[float] = Field(None, ge=0)
    fiber_max: Optional[float] = Field(None, ge=0)
    fluids_min: Optional[float] = Field(None, ge=0)
    fluids_max: Optional[float] = Field(None, ge=0)
    feeding_schedule: Optional[str] = None
    safety_notes: Optional[str] = None
    rd_notes: Optional[str] = None

    @model_validator(mode="after")
    def check_ranges(self):
        for nutrient in ("calories", "protein", "carbs", "fat", "fiber", "fluids"):
            low = getattr(self, f"{nutrient}_min")
            high = getattr(self, f"{nutrient}_max")
            if low is not None and high is not None and high < low:
                raise ValueError(f"{nutrient}_max must be greater than or equal to {nutrient}_min")
        return self


class NutrientTargetsResponse(NutrientTargetsRequest):
    id: int
    patient_id: int
    set_by: Optional[int] = None
    created_at: str
    updated_at: Optional[str] = None
