"""SQLAlchemy ORM models for the BTF care plan service.

Accounts, the RD/patient assignment that anchors authorization, and the
patient-scoped clinical records (assessment, nutrient targets, symptom
logs) plus generated content (grocery lists, saved recipes). List-valued
fields are stored as JSON-encoded text.
"""

from sqlalchemy import (
    Column, Integer, String, Float, DateTime, Date, Boolean, ForeignKey, Text, UniqueConstraint,
)
from sqlalchemy.orm import declarative_base
from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime

from .enums import Role, AssessmentStatus, AssignmentStatus

Base = declarative_base()


class Account(Base):
    """An authenticated identity. The role is fixed at signup."""

    __tablename__ = "accounts"
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(String(20), nullable=False, default=Role.PATIENT.value, index=True)
    full_name = Column(String(200), nullable=True)
    password_hash = Column(String(255), nullable=False)
    email_confirmed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def set_password(self, raw_password):
        self.password_hash = generate_password_hash(raw_password)

    def check_password(self, raw_password):
        return check_password_hash(self.password_hash, raw_password)


class RDProfile(Base):
    """Professional details of an RD account."""

    __tablename__ = "rd_profiles"
    account_id = Column(Integer, ForeignKey("accounts.id"), primary_key=True)
    license_number = Column(String(100), nullable=True)
    license_state = Column(String(50), nullable=True)
    specializations = Column(Text, nullable=True)
    bio = Column(Text, nullable=True)
    accepting_patients = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class AuthCode(Base):
    """One-time authorization code exchanged for a session by the auth callback."""

    __tablename__ = "auth_codes"
    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(128), unique=True, nullable=False, index=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    used_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class RDPatientAssignment(Base):
    """Care relationship between an RD and a patient. Rows are never deleted."""

    __tablename__ = "rd_patient_assignments"
    __table_args__ = (UniqueConstraint("rd_id", "patient_id", name="uq_assignment_rd_patient"),)
    id = Column(Integer, primary_key=True, index=True)
    rd_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=AssignmentStatus.ACTIVE.value)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Assessment(Base):
    """The patient's clinical intake. One row per patient."""

    __tablename__ = "assessments"
    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("accounts.id"), unique=True, nullable=False)
    # medical history
    diagnosis = Column(Text, nullable=True)
    tube_type = Column(String(50), nullable=True)
    tube_placement_date = Column(String(20), nullable=True)
    current_formula = Column(String(200), nullable=True)
    feeding_schedule = Column(String(200), nullable=True)
    daily_volume = Column(String(100), nullable=True)
    # GI
    gi_symptoms = Column(Text, nullable=True)
    gi_notes = Column(Text, nullable=True)
    # allergies and preferences
    allergies = Column(Text, nullable=True)
    intolerances = Column(Text, nullable=True)
    dietary_preferences = Column(Text, nullable=True)
    dietary_notes = Column(Text, nullable=True)
    # equipment
    has_blender = Column(Boolean, nullable=False, default=False)
    blender_type = Column(String(100), nullable=True)
    has_food_storage = Column(Boolean, nullable=False, default=False)
    has_kitchen_scale = Column(Boolean, nullable=False, default=False)
    # goals and payment
    feeding_goal = Column(String(100), nullable=True)
    additional_notes = Column(Text, nullable=True)
    payment_method = Column(String(50), nullable=True)
    insurance_provider = Column(String(200), nullable=True)
    # review
    status = Column(String(20), nullable=False, default=AssessmentStatus.SUBMITTED.value, index=True)
    reviewed_by = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class NutrientTargets(Base):
    """RD-authored nutrient ranges. The latest row per patient is current."""

    __tablename__ = "nutrient_targets"
    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    calories_min = Column(Float, nullable=True)
    calories_max = Column(Float, nullable=True)
    protein_min = Column(Float, nullable=True)
    protein_max = Column(Float, nullable=True)
    carbs_min = Column(Float, nullable=True)
    carbs_max = Column(Float, nullable=True)
    fat_min = Column(Float, nullable=True)
    fat_max = Column(Float, nullable=True)
    fiber_min = Column(Float, nullable=True)
    fiber_max = Column(Float, nullable=True)
    fluids_min = Column(Float, nullable=True)
    fluids_max = Column(Float, nullable=True)
    feeding_schedule = Column(Text, nullable=True)
    safety_notes = Column(Text, nullable=True)
    rd_notes = Column(Text, nullable=True)
    set_by = Column(Integer, ForeignKey("accounts.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class SymptomLog(Base):
    """A patient's daily weight/symptom entry."""

    __tablename__ = "symptom_logs"
    __table_args__ = (UniqueConstraint("patient_id", "log_date", name="uq_symptom_log_day"),)
    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    log_date = Column(Date, nullable=False)
    weight = Column(Float, nullable=True)
    symptoms = Column(Text, nullable=True)
    severity = Column(Integer, nullable=False, default=1)  # 1-3
    intake_completed = Column(Boolean, nullable=False, default=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)


class GroceryList(Base):
    """One grocery list per patient per week, keyed by the week's Sunday."""

    __tablename__ = "grocery_lists"
    __table_args__ = (UniqueConstraint("patient_id", "week_start", name="uq_grocery_week"),)
    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    week_start = Column(Date, nullable=False)
    items = Column(Text, nullable=False, default="[]")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class SavedRecipe(Base):
    """A generated recipe the patient chose to keep."""

    __tablename__ = "saved_recipes"
    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("accounts.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    calories = Column(Float, nullable=True)
    protein = Column(Float, nullable=True)
    volume_ml = Column(Float, nullable=True)
    prep_time = Column(String(50), nullable=True)
    tags = Column(Text, nullable=True)
    ingredients = Column(Text, nullable=True)
    instructions = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
