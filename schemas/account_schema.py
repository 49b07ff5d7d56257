"""Schemas for signup, login and account settings."""

from pydantic import BaseModel, Field
from typing import List, Optional


class SignupRequest(BaseModel):
    """Patient self-registration."""

    full_name: str = Field(..., min_length=1, examples=["Jamie Rivera"])
    email: str = Field(..., min_length=3, examples=["jamie@example.com"])
    password: str = Field(..., min_length=8, examples=["correct horse battery"])


class RDSignupRequest(SignupRequest):
    """Registration through the public RD signup path."""

    license_number: str = Field(..., min_length=1, examples=["RD-123456"])
    license_state: str = Field(..., min_length=1, examples=["CA"])


class SignupResponse(BaseModel):
    success: bool = True
    message: str = "Check your email to confirm your account"


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    id: int
    role: str
    full_name: Optional[str] = None
    redirect_to: str


class AccountResponse(BaseModel):
    id: int
    email: str
    role: str
    full_name: Optional[str] = None


class SettingsUpdateRequest(BaseModel):
    full_name: str = Field(..., min_length=1)


class RDSettingsRequest(BaseModel):
    """RD profile fields editable from the RD settings page."""

    full_name: Optional[str] = Field(None, min_length=1)
    license_number: Optional[str] = None
    license_state: Optional[str] = None
    specializations: List[str] = Field(default_factory=list, examples=[["Blenderized Tube Feeding", "GI Disorders"]])
    bio: Optional[str] = None
    accepting_patients: bool = True


class RDSettingsResponse(BaseModel):
    full_name: Optional[str] = None
    email: str
    license_number: Optional[str] = None
    license_state: Optional[str] = None
    specializations: List[str] = []
    bio: Optional[str] = None
    accepting_patients: bool = True
