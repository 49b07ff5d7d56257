"""Pydantic schema package for request and response models."""

from .account_schema import SignupRequest, RDSignupRequest, LoginRequest, LoginResponse
from .care_schema import PatientIdentity, AssignPatientResponse
from .generation_schema import GroceryGenerationRequest, RecipeGenerationRequest

__all__ = [
    "SignupRequest",
    "RDSignupRequest",
    "LoginRequest",
    "LoginResponse",
    "PatientIdentity",
    "AssignPatientResponse",
    "GroceryGenerationRequest",
    "RecipeGenerationRequest",
]
