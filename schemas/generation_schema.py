"""Schemas for AI-generated grocery lists and recipes.

Request bodies use the camelCase keys the client sends. Generated items
are normalized best-effort: the generation service is untrusted, so every
field beyond the name has a default.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Dict, List, Optional


class GroceryGenerationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    nutrient_targets: Optional[Dict[str, Any]] = Field(
        None, alias="nutrientTargets", examples=[{"calories": "1800-2000", "protein": "70-80g"}]
    )
    allergies: Optional[str] = Field(None, examples=["peanuts"])
    intolerances: Optional[str] = None
    dietary_preferences: Optional[List[str]] = Field(None, alias="dietaryPreferences")
    gi_symptoms: Optional[List[str]] = Field(None, alias="giSymptoms", examples=[["Diarrhea"]])


class RecipeGenerationRequest(GroceryGenerationRequest):
    feeding_goal: Optional[str] = Field(None, alias="feedingGoal", examples=["Weight gain"])
    count: int = Field(3, ge=1, le=10)


class GroceryItem(BaseModel):
    name: str
    category: str = "Other"
    quantity: str = ""
    checked: bool = False


class GeneratedGroceryItem(BaseModel):
    name: str
    category: str
    quantity: str


class GroceryGenerationResponse(BaseModel):
    items: List[GeneratedGroceryItem]


class GroceryListResponse(BaseModel):
    week_start: str
    items: List[GroceryItem]
    updated_at: Optional[str] = None


class GroceryListUpdateRequest(BaseModel):
    items: List[GroceryItem]


class RecipeIngredient(BaseModel):
    name: str
    amount: str = ""


class GeneratedRecipe(BaseModel):
    name: str
    description: str = ""
    calories: Optional[float] = None
    protein: Optional[float] = None
    volume_ml: Optional[float] = None
    prep_time: str = ""
    tags: List[str] = []
    ingredients: List[RecipeIngredient] = []
    instructions: str = ""


class RecipeGenerationResponse(BaseModel):
    recipes: List[GeneratedRecipe]


class SavedRecipeResponse(GeneratedRecipe):
    id: int
    created_at: str
