"""AI content generation endpoints: weekly grocery list and BTF recipes.

Both endpoints only need an authenticated caller. Upstream failures come
back as 502 "AI service error"; unparseable replies as 500 so the client
can retry.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional

from core.auth import get_current_account
from core.logger import get_logger
from database import models
from database.deps import get_db_write
from schemas.generation_schema import (
    GroceryGenerationRequest, GroceryGenerationResponse, RecipeGenerationRequest, RecipeGenerationResponse,
)
from services import content_generation

logger = get_logger("api.generation")
router = APIRouter(prefix="/api", tags=["generation"])


@router.post("/generate-grocery-list", response_model=GroceryGenerationResponse)
def generate_grocery_list(
    payload: Optional[GroceryGenerationRequest] = None,
    account: models.Account = Depends(get_current_account),
    db: Session = Depends(get_db_write),
):
    """Generate this week's grocery list and store it for the caller.

    Raises:
        UnauthorizedError: No session.
        UpstreamError: Generation service failed (502).
        InvalidUpstreamOutputError: Reply was not a JSON array (500).
    """
    items = content_generation.generate_grocery_list(db, account, payload or GroceryGenerationRequest())
    return {"items": items}


@router.post("/generate-recipes", response_model=RecipeGenerationResponse)
def generate_recipes(
    payload: Optional[RecipeGenerationRequest] = None,
    account: models.Account = Depends(get_current_account),
):
    """Generate BTF recipes for the caller without saving them.

    Raises:
        UnauthorizedError: No session.
        UpstreamError: Generation service failed (502).
        InvalidUpstreamOutputError: Reply was not a JSON array (500).
    """
    recipes = content_generation.generate_recipes(account, payload or RecipeGenerationRequest())
    return {"recipes": recipes}
