"""Patient area page data (`/dashboard/...`).

The access control middleware keeps unauthenticated callers and RDs out of
this area; handlers still resolve the account and scope every query to it.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.access_control import PATIENT_AREA
from core.auth import get_current_account
from core.logger import get_logger
from database import models
from database.deps import get_db_read, get_db_write
from schemas.account_schema import SettingsUpdateRequest, AccountResponse
from schemas.assessment_schema import AssessmentSubmitRequest, AssessmentResponse, NutrientTargetsResponse
from schemas.generation_schema import GroceryListResponse, GroceryListUpdateRequest, GeneratedRecipe, SavedRecipeResponse
from schemas.tracking_schema import SymptomLogCreateRequest, SymptomLogResponse
from services import content_generation, patient_records

logger = get_logger("api.patient_area")
router = APIRouter(prefix=PATIENT_AREA, tags=["patient"])


@router.get("")
def patient_home(account: models.Account = Depends(get_current_account), db: Session = Depends(get_db_read)):
    """Summary shown on the patient home page."""
    assessment = patient_records.get_assessment(db, account, account.id)
    targets = patient_records.get_current_targets(db, account, account.id)
    return {
        "full_name": account.full_name or "there",
        "assessment_status": assessment.status if assessment else None,
        "has_nutrient_targets": targets is not None,
        "recent_logs": patient_records.count_recent_logs(db, [account.id], days=7),
    }


@router.get("/assessment", response_model=Optional[AssessmentResponse])
def get_own_assessment(account: models.Account = Depends(get_current_account), db: Session = Depends(get_db_read)):
    assessment = patient_records.get_assessment(db, account, account.id)
    return patient_records.assessment_to_dict(assessment) if assessment else None


@router.put("/assessment", response_model=AssessmentResponse)
def submit_assessment(payload: AssessmentSubmitRequest,
                      account: models.Account = Depends(get_current_account),
                      db: Session = Depends(get_db_write)):
    """Submit or update the caller's assessment content."""
    assessment = patient_records.submit_assessment(db, account, payload)
    return patient_records.assessment_to_dict(assessment)


@router.get("/nutrients", response_model=Optional[NutrientTargetsResponse])
def get_own_targets(account: models.Account = Depends(get_current_account), db: Session = Depends(get_db_read)):
    """The caller's current RD-set targets, or null before any are set."""
    targets = patient_records.get_current_targets(db, account, account.id)
    return patient_records.targets_to_dict(targets) if targets else None


@router.get("/tracking", response_model=List[SymptomLogResponse])
def list_own_logs(limit: int = 30,
                  account: models.Account = Depends(get_current_account),
                  db: Session = Depends(get_db_read)):
    logs = patient_records.list_symptom_logs(db, account, account.id, limit=min(max(limit, 1), 100))
    return [patient_records.log_to_dict(log) for log in logs]


@router.post("/tracking", response_model=SymptomLogResponse, status_code=201)
def log_today(payload: SymptomLogCreateRequest,
              account: models.Account = Depends(get_current_account),
              db: Session = Depends(get_db_write)):
    """Record today's weight/symptom entry.

    Raises:
        ConflictError: Today's entry already exists.
    """
    log = patient_records.create_symptom_log(db, account, payload)
    return patient_records.log_to_dict(log)


@router.get("/grocery", response_model=GroceryListResponse)
def get_current_grocery_list(account: models.Account = Depends(get_current_account),
                             db: Session = Depends(get_db_read)):
    return content_generation.get_grocery_list(db, account)


@router.put("/grocery", response_model=GroceryListResponse)
def save_grocery_list(payload: GroceryListUpdateRequest,
                      account: models.Account = Depends(get_current_account),
                      db: Session = Depends(get_db_write)):
    """Replace this week's list with the caller's edited items."""
    week_start = content_generation.week_start_for(date.today())
    grocery = content_generation.upsert_grocery_list(
        db, account.id, [item.model_dump() for item in payload.items], week_start
    )
    return content_generation.grocery_list_to_dict(grocery, week_start)


@router.get("/recipes", response_model=List[SavedRecipeResponse])
def list_recipes(account: models.Account = Depends(get_current_account), db: Session = Depends(get_db_read)):
    return [content_generation.saved_recipe_to_dict(r) for r in content_generation.list_saved_recipes(db, account)]


@router.post("/recipes", response_model=SavedRecipeResponse, status_code=201)
def save_recipe(payload: GeneratedRecipe,
                account: models.Account = Depends(get_current_account),
                db: Session = Depends(get_db_write)):
    """Keep one generated recipe."""
    recipe = content_generation.save_recipe(db, account, payload.model_dump())
    return content_generation.saved_recipe_to_dict(recipe)


@router.delete("/recipes/{recipe_id}", status_code=204)
def delete_recipe(recipe_id: int,
                  account: models.Account = Depends(get_current_account),
                  db: Session = Depends(get_db_write)):
    content_generation.delete_saved_recipe(db, account, recipe_id)


@router.put("/settings", response_model=AccountResponse)
def update_settings(payload: SettingsUpdateRequest,
                    account: models.Account = Depends(get_current_account),
                    db: Session = Depends(get_db_write)):
    own = db.get(models.Account, account.id)
    own.full_name = payload.full_name.strip()
    db.commit()
    db.refresh(own)
    return AccountResponse(id=own.id, email=own.email, role=own.role, full_name=own.full_name)
