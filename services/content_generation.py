"""Content generation: AI grocery lists and recipes, plus their storage.

Generation renders a prompt from the caller-supplied clinical parameters,
sends it to the text-generation service, strips markdown fences from the
reply, and parses it as a JSON array. Entries are normalized best-effort:
only "array of objects with a name" is relied on.

Grocery lists are kept one per patient per week (keyed by the week's
Sunday). Saving a freshly generated list is opportunistic: if it fails the
generated items are still returned.
"""

import json
import re
from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from core.exceptions import InvalidUpstreamOutputError, NotFoundError
from core.logger import get_logger
from core.repository import save
from database import models
from schemas.generation_schema import GroceryGenerationRequest, RecipeGenerationRequest, GroceryItem
from services.generation_client import GenerationClient, generation_client
from services.patient_records import load_json_list
from services.prompt_builder import build_grocery_prompt, build_recipe_prompt

logger = get_logger("services.content_generation")

_FENCE_RE = re.compile(r"```(?:json)?[ \t]*\n?", re.IGNORECASE)
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")

DEFAULT_CATEGORY = "Other"


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences (``` or ```json) and surrounding whitespace."""
    return _FENCE_RE.sub("", text or "").strip()


def parse_json_array(text: str, artifact: str) -> list:
    """Parse generated text as a JSON array.

    Raises:
        InvalidUpstreamOutputError: The text is not valid JSON or not an array.
    """
    cleaned = strip_code_fences(text)
    try:
        parsed = json.loads(cleaned)
    except ValueError:
        logger.error("Failed to parse generated %s: %s", artifact, text)
        raise InvalidUpstreamOutputError(artifact)
    if not isinstance(parsed, list):
        logger.error("Generated %s is not a JSON array: %s", artifact, text)
        raise InvalidUpstreamOutputError(artifact)
    return parsed


def _text(value) -> str:
    if value is None:
        return ""
    return value.strip() if isinstance(value, str) else str(value)


def _number(value) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = _NUMBER_RE.search(str(value))
    return float(match.group()) if match else None


def normalize_grocery_items(raw: list) -> List[dict]:
    """Keep object entries with a name; default a missing category to "Other"."""
    items = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        name = _text(entry.get("name"))
        if not name:
            continue
        items.append({
            "name": name,
            "category": _text(entry.get("category")) or DEFAULT_CATEGORY,
            "quantity": _text(entry.get("quantity")),
        })
    return items


def _ingredients(value) -> List[dict]:
    out = []
    for entry in value if isinstance(value, list) else []:
        if isinstance(entry, dict):
            name = _text(entry.get("name"))
            amount = _text(entry.get("amount"))
        else:
            name, amount = _text(entry), ""
        if name:
            out.append({"name": name, "amount": amount})
    return out


def normalize_recipes(raw: list) -> List[dict]:
    """Keep object entries with a name and coerce the rest of each recipe."""
    recipes = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        name = _text(entry.get("name"))
        if not name:
            continue
        tags = entry.get("tags")
        instructions = entry.get("instructions")
        if isinstance(instructions, list):
            instructions = "\n".join(_text(step) for step in instructions)
        recipes.append({
            "name": name,
            "description": _text(entry.get("description")),
            "calories": _number(entry.get("calories")),
            "protein": _number(entry.get("protein")),
            "volume_ml": _number(entry.get("volume_ml")),
            "prep_time": _text(entry.get("prep_time")),
            "tags": [_text(t) for t in tags if _text(t)] if isinstance(tags, list) else [],
            "ingredients": _ingredients(entry.get("ingredients")),
            "instructions": _text(instructions),
        })
    return recipes


def week_start_for(day: date) -> date:
    """Return the Sunday on or before `day`."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


# Grocery lists

def grocery_list_to_dict(grocery: Optional[models.GroceryList], week_start: date) -> dict:
    if grocery is None:
        return {"week_start": week_start.isoformat(), "items": [], "updated_at": None}
    return {
        "week_start": grocery.week_start.isoformat(),
        "items": load_json_list(grocery.items),
        "updated_at": grocery.updated_at.isoformat() if grocery.updated_at else None,
    }


def _find_grocery_list(db: Session, patient_id: int, week_start: date) -> Optional[models.GroceryList]:
    return db.query(models.GroceryList).filter(
        models.GroceryList.patient_id == patient_id,
        models.GroceryList.week_start == week_start,
    ).first()


def upsert_grocery_list(db: Session, patient_id: int, items: List[dict],
                        week_start: Optional[date] = None) -> models.GroceryList:
    """Write the patient's list for the week, replacing any existing one."""
    week_start = week_start or week_start_for(date.today())
    stored = [GroceryItem(**item).model_dump() for item in items]
    encoded = json.dumps(stored)

    existing = _find_grocery_list(db, patient_id, week_start)
    if existing is None:
        try:
            return save(db, models.GroceryList(patient_id=patient_id, week_start=week_start, items=encoded))
        except IntegrityError:
            # another request created the row first; overwrite it
            db.rollback()
            existing = _find_grocery_list(db, patient_id, week_start)

    existing.items = encoded
    existing.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(existing)
    return existing


def get_grocery_list(db: Session, caller: models.Account, week_start: Optional[date] = None) -> dict:
    week_start = week_start or week_start_for(date.today())
    return grocery_list_to_dict(_find_grocery_list(db, caller.id, week_start), week_start)


def generate_grocery_list(db: Session, caller: models.Account, payload: GroceryGenerationRequest,
                          client: GenerationClient = None) -> List[dict]:
    """Generate this week's grocery list for the caller and store it.

    Raises:
        UpstreamError: The generation service failed.
        InvalidUpstreamOutputError: The reply was not a JSON array.
    """
    client = client or generation_client
    prompt = build_grocery_prompt(
        nutrient_targets=payload.nutrient_targets,
        allergies=payload.allergies,
        intolerances=payload.intolerances,
        dietary_preferences=payload.dietary_preferences,
        gi_symptoms=payload.gi_symptoms,
    )
    items = normalize_grocery_items(parse_json_array(client.complete(prompt), "grocery list"))
    logger.info("Generated grocery list for account=%s: %s items", caller.id, len(items))

    try:
        upsert_grocery_list(db, caller.id, items)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to store generated grocery list for account=%s", caller.id)
    return items


# Recipes

def generate_recipes(caller: models.Account, payload: RecipeGenerationRequest,
                     client: GenerationClient = None) -> List[dict]:
    """Generate recipes for the caller. Nothing is persisted.

    Raises:
        UpstreamError: The generation service failed.
        InvalidUpstreamOutputError: The reply was not a JSON array.
    """
    client = client or generation_client
    prompt = build_recipe_prompt(
        count=payload.count,
        nutrient_targets=payload.nutrient_targets,
        allergies=payload.allergies,
        intolerances=payload.intolerances,
        dietary_preferences=payload.dietary_preferences,
        gi_symptoms=payload.gi_symptoms,
        feeding_goal=payload.feeding_goal,
    )
    recipes = normalize_recipes(parse_json_array(client.complete(prompt), "recipes"))
    logger.info("Generated %s recipes for account=%s", len(recipes), caller.id)
    return recipes


def saved_recipe_to_dict(recipe: models.SavedRecipe) -> dict:
    return {
        "id": recipe.id,
        "name": recipe.name,
        "description": recipe.description or "",
        "calories": recipe.calories,
        "protein": recipe.protein,
        "volume_ml": recipe.volume_ml,
        "prep_time": recipe.prep_time or "",
        "tags": load_json_list(recipe.tags),
        "ingredients": load_json_list(recipe.ingredients),
        "instructions": recipe.instructions or "",
        "created_at": recipe.created_at.isoformat(),
    }


def save_recipe(db: Session, caller: models.Account, recipe: dict) -> models.SavedRecipe:
    """Persist one recipe for the caller."""
    saved = save(db, models.SavedRecipe(
        patient_id=caller.id,
        name=recipe["name"],
        description=recipe.get("description"),
        calories=recipe.get("calories"),
        protein=recipe.get("protein"),
        volume_ml=recipe.get("volume_ml"),
        prep_time=recipe.get("prep_time"),
        tags=json.dumps(recipe.get("tags") or []),
        ingredients=json.dumps(recipe.get("ingredients") or []),
        instructions=recipe.get("instructions"),
    ))
    logger.info("Recipe saved: id=%s account=%s", saved.id, caller.id)
    return saved


def list_saved_recipes(db: Session, caller: models.Account) -> List[models.SavedRecipe]:
    return db.query(models.SavedRecipe).filter(
        models.SavedRecipe.patient_id == caller.id
    ).order_by(models.SavedRecipe.created_at.desc(), models.SavedRecipe.id.desc()).all()


def delete_saved_recipe(db: Session, caller: models.Account, recipe_id: int) -> None:
    """Delete one of the caller's saved recipes.

    Raises:
        NotFoundError: No recipe with this id belongs to the caller.
    """
    recipe = db.get(models.SavedRecipe, recipe_id)
    if recipe is None or recipe.patient_id != caller.id:
        raise NotFoundError("Recipe", recipe_id)
    db.delete(recipe)
    db.commit()
