"""Prompt rendering for grocery list and recipe generation.

The instruction text is where the clinical adaptation rules live: strict
allergen exclusion, respect for dietary preferences, soluble fiber for
diarrhea, insoluble fiber for constipation, and (recipes) no acidic or
spicy ingredients for reflux. Rendering is deterministic: the same inputs
always give the same prompt.
"""

import json
from typing import Any, Dict, Iterable, Optional

SYSTEM_INSTRUCTION = "You are a clinical nutrition expert. Always respond with valid JSON only."

DEFAULT_TARGETS = "Standard adult (1800-2000 kcal, 65-80g protein)"
DEFAULT_FEEDING_GOAL = "General BTF"

GROCERY_CATEGORIES = (
    "Fruits", "Vegetables", "Protein", "Dairy", "Grains", "Oils & Fats", "Staples", "Supplements",
)

GROCERY_ITEM_SHAPE = """{
  "name": "string",
  "category": "string",
  "quantity": "string"
}"""

RECIPE_SHAPE = """{
  "name": "string",
  "description": "string (1-2 sentences)",
  "calories": number,
  "protein": number,
  "volume_ml": number,
  "prep_time": "string",
  "tags": ["string"],
  "ingredients": [{"name": "string", "amount": "string"}],
  "instructions": "string (step-by-step, separated by newlines)"
}"""


def _join(values: Optional[Iterable[str]], empty: str) -> str:
    values = [v for v in (values or []) if v]
    return ", ".join(values) if values else empty


def render_patient_profile(
    nutrient_targets: Optional[Dict[str, Any]] = None,
    allergies: Optional[str] = None,
    intolerances: Optional[str] = None,
    dietary_preferences: Optional[Iterable[str]] = None,
    gi_symptoms: Optional[Iterable[str]] = None,
) -> str:
    """Render the shared "Patient profile" bullet list."""
    targets = json.dumps(nutrient_targets, sort_keys=True) if nutrient_targets else DEFAULT_TARGETS
    return "\n".join([
        "Patient profile:",
        f"- Nutrient targets: {targets}",
        f"- Food allergies: {allergies or 'None reported'}",
        f"- Food intolerances: {intolerances or 'None reported'}",
        f"- Dietary preferences: {_join(dietary_preferences, 'No restrictions')}",
        f"- Current GI symptoms: {_join(gi_symptoms, 'None')}",
    ])


def build_grocery_prompt(
    nutrient_targets: Optional[Dict[str, Any]] = None,
    allergies: Optional[str] = None,
    intolerances: Optional[str] = None,
    dietary_preferences: Optional[Iterable[str]] = None,
    gi_symptoms: Optional[Iterable[str]] = None,
) -> str:
    """Build the instruction for a one-week BTF grocery list.

    Returns:
        Prompt text asking for a JSON array of {name, category, quantity}.
    """
    profile = render_patient_profile(nutrient_targets, allergies, intolerances, dietary_preferences, gi_symptoms)
    categories = ", ".join(GROCERY_CATEGORIES)
    return f"""You are a Registered Dietitian creating a weekly grocery list for a patient who uses blenderized tube feedings (BTF).

{profile}

Requirements:
- Generate a 7-day grocery list with items organized by category
- Include enough variety for diverse BTF recipes
- Quantities should cover one week of tube feedings (~3-5 blends per day)
- If patient has diarrhea, emphasize soluble fiber foods (oats, bananas, applesauce, white rice)
- If patient has constipation, include high-fiber foods
- Avoid ALL listed allergens completely
- Respect dietary preferences
- Include categories: {categories}

Return a JSON array of grocery items. Each item must have exactly these fields:
{GROCERY_ITEM_SHAPE}

Return ONLY the JSON array, no other text."""


def build_recipe_prompt(
    count: int = 3,
    nutrient_targets: Optional[Dict[str, Any]] = None,
    allergies: Optional[str] = None,
    intolerances: Optional[str] = None,
    dietary_preferences: Optional[Iterable[str]] = None,
    gi_symptoms: Optional[Iterable[str]] = None,
    feeding_goal: Optional[str] = None,
) -> str:
    """Build the instruction for `count` BTF recipes.

    Returns:
        Prompt text asking for a JSON array of recipe objects.
    """
    profile = render_patient_profile(nutrient_targets, allergies, intolerances, dietary_preferences, gi_symptoms)
    return f"""You are a Registered Dietitian specializing in blenderized tube feedings (BTF). Generate {count} unique BTF recipes.

{profile}
- Feeding goal: {feeding_goal or DEFAULT_FEEDING_GOAL}

Requirements:
- Each recipe must blend to a smooth consistency safe for tube feeding
- Include specific measurements in grams or mL
- Target 300-550 calories per recipe depending on daily needs
- Ensure adequate protein per recipe
- If patient has diarrhea, favor soluble fiber (oats, banana, applesauce)
- If patient has constipation, include more insoluble fiber
- If patient has reflux/GERD, avoid acidic/spicy ingredients
- Avoid ALL listed allergens completely
- Respect all dietary preferences

Return a JSON array of recipes. Each recipe must have exactly these fields:
{RECIPE_SHAPE}

Return ONLY the JSON array, no other text."""
