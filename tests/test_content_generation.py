"""Test grocery list and recipe generation against a stubbed generation service."""
import json
from datetime import date

import pytest
from sqlalchemy.exc import SQLAlchemyError

from core.exceptions import InvalidUpstreamOutputError
from database import models
from services import content_generation
from services.content_generation import (
    normalize_grocery_items, normalize_recipes, parse_json_array, strip_code_fences, week_start_for,
)
from services.prompt_builder import build_grocery_prompt, build_recipe_prompt

GROCERY_REPLY = json.dumps([
    {"name": "Oats", "category": "Grains", "quantity": "1 lb"},
    {"name": "Bananas", "category": "Fruits", "quantity": "7"},
])

RECIPE_REPLY = json.dumps([{
    "name": "Banana Oat Blend",
    "description": "Gentle on the gut.",
    "calories": 420,
    "protein": "22g",
    "volume_ml": 350,
    "prep_time": "10 min",
    "tags": ["soluble fiber"],
    "ingredients": [{"name": "Oats", "amount": "40 g"}, {"name": "Banana", "amount": "1 medium"}],
    "instructions": "Cook oats.\nBlend until smooth.",
}])


def test_strip_code_fences():
    assert strip_code_fences("```json\n[1, 2]\n```") == "[1, 2]"
    assert strip_code_fences("```\n[]\n```  ") == "[]"
    assert strip_code_fences("  [{\"a\": 1}] ") == "[{\"a\": 1}]"


def test_parse_json_array_rejects_non_arrays():
    with pytest.raises(InvalidUpstreamOutputError) as exc_info:
        parse_json_array("Sure! Here is your list.", "grocery list")
    assert exc_info.value.status_code == 500
    assert exc_info.value.message == "Failed to parse grocery list"

    with pytest.raises(InvalidUpstreamOutputError):
        parse_json_array('{"items": []}', "recipes")


def test_normalize_grocery_items_defaults_category():
    items = normalize_grocery_items([
        {"name": "Rice", "quantity": "2 cups"},
        {"name": "  ", "category": "Grains"},
        "not an object",
        {"name": "Yogurt", "category": "Dairy", "quantity": 2},
    ])
    assert items == [
        {"name": "Rice", "category": "Other", "quantity": "2 cups"},
        {"name": "Yogurt", "category": "Dairy", "quantity": "2"},
    ]


def test_normalize_recipes_coerces_fields():
    recipes = normalize_recipes(json.loads(RECIPE_REPLY) + [{"description": "nameless"}])
    assert len(recipes) == 1
    recipe = recipes[0]
    assert recipe["protein"] == 22.0
    assert recipe["calories"] == 420.0
    assert recipe["ingredients"][1] == {"name": "Banana", "amount": "1 medium"}


def test_week_start_is_sunday():
    assert week_start_for(date(2026, 10, 18)) == date(2026, 10, 18)  # Sunday
    assert week_start_for(date(2026, 10, 19)) == date(2026, 10, 18)
    assert week_start_for(date(2026, 10, 24)) == date(2026, 10, 18)


def test_grocery_prompt_carries_clinical_rules():
    prompt = build_grocery_prompt(allergies="peanuts", gi_symptoms=["Diarrhea"])
    assert "- Food allergies: peanuts" in prompt
    assert "- Current GI symptoms: Diarrhea" in prompt
    assert "Avoid ALL listed allergens completely" in prompt
    assert "If patient has diarrhea, emphasize soluble fiber foods (oats, bananas, applesauce, white rice)" in prompt
    assert prompt == build_grocery_prompt(allergies="peanuts", gi_symptoms=["Diarrhea"])


def test_recipe_prompt_defaults():
    prompt = build_recipe_prompt()
    assert "Generate 3 unique BTF recipes" in prompt
    assert "- Food allergies: None reported" in prompt
    assert "- Feeding goal: General BTF" in prompt
    assert "If patient has reflux/GERD, avoid acidic/spicy ingredients" in prompt


def test_generate_grocery_list_strips_fences_and_stores_week(db, make_account, client_for, fake_generation):
    patient = make_account("pat@example.com")
    fake_generation.content = "```json\n" + GROCERY_REPLY + "\n```"

    resp = client_for(patient).post("/api/generate-grocery-list", json={
        "allergies": "peanuts",
        "giSymptoms": ["Diarrhea"],
        "nutrientTargets": {"calories": "1800-2000"},
    })
    assert resp.status_code == 200
    assert resp.json() == {"items": [
        {"name": "Oats", "category": "Grains", "quantity": "1 lb"},
        {"name": "Bananas", "category": "Fruits", "quantity": "7"},
    ]}
    assert "- Food allergies: peanuts" in fake_generation.last_prompt
    assert "emphasize soluble fiber foods" in fake_generation.last_prompt
    assert fake_generation.calls[0]["headers"]["Authorization"] == "Bearer test-key"

    grocery = db.query(models.GroceryList).one()
    assert grocery.patient_id == patient.id
    assert grocery.week_start == week_start_for(date.today())
    stored = json.loads(grocery.items)
    assert stored[0] == {"name": "Oats", "category": "Grains", "quantity": "1 lb", "checked": False}


def test_regenerating_replaces_this_weeks_list(db, make_account, client_for, fake_generation):
    patient = make_account("pat@example.com")
    c = client_for(patient)
    fake_generation.content = GROCERY_REPLY
    c.post("/api/generate-grocery-list", json={})
    fake_generation.content = json.dumps([{"name": "Avocado", "quantity": "3"}])
    resp = c.post("/api/generate-grocery-list", json={})

    assert resp.json()["items"] == [{"name": "Avocado", "category": "Other", "quantity": "3"}]
    rows = db.query(models.GroceryList).all()
    assert len(rows) == 1
    assert [item["name"] for item in json.loads(rows[0].items)] == ["Avocado"]

    current = c.get("/dashboard/grocery").json()
    assert current["items"] == [{"name": "Avocado", "category": "Other", "quantity": "3", "checked": False}]


def test_upstream_failure_is_502_and_stores_nothing(db, make_account, client_for, fake_generation):
    patient = make_account("pat@example.com")
    fake_generation.status_code = 503

    resp = client_for(patient).post("/api/generate-grocery-list", json={})
    assert resp.status_code == 502
    assert resp.json()["error"]["message"] == "AI service error"
    assert "secret-internal-detail" not in resp.text
    assert db.query(models.GroceryList).count() == 0


def test_unparseable_reply_is_500_and_stores_nothing(db, make_account, client_for, fake_generation):
    patient = make_account("pat@example.com")
    fake_generation.content = "I cannot help with that."

    resp = client_for(patient).post("/api/generate-grocery-list", json={})
    assert resp.status_code == 500
    assert resp.json()["error"]["message"] == "Failed to parse grocery list"
    assert db.query(models.GroceryList).count() == 0


def test_storage_failure_still_returns_generated_items(db, make_account, client_for, fake_generation, monkeypatch):
    patient = make_account("pat@example.com")
    fake_generation.content = GROCERY_REPLY

    def failing_upsert(*args, **kwargs):
        raise SQLAlchemyError("database is locked")

    monkeypatch.setattr(content_generation, "upsert_grocery_list", failing_upsert)
    resp = client_for(patient).post("/api/generate-grocery-list", json={})
    assert resp.status_code == 200
    assert [item["name"] for item in resp.json()["items"]] == ["Oats", "Bananas"]
    assert db.query(models.GroceryList).count() == 0


def test_generation_requires_session(client, fake_generation):
    assert client.post("/api/generate-grocery-list", json={}).status_code == 401
    assert client.post("/api/generate-recipes", json={}).status_code == 401
    assert fake_generation.calls == []


def test_generate_recipes(make_account, client_for, fake_generation):
    patient = make_account("pat@example.com")
    fake_generation.content = RECIPE_REPLY

    resp = client_for(patient).post("/api/generate-recipes", json={"feedingGoal": "Weight gain", "count": 1})
    assert resp.status_code == 200
    recipes = resp.json()["recipes"]
    assert recipes[0]["name"] == "Banana Oat Blend"
    assert recipes[0]["protein"] == 22.0
    assert "Generate 1 unique BTF recipes" in fake_generation.last_prompt
    assert "- Feeding goal: Weight gain" in fake_generation.last_prompt


def test_generated_recipe_can_be_saved_and_deleted(make_account, client_for, fake_generation):
    patient = make_account("pat@example.com")
    other = make_account("other@example.com")
    fake_generation.content = RECIPE_REPLY
    c = client_for(patient)
    recipe = c.post("/api/generate-recipes", json={}).json()["recipes"][0]

    saved = c.post("/dashboard/recipes", json=recipe)
    assert saved.status_code == 201
    recipe_id = saved.json()["id"]
    assert [r["name"] for r in c.get("/dashboard/recipes").json()] == ["Banana Oat Blend"]

    assert client_for(other).delete(f"/dashboard/recipes/{recipe_id}").status_code == 404
    assert c.delete(f"/dashboard/recipes/{recipe_id}").status_code == 204
    assert c.get("/dashboard/recipes").json() == []
