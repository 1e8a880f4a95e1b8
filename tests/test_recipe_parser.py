from __future__ import annotations

import json

import pytest

from core.exceptions import AIValidationError
from services.recipe_parser import extract_json, parse_and_validate
from tests.conftest import make_recipe_payload


def test_extract_json_strips_fenced_block() -> None:
    text = 'Here you go:\n```json\n{"a": 1}\n```\nEnjoy!'
    assert extract_json(text) == '{"a": 1}'

    bare_fence = '```\n{"b": 2}\n```'
    assert extract_json(bare_fence) == '{"b": 2}'


def test_extract_json_defaults_to_trimmed_text() -> None:
    assert extract_json('   {"a": 1}\n  ') == '{"a": 1}'


def test_parse_and_validate_accepts_fenced_recipe() -> None:
    payload = make_recipe_payload()
    text = f"```json\n{json.dumps(payload)}\n```"

    recipe = parse_and_validate(text)

    assert recipe.title == payload["title"]
    assert recipe.difficulty == "medium"
    assert recipe.ingredients == payload["ingredients"]
    assert recipe.dietary_info.gluten_free is True


def test_parse_and_validate_accepts_integral_floats_and_extra_keys() -> None:
    payload = make_recipe_payload(
        servings=4.0,
        dietary_info={"vegan": True, "low_fodmap": False},
        nutrition={"calories": 300, "fiber_g": 7.5},
        unexpected_field="dropped",
    )

    recipe = parse_and_validate(json.dumps(payload))

    assert recipe.servings == 4
    assert recipe.to_payload()["dietary_info"]["low_fodmap"] is False
    assert recipe.to_payload()["nutrition"]["fiber_g"] == 7.5
    assert "unexpected_field" not in recipe.to_payload()


def test_invalid_json_raises_validation_error() -> None:
    with pytest.raises(AIValidationError) as excinfo:
        parse_and_validate("this is not json {")

    assert excinfo.value.message.startswith("Failed to parse recipe JSON")
    assert excinfo.value.retryable is True


@pytest.mark.parametrize(
    "overrides",
    [
        {"ingredients": []},
        {"instructions": []},
        {"servings": 0},
        {"servings": 101},
        {"prep_time_minutes": 1441},
        {"cook_time_minutes": -1},
        {"difficulty": "extreme"},
        {"title": ""},
        {"title": "x" * 201},
        {"servings": "4"},
        {"servings": 2.5},
        {"servings": True},
        {"dietary_info": {"vegan": "yes"}},
        {"nutrition": {"calories": -10}},
        {"tags": ["t"] * 21},
    ],
)
def test_schema_violations_raise_validation_error(overrides: dict) -> None:
    payload = make_recipe_payload(**overrides)

    with pytest.raises(AIValidationError) as excinfo:
        parse_and_validate(json.dumps(payload))

    assert excinfo.value.message.startswith("Recipe schema validation failed")


def test_missing_required_field_is_reported() -> None:
    payload = make_recipe_payload()
    del payload["instructions"]

    with pytest.raises(AIValidationError) as excinfo:
        parse_and_validate(json.dumps(payload))

    assert "instructions" in excinfo.value.message


def test_non_object_json_is_rejected() -> None:
    with pytest.raises(AIValidationError):
        parse_and_validate("[1, 2, 3]")
