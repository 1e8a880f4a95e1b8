"""
Savor AI Recipe Parser
Turns raw model output into a validated RecipeSchema
"""

import json
import re
from typing import Any

from pydantic import ValidationError

from core.exceptions import AIValidationError
from schemas.recipe_schemas import RecipeSchema


FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


def extract_json(content: str) -> str:
    """Return the body of the first fenced code block, or the trimmed text"""
    match = FENCED_BLOCK.search(content)
    if match:
        return match.group(1).strip()
    return content.strip()


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(loc) for loc in item.get("loc", ())) or "recipe"
        parts.append(f"{location}: {item.get('msg')}")
    return "; ".join(parts)


def parse_recipe_json(content: str) -> Any:
    raw = extract_json(content)
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise AIValidationError(f"Failed to parse recipe JSON: {e.msg}") from e


def parse_and_validate(content: str) -> RecipeSchema:
    """Strip code fences, decode JSON and validate against the recipe schema"""
    data = parse_recipe_json(content)
    try:
        return RecipeSchema.model_validate(data)
    except ValidationError as e:
        raise AIValidationError(f"Recipe schema validation failed: {_format_validation_error(e)}") from e
