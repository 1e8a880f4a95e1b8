"""
Savor AI Recipe Endpoints
Recipe generation, listing and saved recipe management
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Query, Response, status
from pydantic import ValidationError
import structlog

from core.dependencies import (
    AIServiceDep,
    CurrentUserId,
    EventsServiceDep,
    ProfilesServiceDep,
    RateLimiterDep,
    RecipesServiceDep,
)
from core.exceptions import InvalidQueryError, RecipeNotFoundError
from middleware.logging import get_request_id, log_business_event
from schemas.recipe_schemas import (
    GenerateRecipeRequest,
    GenerateRecipeResponse,
    RecipeDetails,
    RecipeListQuery,
    RecipeListResponse,
    RecipeSummary,
    SaveRecipeRequest,
)
from services.events_service import EventsService

logger = structlog.get_logger()
router = APIRouter()


def _validation_message(error: ValidationError) -> str:
    messages = []
    for item in error.errors():
        location = ".".join(str(loc) for loc in item.get("loc", ()))
        message = item.get("msg", "Invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)


@router.post("/generate", response_model=GenerateRecipeResponse)
async def generate_recipe(
    request: GenerateRecipeRequest,
    response: Response,
    user_id: CurrentUserId,
    ai_service: AIServiceDep,
    events_service: EventsServiceDep,
    profiles_service: ProfilesServiceDep,
    rate_limiter: RateLimiterDep,
):
    """
    Generate a structured recipe from a free-text prompt
    Errors are mapped by the application exception handlers
    """
    await rate_limiter.check(events_service, user_id)

    # An inline profile wins over the stored one
    profile = request.profile
    if profile is None:
        profile = await profiles_service.get_preferences(user_id)

    language = ai_service.resolve_language(profile, request.lang)

    await events_service.record_event(user_id, "ai_prompt_sent", {
        "prompt_preview": EventsService.truncate_prompt(request.prompt),
        "request_id": get_request_id(),
        "provider": ai_service.provider.name,
    })

    recipe = await ai_service.generate_recipe(request.prompt, profile, request.lang)

    generation_id = uuid.uuid4()
    await events_service.record_event(user_id, "ai_recipe_generated", {
        "generation_id": str(generation_id),
        "title": recipe.title,
        "tags": recipe.tags or [],
        "request_id": get_request_id(),
    })
    log_business_event("recipe_generated", {
        "generation_id": str(generation_id),
        "language": language,
        "title": recipe.title,
    })

    response.headers["Content-Language"] = language
    return GenerateRecipeResponse(
        recipe=recipe,
        generation_id=generation_id,
        generated_at=datetime.now(timezone.utc),
    )


@router.get("/", response_model=RecipeListResponse)
async def list_recipes(
    user_id: CurrentUserId,
    recipes_service: RecipesServiceDep,
    search: Optional[str] = Query(None, description="Full-text search terms"),
    tags: Optional[str] = Query(None, description="Comma-separated tags (OR semantics)"),
    lang: Optional[str] = Query(None, description="Recipe language"),
    sort: str = Query("recent", description="recent or oldest"),
    limit: int = Query(20, description="Page size (1-100)"),
    cursor: Optional[str] = Query(None, description="Opaque cursor from a previous page"),
    offset: Optional[int] = Query(None, description="Positional offset (alternative to cursor)"),
):
    """Get saved recipes with filtering and keyset pagination"""
    try:
        query = RecipeListQuery(
            search=search,
            tags=tags,
            lang=lang,
            sort=sort,
            limit=limit,
            cursor=cursor,
            offset=offset,
        )
    except ValidationError as e:
        raise InvalidQueryError(_validation_message(e)) from e

    return await recipes_service.list_recipes(query, user_id=user_id)


@router.post("/", response_model=RecipeSummary, status_code=status.HTTP_201_CREATED)
async def save_recipe(
    request: SaveRecipeRequest,
    user_id: CurrentUserId,
    recipes_service: RecipesServiceDep,
    events_service: EventsServiceDep,
):
    """Save a generated recipe to the caller's collection"""
    summary = await recipes_service.save_recipe(user_id, request)
    log_business_event("recipe_saved", {"recipe_id": str(summary.id), "tags": summary.tags})
    await events_service.record_event(user_id, "recipe_saved", {
        "recipe_id": str(summary.id),
        "title": summary.title,
        "tags": summary.tags,
        "language": summary.language,
        "request_id": get_request_id(),
    })
    return summary


@router.get("/{recipe_id}", response_model=RecipeDetails)
async def get_recipe(
    recipe_id: uuid.UUID,
    user_id: CurrentUserId,
    recipes_service: RecipesServiceDep,
):
    """Get a saved recipe with its full payload"""
    recipe = await recipes_service.get_recipe(recipe_id, user_id)
    if recipe is None:
        raise RecipeNotFoundError()
    return recipe


@router.delete("/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recipe(
    recipe_id: uuid.UUID,
    user_id: CurrentUserId,
    recipes_service: RecipesServiceDep,
):
    """Delete a saved recipe"""
    deleted = await recipes_service.delete_recipe(recipe_id, user_id)
    if not deleted:
        raise RecipeNotFoundError()
    log_business_event("recipe_deleted", {"recipe_id": str(recipe_id)})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
