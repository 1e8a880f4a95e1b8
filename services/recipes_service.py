"""
Savor AI Recipes Service
Saved recipe persistence and keyset-paginated listing
"""

import uuid
from typing import List, Optional

from sqlalchemy import and_, delete, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from core.exceptions import DislikedIngredientError, InvalidQueryError, RecipeSizeLimitError
from models.profile_models import Profile
from models.recipe_models import Recipe, RecipeTag
from schemas.recipe_schemas import (
    MAX_RECIPE_BYTES,
    PaginationMeta,
    RecipeDetails,
    RecipeListItem,
    RecipeListQuery,
    RecipeListResponse,
    RecipeSummary,
    SaveRecipeRequest,
    normalize_tags,
)
from utils.cursor import decode_cursor, encode_cursor

logger = structlog.get_logger()

NO_MATCHES_MESSAGE = "No recipes found matching your search criteria"
NO_RECIPES_MESSAGE = "You haven't saved any recipes yet"
END_OF_RESULTS_MESSAGE = "No more recipes to show"


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def find_disliked_ingredients(ingredients: List[str], disliked: List[str]) -> List[str]:
    """Disliked items appearing in any ingredient line (case-insensitive substring)"""
    lines = [line.lower() for line in ingredients]
    return [item for item in disliked if item and any(item.lower() in line for line in lines)]


class RecipesService:
    """Query planner and persistence operations for saved recipes"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _build_filters(self, query: RecipeListQuery, user_id: Optional[str]) -> List:
        filters = []

        if user_id is not None:
            filters.append(Recipe.user_id == user_id)

        if query.lang:
            filters.append(Recipe.language == query.lang)

        # OR semantics: any shared tag is a match
        if query.tags:
            filters.append(
                exists().where(
                    RecipeTag.recipe_id == Recipe.id,
                    RecipeTag.tag.in_(query.tags),
                )
            )

        # AND semantics across search terms
        if query.search:
            for term in query.search.split():
                pattern = f"%{_escape_like(term)}%"
                filters.append(
                    or_(
                        Recipe.title.ilike(pattern, escape="\\"),
                        Recipe.summary.ilike(pattern, escape="\\"),
                        Recipe.ingredients_text.ilike(pattern, escape="\\"),
                    )
                )

        return filters

    async def list_recipes(self, query: RecipeListQuery, user_id: Optional[str] = None) -> RecipeListResponse:
        """
        List recipes ordered by (created_at, id).

        Cursor mode adds a keyset predicate after the cursor row and emits a
        next cursor while more rows remain; offset mode uses a positional
        window and never emits a cursor.
        """
        if query.cursor is not None and query.offset is not None:
            raise InvalidQueryError("Cannot use both 'cursor' and 'offset' parameters")

        filters = self._build_filters(query, user_id)
        ascending = query.sort == "oldest"

        stmt = select(Recipe).where(*filters)
        if ascending:
            stmt = stmt.order_by(Recipe.created_at.asc(), Recipe.id.asc())
        else:
            stmt = stmt.order_by(Recipe.created_at.desc(), Recipe.id.desc())

        if query.cursor is not None:
            cursor = decode_cursor(query.cursor)
            cursor_ts = cursor.created_at_datetime
            cursor_id = cursor.uuid

            if ascending:
                stmt = stmt.where(
                    or_(
                        Recipe.created_at > cursor_ts,
                        and_(Recipe.created_at == cursor_ts, Recipe.id > cursor_id),
                    )
                )
            else:
                stmt = stmt.where(
                    or_(
                        Recipe.created_at < cursor_ts,
                        and_(Recipe.created_at == cursor_ts, Recipe.id < cursor_id),
                    )
                )
        elif query.offset:
            stmt = stmt.offset(query.offset)

        stmt = stmt.limit(query.limit + 1)

        rows = list((await self.session.execute(stmt)).scalars().all())
        has_more = len(rows) > query.limit
        page = rows[:query.limit]

        next_cursor = None
        if has_more and page and query.offset is None:
            last = page[-1]
            next_cursor = encode_cursor(last.created_at, last.id)

        total_count = await self._count(filters)

        response = RecipeListResponse(
            data=[RecipeListItem.model_validate(row.to_list_item()) for row in page],
            pagination=PaginationMeta(
                limit=query.limit,
                next_cursor=next_cursor,
                has_more=has_more,
                total_count=total_count,
            ),
        )

        if not page:
            if total_count > 0:
                response.message = END_OF_RESULTS_MESSAGE
            elif query.has_filters:
                response.message = NO_MATCHES_MESSAGE
            else:
                response.message = NO_RECIPES_MESSAGE

        logger.debug(
            "Recipes listed",
            user_id=user_id,
            sort=query.sort,
            returned=len(page),
            has_more=has_more,
            total_count=total_count,
            mode="offset" if query.offset is not None else "cursor",
        )
        return response

    async def _count(self, filters: List) -> int:
        stmt = select(func.count()).select_from(Recipe).where(*filters)
        return (await self.session.execute(stmt)).scalar_one()

    async def save_recipe(self, user_id: str, request: SaveRecipeRequest) -> RecipeSummary:
        """Persist a generated recipe for a user and return its summary"""
        recipe = request.recipe
        size_bytes = recipe.serialized_size()
        if size_bytes >= MAX_RECIPE_BYTES:
            raise RecipeSizeLimitError(size_bytes, MAX_RECIPE_BYTES)

        await self._check_disliked_ingredients(user_id, recipe.ingredients)

        tags = normalize_tags(request.tags if request.tags is not None else recipe.tags)

        row = Recipe(
            user_id=user_id,
            title=recipe.title,
            summary=recipe.summary,
            language=request.language,
            recipe=recipe.to_payload(),
            ingredients_text="\n".join(recipe.ingredients),
            tags=tags,
            tag_rows=[RecipeTag(tag=tag) for tag in tags],
        )
        self.session.add(row)
        await self.session.flush()

        logger.info("Recipe saved", user_id=user_id, recipe_id=str(row.id), size_bytes=size_bytes, tags=tags)
        return RecipeSummary.model_validate(row.to_dict())

    async def _check_disliked_ingredients(self, user_id: str, ingredients: List[str]) -> None:
        stmt = select(Profile.disliked_ingredients).where(Profile.user_id == user_id)
        disliked = (await self.session.execute(stmt)).scalar_one_or_none() or []
        matches = find_disliked_ingredients(ingredients, disliked)
        if matches:
            logger.info("Recipe rejected for disliked ingredients", user_id=user_id, matches=matches)
            raise DislikedIngredientError(matches)

    async def get_recipe(self, recipe_id: uuid.UUID, user_id: str) -> Optional[RecipeDetails]:
        """Recipe details, or None when missing or owned by someone else"""
        stmt = select(Recipe).where(Recipe.id == recipe_id, Recipe.user_id == user_id)
        row = (await self.session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return RecipeDetails.model_validate(row.to_dict())

    async def delete_recipe(self, recipe_id: uuid.UUID, user_id: str) -> bool:
        # Tag rows first; SQLite does not enforce ON DELETE CASCADE by default
        owned = select(Recipe.id).where(Recipe.id == recipe_id, Recipe.user_id == user_id)
        await self.session.execute(delete(RecipeTag).where(RecipeTag.recipe_id.in_(owned)))

        result = await self.session.execute(
            delete(Recipe).where(Recipe.id == recipe_id, Recipe.user_id == user_id)
        )
        deleted = result.rowcount > 0

        logger.info("Recipe delete requested", user_id=user_id, recipe_id=str(recipe_id), deleted=deleted)
        return deleted
