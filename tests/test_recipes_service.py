from __future__ import annotations

import base64
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from core.exceptions import InvalidCursorError, InvalidQueryError, RecipeSizeLimitError
from models.recipe_models import Recipe, RecipeTag
from schemas.recipe_schemas import RecipeListQuery, RecipeSchema, SaveRecipeRequest
from services.recipes_service import (
    END_OF_RESULTS_MESSAGE,
    NO_MATCHES_MESSAGE,
    NO_RECIPES_MESSAGE,
    RecipesService,
)
from tests.conftest import make_recipe_payload
from utils.cursor import encode_cursor

USER = "user-1"
BASE_TIME = datetime(2025, 1, 15, 10, 0, 0, tzinfo=timezone.utc)


async def _seed(session, rows):
    """rows: iterable of (minutes_offset, id_suffix, title, tags, language, user_id)"""
    ids = []
    for minutes, suffix, title, tags, language, user_id in rows:
        recipe_id = uuid.UUID(f"00000000-0000-4000-8000-{suffix:012d}")
        session.add(Recipe(
            id=recipe_id,
            user_id=user_id,
            title=title,
            summary=f"{title} summary",
            language=language,
            recipe=make_recipe_payload(title=title, tags=tags),
            ingredients_text="flour\nwater",
            tags=tags,
            tag_rows=[RecipeTag(tag=tag) for tag in tags],
            created_at=BASE_TIME + timedelta(minutes=minutes),
            updated_at=BASE_TIME + timedelta(minutes=minutes),
        ))
        ids.append(recipe_id)
    await session.flush()
    return ids


async def _seed_uniform(session, count, user_id=USER):
    return await _seed(session, [
        (i, i + 1, f"Recipe {i}", ["dinner"], "en", user_id) for i in range(count)
    ])


async def _collect_all_pages(service, limit, sort="recent"):
    ids = []
    cursor = None
    pages = 0
    while True:
        page = await service.list_recipes(
            RecipeListQuery(limit=limit, sort=sort, cursor=cursor), user_id=USER
        )
        ids.extend(item.id for item in page.data)
        pages += 1
        if not page.pagination.has_more:
            assert page.pagination.next_cursor is None
            return ids, pages
        assert page.pagination.next_cursor is not None
        cursor = page.pagination.next_cursor


async def test_recent_sort_is_descending(db_session) -> None:
    ids = await _seed_uniform(db_session, 3)
    service = RecipesService(db_session)

    page = await service.list_recipes(RecipeListQuery(), user_id=USER)

    assert [item.id for item in page.data] == list(reversed(ids))
    assert page.pagination.total_count == 3
    assert page.pagination.has_more is False
    assert page.pagination.next_cursor is None
    assert page.message is None


async def test_has_more_exactly_at_limit_and_limit_plus_one(db_session) -> None:
    await _seed_uniform(db_session, 5)
    service = RecipesService(db_session)

    exact = await service.list_recipes(RecipeListQuery(limit=5), user_id=USER)
    assert len(exact.data) == 5
    assert exact.pagination.has_more is False
    assert exact.pagination.next_cursor is None

    short = await service.list_recipes(RecipeListQuery(limit=4), user_id=USER)
    assert len(short.data) == 4
    assert short.pagination.has_more is True
    last = short.data[-1]
    assert short.pagination.next_cursor == encode_cursor(last.created_at, last.id)


async def test_paging_forward_matches_single_fetch(db_session) -> None:
    await _seed_uniform(db_session, 7)
    service = RecipesService(db_session)

    single = await service.list_recipes(RecipeListQuery(limit=100), user_id=USER)
    paged, pages = await _collect_all_pages(service, limit=3)

    assert paged == [item.id for item in single.data]
    assert pages == 3


async def test_same_cursor_returns_same_page(db_session) -> None:
    await _seed_uniform(db_session, 6)
    service = RecipesService(db_session)

    first = await service.list_recipes(RecipeListQuery(limit=2), user_id=USER)
    cursor = first.pagination.next_cursor

    again = await service.list_recipes(RecipeListQuery(limit=2, cursor=cursor), user_id=USER)
    once_more = await service.list_recipes(RecipeListQuery(limit=2, cursor=cursor), user_id=USER)

    assert [i.id for i in again.data] == [i.id for i in once_more.data]
    assert not set(i.id for i in again.data) & set(i.id for i in first.data)


@pytest.mark.parametrize("sort", ["recent", "oldest"])
async def test_identical_timestamps_split_across_pages(db_session, sort) -> None:
    # Five rows share one timestamp; only the id breaks the tie
    await _seed(db_session, [
        (0, suffix, f"Tie {suffix}", ["dinner"], "en", USER) for suffix in (5, 3, 1, 4, 2)
    ])
    service = RecipesService(db_session)

    paged, _ = await _collect_all_pages(service, limit=2, sort=sort)

    expected = sorted(paged, reverse=(sort == "recent"))
    assert paged == expected
    assert len(set(paged)) == 5


async def test_oldest_sort_paging(db_session) -> None:
    ids = await _seed_uniform(db_session, 5)
    service = RecipesService(db_session)

    paged, _ = await _collect_all_pages(service, limit=2, sort="oldest")

    assert paged == ids


async def test_other_users_rows_are_excluded(db_session) -> None:
    await _seed_uniform(db_session, 2)
    await _seed(db_session, [(10, 99, "Foreign", ["dinner"], "en", "user-2")])
    service = RecipesService(db_session)

    page = await service.list_recipes(RecipeListQuery(), user_id=USER)

    assert page.pagination.total_count == 2
    assert all(item.title != "Foreign" for item in page.data)


async def test_tag_filter_uses_or_semantics(db_session) -> None:
    await _seed(db_session, [
        (0, 1, "Pancakes", ["breakfast", "sweet"], "en", USER),
        (1, 2, "Steak", ["dinner"], "en", USER),
        (2, 3, "Salad", ["lunch", "healthy"], "en", USER),
    ])
    service = RecipesService(db_session)

    page = await service.list_recipes(RecipeListQuery(tags="Sweet, lunch"), user_id=USER)

    assert {item.title for item in page.data} == {"Pancakes", "Salad"}
    assert page.pagination.total_count == 2


async def test_language_and_search_filters(db_session) -> None:
    await _seed(db_session, [
        (0, 1, "Tomato Soup", ["soup"], "en", USER),
        (1, 2, "Zupa pomidorowa", ["zupa"], "pl", USER),
        (2, 3, "Garlic Bread", ["side"], "en", USER),
    ])
    service = RecipesService(db_session)

    polish = await service.list_recipes(RecipeListQuery(lang="pl"), user_id=USER)
    assert [item.title for item in polish.data] == ["Zupa pomidorowa"]

    search = await service.list_recipes(RecipeListQuery(search="tomato SOUP"), user_id=USER)
    assert [item.title for item in search.data] == ["Tomato Soup"]

    by_ingredient = await service.list_recipes(RecipeListQuery(search="flour"), user_id=USER)
    assert by_ingredient.pagination.total_count == 3

    literal = await service.list_recipes(RecipeListQuery(search="100%"), user_id=USER)
    assert literal.data == []


async def test_offset_mode_never_emits_cursor(db_session) -> None:
    ids = await _seed_uniform(db_session, 5)
    service = RecipesService(db_session)

    page = await service.list_recipes(RecipeListQuery(limit=2, offset=1), user_id=USER)

    assert [item.id for item in page.data] == [ids[3], ids[2]]
    assert page.pagination.has_more is True
    assert page.pagination.next_cursor is None


async def test_cursor_and_offset_together_rejected(db_session) -> None:
    service = RecipesService(db_session)
    query = RecipeListQuery.model_construct(
        search=None, tags=None, lang=None, sort="recent", limit=20,
        cursor=encode_cursor("2025-01-15T10:00:00Z", str(uuid.uuid4())), offset=5,
    )

    with pytest.raises(InvalidQueryError):
        await service.list_recipes(query, user_id=USER)

    with pytest.raises(ValueError):
        RecipeListQuery(cursor="abc", offset=1)


async def test_invalid_cursor_raises(db_session) -> None:
    service = RecipesService(db_session)

    with pytest.raises(InvalidCursorError):
        await service.list_recipes(RecipeListQuery(cursor="definitely-not-base64!"), user_id=USER)


async def test_empty_page_messages(db_session) -> None:
    service = RecipesService(db_session)

    nothing = await service.list_recipes(RecipeListQuery(), user_id=USER)
    assert nothing.message == NO_RECIPES_MESSAGE
    assert nothing.pagination.total_count == 0

    await _seed_uniform(db_session, 1)

    filtered = await service.list_recipes(RecipeListQuery(tags="nope"), user_id=USER)
    assert filtered.message == NO_MATCHES_MESSAGE

    past_end = await service.list_recipes(RecipeListQuery(offset=10), user_id=USER)
    assert past_end.message == END_OF_RESULTS_MESSAGE
    assert past_end.pagination.total_count == 1


async def test_save_get_and_delete_recipe(db_session) -> None:
    service = RecipesService(db_session)
    request = SaveRecipeRequest(
        recipe=RecipeSchema.model_validate(make_recipe_payload()),
        tags=[" Dinner ", "dinner", "Family"],
        language="en",
    )

    summary = await service.save_recipe(USER, request)

    assert summary.user_id == USER
    assert summary.tags == ["dinner", "family"]
    assert summary.title == "Lemon Herb Chicken"

    details = await service.get_recipe(summary.id, USER)
    assert details is not None
    assert details.recipe["ingredients"] == make_recipe_payload()["ingredients"]

    assert await service.get_recipe(summary.id, "someone-else") is None
    assert await service.delete_recipe(summary.id, "someone-else") is False

    listed = await service.list_recipes(RecipeListQuery(tags="family"), user_id=USER)
    assert [item.id for item in listed.data] == [summary.id]

    assert await service.delete_recipe(summary.id, USER) is True
    assert await service.get_recipe(summary.id, USER) is None
    assert await service.delete_recipe(summary.id, USER) is False


async def test_save_recipe_falls_back_to_recipe_tags(db_session) -> None:
    service = RecipesService(db_session)
    request = SaveRecipeRequest(recipe=RecipeSchema.model_validate(make_recipe_payload(tags=["Roast", "Dinner"])))

    summary = await service.save_recipe(USER, request)

    assert summary.tags == ["roast", "dinner"]


async def test_save_recipe_rejects_oversized_payload(db_session) -> None:
    service = RecipesService(db_session)
    recipe = RecipeSchema.model_validate(make_recipe_payload(
        ingredients=["ż" * 500] * 100,
        instructions=["ż" * 2000] * 50,
    ))

    with pytest.raises(RecipeSizeLimitError):
        await service.save_recipe(USER, SaveRecipeRequest(recipe=recipe))


async def test_cursor_with_trailing_newline_raises_invalid_cursor(db_session) -> None:
    await _seed_uniform(db_session, 2)
    service = RecipesService(db_session)
    payload = f"2025-01-15T10:30:45Z:{uuid.UUID(int=1)}\n"
    token = base64.b64encode(payload.encode("utf-8")).decode("ascii")

    with pytest.raises(InvalidCursorError):
        await service.list_recipes(RecipeListQuery(cursor=token), user_id=USER)


async def test_filtered_cursor_past_last_match_reports_end_of_results(db_session) -> None:
    await _seed(db_session, [
        (0, 1, "Pancakes", ["breakfast"], "en", USER),
        (1, 2, "Steak", ["dinner"], "en", USER),
    ])
    service = RecipesService(db_session)
    past_last = encode_cursor(BASE_TIME - timedelta(minutes=1), uuid.UUID(int=0))

    page = await service.list_recipes(RecipeListQuery(tags="breakfast", cursor=past_last), user_id=USER)

    assert page.data == []
    assert page.pagination.total_count == 1
    assert page.message == END_OF_RESULTS_MESSAGE
