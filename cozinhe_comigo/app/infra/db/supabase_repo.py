from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from postgrest.exceptions import APIError
from supabase import Client

from cozinhe_comigo.app.domain.errors import RepositoryError
from cozinhe_comigo.app.domain.models import (
    Recipe,
    RecipeDraft,
    RecipePage,
    RecipeQuery,
    SortField,
    Token,
    User,
)
from cozinhe_comigo.app.infra.db.base import RecipeRepository, TokenRepository, UserRepository

logger = logging.getLogger(__name__)

RECIPE_COLUMNS = (
    "id,user_id,title,ingredients,instructions,image_url,video_url,created_at,"
    "review_count,average_rating,is_public,categories,portions,preparation_time"
)
USER_COLUMNS = "id,name,email,profile_picture_url,biography"

SORT_COLUMNS: dict[SortField, str] = {
    SortField.TITLE: "title",
    SortField.PREPARATION_TIME: "preparation_time",
    SortField.PORTIONS: "portions",
    SortField.CREATED_AT: "created_at",
    SortField.REVIEW_COUNT: "review_count",
    SortField.AVERAGE_RATING: "average_rating",
}

_NETWORK_ERRORS = (ConnectionError, TimeoutError, APIError)

# PostgREST answers an offset past the last matching row with 416
RANGE_NOT_SATISFIABLE = "PGRST103"


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value: str | datetime | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            normalized = value.replace("Z", "+00:00") if value.endswith("Z") else value
            parsed = datetime.fromisoformat(normalized)
        except ValueError:
            return None
    else:
        return None
    # timestamp columns without zone are stored as UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _safe_int(value: object) -> int | None:
    if value is None:
        return None
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def _str_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


def _like_term(term: str) -> str:
    """
    Substring pattern for `ilike` where the user's text matches literally.
    PostgREST rewrites every `*` to `%` and has no escape for it, so `*`
    becomes the single-character wildcard `_`, which still matches a literal `*`.
    """
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped.replace('*', '_')}%"


def row_to_recipe(row: dict[str, Any]) -> Recipe:
    return Recipe(
        id=int(row["id"]),
        user_id=int(row["user_id"]),
        title=str(row.get("title") or ""),
        ingredients=_str_list(row.get("ingredients")),
        instructions=str(row.get("instructions") or ""),
        image_url=row.get("image_url") or None,
        video_url=row.get("video_url") or None,
        created_at=_parse_datetime(row.get("created_at")),
        review_count=_safe_int(row.get("review_count")) or 0,
        average_rating=float(row.get("average_rating") or 0),
        is_public=bool(row.get("is_public")),
        categories=_str_list(row.get("categories")),
        portions=_safe_int(row.get("portions")),
        preparation_time=_safe_int(row.get("preparation_time")),
    )


def row_to_user(row: dict[str, Any]) -> User:
    return User(
        id=int(row["id"]),
        name=str(row.get("name") or ""),
        email=row.get("email"),
        profile_picture_url=row.get("profile_picture_url"),
        biography=row.get("biography"),
    )


class SupabaseTokenRepository(TokenRepository):
    TABLE_NAME = "tokens"

    def __init__(self, client: Client):
        self._client = client

    def get_token(self, token: str) -> Token | None:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select("token,user_id,expires_at")
                .eq("token", token)
                .limit(1)
                .execute()
            )
        except _NETWORK_ERRORS as error:
            logger.error("Error looking up token: %s", error)
            raise RepositoryError("get_token", str(error)) from error

        rows = result.data or []
        if not rows:
            return None
        row = rows[0]
        expires_at = _parse_datetime(row.get("expires_at"))
        if expires_at is None:
            # a token without a usable expiry can never be honoured
            expires_at = datetime.min.replace(tzinfo=timezone.utc)
        return Token(token=str(row["token"]), user_id=int(row["user_id"]), expires_at=expires_at)


class SupabaseUserRepository(UserRepository):
    TABLE_NAME = "users"

    def __init__(self, client: Client):
        self._client = client

    def get_user(self, user_id: int) -> User | None:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select(USER_COLUMNS)
                .eq("id", user_id)
                .limit(1)
                .execute()
            )
        except _NETWORK_ERRORS as error:
            logger.error("Error loading user %s: %s", user_id, error)
            raise RepositoryError("get_user", str(error)) from error

        rows = result.data or []
        return row_to_user(rows[0]) if rows else None


class SupabaseRecipeRepository(RecipeRepository):
    TABLE_NAME = "recipes"

    def __init__(self, client: Client):
        self._client = client

    def _filtered(self, query: RecipeQuery, columns: str) -> Any:
        builder = self._client.table(self.TABLE_NAME).select(columns, count="exact")

        if query.viewer_id is None:
            builder = builder.eq("is_public", True)
        else:
            builder = builder.or_(f"is_public.eq.true,user_id.eq.{int(query.viewer_id)}")

        if query.title_search:
            builder = builder.ilike("title", _like_term(query.title_search))

        bounds = (
            ("preparation_time", query.min_preparation_time, query.max_preparation_time),
            ("average_rating", query.min_rating, query.max_rating),
            ("portions", query.min_portions, query.max_portions),
        )
        for column, low, high in bounds:
            if low is not None:
                builder = builder.gte(column, low)
            if high is not None:
                builder = builder.lte(column, high)

        if query.user_id is not None:
            builder = builder.eq("user_id", query.user_id)

        if query.categories:
            builder = builder.overlaps("categories", list(query.categories))
        return builder

    def _count(self, query: RecipeQuery) -> int:
        try:
            result = self._filtered(query, "id").limit(1).execute()
        except _NETWORK_ERRORS as error:
            logger.error("Error counting recipes: %s", error)
            raise RepositoryError("query_recipes", str(error)) from error
        return getattr(result, "count", None) or 0

    def query_recipes(self, query: RecipeQuery) -> RecipePage:
        builder = self._filtered(query, RECIPE_COLUMNS)
        if query.sort_by is not None:
            builder = builder.order(SORT_COLUMNS[query.sort_by], desc=query.sort_descending)

        end = query.offset + query.limit - 1
        try:
            result = builder.range(query.offset, end).execute()
        except APIError as error:
            if error.code != RANGE_NOT_SATISFIABLE:
                logger.error("Error querying recipes: %s", error)
                raise RepositoryError("query_recipes", str(error)) from error
            # page past the end: no rows, but the total is still reported
            return RecipePage(items=[], total=self._count(query))
        except (ConnectionError, TimeoutError) as error:
            logger.error("Error querying recipes: %s", error)
            raise RepositoryError("query_recipes", str(error)) from error

        rows = result.data or []
        items = [row_to_recipe(row) for row in rows]
        total = getattr(result, "count", None)
        if total is None:
            total = query.offset + len(items)
        return RecipePage(items=items, total=total)

    def get_recipe(self, recipe_id: int) -> Recipe | None:
        try:
            result = (
                self._client.table(self.TABLE_NAME)
                .select(RECIPE_COLUMNS)
                .eq("id", recipe_id)
                .limit(1)
                .execute()
            )
        except _NETWORK_ERRORS as error:
            logger.error("Error loading recipe %s: %s", recipe_id, error)
            raise RepositoryError("get_recipe", str(error)) from error

        rows = result.data or []
        return row_to_recipe(rows[0]) if rows else None

    def insert_recipe(self, draft: RecipeDraft) -> Recipe:
        payload = {
            "user_id": draft.user_id,
            "title": draft.title,
            "ingredients": list(draft.ingredients),
            "instructions": draft.instructions,
            "image_url": draft.image_url,
            "video_url": draft.video_url,
            "created_at": _now_utc().isoformat(),
            "review_count": 0,
            "average_rating": 0,
            "is_public": draft.is_public,
            "categories": list(draft.categories),
            "portions": draft.portions,
            "preparation_time": draft.preparation_time,
        }
        try:
            result = self._client.table(self.TABLE_NAME).insert(payload).execute()
        except _NETWORK_ERRORS as error:
            logger.error("Error inserting recipe for user %s: %s", draft.user_id, error)
            raise RepositoryError("insert_recipe", str(error)) from error

        if not result.data:
            raise RepositoryError("insert_recipe", "no rows affected")

        recipe = row_to_recipe(result.data[0])
        logger.info("Created recipe: id=%s, user=%s", recipe.id, recipe.user_id)
        return recipe
