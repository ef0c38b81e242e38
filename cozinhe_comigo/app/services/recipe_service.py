# cozinhe_comigo/app/services/recipe_service.py
"""
Recipe catalog service.
Resolves the caller from its token and applies visibility rules to reads and writes.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from starlette.concurrency import run_in_threadpool

from cozinhe_comigo.app.domain.errors import (
    AuthorizationError,
    DataIntegrityError,
    InvalidRequestError,
    RecipeNotFoundError,
)
from cozinhe_comigo.app.domain.models import (
    MAX_PAGE_SIZE,
    Recipe,
    RecipeDetail,
    RecipeDraft,
    RecipeFilter,
    RecipeListResult,
    RecipeQuery,
    Token,
)
from cozinhe_comigo.app.infra.db.base import RecipeRepository, TokenRepository, UserRepository

logger = logging.getLogger(__name__)

INVALID_TOKEN_MESSAGE = "invalid or expired token"
OWNER_MISMATCH_MESSAGE = "owner mismatch"


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def validate_pagination(recipe_filter: RecipeFilter) -> None:
    if recipe_filter.page_size <= 0 or recipe_filter.page_size > MAX_PAGE_SIZE:
        raise InvalidRequestError("invalid page size")
    if recipe_filter.page_number <= 0:
        raise InvalidRequestError("invalid page number")


def build_query(recipe_filter: RecipeFilter, viewer_id: Optional[int]) -> RecipeQuery:
    """Translate a validated filter into a repository query for the given viewer."""
    title = (recipe_filter.title_search or "").strip() or None
    categories = tuple(
        dict.fromkeys(c.strip() for c in recipe_filter.categories if c and c.strip())
    )
    return RecipeQuery(
        viewer_id=viewer_id,
        title_search=title,
        categories=categories,
        min_rating=recipe_filter.min_rating,
        max_rating=recipe_filter.max_rating,
        min_preparation_time=recipe_filter.min_preparation_time,
        max_preparation_time=recipe_filter.max_preparation_time,
        min_portions=recipe_filter.min_portions,
        max_portions=recipe_filter.max_portions,
        user_id=recipe_filter.user_id,
        sort_by=recipe_filter.sort_by,
        sort_descending=recipe_filter.sort_descending,
        offset=(recipe_filter.page_number - 1) * recipe_filter.page_size,
        limit=recipe_filter.page_size,
    )


class RecipeService:
    """
    Service for reading and publishing recipes.

    Responsibilities:
    - Resolve the caller from an optional token
    - Enforce public/private visibility
    - Translate listing filters into repository queries
    - Join author profiles into single-recipe reads
    """

    def __init__(
        self,
        tokens: TokenRepository,
        users: UserRepository,
        recipes: RecipeRepository,
        clock: Callable[[], datetime] = _now_utc,
    ):
        self._tokens = tokens
        self._users = users
        self._recipes = recipes
        self._clock = clock

    async def resolve_caller(self, caller_token: Optional[str]) -> Optional[Token]:
        """
        Resolve the caller behind a token.

        Args:
            caller_token: Token sent by the client, possibly empty

        Returns:
            The valid token, or None for an anonymous caller

        Raises:
            AuthorizationError: If a token was sent but is unknown or expired
        """
        if not caller_token:
            return None
        token = await run_in_threadpool(self._tokens.get_token, caller_token)
        if token is None or token.is_expired(self._clock()):
            logger.info("auth.rejected reason=%s", "unknown" if token is None else "expired")
            raise AuthorizationError(INVALID_TOKEN_MESSAGE)
        return token

    async def list_recipes(
        self,
        recipe_filter: RecipeFilter,
        caller_token: Optional[str] = None,
    ) -> RecipeListResult:
        validate_pagination(recipe_filter)

        caller = await self.resolve_caller(caller_token)
        viewer_id = caller.user_id if caller else None

        if recipe_filter.is_public is False:
            if viewer_id is None or recipe_filter.user_id != viewer_id:
                raise AuthorizationError(OWNER_MISMATCH_MESSAGE)

        query = build_query(recipe_filter, viewer_id)
        page = await run_in_threadpool(self._recipes.query_recipes, query)

        logger.info(
            "recipes.list viewer=%s total=%d page=%d size=%d",
            viewer_id,
            page.total,
            recipe_filter.page_number,
            recipe_filter.page_size,
        )
        return RecipeListResult(
            items=page.items,
            total_items=page.total,
            page_number=recipe_filter.page_number,
            page_size=recipe_filter.page_size,
            full_result=recipe_filter.full_result,
        )

    async def get_recipe(
        self,
        recipe_id: int,
        caller_token: Optional[str] = None,
    ) -> RecipeDetail:
        recipe = await run_in_threadpool(self._recipes.get_recipe, recipe_id)
        if recipe is None:
            raise RecipeNotFoundError(recipe_id)

        if not recipe.is_public:
            if not caller_token:
                raise AuthorizationError("authentication required to view a private recipe")
            caller = await self.resolve_caller(caller_token)
            if caller is None or caller.user_id != recipe.user_id:
                raise AuthorizationError(OWNER_MISMATCH_MESSAGE)

        author = await run_in_threadpool(self._users.get_user, recipe.user_id)
        if author is None:
            logger.error("recipes.get integrity recipe=%s missing_user=%s", recipe.id, recipe.user_id)
            raise DataIntegrityError(recipe.id, recipe.user_id)

        return RecipeDetail(recipe=recipe, author=author)

    async def create_recipe(
        self,
        draft: RecipeDraft,
        caller_token: Optional[str],
    ) -> Recipe:
        caller = await self.resolve_caller(caller_token)
        if caller is None:
            raise AuthorizationError("authentication required to publish a recipe")
        if draft.user_id != caller.user_id:
            raise AuthorizationError(OWNER_MISMATCH_MESSAGE)

        recipe = await run_in_threadpool(self._recipes.insert_recipe, draft)
        logger.info("recipes.create recipe=%s user=%s public=%s", recipe.id, recipe.user_id, recipe.is_public)
        return recipe
