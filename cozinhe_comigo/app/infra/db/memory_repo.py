"""
Process-local repositories used when RECIPES_BACKEND=memory and in tests.
Query semantics mirror the PostgREST filters built by the Supabase backend.
"""
from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Optional

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

_SORT_KEYS: dict[SortField, Callable[[Recipe], Any]] = {
    SortField.TITLE: lambda recipe: recipe.title,
    SortField.PREPARATION_TIME: lambda recipe: recipe.preparation_time,
    SortField.PORTIONS: lambda recipe: recipe.portions,
    SortField.CREATED_AT: lambda recipe: recipe.created_at,
    SortField.REVIEW_COUNT: lambda recipe: recipe.review_count,
    SortField.AVERAGE_RATING: lambda recipe: recipe.average_rating,
}


def _within(value: Optional[float], low: Optional[float], high: Optional[float]) -> bool:
    if low is None and high is None:
        return True
    if value is None:
        return False
    if low is not None and value < low:
        return False
    if high is not None and value > high:
        return False
    return True


def _visible(recipe: Recipe, viewer_id: Optional[int]) -> bool:
    if recipe.is_public:
        return True
    return viewer_id is not None and recipe.user_id == viewer_id


def _matches(recipe: Recipe, query: RecipeQuery) -> bool:
    if query.title_search and query.title_search.lower() not in recipe.title.lower():
        return False
    if not _within(recipe.preparation_time, query.min_preparation_time, query.max_preparation_time):
        return False
    if not _within(recipe.average_rating, query.min_rating, query.max_rating):
        return False
    if not _within(recipe.portions, query.min_portions, query.max_portions):
        return False
    if query.user_id is not None and recipe.user_id != query.user_id:
        return False
    if query.categories and not set(query.categories) & set(recipe.categories):
        return False
    return True


def _sorted(recipes: list[Recipe], field: SortField, descending: bool) -> list[Recipe]:
    key = _SORT_KEYS[field]
    present = [recipe for recipe in recipes if key(recipe) is not None]
    missing = [recipe for recipe in recipes if key(recipe) is None]
    present.sort(key=key, reverse=descending)
    # Postgres places NULLs last ascending and first descending
    return missing + present if descending else present + missing


class InMemoryTokenRepository(TokenRepository):
    def __init__(self, tokens: Iterable[Token] = ()):
        self._tokens = {token.token: token for token in tokens}

    def add(self, token: Token) -> None:
        self._tokens[token.token] = token

    def get_token(self, token: str) -> Optional[Token]:
        return self._tokens.get(token)


class InMemoryUserRepository(UserRepository):
    def __init__(self, users: Iterable[User] = ()):
        self._users = {user.id: user for user in users}

    def add(self, user: User) -> None:
        self._users[user.id] = user

    def get_user(self, user_id: int) -> Optional[User]:
        return self._users.get(user_id)


class InMemoryRecipeRepository(RecipeRepository):
    def __init__(self, recipes: Iterable[Recipe] = ()):
        self._recipes: list[Recipe] = list(recipes)
        self._lock = threading.Lock()

    def add(self, recipe: Recipe) -> None:
        with self._lock:
            self._recipes.append(recipe)

    def query_recipes(self, query: RecipeQuery) -> RecipePage:
        with self._lock:
            snapshot = list(self._recipes)

        rows = [recipe for recipe in snapshot if _visible(recipe, query.viewer_id)]
        rows = [recipe for recipe in rows if _matches(recipe, query)]
        if query.sort_by is not None:
            rows = _sorted(rows, query.sort_by, query.sort_descending)

        window = rows[query.offset:query.offset + query.limit]
        return RecipePage(items=[replace(recipe) for recipe in window], total=len(rows))

    def get_recipe(self, recipe_id: int) -> Optional[Recipe]:
        with self._lock:
            for recipe in self._recipes:
                if recipe.id == recipe_id:
                    return replace(recipe)
        return None

    def insert_recipe(self, draft: RecipeDraft) -> Recipe:
        with self._lock:
            recipe = Recipe(
                id=max((r.id for r in self._recipes), default=0) + 1,
                user_id=draft.user_id,
                title=draft.title,
                ingredients=list(draft.ingredients),
                instructions=draft.instructions,
                image_url=draft.image_url,
                video_url=draft.video_url,
                created_at=datetime.now(timezone.utc),
                review_count=0,
                average_rating=0.0,
                is_public=draft.is_public,
                categories=list(draft.categories),
                portions=draft.portions,
                preparation_time=draft.preparation_time,
            )
            self._recipes.append(recipe)
        return replace(recipe)


class InMemoryDatabase:
    """Groups the three in-memory repositories behind one handle."""

    def __init__(self) -> None:
        self.tokens = InMemoryTokenRepository()
        self.users = InMemoryUserRepository()
        self.recipes = InMemoryRecipeRepository()
