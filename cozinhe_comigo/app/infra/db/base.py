# cozinhe_comigo/app/infra/db/base.py
"""
Abstract repository interfaces for the recipe catalog.
This interface allows easy swapping between storage backends.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from cozinhe_comigo.app.domain.models import (
    Recipe,
    RecipeDraft,
    RecipePage,
    RecipeQuery,
    Token,
    User,
)


class TokenRepository(ABC):
    """
    Read-only access to issued session tokens.

    Implementations:
    - SupabaseTokenRepository: `tokens` table
    - InMemoryTokenRepository: process-local, for development and tests
    """

    @abstractmethod
    def get_token(self, token: str) -> Optional[Token]:
        """
        Look up a token by its opaque string.

        Args:
            token: The token sent by the caller

        Returns:
            The stored token (expired or not), or None if unknown
        """
        pass


class UserRepository(ABC):

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        """Return the user profile, or None if it does not exist."""
        pass


class RecipeRepository(ABC):
    """
    Recipe storage: filtered listing, single fetch and insert.
    """

    @abstractmethod
    def query_recipes(self, query: RecipeQuery) -> RecipePage:
        """
        Execute a listing query.

        The authorization predicate is applied before every field filter,
        and the total is counted on the filtered set before the
        offset/limit window is taken.

        Args:
            query: Predicate, filters, sort and window

        Returns:
            RecipePage with the window's items and the filtered total
        """
        pass

    @abstractmethod
    def get_recipe(self, recipe_id: int) -> Optional[Recipe]:
        """Load one recipe regardless of visibility, or None if missing."""
        pass

    @abstractmethod
    def insert_recipe(self, draft: RecipeDraft) -> Recipe:
        """
        Persist a new recipe with zeroed rating aggregates.

        Raises:
            RepositoryError: If the store did not return the created row
        """
        pass
