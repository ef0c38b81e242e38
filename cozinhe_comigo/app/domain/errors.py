from __future__ import annotations

from cozinhe_comigo.app.domain.models import InternStatusCode


class RecipeServiceError(Exception):
    status_code = InternStatusCode.INTERNAL_ERROR


class InvalidRequestError(RecipeServiceError):
    status_code = InternStatusCode.BAD_REQUEST


class AuthorizationError(RecipeServiceError):
    status_code = InternStatusCode.UNAUTHORIZED


class RecipeNotFoundError(RecipeServiceError):
    status_code = InternStatusCode.NOT_FOUND

    def __init__(self, recipe_id: int):
        super().__init__(f"Recipe not found: {recipe_id}")
        self.recipe_id = recipe_id


class InternalError(RecipeServiceError):
    status_code = InternStatusCode.INTERNAL_ERROR


class DataIntegrityError(InternalError):
    def __init__(self, recipe_id: int, user_id: int):
        super().__init__(f"Recipe {recipe_id} references missing user {user_id}")
        self.recipe_id = recipe_id
        self.user_id = user_id


class RepositoryError(InternalError):
    status_code = InternStatusCode.DB_ERROR

    def __init__(self, operation: str, reason: str):
        super().__init__(f"Repository error during {operation}: {reason}")
        self.operation = operation
        self.reason = reason
