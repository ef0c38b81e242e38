# cozinhe_comigo/app/deps.py (singletons exposed as dependencies)

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from supabase import Client, create_client

from cozinhe_comigo.app.config import settings
from cozinhe_comigo.app.infra.db.memory_repo import InMemoryDatabase
from cozinhe_comigo.app.infra.db.supabase_repo import (
    SupabaseRecipeRepository,
    SupabaseTokenRepository,
    SupabaseUserRepository,
)
from cozinhe_comigo.app.services.recipe_service import RecipeService

TOKEN_HEADER = "requesterUserToken"

_client: Client | None = None
_memory_db: InMemoryDatabase | None = None


def get_supabase() -> Client:
    global _client
    if _client is None:
        if settings.SUPABASE_URL is None or not settings.SUPABASE_SERVICE_ROLE_KEY:
            raise RuntimeError(
                "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY are required when RECIPES_BACKEND=supabase"
            )
        _client = create_client(str(settings.SUPABASE_URL),
                                settings.SUPABASE_SERVICE_ROLE_KEY)
    return _client


def get_memory_db() -> InMemoryDatabase:
    global _memory_db
    if _memory_db is None:
        _memory_db = InMemoryDatabase()
    return _memory_db


def get_recipe_service() -> RecipeService:
    if settings.RECIPES_BACKEND == "memory":
        db = get_memory_db()
        return RecipeService(db.tokens, db.users, db.recipes)
    supa = get_supabase()
    return RecipeService(
        SupabaseTokenRepository(supa),
        SupabaseUserRepository(supa),
        SupabaseRecipeRepository(supa),
    )


auth_scheme = HTTPBearer(auto_error=False)


async def get_caller_token(
    requester_token: Optional[str] = Header(default=None, alias=TOKEN_HEADER),
    cred: HTTPAuthorizationCredentials | None = Depends(auth_scheme),
) -> Optional[str]:
    """
    Token sent in `requesterUserToken`, or else in `Authorization: Bearer`.
    Absence is not an error here; visibility rules decide what an anonymous caller sees.
    """
    if requester_token and requester_token.strip():
        return requester_token.strip()
    if cred is not None and cred.scheme.lower() == "bearer" and cred.credentials:
        return cred.credentials
    return None
