from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from cozinhe_comigo.app.domain.models import Recipe, RecipePage, RecipeQuery, Token, User
from cozinhe_comigo.app.infra.db.memory_repo import InMemoryDatabase, InMemoryRecipeRepository
from cozinhe_comigo.app.services.recipe_service import RecipeService

FIXED_NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)

ANA_ID = 1
BRUNO_ID = 2
ANA_TOKEN = "tok-ana"
BRUNO_TOKEN = "tok-bruno"
EXPIRED_TOKEN = "tok-expired"


class RecordingRecipeRepository(InMemoryRecipeRepository):
    """In-memory repository that remembers every query it executed."""

    def __init__(self) -> None:
        super().__init__()
        self.executed_queries: list[RecipeQuery] = []

    def query_recipes(self, query: RecipeQuery) -> RecipePage:
        self.executed_queries.append(query)
        return super().query_recipes(query)


def make_recipe(recipe_id: int, user_id: int, title: str, **overrides) -> Recipe:
    fields = dict(
        id=recipe_id,
        user_id=user_id,
        title=title,
        ingredients=["farinha", "ovos"],
        instructions="Misture tudo e leve ao forno.",
        created_at=FIXED_NOW - timedelta(days=recipe_id),
    )
    fields.update(overrides)
    return Recipe(**fields)


def seed_recipes() -> list[Recipe]:
    return [
        make_recipe(1, ANA_ID, "Bolo de Chocolate", average_rating=4.5, preparation_time=60,
                    portions=8, categories=["Sobremesa", "Bolo"], review_count=10,
                    image_url="https://img.example/bolo.jpg"),
        make_recipe(2, ANA_ID, "Salada Caesar", average_rating=3.8, preparation_time=15,
                    portions=2, categories=["Salada"], review_count=4),
        make_recipe(3, BRUNO_ID, "Salada de Frutas", average_rating=4.9, preparation_time=10,
                    portions=4, categories=["Salada", "Sobremesa"], review_count=7),
        make_recipe(4, ANA_ID, "Feijoada da Vó", average_rating=0.0, preparation_time=240,
                    portions=10, categories=["Prato Principal"], is_public=False),
        make_recipe(5, BRUNO_ID, "Pão de Queijo Secreto", average_rating=4.0, preparation_time=40,
                    portions=None, categories=["Lanche"], is_public=False, review_count=1),
        make_recipe(6, BRUNO_ID, "Bolo de Cenoura", average_rating=4.2, preparation_time=None,
                    portions=12, categories=["Bolo", "Sobremesa"], review_count=3),
    ]


@pytest.fixture
def db() -> InMemoryDatabase:
    database = InMemoryDatabase()
    database.recipes = RecordingRecipeRepository()
    database.users.add(User(id=ANA_ID, name="Ana", email="ana@example.com",
                            profile_picture_url="https://img.example/ana.png",
                            biography="Confeiteira amadora"))
    database.users.add(User(id=BRUNO_ID, name="Bruno", email="bruno@example.com"))
    database.tokens.add(Token(ANA_TOKEN, ANA_ID, FIXED_NOW + timedelta(hours=2)))
    database.tokens.add(Token(BRUNO_TOKEN, BRUNO_ID, FIXED_NOW + timedelta(hours=2)))
    database.tokens.add(Token(EXPIRED_TOKEN, ANA_ID, FIXED_NOW - timedelta(seconds=1)))
    for recipe in seed_recipes():
        database.recipes.add(recipe)
    return database


@pytest.fixture
def service(db: InMemoryDatabase) -> RecipeService:
    return RecipeService(db.tokens, db.users, db.recipes, clock=lambda: FIXED_NOW)
