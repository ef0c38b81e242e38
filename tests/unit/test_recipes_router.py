from __future__ import annotations

import logging
from typing import Any, Iterator

import pytest
from fastapi.testclient import TestClient

from cozinhe_comigo.app.config import settings
from cozinhe_comigo.app.deps import get_recipe_service
from cozinhe_comigo.app.infra.db.memory_repo import InMemoryDatabase
from cozinhe_comigo.app.main import app, run
from cozinhe_comigo.app.services.recipe_service import RecipeService
from tests.unit.conftest import ANA_ID, ANA_TOKEN, BRUNO_TOKEN, EXPIRED_TOKEN, make_recipe

SUMMARY_KEYS = {"id", "title", "averageRating", "preparationTime", "categories", "imageUrl"}


@pytest.fixture
def client(service: RecipeService) -> Iterator[TestClient]:
    app.dependency_overrides[get_recipe_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


class TestListRecipesEndpoint:
    def test_anonymous_listing_returns_summaries(self, client: TestClient) -> None:
        response = client.get("/recipes/", params={"pageSize": 50, "pageNumber": 1})

        assert response.status_code == 200
        body = response.json()
        assert body["statusCode"] == "OK"
        assert body["totalItems"] == 4
        assert body["totalPages"] == 1
        assert body["pageNumber"] == 1
        assert body["pageSize"] == 50
        assert {item["id"] for item in body["items"]} == {1, 2, 3, 6}
        assert all(set(item) == SUMMARY_KEYS for item in body["items"])

    def test_full_result_returns_complete_records(self, client: TestClient) -> None:
        response = client.get(
            "/recipes/",
            params={"pageSize": 50, "fullResult": "true"},
            headers={"requesterUserToken": ANA_TOKEN},
        )

        body = response.json()
        assert response.status_code == 200
        private = [item for item in body["items"] if not item["isPublic"]]
        assert [item["userId"] for item in private] == [ANA_ID]
        assert "ingredients" in body["items"][0]

    def test_bearer_token_is_accepted(self, client: TestClient) -> None:
        response = client.get(
            "/recipes/",
            params={"pageSize": 50},
            headers={"Authorization": f"Bearer {BRUNO_TOKEN}"},
        )

        assert response.status_code == 200
        assert 5 in {item["id"] for item in response.json()["items"]}

    @pytest.mark.parametrize("page_size", [0, 201])
    def test_invalid_page_size(self, client: TestClient, page_size: int) -> None:
        response = client.get("/recipes/", params={"pageSize": page_size})

        assert response.status_code == 400
        assert response.json() == {"statusCode": "BAD_REQUEST", "message": "invalid page size"}

    def test_invalid_page_number(self, client: TestClient) -> None:
        response = client.get("/recipes/", params={"pageNumber": 0})

        assert response.status_code == 400
        assert response.json()["message"] == "invalid page number"

    def test_expired_token(self, client: TestClient) -> None:
        response = client.get("/recipes/", headers={"requesterUserToken": EXPIRED_TOKEN})

        assert response.status_code == 400
        assert response.json() == {"statusCode": "UNAUTHORIZED", "message": "invalid or expired token"}

    def test_private_selector_for_other_owner(self, client: TestClient) -> None:
        response = client.get(
            "/recipes/",
            params={"isPublic": "false", "userId": 2},
            headers={"requesterUserToken": ANA_TOKEN},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "owner mismatch"

    def test_repeated_categories_and_sorting(self, client: TestClient) -> None:
        response = client.get(
            "/recipes/",
            params=[
                ("categories", "Salada"),
                ("categories", "Bolo"),
                ("sortBy", "averageRating"),
                ("sortDescending", "true"),
            ],
        )

        ratings = [item["averageRating"] for item in response.json()["items"]]
        assert ratings == [4.9, 4.5, 4.2, 3.8]

    def test_unknown_sort_field_is_bad_request(self, client: TestClient) -> None:
        response = client.get("/recipes/", params={"sortBy": "calories"})

        assert response.status_code == 400
        assert response.json()["statusCode"] == "BAD_REQUEST"


class TestGetRecipeEndpoint:
    def test_public_recipe_embeds_author(self, client: TestClient) -> None:
        response = client.get("/recipes/1")

        assert response.status_code == 200
        item = response.json()["item"]
        assert item["title"] == "Bolo de Chocolate"
        assert item["author"] == {
            "id": ANA_ID,
            "name": "Ana",
            "profilePictureUrl": "https://img.example/ana.png",
            "biography": "Confeiteira amadora",
        }

    def test_private_recipe_for_other_user(self, client: TestClient) -> None:
        response = client.get("/recipes/4", headers={"requesterUserToken": BRUNO_TOKEN})

        assert response.status_code == 400
        assert response.json()["statusCode"] == "UNAUTHORIZED"

    def test_rejection_is_logged(self, client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="recipes"):
            client.get("/recipes/999")

        assert any("recipes.get_rejected recipe=999 code=NOT_FOUND" in r.getMessage() for r in caplog.records)

    def test_missing_recipe(self, client: TestClient) -> None:
        response = client.get("/recipes/999")

        assert response.status_code == 404
        assert response.json()["statusCode"] == "NOT_FOUND"

    def test_missing_author_does_not_leak_details(self, client: TestClient, db: InMemoryDatabase) -> None:
        db.recipes.add(make_recipe(50, 99, "Receita Órfã"))

        response = client.get("/recipes/50")

        assert response.status_code == 500
        body = response.json()
        assert body["statusCode"] == "INTERNAL_ERROR"
        assert "99" not in body["message"]


class TestCreateRecipeEndpoint:
    def _payload(self, user_id: int = ANA_ID) -> dict:
        return {
            "userId": user_id,
            "title": "Brigadeiro",
            "ingredients": ["leite condensado", "chocolate", "manteiga"],
            "instructions": "Cozinhe mexendo até desgrudar.",
            "isPublic": True,
            "categories": ["Sobremesa"],
            "portions": 20,
            "preparationTime": 30,
        }

    def test_creates_recipe(self, client: TestClient) -> None:
        response = client.post("/recipes/", json=self._payload(), headers={"requesterUserToken": ANA_TOKEN})

        assert response.status_code == 201
        item = response.json()["item"]
        assert item["title"] == "Brigadeiro"
        assert item["reviewCount"] == 0
        assert item["averageRating"] == 0.0

    def test_requires_matching_owner(self, client: TestClient) -> None:
        response = client.post("/recipes/", json=self._payload(2), headers={"requesterUserToken": ANA_TOKEN})

        assert response.status_code == 400
        assert response.json()["message"] == "owner mismatch"

    def test_rejection_is_logged(self, client: TestClient, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="recipes"):
            client.post("/recipes/", json=self._payload(2), headers={"requesterUserToken": ANA_TOKEN})

        assert any("recipes.create_rejected user=2 code=UNAUTHORIZED" in r.getMessage() for r in caplog.records)

    def test_rejects_blank_title(self, client: TestClient) -> None:
        payload = self._payload()
        payload["title"] = "   "

        response = client.post("/recipes/", json=payload, headers={"requesterUserToken": ANA_TOKEN})

        assert response.status_code == 400
        assert response.json()["statusCode"] == "BAD_REQUEST"

    def test_rejects_empty_ingredients(self, client: TestClient) -> None:
        payload = self._payload()
        payload["ingredients"] = []

        response = client.post("/recipes/", json=payload, headers={"requesterUserToken": ANA_TOKEN})

        assert response.status_code == 400


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["ok"] is True


class TestRun:
    def test_serves_app_on_configured_address(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[tuple[Any, dict]] = []
        monkeypatch.setattr("uvicorn.run", lambda target, **kwargs: calls.append((target, kwargs)))
        monkeypatch.setattr(settings, "PORT", 9090)

        run()

        assert calls == [(app, {"host": settings.HOST, "port": 9090, "log_level": settings.LOG_LEVEL.lower()})]
