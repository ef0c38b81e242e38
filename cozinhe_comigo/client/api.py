from __future__ import annotations

import logging
from typing import Any, Optional, Union

import httpx
from pydantic import ValidationError

from cozinhe_comigo.app.domain.models import RecipeFilter
from cozinhe_comigo.app.schemas.recipes import (
    RecipeCreate,
    RecipeCreatedEnvelope,
    RecipeDetail,
    RecipeDetailEnvelope,
    RecipeFull,
    RecipeFullPage,
    RecipeSummaryPage,
)
from cozinhe_comigo.client.errors import ApiError, ApiTimeoutError
from cozinhe_comigo.client.retry import AuthRetryPolicy
from cozinhe_comigo.client.session import Session

log = logging.getLogger("client.api")

TOKEN_HEADER = "requesterUserToken"


def filter_to_params(recipe_filter: RecipeFilter) -> list[tuple[str, str]]:
    """Query string pairs for GET /recipes; unset filters are omitted."""
    params: list[tuple[str, str]] = [
        ("pageSize", str(recipe_filter.page_size)),
        ("pageNumber", str(recipe_filter.page_number)),
    ]
    optional: list[tuple[str, Any]] = [
        ("titleSearch", recipe_filter.title_search),
        ("minRating", recipe_filter.min_rating),
        ("maxRating", recipe_filter.max_rating),
        ("minPreparationTime", recipe_filter.min_preparation_time),
        ("maxPreparationTime", recipe_filter.max_preparation_time),
        ("minPortions", recipe_filter.min_portions),
        ("maxPortions", recipe_filter.max_portions),
        ("userId", recipe_filter.user_id),
        ("sortBy", recipe_filter.sort_by.value if recipe_filter.sort_by else None),
        ("isPublic", recipe_filter.is_public),
    ]
    for name, value in optional:
        if value is None:
            continue
        params.append((name, str(value).lower() if isinstance(value, bool) else str(value)))
    for category in recipe_filter.categories:
        params.append(("categories", category))
    if recipe_filter.sort_descending:
        params.append(("sortDescending", "true"))
    if recipe_filter.full_result:
        params.append(("fullResult", "true"))
    return params


class ApiClient:
    """
    Synchronous client for the recipe API.

    Every call reads credentials from the given Session and goes through the
    AuthRetryPolicy, so a stale token costs at most one extra request.
    """

    def __init__(
        self,
        base_url: str,
        session: Optional[Session] = None,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
        retry_policy: Optional[AuthRetryPolicy] = None,
    ) -> None:
        self.session = session or Session()
        self._timeout = timeout
        self._retry = retry_policy or AuthRetryPolicy()
        self._http = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Any = None,
        json: Any = None,
    ) -> dict[str, Any]:
        def send(token: Optional[str]) -> dict[str, Any]:
            headers = {TOKEN_HEADER: token} if token else {}
            try:
                response = self._http.request(method, path, params=params, json=json, headers=headers)
            except httpx.TimeoutException as error:
                raise ApiTimeoutError(path, self._timeout) from error
            return self._decode(response)

        return self._retry.execute(send, self.session)

    @staticmethod
    def _decode(response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            message = None
            status_code = None
            if isinstance(body, dict):
                message = body.get("message")
                status_code = body.get("statusCode")
            raise ApiError(
                response.status_code,
                message or f"HTTP error! status: {response.status_code}",
                status_code=status_code,
                body=body if body is not None else response.text,
            )

        if not isinstance(body, dict):
            raise ApiError(response.status_code, "Unexpected response body", body=response.text)
        return body

    @staticmethod
    def _parse(model: Any, body: dict[str, Any], status: int = 200) -> Any:
        try:
            return model.model_validate(body)
        except ValidationError as error:
            log.error("client.bad_envelope model=%s errors=%s", model.__name__, error.error_count())
            raise ApiError(status, "Malformed response envelope", body=body) from error

    def list_recipes(
        self,
        recipe_filter: Optional[RecipeFilter] = None,
    ) -> Union[RecipeSummaryPage, RecipeFullPage]:
        recipe_filter = recipe_filter or RecipeFilter()
        body = self._request("GET", "/recipes/", params=filter_to_params(recipe_filter))
        model = RecipeFullPage if recipe_filter.full_result else RecipeSummaryPage
        return self._parse(model, body)

    def get_recipe(self, recipe_id: int) -> RecipeDetail:
        body = self._request("GET", f"/recipes/{recipe_id}")
        envelope: RecipeDetailEnvelope = self._parse(RecipeDetailEnvelope, body)
        if envelope.item is None:
            raise ApiError(200, envelope.message, status_code=envelope.statusCode.value, body=body)
        return envelope.item

    def create_recipe(self, payload: RecipeCreate) -> RecipeFull:
        body = self._request("POST", "/recipes/", json=payload.model_dump(mode="json"))
        envelope: RecipeCreatedEnvelope = self._parse(RecipeCreatedEnvelope, body, 201)
        if envelope.item is None:
            raise ApiError(201, envelope.message, status_code=envelope.statusCode.value, body=body)
        return envelope.item
