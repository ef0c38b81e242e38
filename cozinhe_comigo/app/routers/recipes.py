# cozinhe_comigo/app/routers/recipes.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from cozinhe_comigo.app.deps import get_caller_token, get_recipe_service
from cozinhe_comigo.app.domain.errors import InternalError, RecipeServiceError
from cozinhe_comigo.app.domain.models import InternStatusCode, RecipeFilter, SortField
from cozinhe_comigo.app.schemas.recipes import (
    ApiEnvelope,
    RecipeCreate,
    RecipeCreatedEnvelope,
    RecipeDetail,
    RecipeDetailEnvelope,
    RecipeFull,
    RecipeFullPage,
    RecipeSummary,
    RecipeSummaryPage,
)
from cozinhe_comigo.app.services.recipe_service import RecipeService

log = logging.getLogger("recipes")
router = APIRouter(prefix="/recipes", tags=["recipes"])

_HTTP_STATUS = {
    InternStatusCode.BAD_REQUEST: status.HTTP_400_BAD_REQUEST,
    InternStatusCode.UNAUTHORIZED: status.HTTP_400_BAD_REQUEST,
    InternStatusCode.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    InternStatusCode.DB_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    InternStatusCode.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _envelope(model: ApiEnvelope, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=model.model_dump(mode="json"))


def _failure(exc: RecipeServiceError, generic_message: str) -> JSONResponse:
    code = exc.status_code
    # internal details stay in the logs
    message = generic_message if isinstance(exc, InternalError) else str(exc)
    return _envelope(
        ApiEnvelope(statusCode=code, message=message),
        _HTTP_STATUS.get(code, status.HTTP_500_INTERNAL_SERVER_ERROR),
    )


def _unexpected(generic_message: str) -> JSONResponse:
    return _envelope(
        ApiEnvelope(statusCode=InternStatusCode.INTERNAL_ERROR, message=generic_message),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


def recipe_filter_params(
    page_size: int = Query(20, alias="pageSize"),
    page_number: int = Query(1, alias="pageNumber"),
    title_search: Optional[str] = Query(default=None, alias="titleSearch", max_length=200),
    categories: Optional[list[str]] = Query(default=None, alias="categories"),
    min_rating: Optional[float] = Query(default=None, alias="minRating"),
    max_rating: Optional[float] = Query(default=None, alias="maxRating"),
    min_preparation_time: Optional[int] = Query(default=None, alias="minPreparationTime"),
    max_preparation_time: Optional[int] = Query(default=None, alias="maxPreparationTime"),
    min_portions: Optional[int] = Query(default=None, alias="minPortions"),
    max_portions: Optional[int] = Query(default=None, alias="maxPortions"),
    user_id: Optional[int] = Query(default=None, alias="userId"),
    sort_by: Optional[SortField] = Query(default=None, alias="sortBy"),
    sort_descending: bool = Query(False, alias="sortDescending"),
    full_result: bool = Query(False, alias="fullResult"),
    is_public: Optional[bool] = Query(default=None, alias="isPublic"),
) -> RecipeFilter:
    return RecipeFilter(
        page_size=page_size,
        page_number=page_number,
        title_search=title_search,
        categories=categories or [],
        min_rating=min_rating,
        max_rating=max_rating,
        min_preparation_time=min_preparation_time,
        max_preparation_time=max_preparation_time,
        min_portions=min_portions,
        max_portions=max_portions,
        user_id=user_id,
        sort_by=sort_by,
        sort_descending=sort_descending,
        full_result=full_result,
        is_public=is_public,
    )


@router.get("/")
async def list_recipes(
    recipe_filter: RecipeFilter = Depends(recipe_filter_params),
    caller_token: Optional[str] = Depends(get_caller_token),
    service: RecipeService = Depends(get_recipe_service),
) -> JSONResponse:
    generic = "Internal server error while listing recipes."
    try:
        result = await service.list_recipes(recipe_filter, caller_token)
    except RecipeServiceError as exc:
        if isinstance(exc, InternalError):
            log.exception("recipes.list_fail")
        else:
            log.info("recipes.list_rejected code=%s reason=%s", exc.status_code.value, exc)
        return _failure(exc, generic)
    except Exception:
        log.exception("recipes.list_fail")
        return _unexpected(generic)

    page_fields = dict(
        statusCode=InternStatusCode.OK,
        message="Query executed successfully",
        totalItems=result.total_items,
        pageNumber=result.page_number,
        pageSize=result.page_size,
        totalPages=result.total_pages,
    )
    if result.full_result:
        page = RecipeFullPage(items=[RecipeFull.from_domain(r) for r in result.items], **page_fields)
    else:
        page = RecipeSummaryPage(items=[RecipeSummary.from_domain(r) for r in result.items], **page_fields)
    return _envelope(page)


@router.get("/{recipe_id}")
async def get_recipe(
    recipe_id: int,
    caller_token: Optional[str] = Depends(get_caller_token),
    service: RecipeService = Depends(get_recipe_service),
) -> JSONResponse:
    generic = "Internal server error while retrieving recipe."
    try:
        detail = await service.get_recipe(recipe_id, caller_token)
    except RecipeServiceError as exc:
        if isinstance(exc, InternalError):
            log.exception("recipes.get_fail recipe=%s", recipe_id)
        else:
            log.info(
                "recipes.get_rejected recipe=%s code=%s reason=%s", recipe_id, exc.status_code.value, exc
            )
        return _failure(exc, generic)
    except Exception:
        log.exception("recipes.get_fail recipe=%s", recipe_id)
        return _unexpected(generic)

    return _envelope(
        RecipeDetailEnvelope(
            statusCode=InternStatusCode.OK,
            message="Recipe retrieved successfully",
            item=RecipeDetail.from_detail(detail),
        )
    )


@router.post("/")
async def create_recipe(
    payload: RecipeCreate,
    caller_token: Optional[str] = Depends(get_caller_token),
    service: RecipeService = Depends(get_recipe_service),
) -> JSONResponse:
    generic = "Internal server error while saving recipe."
    try:
        recipe = await service.create_recipe(payload.to_draft(), caller_token)
    except RecipeServiceError as exc:
        if isinstance(exc, InternalError):
            log.exception("recipes.create_fail user=%s", payload.userId)
        else:
            log.info(
                "recipes.create_rejected user=%s code=%s reason=%s",
                payload.userId,
                exc.status_code.value,
                exc,
            )
        return _failure(exc, generic)
    except Exception:
        log.exception("recipes.create_fail user=%s", payload.userId)
        return _unexpected(generic)

    return _envelope(
        RecipeCreatedEnvelope(
            statusCode=InternStatusCode.OK,
            message="Successfully created",
            item=RecipeFull.from_domain(recipe),
        ),
        status.HTTP_201_CREATED,
    )
