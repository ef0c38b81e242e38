# cozinhe_comigo/app/domain/models.py
"""
Domain models for the recipe catalog.
These are pure data structures with no infrastructure dependencies.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

MAX_PAGE_SIZE = 200


class InternStatusCode(str, Enum):
    """Status code carried in every response body, independent of HTTP status."""
    OK = "OK"
    BAD_REQUEST = "BAD_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    DB_ERROR = "DB_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class SortField(str, Enum):
    """Fields a recipe listing can be ordered by."""
    TITLE = "title"
    PREPARATION_TIME = "preparationTime"
    PORTIONS = "portions"
    CREATED_AT = "createdAt"
    REVIEW_COUNT = "reviewCount"
    AVERAGE_RATING = "averageRating"


@dataclass
class User:
    id: int
    name: str
    email: Optional[str] = None
    profile_picture_url: Optional[str] = None
    biography: Optional[str] = None


@dataclass
class Token:
    """An opaque session token issued at login."""
    token: str
    user_id: int
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at < now


@dataclass
class Recipe:
    id: int
    user_id: int
    title: str
    ingredients: list[str] = field(default_factory=list)
    instructions: str = ""
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    created_at: Optional[datetime] = None
    review_count: int = 0
    average_rating: float = 0.0
    is_public: bool = True
    categories: list[str] = field(default_factory=list)
    portions: Optional[int] = None
    preparation_time: Optional[int] = None  # minutes


@dataclass
class RecipeDraft:
    """A recipe about to be published; id and aggregates are assigned on insert."""
    user_id: int
    title: str
    ingredients: list[str]
    instructions: str
    image_url: Optional[str] = None
    video_url: Optional[str] = None
    is_public: bool = True
    categories: list[str] = field(default_factory=list)
    portions: Optional[int] = None
    preparation_time: Optional[int] = None


@dataclass
class RecipeFilter:
    """
    Listing parameters as sent by a caller.
    Nothing here is validated yet; the service checks pagination bounds.
    """
    page_size: int = 20
    page_number: int = 1
    title_search: Optional[str] = None
    categories: list[str] = field(default_factory=list)
    min_rating: Optional[float] = None
    max_rating: Optional[float] = None
    min_preparation_time: Optional[int] = None
    max_preparation_time: Optional[int] = None
    min_portions: Optional[int] = None
    max_portions: Optional[int] = None
    user_id: Optional[int] = None
    sort_by: Optional[SortField] = None
    sort_descending: bool = False
    full_result: bool = False
    is_public: Optional[bool] = None


@dataclass
class RecipeQuery:
    """
    Repository-level query: authorization predicate, field filters, sort and window.

    viewer_id=None restricts the result to public recipes; otherwise public
    recipes and the viewer's own private ones are eligible.
    """
    viewer_id: Optional[int] = None
    title_search: Optional[str] = None
    categories: tuple[str, ...] = ()
    min_rating: Optional[float] = None
    max_rating: Optional[float] = None
    min_preparation_time: Optional[int] = None
    max_preparation_time: Optional[int] = None
    min_portions: Optional[int] = None
    max_portions: Optional[int] = None
    user_id: Optional[int] = None
    sort_by: Optional[SortField] = None
    sort_descending: bool = False
    offset: int = 0
    limit: int = 20


@dataclass
class RecipePage:
    """A window of recipes plus the size of the whole filtered set."""
    items: list[Recipe]
    total: int


@dataclass
class RecipeListResult:
    items: list[Recipe]
    total_items: int
    page_number: int
    page_size: int
    full_result: bool = False

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_items / self.page_size)


@dataclass
class RecipeDetail:
    """A recipe joined with its author's public profile."""
    recipe: Recipe
    author: User
