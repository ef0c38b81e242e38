from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from cozinhe_comigo.app.domain.models import (
    InternStatusCode,
    Recipe,
    RecipeDetail as RecipeDetailModel,
    RecipeDraft,
    User,
)


class RecipeSummary(BaseModel):
    id: int
    title: str
    averageRating: float = 0.0
    preparationTime: Optional[int] = None
    categories: list[str] = Field(default_factory=list)
    imageUrl: Optional[str] = None

    @classmethod
    def from_domain(cls, recipe: Recipe) -> "RecipeSummary":
        return cls(
            id=recipe.id,
            title=recipe.title,
            averageRating=recipe.average_rating,
            preparationTime=recipe.preparation_time,
            categories=list(recipe.categories),
            imageUrl=recipe.image_url,
        )


class RecipeFull(BaseModel):
    id: int
    userId: int
    title: str
    ingredients: list[str] = Field(default_factory=list)
    instructions: str = ""
    imageUrl: Optional[str] = None
    videoUrl: Optional[str] = None
    createdAt: Optional[datetime] = None
    reviewCount: int = 0
    averageRating: float = 0.0
    isPublic: bool = True
    categories: list[str] = Field(default_factory=list)
    portions: Optional[int] = None
    preparationTime: Optional[int] = None

    @classmethod
    def from_domain(cls, recipe: Recipe) -> "RecipeFull":
        return cls(
            id=recipe.id,
            userId=recipe.user_id,
            title=recipe.title,
            ingredients=list(recipe.ingredients),
            instructions=recipe.instructions,
            imageUrl=recipe.image_url,
            videoUrl=recipe.video_url,
            createdAt=recipe.created_at,
            reviewCount=recipe.review_count,
            averageRating=recipe.average_rating,
            isPublic=recipe.is_public,
            categories=list(recipe.categories),
            portions=recipe.portions,
            preparationTime=recipe.preparation_time,
        )


class RecipeAuthor(BaseModel):
    id: int
    name: str
    profilePictureUrl: Optional[str] = None
    biography: Optional[str] = None

    @classmethod
    def from_domain(cls, user: User) -> "RecipeAuthor":
        return cls(
            id=user.id,
            name=user.name,
            profilePictureUrl=user.profile_picture_url,
            biography=user.biography,
        )


class RecipeDetail(RecipeFull):
    author: RecipeAuthor

    @classmethod
    def from_detail(cls, detail: RecipeDetailModel) -> "RecipeDetail":
        full = RecipeFull.from_domain(detail.recipe)
        return cls(**full.model_dump(), author=RecipeAuthor.from_domain(detail.author))


class RecipeCreate(BaseModel):
    userId: int
    title: str = Field(..., min_length=1, max_length=200)
    ingredients: list[str] = Field(..., min_length=1)
    instructions: str = Field(..., min_length=1)
    imageUrl: Optional[str] = None
    videoUrl: Optional[str] = None
    isPublic: bool = True
    categories: list[str] = Field(default_factory=list)
    portions: Optional[int] = Field(default=None, ge=0)
    preparationTime: Optional[int] = Field(default=None, ge=0)

    @field_validator("title", "instructions")
    @classmethod
    def strip_required_text(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be blank")
        return stripped

    @field_validator("ingredients")
    @classmethod
    def require_ingredients(cls, value: list[str]) -> list[str]:
        items = [item.strip() for item in value if item and item.strip()]
        if not items:
            raise ValueError("at least one ingredient is required")
        return items

    @field_validator("categories")
    @classmethod
    def drop_blank_categories(cls, value: list[str]) -> list[str]:
        return [item.strip() for item in value if item and item.strip()]

    def to_draft(self) -> RecipeDraft:
        return RecipeDraft(
            user_id=self.userId,
            title=self.title,
            ingredients=list(self.ingredients),
            instructions=self.instructions,
            image_url=self.imageUrl,
            video_url=self.videoUrl,
            is_public=self.isPublic,
            categories=list(self.categories),
            portions=self.portions,
            preparation_time=self.preparationTime,
        )


class ApiEnvelope(BaseModel):
    statusCode: InternStatusCode
    message: str


class RecipePageEnvelope(ApiEnvelope):
    totalItems: int = 0
    pageNumber: int = 0
    pageSize: int = 0
    totalPages: int = 0


class RecipeSummaryPage(RecipePageEnvelope):
    items: list[RecipeSummary] = Field(default_factory=list)


class RecipeFullPage(RecipePageEnvelope):
    items: list[RecipeFull] = Field(default_factory=list)


class RecipeDetailEnvelope(ApiEnvelope):
    item: Optional[RecipeDetail] = None


class RecipeCreatedEnvelope(ApiEnvelope):
    item: Optional[RecipeFull] = None
