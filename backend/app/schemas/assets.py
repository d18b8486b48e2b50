"""Pydantic schemas for asset endpoints."""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, field_validator, model_validator

from app.schemas.categories import CategorySummary
from app.schemas.common import APIModel


def _normalise_names(values: Optional[List[str]]) -> Optional[List[str]]:
    if values is None:
        return None
    return list(dict.fromkeys(v.strip().lower() for v in values if v and v.strip()))


class AssetBase(APIModel):
    description: Optional[str] = Field(None, max_length=5000)
    orientation: Optional[str] = Field(None, max_length=50)
    resolution: Optional[str] = Field(None, max_length=50)
    width: Optional[int] = Field(None, ge=1)
    height: Optional[int] = Field(None, ge=1)
    size: Optional[int] = Field(None, ge=0)


class AssetCreate(AssetBase):
    """Schema for an author submitting an asset for review."""
    title: str = Field(..., min_length=1, max_length=255)
    asset_type: str = Field(..., min_length=1, max_length=50)
    is_premium: bool = False
    is_ai_generated: bool = Field(False, alias="isAIGenerated")
    price: float = Field(0.0, ge=0)
    discount_price: Optional[float] = Field(None, ge=0)
    categories: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    compatible_tools: List[str] = Field(default_factory=list)

    @field_validator("tags", "compatible_tools")
    @classmethod
    def normalise_names(cls, v):
        return _normalise_names(v)

    @model_validator(mode="after")
    def check_discount(self):
        if self.discount_price is not None and self.discount_price > self.price:
            raise ValueError("discountPrice cannot be greater than price")
        return self


class AssetUpdate(AssetBase):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    asset_type: Optional[str] = Field(None, min_length=1, max_length=50)
    is_premium: Optional[bool] = None
    is_ai_generated: Optional[bool] = Field(None, alias="isAIGenerated")
    price: Optional[float] = Field(None, ge=0)
    discount_price: Optional[float] = Field(None, ge=0)
    categories: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    compatible_tools: Optional[List[str]] = None

    @field_validator("tags", "compatible_tools")
    @classmethod
    def normalise_names(cls, v):
        return _normalise_names(v)


class AssetStatusUpdate(APIModel):
    status: Literal["pending_review", "approved", "rejected"]


class AssetResponse(APIModel):
    uuid: str
    title: str
    slug: str
    description: Optional[str] = None
    status: str
    asset_type: str
    orientation: Optional[str] = None
    resolution: Optional[str] = None
    is_premium: bool
    is_ai_generated: bool = Field(alias="isAIGenerated")
    price: float
    discount_price: Optional[float] = None
    width: Optional[int] = None
    height: Optional[int] = None
    size: Optional[int] = None
    author_id: str
    categories: List[CategorySummary] = []
    tags: List[str] = []
    compatible_tools: List[str] = []
    created_at: datetime
    updated_at: datetime

    @field_validator("tags", "compatible_tools", mode="before")
    @classmethod
    def names_of(cls, v):
        return [getattr(item, "name", item) for item in v or []]


class AssetReference(APIModel):
    """Body of the view, like and download endpoints."""
    asset_id: str = Field(..., min_length=1)
