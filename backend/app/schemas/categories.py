"""Pydantic schemas for category endpoints."""
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.schemas.common import APIModel


class CategoryCreate(APIModel):
    name: str = Field(..., min_length=1, max_length=255)
    parent_category: bool = False
    sub_categories: List[str] = Field(default_factory=list)


class CategoryUpdate(APIModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    parent_category: Optional[bool] = None
    sub_categories: Optional[List[str]] = None


class CategorySummary(APIModel):
    uuid: str
    name: str
    slug: str


class CategoryResponse(APIModel):
    uuid: str
    name: str
    slug: str
    parent_category: bool
    category_type: str
    sub_categories: List[CategorySummary] = []
    created_at: datetime
