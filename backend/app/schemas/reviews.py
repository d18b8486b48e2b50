"""Pydantic schemas for review endpoints."""
from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas.common import APIModel


class ReviewCreate(APIModel):
    asset_id: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=10, max_length=1000)


class ReviewUpdate(APIModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, min_length=10, max_length=1000)


class ReviewReply(APIModel):
    reply: str = Field(..., min_length=1, max_length=1000)


class ReviewerSummary(APIModel):
    uuid: str
    name: str


class ReviewResponse(APIModel):
    uuid: str
    asset_id: str
    rating: int
    comment: str
    is_edited: bool
    author_reply: Optional[str] = None
    replied_at: Optional[datetime] = None
    buyer: ReviewerSummary
    created_at: datetime
    updated_at: datetime
