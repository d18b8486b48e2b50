"""Pydantic schemas for plan endpoints."""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from app.schemas.common import APIModel


class PlanCreate(APIModel):
    name: str = Field(..., min_length=1, max_length=255)
    plan_type: str = Field("individual", max_length=50)
    billing_cycle: Literal["monthly", "yearly"]
    price: float = Field(..., ge=0)
    currency: str = Field("USD", min_length=3, max_length=10)
    stripe_price_id: Optional[str] = Field(None, max_length=255)
    features: List[str] = Field(default_factory=list)
    is_active: bool = True


class PlanUpdate(APIModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    billing_cycle: Optional[Literal["monthly", "yearly"]] = None
    price: Optional[float] = Field(None, ge=0)
    stripe_price_id: Optional[str] = Field(None, max_length=255)
    features: Optional[List[str]] = None
    is_active: Optional[bool] = None


class PlanResponse(APIModel):
    uuid: str
    name: str
    slug: str
    plan_type: str
    billing_cycle: str
    price: float
    currency: str
    stripe_price_id: Optional[str] = None
    features: List[str] = []
    is_active: bool
    created_at: datetime
