"""Pydantic schemas for subscription endpoints."""
from datetime import datetime

from pydantic import Field

from app.schemas.common import APIModel


class SubscriptionCheckoutRequest(APIModel):
    """Schema for starting a plan checkout."""
    plan_id: str = Field(..., min_length=1)


class CheckoutVerifyRequest(APIModel):
    session_id: str = Field(..., min_length=1)


class SubscriptionResponse(APIModel):
    """Schema for subscription detail response."""
    uuid: str
    status: str
    user_id: str
    plan_id: str
    current_period_start: datetime
    current_period_end: datetime
    cancel_at_period_end: bool
    stripe_subscription_id: str
    created_at: datetime
    updated_at: datetime
