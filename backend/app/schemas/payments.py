"""Pydantic schemas for asset purchase endpoints."""
from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas.common import APIModel


class PaymentCheckoutRequest(APIModel):
    asset_id: str = Field(..., min_length=1)


class PaymentResponse(APIModel):
    uuid: str
    asset_id: str
    user_id: str
    original_price: float
    discount_amount: float
    final_price: float
    is_premium_user: bool
    payment_status: str
    payment_method: str
    stripe_session_id: Optional[str] = None
    stripe_payment_intent_id: Optional[str] = None
    transaction_date: datetime
    created_at: datetime
