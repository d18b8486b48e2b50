"""User management schemas for self-service and admin endpoints."""
from datetime import datetime
from typing import Literal, Optional

from pydantic import Field, field_validator

from app.schemas.auth import check_password_strength
from app.schemas.common import APIModel


class UserResponse(APIModel):
    """User profile (never exposes password_hash)."""

    uuid: str
    name: str
    email: str
    role: str
    status: str
    is_premium: bool
    total_earnings: float
    created_at: datetime


class UserUpdate(APIModel):
    """Schema for user self-service profile update."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    password: Optional[str] = Field(None, min_length=8)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: Optional[str]) -> Optional[str]:
        """Validate password strength if provided."""
        if v is None:
            return v
        return check_password_strength(v)


class UserStatusUpdate(APIModel):
    status: Literal["active", "blocked"]
