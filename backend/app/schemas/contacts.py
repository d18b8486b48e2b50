"""Pydantic schemas for support contact tickets."""
from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from app.schemas.common import APIModel

ContactCategory = Literal["general", "technical", "billing", "feature_request", "bug_report", "account", "other"]
ContactPriority = Literal["low", "medium", "high", "urgent"]
ContactStatus = Literal["pending", "replied", "closed"]


class ContactCreate(APIModel):
    subject: str = Field(..., min_length=5, max_length=200)
    category: ContactCategory
    priority: ContactPriority = "medium"
    message: str = Field(..., min_length=20, max_length=5000)


class ContactReply(APIModel):
    reply: str = Field(..., min_length=10, max_length=5000)


class ContactStatusUpdate(APIModel):
    status: ContactStatus


class ContactUserSummary(APIModel):
    uuid: str
    name: str
    email: str


class ContactResponse(APIModel):
    uuid: str
    subject: str
    category: str
    priority: str
    message: str
    status: str
    admin_reply: Optional[str] = None
    replied_by_id: Optional[str] = None
    replied_at: Optional[datetime] = None
    user: ContactUserSummary
    created_at: datetime
    updated_at: datetime
