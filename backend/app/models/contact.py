"""Support ticket model."""
from datetime import datetime
from uuid import uuid4
from sqlalchemy import String, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base

CONTACT_STATUSES = ("pending", "replied", "closed")
CONTACT_PRIORITIES = ("low", "medium", "high", "urgent")
CONTACT_CATEGORIES = ("general", "technical", "billing", "feature_request", "bug_report", "account", "other")


class ContactTicket(Base):
    """Message from a subscriber or author to the support team."""

    __tablename__ = "contact_tickets"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False)
    priority: Mapped[str] = mapped_column(String(20), default="medium", nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)

    # Admin reply
    admin_reply: Mapped[str | None] = mapped_column(Text, nullable=True)
    replied_by_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.uuid"), nullable=True)
    replied_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.uuid"), nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user: Mapped["User"] = relationship("User", foreign_keys=[user_id], lazy="selectin")

    __table_args__ = (
        Index("idx_contact_user_created", "user_id", "created_at"),
        Index("idx_contact_status_created", "status", "created_at"),
        Index("idx_contact_category_status", "category", "status"),
    )

    def __repr__(self) -> str:
        return f"<ContactTicket(uuid={self.uuid}, user_id={self.user_id}, status={self.status})>"
