"""Subscription model mirroring a Stripe subscription."""
from datetime import datetime
from uuid import uuid4
from sqlalchemy import String, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base


class SubscriptionStatus:
    ACTIVE = "active"
    CANCELED = "canceled"
    EXPIRED = "expired"


class Subscription(Base):
    """A user's plan subscription. At most one per user."""

    __tablename__ = "subscriptions"

    # Primary key
    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))

    # Subscription info
    status: Mapped[str] = mapped_column(String(50), default=SubscriptionStatus.ACTIVE, nullable=False)
    current_period_start: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    current_period_end: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    cancel_at_period_end: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Stripe info
    stripe_customer_id: Mapped[str] = mapped_column(String(255), nullable=False)
    stripe_subscription_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    # Foreign keys
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.uuid"), unique=True, nullable=False)
    plan_id: Mapped[str] = mapped_column(String(36), ForeignKey("plans.uuid"), nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user: Mapped["User"] = relationship("User", foreign_keys=[user_id])
    plan: Mapped["Plan"] = relationship("Plan", foreign_keys=[plan_id], lazy="selectin")

    # Indexes
    __table_args__ = (
        Index("idx_subscription_plan_id", "plan_id"),
        Index("idx_subscription_status", "status"),
        Index("idx_subscription_stripe_customer_id", "stripe_customer_id"),
    )

    def __repr__(self) -> str:
        return f"<Subscription(uuid={self.uuid}, user_id={self.user_id}, status={self.status})>"
