"""Subscription plan model."""
from datetime import datetime
from uuid import uuid4
from sqlalchemy import String, Boolean, Numeric, DateTime, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from app.database import Base


class Plan(Base):
    """Billing plan backed by a Stripe recurring price."""

    __tablename__ = "plans"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False)
    plan_type: Mapped[str] = mapped_column(String(50), default="individual", nullable=False)
    billing_cycle: Mapped[str] = mapped_column(String(20), nullable=False)  # monthly | yearly
    price: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    currency: Mapped[str] = mapped_column(String(10), default="USD", nullable=False)
    stripe_price_id: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    features: Mapped[list] = mapped_column(JSON, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("slug", "billing_cycle", name="uq_plan_slug_cycle"),
    )

    def __repr__(self) -> str:
        return f"<Plan(uuid={self.uuid}, slug={self.slug}, billing_cycle={self.billing_cycle})>"
