"""Company-side revenue ledgers used by the admin dashboard."""
from datetime import datetime
from uuid import uuid4

from sqlalchemy import String, Boolean, Numeric, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class SubscriptionRevenue(Base):
    """Revenue booked when a subscription is first activated. 100% company revenue."""

    __tablename__ = "subscription_revenues"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    subscription_id: Mapped[str] = mapped_column(String(36), ForeignKey("subscriptions.uuid"), nullable=False)
    plan_id: Mapped[str] = mapped_column(String(36), ForeignKey("plans.uuid"), nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.uuid"), nullable=False)
    amount: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    billing_cycle: Mapped[str] = mapped_column(String(20), nullable=False)
    company_revenue: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    stripe_subscription_id: Mapped[str] = mapped_column(String(255), nullable=False)
    revenue_date: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("subscription_id", "stripe_subscription_id", name="uq_subscription_revenue"),
        Index("idx_subscription_revenue_date", "revenue_date"),
    )

    def __repr__(self) -> str:
        return f"<SubscriptionRevenue(uuid={self.uuid}, subscription_id={self.subscription_id}, amount={self.amount})>"


class IndividualPaymentRevenue(Base):
    """Per-payment revenue split recorded alongside the earnings ledger."""

    __tablename__ = "individual_payment_revenues"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    payment_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("individual_payments.uuid"), unique=True, nullable=False
    )
    asset_id: Mapped[str] = mapped_column(String(36), ForeignKey("assets.uuid"), nullable=False)
    author_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.uuid"), nullable=False)
    buyer_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.uuid"), nullable=False)
    amount: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    author_revenue: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    company_revenue: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    is_premium_buyer: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    stripe_payment_intent_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    revenue_date: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("idx_payment_revenue_author_date", "author_id", "revenue_date"),
        Index("idx_payment_revenue_date", "revenue_date"),
    )

    def __repr__(self) -> str:
        return f"<IndividualPaymentRevenue(uuid={self.uuid}, payment_id={self.payment_id}, amount={self.amount})>"
