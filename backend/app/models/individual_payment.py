"""One-off asset purchase made through Stripe Checkout."""
from datetime import datetime
from uuid import uuid4
from sqlalchemy import String, Boolean, Numeric, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base

PREMIUM_DISCOUNT_PERCENTAGE = 30


class PaymentStatus:
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class IndividualPayment(Base):
    """Purchase of a single asset. Prices are stored in USD."""

    __tablename__ = "individual_payments"

    # Primary key
    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))

    # Amounts
    original_price: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    discount_amount: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), default=0.0, nullable=False)
    final_price: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    is_premium_user: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Status
    payment_status: Mapped[str] = mapped_column(String(20), default=PaymentStatus.PENDING, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(50), default="stripe", nullable=False)

    # Stripe info
    stripe_session_id: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    stripe_payment_intent_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Foreign keys
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.uuid"), nullable=False)
    asset_id: Mapped[str] = mapped_column(String(36), ForeignKey("assets.uuid"), nullable=False)

    # Timestamps
    transaction_date: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    refund_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    refund_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user: Mapped["User"] = relationship("User", foreign_keys=[user_id])
    asset: Mapped["Asset"] = relationship("Asset", foreign_keys=[asset_id])

    # Indexes
    __table_args__ = (
        Index("idx_payment_user_asset", "user_id", "asset_id"),
        Index("idx_payment_status_date", "payment_status", "transaction_date"),
        Index("idx_payment_intent_id", "stripe_payment_intent_id"),
    )

    def __repr__(self) -> str:
        return f"<IndividualPayment(uuid={self.uuid}, user_id={self.user_id}, asset_id={self.asset_id}, status={self.payment_status})>"
