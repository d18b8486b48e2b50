"""Earning model: the per-payment author payout ledger."""
from datetime import datetime
from uuid import uuid4

from sqlalchemy import String, Boolean, Integer, Numeric, DateTime, ForeignKey, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class Earning(Base):
    """Records the author/company split of one completed asset payment.

    Written by ``create_earning_record`` exactly once per payment
    (``payment_id`` is unique). Amounts are USD.
    """
    __tablename__ = "earnings"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    author_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.uuid"), nullable=False)
    asset_id: Mapped[str] = mapped_column(String(36), ForeignKey("assets.uuid"), nullable=False)
    payment_id: Mapped[str] = mapped_column(String(36), ForeignKey("individual_payments.uuid"), nullable=False, unique=True)
    buyer_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.uuid"), nullable=False)
    asset_price: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    is_premium_buyer: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    platform_fee_percentage: Mapped[int] = mapped_column(Integer, nullable=False)
    author_earning: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    company_earning: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=False)
    earning_date: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    author = relationship("User", foreign_keys=[author_id])
    asset = relationship("Asset", foreign_keys=[asset_id])

    __table_args__ = (
        Index("idx_earning_author_date", "author_id", "earning_date"),
        Index("idx_earning_asset_id", "asset_id"),
        Index("idx_earning_date", "earning_date"),
    )

    def __repr__(self) -> str:
        return f"<Earning(uuid={self.uuid}, author_id={self.author_id}, payment_id={self.payment_id})>"
