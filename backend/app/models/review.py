"""Review model for asset reviews."""
from datetime import datetime
from uuid import uuid4
from sqlalchemy import String, Text, Integer, Boolean, DateTime, ForeignKey, Index, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base


class Review(Base):
    """Buyer review of an asset, with an optional reply from the asset author."""

    __tablename__ = "reviews"

    # Primary key
    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))

    # Review info
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False)
    is_edited: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    author_reply: Mapped[str | None] = mapped_column(Text, nullable=True)
    replied_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    # Foreign keys
    asset_id: Mapped[str] = mapped_column(String(36), ForeignKey("assets.uuid", ondelete="CASCADE"), nullable=False)
    buyer_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.uuid"), nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    asset: Mapped["Asset"] = relationship("Asset", foreign_keys=[asset_id])
    buyer: Mapped["User"] = relationship("User", foreign_keys=[buyer_id], lazy="selectin")

    # Constraints and indexes
    __table_args__ = (
        UniqueConstraint("asset_id", "buyer_id", name="uq_review_asset_buyer"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating_range"),
        Index("idx_review_asset_created", "asset_id", "created_at"),
        Index("idx_review_buyer_id", "buyer_id"),
    )

    def __repr__(self) -> str:
        return f"<Review(uuid={self.uuid}, asset_id={self.asset_id}, rating={self.rating})>"
