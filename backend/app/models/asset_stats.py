"""Per-asset counters and the membership rows behind likes and downloads.

Counters are only changed with ``UPDATE ... SET x = x + n`` in the same
transaction as the membership insert/delete, and the unique constraints on
the membership tables decide which of two concurrent requests wins.
"""
from datetime import datetime
from uuid import uuid4
from sqlalchemy import String, Integer, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from app.database import Base


class AssetStats(Base):
    """View, download and like counters for one asset."""

    __tablename__ = "asset_stats"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    asset_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("assets.uuid", ondelete="CASCADE"), unique=True, nullable=False
    )
    views: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    downloads: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    likes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<AssetStats(asset_id={self.asset_id}, views={self.views}, downloads={self.downloads}, likes={self.likes})>"


class AssetLike(Base):
    __tablename__ = "asset_likes"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    asset_id: Mapped[str] = mapped_column(String(36), ForeignKey("assets.uuid", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.uuid", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("asset_id", "user_id", name="uq_asset_like"),
        Index("idx_asset_like_user_id", "user_id"),
    )


class AssetDownload(Base):
    __tablename__ = "asset_downloads"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    asset_id: Mapped[str] = mapped_column(String(36), ForeignKey("assets.uuid", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.uuid", ondelete="CASCADE"), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("asset_id", "user_id", name="uq_asset_download"),
        Index("idx_asset_download_user_id", "user_id"),
    )
