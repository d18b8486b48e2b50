"""Asset model and its tag / compatible-tool child rows."""
from datetime import datetime
from uuid import uuid4
from sqlalchemy import String, Text, Boolean, Integer, Numeric, DateTime, ForeignKey, Index, Table, Column, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base


class AssetStatus:
    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    REJECTED = "rejected"

    ALL = (PENDING_REVIEW, APPROVED, REJECTED)


asset_categories = Table(
    "asset_categories",
    Base.metadata,
    Column("asset_id", String(36), ForeignKey("assets.uuid", ondelete="CASCADE"), primary_key=True),
    Column("category_id", String(36), ForeignKey("categories.uuid", ondelete="CASCADE"), primary_key=True),
)


class Asset(Base):
    """Digital asset listed for sale by an author."""

    __tablename__ = "assets"

    # Primary key
    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))

    # Listing info
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(50), default=AssetStatus.PENDING_REVIEW, nullable=False)
    asset_type: Mapped[str] = mapped_column(String(50), nullable=False)
    orientation: Mapped[str | None] = mapped_column(String(50), nullable=True)
    resolution: Mapped[str | None] = mapped_column(String(50), nullable=True)
    is_premium: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_ai_generated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Pricing (USD)
    price: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), default=0.0, nullable=False)
    discount_price: Mapped[float | None] = mapped_column(Numeric(12, 2, asdecimal=False), nullable=True)

    # File metadata
    width: Mapped[int | None] = mapped_column(Integer, nullable=True)
    height: Mapped[int | None] = mapped_column(Integer, nullable=True)
    size: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Foreign keys
    author_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.uuid"), nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    author: Mapped["User"] = relationship("User", foreign_keys=[author_id])
    categories: Mapped[list["Category"]] = relationship("Category", secondary=asset_categories, lazy="selectin")
    tags: Mapped[list["AssetTag"]] = relationship(
        "AssetTag", cascade="all, delete-orphan", lazy="selectin", order_by="AssetTag.name"
    )
    compatible_tools: Mapped[list["AssetTool"]] = relationship(
        "AssetTool", cascade="all, delete-orphan", lazy="selectin", order_by="AssetTool.name"
    )

    # Indexes
    __table_args__ = (
        Index("idx_asset_author_id", "author_id"),
        Index("idx_asset_status", "status"),
        Index("idx_asset_created_at", "created_at"),
        Index("idx_asset_price", "price"),
    )

    @property
    def is_free(self) -> bool:
        return not self.is_premium or (self.price or 0) == 0

    def __repr__(self) -> str:
        return f"<Asset(uuid={self.uuid}, slug={self.slug}, status={self.status})>"


class AssetTag(Base):
    """Lower-cased tag attached to an asset."""

    __tablename__ = "asset_tags"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    asset_id: Mapped[str] = mapped_column(String(36), ForeignKey("assets.uuid", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    __table_args__ = (
        UniqueConstraint("asset_id", "name", name="uq_asset_tag"),
        Index("idx_asset_tag_name", "name"),
    )


class AssetTool(Base):
    """Software an asset is compatible with."""

    __tablename__ = "asset_tools"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    asset_id: Mapped[str] = mapped_column(String(36), ForeignKey("assets.uuid", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)

    __table_args__ = (
        UniqueConstraint("asset_id", "name", name="uq_asset_tool"),
        Index("idx_asset_tool_name", "name"),
    )
