"""Category model with self-referencing sub-categories."""
from datetime import datetime
from uuid import uuid4
from sqlalchemy import String, Boolean, DateTime, ForeignKey, Table, Column
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.database import Base

category_subcategories = Table(
    "category_subcategories",
    Base.metadata,
    Column("parent_id", String(36), ForeignKey("categories.uuid", ondelete="CASCADE"), primary_key=True),
    Column("child_id", String(36), ForeignKey("categories.uuid", ondelete="CASCADE"), primary_key=True),
)


class Category(Base):
    """Asset category. ``category_type`` follows the ``parent_category`` flag."""

    __tablename__ = "categories"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    parent_category: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    category_type: Mapped[str] = mapped_column(String(50), default="main_category", nullable=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    sub_categories: Mapped[list["Category"]] = relationship(
        "Category",
        secondary=category_subcategories,
        primaryjoin=lambda: Category.uuid == category_subcategories.c.parent_id,
        secondaryjoin=lambda: Category.uuid == category_subcategories.c.child_id,
        lazy="selectin",
        join_depth=1,
    )

    def __repr__(self) -> str:
        return f"<Category(uuid={self.uuid}, slug={self.slug})>"
