"""User model for the asset marketplace."""
from datetime import datetime
from uuid import uuid4
from sqlalchemy import String, Boolean, Numeric, DateTime, Index
from sqlalchemy.orm import Mapped, mapped_column
from app.database import Base


class UserRole:
    """Role names stored on ``User.role``."""

    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    AUTHOR = "author"
    SUBSCRIBER = "subscriber"

    ALL = (SUPER_ADMIN, ADMIN, AUTHOR, SUBSCRIBER)
    STAFF = (SUPER_ADMIN, ADMIN)


class User(Base):
    """Marketplace account: buyers (subscribers), asset authors and staff."""

    __tablename__ = "users"

    # Primary key
    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))

    # User info
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Account info
    role: Mapped[str] = mapped_column(String(50), default=UserRole.SUBSCRIBER, nullable=False)
    status: Mapped[str] = mapped_column(String(50), default="active", nullable=False)
    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_premium: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Cached sum of Earning.author_earning, repaired by the backfill job
    total_earnings: Mapped[float] = mapped_column(Numeric(12, 2, asdecimal=False), default=0.0, nullable=False)

    # Stripe integration
    stripe_customer_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Indexes
    __table_args__ = (
        Index("idx_user_email", "email"),
        Index("idx_user_role", "role"),
        Index("idx_user_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<User(uuid={self.uuid}, email={self.email}, role={self.role})>"
