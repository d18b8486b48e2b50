"""User administration queries."""
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.security import hash_password
from app.builder.query_builder import QueryBuilder
from app.builder.sql import Page, fetch_builder_page
from app.errors import NotFoundError
from app.models.user import User
from app.schemas.users import UserUpdate

USER_FIELDS = {
    "name": User.name,
    "email": User.email,
    "role": User.role,
    "status": User.status,
    "isPremium": User.is_premium,
    "totalEarnings": User.total_earnings,
    "createdAt": User.created_at,
}


async def get_user(db: AsyncSession, user_id: str) -> User:
    user = await db.get(User, user_id)
    if user is None or user.is_deleted:
        raise NotFoundError("User not found")
    return user


async def list_users(db: AsyncSession, params) -> Page:
    builder = (
        QueryBuilder(params)
        .search(["name", "email"])
        .filter_exact("role", "role")
        .filter_exact("status", "status")
        .filter_boolean("isPremium", "isPremium")
        .sort()
        .project()
        .paginate()
    )
    return await fetch_builder_page(db, User, builder, USER_FIELDS, scope=[User.is_deleted.is_(False)])


async def update_user_status(db: AsyncSession, user_id: str, status: str) -> User:
    user = await get_user(db, user_id)
    user.status = status
    await db.commit()
    return user


async def update_profile(db: AsyncSession, user: User, data: UserUpdate) -> User:
    if data.name is not None:
        user.name = data.name
    if data.password is not None:
        user.password_hash = hash_password(data.password)
    await db.commit()
    return user
