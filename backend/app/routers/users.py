"""User self-service and admin user management endpoints."""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import admin_required, get_current_active_user
from app.database import get_db
from app.models.user import User
from app.responses import success_response
from app.schemas.common import serialize, serialize_many
from app.schemas.users import UserResponse, UserStatusUpdate, UserUpdate
from app.services import users as user_service

router = APIRouter()


@router.get("")
async def list_users(
    request: Request,
    admin: User = Depends(admin_required),
    db: AsyncSession = Depends(get_db),
):
    """
    List users (admin only).

    - search over name and email
    - exact role, status; boolean isPremium
    - sort, fields, page, limit
    """
    page = await user_service.list_users(db, request.query_params)
    return success_response(
        "Users retrieved successfully",
        serialize_many(UserResponse, page.items, page.builder),
        page.meta,
    )


@router.get("/me")
async def get_my_profile(current_user: User = Depends(get_current_active_user)):
    return success_response("User profile retrieved successfully", serialize(UserResponse, current_user))


@router.patch("/me")
async def update_my_profile(
    user_update: UserUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.update_profile(db, current_user, user_update)
    return success_response("Profile updated successfully", serialize(UserResponse, user))


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    admin: User = Depends(admin_required),
    db: AsyncSession = Depends(get_db),
):
    user = await user_service.get_user(db, user_id)
    return success_response("User retrieved successfully", serialize(UserResponse, user))


@router.patch("/{user_id}/status")
async def update_user_status(
    user_id: str,
    data: UserStatusUpdate,
    admin: User = Depends(admin_required),
    db: AsyncSession = Depends(get_db),
):
    """Block or re-activate an account (admin only)."""
    user = await user_service.update_user_status(db, user_id, data.status)
    return success_response("User status updated successfully", serialize(UserResponse, user))
