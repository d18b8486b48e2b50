"""Subscription plan endpoints."""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import ADMIN_ROLES, admin_required, get_optional_user
from app.database import get_db
from app.models.user import User
from app.responses import success_response
from app.schemas.common import serialize, serialize_many
from app.schemas.plans import PlanCreate, PlanResponse, PlanUpdate
from app.services import plans as plan_service

router = APIRouter()


@router.get("")
async def list_plans(
    include_inactive: bool = Query(False, alias="includeInactive"),
    current_user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Active plans, cheapest first. Admins may ask for inactive ones too."""
    show_inactive = include_inactive and current_user is not None and current_user.role in ADMIN_ROLES
    plans = await plan_service.list_plans(db, include_inactive=show_inactive)
    return success_response("Plans retrieved successfully", serialize_many(PlanResponse, plans))


@router.get("/{plan_id}")
async def get_plan(plan_id: str, db: AsyncSession = Depends(get_db)):
    plan = await plan_service.get_plan(db, plan_id)
    return success_response("Plan retrieved successfully", serialize(PlanResponse, plan))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_plan(
    data: PlanCreate,
    admin: User = Depends(admin_required),
    db: AsyncSession = Depends(get_db),
):
    plan = await plan_service.create_plan(db, data)
    return success_response("Plan created successfully", serialize(PlanResponse, plan))


@router.patch("/{plan_id}")
async def update_plan(
    plan_id: str,
    data: PlanUpdate,
    admin: User = Depends(admin_required),
    db: AsyncSession = Depends(get_db),
):
    plan = await plan_service.update_plan(db, plan_id, data)
    return success_response("Plan updated successfully", serialize(PlanResponse, plan))
