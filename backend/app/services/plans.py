"""Subscription plan catalogue."""
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import ConflictError, NotFoundError
from app.models.plan import Plan
from app.schemas.plans import PlanCreate, PlanUpdate

logger = logging.getLogger(__name__)


def plan_slug(name: str) -> str:
    return "-".join(name.strip().lower().split())


async def _find(db: AsyncSession, slug: str, billing_cycle: str, exclude_id: Optional[str] = None) -> Optional[Plan]:
    statement = select(Plan).where(Plan.slug == slug, Plan.billing_cycle == billing_cycle)
    if exclude_id:
        statement = statement.where(Plan.uuid != exclude_id)
    result = await db.execute(statement)
    return result.scalar_one_or_none()


async def get_plan(db: AsyncSession, plan_id: str) -> Plan:
    plan = await db.get(Plan, plan_id)
    if plan is None:
        raise NotFoundError("Plan not found")
    return plan


async def create_plan(db: AsyncSession, data: PlanCreate) -> Plan:
    slug = plan_slug(data.name)
    if await _find(db, slug, data.billing_cycle):
        raise ConflictError("Plan already exists")
    plan = Plan(slug=slug, **data.model_dump())
    db.add(plan)
    await db.commit()
    logger.info(f"Plan created: {slug} ({data.billing_cycle})")
    return plan


async def update_plan(db: AsyncSession, plan_id: str, data: PlanUpdate) -> Plan:
    plan = await get_plan(db, plan_id)
    changes = data.model_dump(exclude_unset=True)

    slug = plan_slug(changes["name"]) if changes.get("name") else plan.slug
    billing_cycle = changes.get("billing_cycle") or plan.billing_cycle
    if await _find(db, slug, billing_cycle, exclude_id=plan.uuid):
        raise ConflictError("Plan already exists")

    for field, value in changes.items():
        setattr(plan, field, value)
    plan.slug = slug
    await db.commit()
    return plan


async def list_plans(db: AsyncSession, include_inactive: bool = False) -> List[Plan]:
    statement = select(Plan).order_by(Plan.price.asc(), Plan.uuid)
    if not include_inactive:
        statement = statement.where(Plan.is_active.is_(True))
    result = await db.execute(statement)
    return list(result.scalars().all())
