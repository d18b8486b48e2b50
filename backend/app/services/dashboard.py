"""Author and admin analytics dashboards.

Views and downloads are lifetime counters on ``AssetStats``; no event history
is stored, so period view counts are always 0 and period download counts are
taken from completed payments by transaction date.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import ForbiddenError, NotFoundError
from app.models.asset import Asset, AssetStatus
from app.models.asset_stats import AssetStats
from app.models.earning import Earning
from app.models.individual_payment import IndividualPayment, PaymentStatus
from app.models.user import User, UserRole
from app.services.earnings import get_earnings_for_period, get_platform_revenue_for_period
from app.services.periods import BOUNDED_PERIODS, LIFETIME, within

logger = logging.getLogger(__name__)

TOP_ASSETS_LIMIT = 10


async def _scalar(db: AsyncSession, statement) -> float:
    return (await db.execute(statement)).scalar_one() or 0


def _no_history(lifetime: int) -> Dict[str, int]:
    return {LIFETIME: int(lifetime), **{period: 0 for period in BOUNDED_PERIODS}}


async def _lifetime_stat(db: AsyncSession, column, author_id: Optional[str] = None) -> int:
    statement = select(func.coalesce(func.sum(column), 0))
    if author_id is not None:
        statement = statement.join(Asset, Asset.uuid == AssetStats.asset_id).where(Asset.author_id == author_id)
    return int(await _scalar(db, statement))


async def _downloads_for_period(db: AsyncSession, period: str, author_id: Optional[str] = None) -> int:
    statement = select(func.count(IndividualPayment.uuid)).where(
        IndividualPayment.payment_status == PaymentStatus.COMPLETED,
        within(IndividualPayment.transaction_date, period),
    )
    if author_id is not None:
        statement = statement.join(Asset, Asset.uuid == IndividualPayment.asset_id).where(
            Asset.author_id == author_id
        )
    return int(await _scalar(db, statement))


async def _downloads(db: AsyncSession, author_id: Optional[str] = None) -> Dict[str, int]:
    downloads = {LIFETIME: await _lifetime_stat(db, AssetStats.downloads, author_id)}
    for period in BOUNDED_PERIODS:
        downloads[period] = await _downloads_for_period(db, period, author_id)
    return downloads


async def _top_assets(db: AsyncSession, author_id: str) -> List[Dict[str, Any]]:
    earned = (
        select(Earning.asset_id, func.sum(Earning.author_earning).label("earnings"))
        .group_by(Earning.asset_id)
        .subquery()
    )
    statement = (
        select(
            Asset.uuid,
            Asset.title,
            AssetStats.views,
            AssetStats.downloads,
            func.coalesce(earned.c.earnings, 0),
        )
        .join(AssetStats, AssetStats.asset_id == Asset.uuid)
        .outerjoin(earned, earned.c.asset_id == Asset.uuid)
        .where(Asset.author_id == author_id)
        .order_by(AssetStats.downloads.desc(), Asset.created_at.desc())
        .limit(TOP_ASSETS_LIMIT)
    )
    rows = (await db.execute(statement)).all()
    return [
        {
            "assetId": asset_id,
            "title": title,
            "views": views,
            "downloads": downloads,
            "earnings": round(float(earnings or 0), 2),
        }
        for asset_id, title, views, downloads, earnings in rows
    ]


async def get_author_analytics(db: AsyncSession, author_id: str) -> Dict[str, Any]:
    """Views, downloads, earnings per period and the author's top 10 assets."""
    author = await db.get(User, author_id)
    if author is None:
        raise NotFoundError("Author not found")
    if author.role != UserRole.AUTHOR:
        raise ForbiddenError("Only authors can access author analytics")

    earnings = {LIFETIME: round(float(author.total_earnings or 0), 2)}
    for period in BOUNDED_PERIODS:
        earnings[period] = await get_earnings_for_period(db, author_id, period)

    return {
        "views": _no_history(await _lifetime_stat(db, AssetStats.views, author_id)),
        "downloads": await _downloads(db, author_id),
        "earnings": earnings,
        "topAssets": await _top_assets(db, author_id),
    }


async def _count(db: AsyncSession, model, *clauses) -> int:
    statement = select(func.count()).select_from(model)
    for clause in clauses:
        statement = statement.where(clause)
    return int(await _scalar(db, statement))


async def get_admin_analytics(db: AsyncSession) -> Dict[str, Any]:
    """Platform-wide dashboard with revenue reconciled across all ledgers."""
    total = {}
    company = {}
    authors = {}
    for period in (LIFETIME, *BOUNDED_PERIODS):
        revenue = await get_platform_revenue_for_period(db, period)
        total[period] = revenue.total
        company[period] = revenue.company_total
        authors[period] = revenue.author

    active = User.is_deleted.is_(False)
    users = {
        "total": await _count(db, User, active),
        "subscribers": await _count(db, User, active, User.role == UserRole.SUBSCRIBER),
        "authors": await _count(db, User, active, User.role == UserRole.AUTHOR),
        "premium": await _count(db, User, active, User.is_premium.is_(True)),
    }
    assets = {
        "total": await _count(db, Asset),
        "pending": await _count(db, Asset, Asset.status == AssetStatus.PENDING_REVIEW),
        "approved": await _count(db, Asset, Asset.status == AssetStatus.APPROVED),
        "rejected": await _count(db, Asset, Asset.status == AssetStatus.REJECTED),
    }

    return {
        "views": _no_history(await _lifetime_stat(db, AssetStats.views)),
        "downloads": await _downloads(db),
        "earnings": {"total": total, "company": company, "authors": authors},
        "users": users,
        "assets": assets,
    }
