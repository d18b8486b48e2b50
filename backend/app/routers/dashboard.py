"""Analytics dashboards."""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import admin_required, author_required
from app.database import get_db
from app.models.user import User
from app.responses import success_response
from app.services import dashboard
from app.services.earnings import backfill_total_earnings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/author")
async def author_analytics(author: User = Depends(author_required), db: AsyncSession = Depends(get_db)):
    """Views, downloads and earnings for the current author, per period, plus top assets."""
    analytics = await dashboard.get_author_analytics(db, author.uuid)
    return success_response("Author analytics retrieved successfully", analytics)


@router.get("/admin")
async def admin_analytics(admin: User = Depends(admin_required), db: AsyncSession = Depends(get_db)):
    analytics = await dashboard.get_admin_analytics(db)
    return success_response("Admin analytics retrieved successfully", analytics)


@router.post("/backfill-earnings")
async def backfill_earnings(admin: User = Depends(admin_required), db: AsyncSession = Depends(get_db)):
    """Recompute every author's cached ``total_earnings`` from the earnings ledger."""
    result = await backfill_total_earnings(db)
    logger.info(f"Earnings backfill requested by {admin.uuid}: {result['updated']} authors updated")
    return success_response("Total earnings backfilled successfully", result)
