"""View, like and download counters."""
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_active_user, get_optional_user
from app.database import get_db
from app.models.user import User
from app.responses import success_response
from app.schemas.assets import AssetReference
from app.services import asset_stats

router = APIRouter()


@router.post("/view")
async def increment_view(data: AssetReference, db: AsyncSession = Depends(get_db)):
    views = await asset_stats.increment_view(db, data.asset_id)
    return success_response("View recorded", {"assetId": data.asset_id, "views": views})


@router.post("/like")
async def toggle_like(
    data: AssetReference,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    result = await asset_stats.toggle_like(db, data.asset_id, current_user)
    message = "Asset liked" if result["liked"] else "Asset unliked"
    return success_response(message, {"assetId": data.asset_id, **result})


@router.post("/download")
async def record_download(
    data: AssetReference,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Record a download. Paid premium assets require a completed purchase."""
    result = await asset_stats.record_download(db, data.asset_id, current_user)
    return success_response("Download recorded", {"assetId": data.asset_id, **result})


@router.get("/{asset_id}")
async def get_asset_stats(
    asset_id: str,
    current_user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    stats = await asset_stats.get_asset_stats(db, asset_id, current_user)
    return success_response("Asset stats retrieved successfully", stats)
