"""Asset catalogue endpoints."""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import admin_required, author_required, get_current_active_user
from app.database import get_db
from app.models.user import User
from app.responses import success_response
from app.schemas.assets import AssetCreate, AssetResponse, AssetStatusUpdate, AssetUpdate
from app.schemas.common import serialize, serialize_many
from app.services import assets as asset_service

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_asset(
    data: AssetCreate,
    author: User = Depends(author_required),
    db: AsyncSession = Depends(get_db),
):
    """Submit an asset. New assets wait in ``pending_review`` until an admin approves them."""
    asset = await asset_service.create_asset(db, author, data)
    return success_response("Asset created successfully", serialize(AssetResponse, asset))


@router.get("")
async def list_assets(request: Request, db: AsyncSession = Depends(get_db)):
    """
    Public asset listing.

    Query parameters:
    - search / searchTerm / q: title, slug, description
    - assetType, orientation, status, resolution: exact match
    - isPremium, isAIGenerated: booleans
    - author, categories (comma separated ids), tags (all), compatibleTools (any)
    - minPrice/maxPrice, minWidth/maxWidth, minHeight/maxHeight, minSize/maxSize
    - sort (e.g. ``-createdAt,price``), fields, page, limit
    """
    page = await asset_service.list_assets(db, request.query_params)
    return success_response(
        "Assets retrieved successfully",
        serialize_many(AssetResponse, page.items, page.builder),
        page.meta,
    )


@router.get("/my-assets")
async def list_my_assets(
    request: Request,
    author: User = Depends(author_required),
    db: AsyncSession = Depends(get_db),
):
    page = await asset_service.list_author_assets(db, author, request.query_params)
    return success_response(
        "Assets retrieved successfully",
        serialize_many(AssetResponse, page.items, page.builder),
        page.meta,
    )


@router.get("/{asset_id}")
async def get_asset(asset_id: str, db: AsyncSession = Depends(get_db)):
    asset = await asset_service.get_asset(db, asset_id)
    return success_response("Asset retrieved successfully", serialize(AssetResponse, asset))


@router.patch("/{asset_id}")
async def update_asset(
    asset_id: str,
    data: AssetUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    asset = await asset_service.update_asset(db, asset_id, current_user, data)
    return success_response("Asset updated successfully", serialize(AssetResponse, asset))


@router.patch("/{asset_id}/status")
async def update_asset_status(
    asset_id: str,
    data: AssetStatusUpdate,
    admin: User = Depends(admin_required),
    db: AsyncSession = Depends(get_db),
):
    """Approve or reject a submitted asset (admin only)."""
    asset = await asset_service.update_asset_status(db, asset_id, data.status)
    return success_response("Asset status updated successfully", serialize(AssetResponse, asset))


@router.delete("/{asset_id}")
async def delete_asset(
    asset_id: str,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    await asset_service.delete_asset(db, asset_id, current_user)
    return success_response("Asset deleted successfully")
