"""Category endpoints."""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import admin_required
from app.database import get_db
from app.models.user import User
from app.responses import success_response
from app.schemas.categories import CategoryCreate, CategoryResponse, CategoryUpdate
from app.schemas.common import serialize, serialize_many
from app.services import categories as category_service

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(
    data: CategoryCreate,
    admin: User = Depends(admin_required),
    db: AsyncSession = Depends(get_db),
):
    category = await category_service.create_category(db, data)
    return success_response("Category created successfully", serialize(CategoryResponse, category))


@router.get("")
async def list_categories(request: Request, db: AsyncSession = Depends(get_db)):
    """List categories; ``parentCategory=true`` returns only main categories."""
    page = await category_service.list_categories(db, request.query_params)
    return success_response(
        "Categories retrieved successfully",
        serialize_many(CategoryResponse, page.items),
        page.meta,
    )


@router.get("/{category_id}")
async def get_category(category_id: str, db: AsyncSession = Depends(get_db)):
    category = await category_service.get_category(db, category_id)
    return success_response("Category retrieved successfully", serialize(CategoryResponse, category))


@router.patch("/{category_id}")
async def update_category(
    category_id: str,
    data: CategoryUpdate,
    admin: User = Depends(admin_required),
    db: AsyncSession = Depends(get_db),
):
    category = await category_service.update_category(db, category_id, data)
    return success_response("Category updated successfully", serialize(CategoryResponse, category))


@router.delete("/{category_id}")
async def delete_category(
    category_id: str,
    admin: User = Depends(admin_required),
    db: AsyncSession = Depends(get_db),
):
    await category_service.delete_category(db, category_id)
    return success_response("Category deleted successfully")
