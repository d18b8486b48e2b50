"""Review endpoints."""
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import author_required, get_current_active_user
from app.database import get_db
from app.models.user import User
from app.responses import success_response
from app.schemas.common import serialize, serialize_many
from app.schemas.reviews import ReviewCreate, ReviewReply, ReviewResponse, ReviewUpdate
from app.services import reviews as review_service

router = APIRouter()


@router.get("/author/my-reviews")
async def list_my_asset_reviews(
    request: Request,
    author: User = Depends(author_required),
    db: AsyncSession = Depends(get_db),
):
    """Reviews left on the current author's assets."""
    page = await review_service.list_author_reviews(db, author, request.query_params)
    return success_response("Reviews retrieved successfully", serialize_many(ReviewResponse, page.items), page.meta)


@router.get("/asset/{asset_id}")
async def list_asset_reviews(asset_id: str, request: Request, db: AsyncSession = Depends(get_db)):
    page = await review_service.list_asset_reviews(db, asset_id, request.query_params)
    return success_response("Reviews retrieved successfully", serialize_many(ReviewResponse, page.items), page.meta)


@router.get("/{review_id}")
async def get_review(review_id: str, db: AsyncSession = Depends(get_db)):
    review = await review_service.get_review(db, review_id)
    return success_response("Review retrieved successfully", serialize(ReviewResponse, review))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_review(
    data: ReviewCreate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    """Subscribers with an active plan, or users who downloaded the asset, may review it once."""
    review = await review_service.create_review(db, current_user, data)
    return success_response("Review created successfully", serialize(ReviewResponse, review))


@router.patch("/{review_id}")
async def update_review(
    review_id: str,
    data: ReviewUpdate,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    review = await review_service.update_review(db, review_id, current_user, data)
    return success_response("Review updated successfully", serialize(ReviewResponse, review))


@router.post("/{review_id}/reply")
async def reply_to_review(
    review_id: str,
    data: ReviewReply,
    author: User = Depends(author_required),
    db: AsyncSession = Depends(get_db),
):
    review = await review_service.reply_to_review(db, review_id, author, data.reply)
    return success_response("Reply added successfully", serialize(ReviewResponse, review))


@router.delete("/{review_id}")
async def delete_review(
    review_id: str,
    current_user: User = Depends(get_current_active_user),
    db: AsyncSession = Depends(get_db),
):
    await review_service.delete_review(db, review_id, current_user)
    return success_response("Review deleted successfully")
