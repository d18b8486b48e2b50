"""Asset reviews and author replies."""
import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.builder.query_builder import QueryBuilder
from app.builder.sql import Page, fetch_builder_page
from app.errors import ConflictError, ForbiddenError, NotFoundError
from app.models.asset import Asset
from app.models.review import Review
from app.models.user import User, UserRole
from app.schemas.reviews import ReviewCreate, ReviewUpdate
from app.services.asset_stats import has_downloaded
from app.services.subscriptions import has_active_subscription

logger = logging.getLogger(__name__)

REVIEW_FIELDS = {
    "rating": Review.rating,
    "assetId": Review.asset_id,
    "createdAt": Review.created_at,
}


async def get_review(db: AsyncSession, review_id: str) -> Review:
    review = await db.get(Review, review_id)
    if review is None:
        raise NotFoundError("Review not found")
    return review


async def create_review(db: AsyncSession, user: User, data: ReviewCreate) -> Review:
    """
    Leave a review on an asset.

    - Reviewer needs an active subscription or a recorded download
    - One review per buyer per asset
    """
    asset_id = data.asset_id
    asset = await db.get(Asset, asset_id)
    if asset is None:
        raise NotFoundError("Asset not found")

    eligible = await has_active_subscription(db, user.uuid) or await has_downloaded(db, asset_id, user.uuid)
    if not eligible:
        raise ForbiddenError("You must have an active subscription or have downloaded this asset to leave a review")

    existing = await db.execute(
        select(Review.uuid).where(Review.asset_id == asset_id, Review.buyer_id == user.uuid)
    )
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("You have already reviewed this asset")

    review = Review(asset_id=asset_id, buyer_id=user.uuid, buyer=user, rating=data.rating, comment=data.comment)
    db.add(review)
    await db.commit()
    logger.info(f"Review {review.uuid} created on asset {asset_id}")
    return review


async def update_review(db: AsyncSession, review_id: str, user: User, data: ReviewUpdate) -> Review:
    review = await get_review(db, review_id)
    if review.buyer_id != user.uuid:
        raise ForbiddenError("You can only edit your own reviews")
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if changes:
        for field, value in changes.items():
            setattr(review, field, value)
        review.is_edited = True
        await db.commit()
    return review


async def reply_to_review(db: AsyncSession, review_id: str, user: User, reply: str) -> Review:
    review = await get_review(db, review_id)
    asset = await db.get(Asset, review.asset_id)
    if asset is None or asset.author_id != user.uuid:
        raise ForbiddenError("Only the asset author can reply to reviews")
    review.author_reply = reply
    review.replied_at = datetime.utcnow()
    await db.commit()
    return review


async def delete_review(db: AsyncSession, review_id: str, user: User) -> None:
    review = await get_review(db, review_id)
    if review.buyer_id != user.uuid and user.role not in UserRole.STAFF:
        raise ForbiddenError("You can only delete your own reviews")
    await db.delete(review)
    await db.commit()


def _review_query(params) -> QueryBuilder:
    return QueryBuilder(params).range("rating", "minRating", "maxRating").sort().paginate()


async def list_asset_reviews(db: AsyncSession, asset_id: str, params) -> Page:
    if await db.get(Asset, asset_id) is None:
        raise NotFoundError("Asset not found")
    return await fetch_builder_page(
        db, Review, _review_query(params), REVIEW_FIELDS, scope=[Review.asset_id == asset_id]
    )


async def list_author_reviews(db: AsyncSession, author: User, params) -> Page:
    """Reviews left on any of ``author``'s assets."""
    own_assets = select(Asset.uuid).where(Asset.author_id == author.uuid)
    return await fetch_builder_page(
        db, Review, _review_query(params), REVIEW_FIELDS, scope=[Review.asset_id.in_(own_assets)]
    )
