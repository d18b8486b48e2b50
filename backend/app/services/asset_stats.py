"""View, like and download counters for assets."""
import logging
from typing import Any, Dict, Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import ForbiddenError, NotFoundError
from app.models.asset import Asset
from app.models.asset_stats import AssetDownload, AssetLike, AssetStats
from app.models.user import User
from app.services.payments import has_purchased

logger = logging.getLogger(__name__)


async def _get_asset(db: AsyncSession, asset_id: str) -> Asset:
    asset = await db.get(Asset, asset_id)
    if asset is None:
        raise NotFoundError("Asset not found")
    return asset


async def ensure_stats(db: AsyncSession, asset_id: str) -> AssetStats:
    """Return the stats row for ``asset_id``, creating it when missing."""
    result = await db.execute(select(AssetStats).where(AssetStats.asset_id == asset_id))
    stats = result.scalar_one_or_none()
    if stats is not None:
        return stats
    stats = AssetStats(asset_id=asset_id)
    db.add(stats)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        result = await db.execute(select(AssetStats).where(AssetStats.asset_id == asset_id))
        stats = result.scalar_one()
    return stats


async def _bump(db: AsyncSession, asset_id: str, column: str, amount: int) -> None:
    counter = getattr(AssetStats, column)
    await db.execute(
        update(AssetStats)
        .where(AssetStats.asset_id == asset_id)
        .values({column: counter + amount})
        .execution_options(synchronize_session=False)
    )


async def _counter(db: AsyncSession, asset_id: str, column: str) -> int:
    result = await db.execute(select(getattr(AssetStats, column)).where(AssetStats.asset_id == asset_id))
    return int(result.scalar_one())


async def increment_view(db: AsyncSession, asset_id: str) -> int:
    await _get_asset(db, asset_id)
    await ensure_stats(db, asset_id)
    await _bump(db, asset_id, "views", 1)
    await db.commit()
    return await _counter(db, asset_id, "views")


async def toggle_like(db: AsyncSession, asset_id: str, user: User) -> Dict[str, Any]:
    """Like the asset, or remove an existing like. Returns ``{liked, likes}``."""
    await _get_asset(db, asset_id)
    await ensure_stats(db, asset_id)

    removed = await db.execute(
        delete(AssetLike).where(AssetLike.asset_id == asset_id, AssetLike.user_id == user.uuid)
    )
    if removed.rowcount:
        await _bump(db, asset_id, "likes", -1)
        liked = False
    else:
        try:
            await db.execute(insert(AssetLike).values(asset_id=asset_id, user_id=user.uuid))
        except IntegrityError:
            # A concurrent request already liked it
            await db.rollback()
            return {"liked": True, "likes": await _counter(db, asset_id, "likes")}
        await _bump(db, asset_id, "likes", 1)
        liked = True

    await db.commit()
    return {"liked": liked, "likes": await _counter(db, asset_id, "likes")}


async def record_download(db: AsyncSession, asset_id: str, user: User) -> Dict[str, Any]:
    """
    Record that ``user`` downloaded the asset.

    - Premium paid assets require a completed purchase
    - Repeat downloads by the same user are counted once
    """
    asset = await _get_asset(db, asset_id)
    if not asset.is_free and not await has_purchased(db, user.uuid, asset_id):
        raise ForbiddenError("You must purchase this asset before downloading it")
    await ensure_stats(db, asset_id)

    first_download = True
    try:
        await db.execute(insert(AssetDownload).values(asset_id=asset_id, user_id=user.uuid))
    except IntegrityError:
        await db.rollback()
        first_download = False

    if first_download:
        await _bump(db, asset_id, "downloads", 1)
        await db.commit()
        logger.info(f"Download recorded: asset={asset_id} user={user.uuid}")

    return {"downloads": await _counter(db, asset_id, "downloads"), "firstDownload": first_download}


async def has_downloaded(db: AsyncSession, asset_id: str, user_id: str) -> bool:
    result = await db.execute(
        select(AssetDownload.uuid).where(AssetDownload.asset_id == asset_id, AssetDownload.user_id == user_id)
    )
    return result.scalar_one_or_none() is not None


async def get_asset_stats(db: AsyncSession, asset_id: str, user: Optional[User] = None) -> Dict[str, Any]:
    await _get_asset(db, asset_id)
    stats = await ensure_stats(db, asset_id)
    await db.refresh(stats)

    liked = downloaded = False
    if user is not None:
        result = await db.execute(
            select(AssetLike.uuid).where(AssetLike.asset_id == asset_id, AssetLike.user_id == user.uuid)
        )
        liked = result.scalar_one_or_none() is not None
        downloaded = await has_downloaded(db, asset_id, user.uuid)

    return {
        "assetId": asset_id,
        "views": stats.views,
        "downloads": stats.downloads,
        "likes": stats.likes,
        "isLikedByUser": liked,
        "isDownloadedByUser": downloaded,
    }
