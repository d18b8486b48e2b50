"""Asset listing, submission and moderation."""
import logging
import re
from typing import List
from uuid import uuid4

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.builder.query_builder import QueryBuilder, to_string
from app.builder.sql import Collection, Page, fetch_builder_page
from app.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from app.models.asset import Asset, AssetStatus, AssetTag, AssetTool
from app.models.asset_stats import AssetDownload, AssetLike, AssetStats
from app.models.category import Category
from app.models.individual_payment import IndividualPayment
from app.models.review import Review
from app.models.user import User, UserRole
from app.schemas.assets import AssetCreate, AssetUpdate
from app.services.categories import load_categories

logger = logging.getLogger(__name__)

ASSET_FIELDS = {
    "title": Asset.title,
    "slug": Asset.slug,
    "description": Asset.description,
    "status": Asset.status,
    "assetType": Asset.asset_type,
    "orientation": Asset.orientation,
    "resolution": Asset.resolution,
    "isPremium": Asset.is_premium,
    "isAIGenerated": Asset.is_ai_generated,
    "price": Asset.price,
    "discountPrice": Asset.discount_price,
    "width": Asset.width,
    "height": Asset.height,
    "size": Asset.size,
    "author": Asset.author_id,
    "createdAt": Asset.created_at,
    "updatedAt": Asset.updated_at,
    "categories": Collection(Asset.categories, Category.uuid),
    "tags": Collection(Asset.tags, AssetTag.name),
    "compatibleTools": Collection(Asset.compatible_tools, AssetTool.name),
}

SEARCH_FIELDS = ["title", "slug", "description"]

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def asset_slug(title: str) -> str:
    return _NON_SLUG.sub("-", title.lower()).strip("-") or "asset"


async def _unique_slug(db: AsyncSession, title: str) -> str:
    slug = asset_slug(title)
    result = await db.execute(select(Asset.uuid).where(Asset.slug == slug))
    if result.scalar_one_or_none() is None:
        return slug
    return f"{slug}-{uuid4().hex[:6]}"


def _is_admin(user: User) -> bool:
    return user.role in UserRole.STAFF


async def get_asset(db: AsyncSession, asset_id: str) -> Asset:
    asset = await db.get(Asset, asset_id)
    if asset is None:
        raise NotFoundError("Asset not found")
    return asset


def _replace_names(existing: List, names: List[str], model) -> List:
    # Reuse rows that survive so (asset_id, name) stays unique during the flush
    by_name = {item.name: item for item in existing}
    return [by_name.get(name) or model(name=name) for name in names]


async def create_asset(db: AsyncSession, author: User, data: AssetCreate) -> Asset:
    """Submit a new asset. It stays hidden from listings until approved."""
    categories = await load_categories(db, data.categories)
    asset = Asset(
        title=data.title.strip(),
        slug=await _unique_slug(db, data.title),
        description=data.description,
        status=AssetStatus.PENDING_REVIEW,
        asset_type=data.asset_type.strip().lower(),
        orientation=data.orientation.lower() if data.orientation else None,
        resolution=data.resolution.lower() if data.resolution else None,
        is_premium=data.is_premium,
        is_ai_generated=data.is_ai_generated,
        price=data.price,
        discount_price=data.discount_price,
        width=data.width,
        height=data.height,
        size=data.size,
        author_id=author.uuid,
        categories=categories,
        tags=[AssetTag(name=name) for name in data.tags],
        compatible_tools=[AssetTool(name=name) for name in data.compatible_tools],
    )
    db.add(asset)
    await db.flush()
    db.add(AssetStats(asset_id=asset.uuid))
    await db.commit()
    logger.info(f"Asset submitted: {asset.uuid} by author {author.uuid}")
    return asset


async def update_asset(db: AsyncSession, asset_id: str, user: User, data: AssetUpdate) -> Asset:
    asset = await get_asset(db, asset_id)
    if asset.author_id != user.uuid:
        raise ForbiddenError("You can only update your own assets")

    changes = data.model_dump(exclude_unset=True)
    for field in ("title", "description", "is_premium", "is_ai_generated", "price", "discount_price",
                  "width", "height", "size"):
        if field in changes:
            setattr(asset, field, changes[field])
    for field in ("asset_type", "orientation", "resolution"):
        if changes.get(field) is not None:
            setattr(asset, field, changes[field].strip().lower())

    if data.categories is not None:
        asset.categories = await load_categories(db, data.categories)
    if data.tags is not None:
        asset.tags = _replace_names(asset.tags, data.tags, AssetTag)
    if data.compatible_tools is not None:
        asset.compatible_tools = _replace_names(asset.compatible_tools, data.compatible_tools, AssetTool)

    await db.commit()
    return asset


async def update_asset_status(db: AsyncSession, asset_id: str, status: str) -> Asset:
    asset = await get_asset(db, asset_id)
    # Moderation decisions are final
    if asset.status == AssetStatus.APPROVED:
        raise BadRequestError("Cannot update an approved asset")
    if asset.status == AssetStatus.REJECTED:
        raise BadRequestError("Cannot update a rejected asset")
    asset.status = status
    await db.commit()
    logger.info(f"Asset {asset_id} status set to {status}")
    return asset


async def delete_asset(db: AsyncSession, asset_id: str, user: User) -> None:
    asset = await get_asset(db, asset_id)
    if asset.author_id != user.uuid and not _is_admin(user):
        raise ForbiddenError("You can only delete your own assets")

    result = await db.execute(
        select(IndividualPayment.uuid).where(IndividualPayment.asset_id == asset_id).limit(1)
    )
    if result.scalar_one_or_none() is not None:
        raise ConflictError("Assets with purchases cannot be deleted")

    for model in (AssetStats, AssetLike, AssetDownload, Review):
        await db.execute(delete(model).where(model.asset_id == asset_id))
    await db.delete(asset)
    await db.commit()
    logger.info(f"Asset deleted: {asset_id}")


def asset_query(params) -> QueryBuilder:
    """Query builder chain shared by the public and per-author listings."""
    return (
        QueryBuilder(params)
        .search(SEARCH_FIELDS)
        .filter_exact("assetType", "assetType")
        .filter_exact("orientation", "orientation")
        .filter_exact("status", "status")
        .filter_exact("resolution", "resolution")
        .filter_boolean("isPremium", "isPremium")
        .filter_boolean("isAIGenerated", "isAIGenerated")
        .filter_identifier("author", "author")
        .filter_identifier_array("categories", "categories", mode="in")
        .filter_array("tags", "tags", mode="all")
        .filter_array("compatibleTools", "compatibleTools", mode="in")
        .range("price", "minPrice", "maxPrice")
        .range("width", "minWidth", "maxWidth")
        .range("height", "minHeight", "maxHeight")
        .range("size", "minSize", "maxSize")
        .sort()
        .project()
        .paginate()
    )


async def list_assets(db: AsyncSession, params) -> Page:
    """Public listing. Assets awaiting review are hidden unless ``status`` is requested."""
    builder = asset_query(params)
    scope = []
    if to_string(builder.params.get("status")) is None:
        scope.append(Asset.status != AssetStatus.PENDING_REVIEW)
    return await fetch_builder_page(db, Asset, builder, ASSET_FIELDS, scope=scope)


async def list_author_assets(db: AsyncSession, author: User, params) -> Page:
    builder = asset_query(params)
    return await fetch_builder_page(db, Asset, builder, ASSET_FIELDS, scope=[Asset.author_id == author.uuid])
