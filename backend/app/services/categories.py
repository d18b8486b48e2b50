"""Category management."""
import logging
from typing import List, Optional, Sequence

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.builder.query_builder import QueryBuilder
from app.builder.sql import Page, fetch_builder_page
from app.errors import ConflictError, NotFoundError
from app.models.category import Category
from app.schemas.categories import CategoryCreate, CategoryUpdate

logger = logging.getLogger(__name__)

MAIN_CATEGORY = "main_category"
SUB_CATEGORY = "sub_category"

CATEGORY_FIELDS = {
    "name": Category.name,
    "slug": Category.slug,
    "parentCategory": Category.parent_category,
    "categoryType": Category.category_type,
    "createdAt": Category.created_at,
}


def category_slug(name: str) -> str:
    return name.strip().lower().replace(" ", "-")


def category_type_for(parent_category: bool) -> str:
    return MAIN_CATEGORY if parent_category else SUB_CATEGORY


async def get_category(db: AsyncSession, category_id: str) -> Category:
    result = await db.execute(
        select(Category)
        .where(Category.uuid == category_id)
        .options(selectinload(Category.sub_categories))
        .execution_options(populate_existing=True)
    )
    category = result.scalar_one_or_none()
    if category is None:
        raise NotFoundError("Category not found")
    return category


async def load_categories(db: AsyncSession, ids: Sequence[str], label: str = "categories") -> List[Category]:
    """Fetch every category in ``ids`` or raise when any is missing."""
    unique_ids = list(dict.fromkeys(ids))
    if not unique_ids:
        return []
    result = await db.execute(select(Category).where(Category.uuid.in_(unique_ids)))
    categories = list(result.scalars().all())
    if len(categories) != len(unique_ids):
        raise NotFoundError(f"One or more {label} not found")
    return categories


async def _slug_taken(db: AsyncSession, slug: str, name: str, exclude_id: Optional[str] = None) -> bool:
    statement = select(Category.uuid).where(or_(Category.slug == slug, Category.name == name))
    if exclude_id:
        statement = statement.where(Category.uuid != exclude_id)
    result = await db.execute(statement.limit(1))
    return result.scalar_one_or_none() is not None


async def create_category(db: AsyncSession, data: CategoryCreate) -> Category:
    slug = category_slug(data.name)
    if await _slug_taken(db, slug, data.name):
        raise ConflictError("Category with the same slug already exists")

    sub_categories = await load_categories(db, data.sub_categories, "subcategories")
    category = Category(
        name=data.name.strip(),
        slug=slug,
        parent_category=data.parent_category,
        category_type=category_type_for(data.parent_category),
        sub_categories=sub_categories,
    )
    db.add(category)
    await db.commit()
    await db.refresh(category, ["sub_categories"])
    logger.info(f"Category created: {category.slug}")
    return category


async def update_category(db: AsyncSession, category_id: str, data: CategoryUpdate) -> Category:
    category = await get_category(db, category_id)

    if data.name is not None:
        slug = category_slug(data.name)
        if await _slug_taken(db, slug, data.name, exclude_id=category.uuid):
            raise ConflictError("Category with this slug already exists")
        category.name = data.name.strip()
        category.slug = slug

    if data.parent_category is not None:
        category.parent_category = data.parent_category
        category.category_type = category_type_for(data.parent_category)

    if data.sub_categories is not None:
        category.sub_categories = await load_categories(db, data.sub_categories, "subcategories")

    await db.commit()
    await db.refresh(category, ["sub_categories"])
    return category


async def delete_category(db: AsyncSession, category_id: str) -> None:
    category = await get_category(db, category_id)
    await db.delete(category)
    await db.commit()
    logger.info(f"Category deleted: {category_id}")


async def list_categories(db: AsyncSession, params) -> Page:
    builder = (
        QueryBuilder(params)
        .search(["name", "slug"])
        .filter_boolean("parentCategory", "parentCategory")
        .filter_exact("categoryType", "categoryType")
        .sort(default="name")
        .paginate(max_limit=500)
    )
    return await fetch_builder_page(
        db, Category, builder, CATEGORY_FIELDS, options=[selectinload(Category.sub_categories)]
    )
