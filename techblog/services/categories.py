from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Tuple

from pydantic import BaseModel
from sqlalchemy import delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from techblog.core.errors import NotFound, ValidationError
from techblog.models.blog_models import Article, ArticleStatus, Category
from techblog.schemas.blog import CategoryWrite
from techblog.services.utils import slugify
from techblog.services.validation import validate_fields


logger = logging.getLogger("techblog.categories")


async def get_category(session: AsyncSession, category_id: int) -> Category:
    category = await session.get(Category, category_id)
    if category is None:
        raise NotFound("Category", category_id)
    return category


async def get_category_by_slug(session: AsyncSession, slug: str) -> Category:
    res = await session.execute(select(Category).where(Category.slug == slug))
    category = res.scalar_one_or_none()
    if category is None:
        raise NotFound("Category", slug)
    return category


async def list_categories(session: AsyncSession) -> List[Category]:
    res = await session.execute(select(Category).order_by(Category.name.asc(), Category.id.asc()))
    return list(res.scalars().all())


async def count_categories(session: AsyncSession) -> int:
    res = await session.execute(select(func.count()).select_from(Category))
    return int(res.scalar_one())


async def list_with_article_count(
    session: AsyncSession,
    *,
    status: Optional[ArticleStatus | str] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> List[Tuple[Category, int]]:
    """Categories by name with the number of articles each owns.

    Articles of every status are counted unless ``status`` restricts them.
    """
    join_on = Article.category_id == Category.id
    if status is not None:
        join_on = join_on & (Article.status == ArticleStatus(status).value)
    stmt = (
        select(Category, func.count(Article.id))
        .outerjoin(Article, join_on)
        .group_by(Category.id)
        .order_by(Category.name.asc(), Category.id.asc())
        .offset(offset)
    )
    if limit is not None:
        stmt = stmt.limit(limit)
    res = await session.execute(stmt)
    return [(category, int(count)) for category, count in res.all()]


async def _ensure_unique(
    session: AsyncSession, name: str, slug: str, exclude_id: Optional[int] = None
) -> None:
    stmt = select(Category.name, Category.slug).where(
        or_(Category.name == name, Category.slug == slug)
    )
    if exclude_id is not None:
        stmt = stmt.where(Category.id != exclude_id)
    res = await session.execute(stmt)
    row = res.first()
    if row is None:
        return
    if row.name == name:
        raise ValidationError.single("name", "The category name has already been taken.")
    raise ValidationError.single("name", "A category with this slug already exists.")


async def _commit(session: AsyncSession, event: str) -> None:
    try:
        await session.commit()
    except IntegrityError:
        # Lost a create/create race on name or slug; the constraint decides
        await session.rollback()
        logger.warning("Category write rejected by constraint", extra={"event": event})
        raise ValidationError.single("name", "The category name has already been taken.") from None


async def create_category(
    session: AsyncSession, fields: Mapping[str, Any] | BaseModel
) -> Category:
    data = validate_fields(CategoryWrite, fields)
    slug = slugify(data.name)
    if not slug:
        raise ValidationError.single("name", "The category name must contain letters or digits.")
    await _ensure_unique(session, data.name, slug)

    category = Category(
        name=data.name,
        slug=slug,
        description=data.description,
        color=data.color,
    )
    session.add(category)
    await _commit(session, "category_create_conflict")
    logger.info(
        "Category created",
        extra={"event": "category_created", "category_id": category.id, "slug": category.slug},
    )
    return category


async def update_category(
    session: AsyncSession, category_id: int, fields: Mapping[str, Any] | BaseModel
) -> Category:
    data = validate_fields(CategoryWrite, fields)
    category = await get_category(session, category_id)
    # The slug is fixed at creation; a rename only has to keep the name unique
    await _ensure_unique(session, data.name, category.slug, exclude_id=category.id)

    category.name = data.name
    category.description = data.description
    category.color = data.color
    await _commit(session, "category_update_conflict")
    logger.info(
        "Category updated",
        extra={"event": "category_updated", "category_id": category.id},
    )
    return category


async def delete_category(session: AsyncSession, category_id: int) -> int:
    """Delete a category and every article it owns; returns the number of articles removed."""
    category = await get_category(session, category_id)
    res = await session.execute(
        delete(Article)
        .where(Article.category_id == category.id)
        .execution_options(synchronize_session=False)
    )
    await session.delete(category)
    await session.commit()
    removed = res.rowcount or 0
    logger.info(
        "Category deleted",
        extra={"event": "category_deleted", "category_id": category_id, "articles_removed": removed},
    )
    return removed
