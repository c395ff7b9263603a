from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any, Mapping, Optional

from pydantic import BaseModel
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.attributes import set_committed_value

from techblog.core.errors import NotFound, ReferentialIntegrityError, ValidationError
from techblog.db.base import utcnow
from techblog.models.auth_models import User
from techblog.models.blog_models import Article, Category
from techblog.schemas.blog import ArticleCreate, ArticleWrite
from techblog.services.publishing import (
    DEFAULT_UNPUBLISH_POLICY,
    UnpublishPolicy,
    describe_transition,
    published_at_on_create,
    published_at_on_update,
)
from techblog.services.utils import estimate_reading_time, slugify
from techblog.services.validation import validate_fields


logger = logging.getLogger("techblog.articles")


def _with_relations(stmt):
    return stmt.options(selectinload(Article.category), selectinload(Article.author))


async def get_article(session: AsyncSession, article_id: int) -> Article:
    res = await session.execute(_with_relations(select(Article)).where(Article.id == article_id))
    article = res.scalar_one_or_none()
    if article is None:
        raise NotFound("Article", article_id)
    return article


async def find_by_slug(session: AsyncSession, slug: str) -> Article:
    res = await session.execute(_with_relations(select(Article)).where(Article.slug == slug))
    article = res.scalar_one_or_none()
    if article is None:
        raise NotFound("Article", slug)
    return article


async def _check_category(session: AsyncSession, category_id: int) -> None:
    if await session.get(Category, category_id) is None:
        raise ReferentialIntegrityError({"category_id": ["The selected category is invalid."]})


async def _check_author(session: AsyncSession, author_id: uuid.UUID) -> None:
    if await session.get(User, author_id) is None:
        raise ReferentialIntegrityError({"author_id": ["The author does not exist."]})


async def _commit(session: AsyncSession, event: str, category_id: int) -> None:
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        logger.warning("Article write rejected by constraint", extra={"event": event})
        # the category may have been removed after it was checked
        await _check_category(session, category_id)
        raise ValidationError.single(
            "title", "An article with this title already exists."
        ) from None


async def create_article(
    session: AsyncSession,
    fields: Mapping[str, Any] | BaseModel,
    *,
    author_id: uuid.UUID,
    now: Optional[datetime] = None,
) -> Article:
    """Create an article owned by ``author_id``.

    Everything is validated before the row is added, so a failure leaves
    the store untouched.
    """
    data = validate_fields(ArticleCreate, fields)
    slug = slugify(data.title)
    if not slug:
        raise ValidationError.single("title", "The title must contain letters or digits.")
    await _check_category(session, data.category_id)
    await _check_author(session, author_id)
    res = await session.execute(select(Article.id).where(Article.slug == slug))
    if res.first() is not None:
        raise ValidationError.single("title", "An article with this title already exists.")

    now = now or utcnow()
    article = Article(
        title=data.title,
        slug=slug,
        excerpt=data.excerpt,
        content=data.content,
        featured_image=str(data.featured_image) if data.featured_image else None,
        category_id=data.category_id,
        author_id=author_id,
        status=data.status.value,
        published_at=published_at_on_create(data.status, data.published_at, now),
        views_count=0,
        reading_time=data.reading_time or estimate_reading_time(data.content),
        created_at=now,
        updated_at=now,
    )
    session.add(article)
    await _commit(session, "article_create_conflict", data.category_id)
    article_id = article.id
    logger.info(
        "Article created",
        extra={
            "event": "article_created",
            "article_id": article_id,
            "slug": slug,
            "transition": describe_transition(None, data.status.value),
            "author_id": str(author_id),
        },
    )
    session.expire(article)
    return await get_article(session, article_id)


async def update_article(
    session: AsyncSession,
    article_id: int,
    fields: Mapping[str, Any] | BaseModel,
    *,
    now: Optional[datetime] = None,
    policy: UnpublishPolicy = DEFAULT_UNPUBLISH_POLICY,
) -> Article:
    """Replace the editable fields of an article.

    The slug stays as created so public URLs keep resolving.
    """
    data = validate_fields(ArticleWrite, fields)
    article = await get_article(session, article_id)
    if data.category_id != article.category_id:
        await _check_category(session, data.category_id)

    now = now or utcnow()
    previous_status = article.status
    article.published_at = published_at_on_update(
        previous_status, data.status, article.published_at, now, policy
    )
    article.title = data.title
    article.excerpt = data.excerpt
    article.content = data.content
    article.featured_image = str(data.featured_image) if data.featured_image else None
    article.category_id = data.category_id
    article.status = data.status.value
    article.reading_time = data.reading_time or estimate_reading_time(data.content)
    article.updated_at = now
    await _commit(session, "article_update_conflict", data.category_id)
    logger.info(
        "Article updated",
        extra={
            "event": "article_updated",
            "article_id": article_id,
            "transition": describe_transition(previous_status, article.status),
        },
    )
    # expire so the reload picks up a changed category relation
    session.expire(article)
    return await get_article(session, article_id)


async def delete_article(session: AsyncSession, article_id: int) -> None:
    article = await session.get(Article, article_id)
    if article is None:
        raise NotFound("Article", article_id)
    await session.delete(article)
    await session.commit()
    logger.info("Article deleted", extra={"event": "article_deleted", "article_id": article_id})


async def increment_views(session: AsyncSession, article_id: int) -> int:
    """Add one view at the storage layer and return the new count.

    Issued as ``views_count = views_count + 1`` so concurrent viewers
    never overwrite each other.
    """
    res = await session.execute(
        update(Article)
        .where(Article.id == article_id)
        .values(views_count=Article.views_count + 1)
        .returning(Article.views_count)
        .execution_options(synchronize_session=False)
    )
    views = res.scalar_one_or_none()
    if views is None:
        await session.rollback()
        raise NotFound("Article", article_id)
    await session.commit()
    return int(views)


async def view_article(session: AsyncSession, slug: str) -> Article:
    """Content-view read: resolve by slug and count the view."""
    article = await find_by_slug(session, slug)
    views = await increment_views(session, article.id)
    set_committed_value(article, "views_count", views)
    return article
