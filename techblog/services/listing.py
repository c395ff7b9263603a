"""Filtered, sorted, paginated article listings.

Filters compose with AND. ``None`` on a filter field means "not supplied"
and adds no predicate; any other value, including an empty string, is
applied literally. The public default of published-only is not hidden in
the query: callers apply ``PUBLISHED_ONLY_FILTER`` (see
``filters_from_query``) so the scope stays visible and testable.
"""
from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass
from typing import Dict, Generic, List, Optional, TypeVar

from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from techblog.config import ARTICLES_PER_PAGE
from techblog.models.blog_models import Article, ArticleStatus, Category


T = TypeVar("T")

HOME_ARTICLES_LIMIT = 6
HOME_CATEGORIES_LIMIT = 8


@dataclass(frozen=True)
class ArticleFilters:
    category: Optional[str] = None
    search: Optional[str] = None
    status: Optional[str] = None

    def provided(self) -> Dict[str, str]:
        """The supplied filters, echoed back to the rendering boundary."""
        return {k: v for k, v in dataclasses.asdict(self).items() if v is not None}


PUBLISHED_ONLY_FILTER = ArticleFilters(status=ArticleStatus.PUBLISHED.value)


def with_default_scope(
    filters: ArticleFilters, preset: ArticleFilters = PUBLISHED_ONLY_FILTER
) -> ArticleFilters:
    """Fill the status from ``preset`` when the caller did not supply one."""
    if filters.status is not None:
        return filters
    return dataclasses.replace(filters, status=preset.status)


def filters_from_query(
    category: Optional[str] = None,
    search: Optional[str] = None,
    status: Optional[str] = None,
) -> ArticleFilters:
    # An explicit status="" counts as supplied and bypasses the published-only default.
    return with_default_scope(ArticleFilters(category=category, search=search, status=status))


@dataclass
class Page(Generic[T]):
    items: List[T]
    total_count: int
    current_page: int
    page_size: int

    @property
    def page_count(self) -> int:
        return max(1, math.ceil(self.total_count / self.page_size)) if self.page_size else 1


def apply_filters(stmt: Select, filters: ArticleFilters) -> Select:
    if filters.category is not None:
        stmt = stmt.where(
            Article.category_id.in_(select(Category.id).where(Category.slug == filters.category))
        )
    if filters.search is not None:
        stmt = stmt.where(
            or_(
                Article.title.icontains(filters.search, autoescape=True),
                Article.content.icontains(filters.search, autoescape=True),
            )
        )
    if filters.status is not None:
        stmt = stmt.where(Article.status == filters.status)
    return stmt


async def list_articles(
    session: AsyncSession,
    filters: ArticleFilters,
    page: int = 1,
    page_size: int = ARTICLES_PER_PAGE,
) -> Page[Article]:
    """Newest-created first, ties broken by id, category and author loaded."""
    page = max(1, page)
    total = await session.execute(
        apply_filters(select(func.count(Article.id)), filters)
    )
    total_count = int(total.scalar_one())

    stmt = (
        apply_filters(select(Article), filters)
        .options(selectinload(Article.category), selectinload(Article.author))
        .order_by(Article.created_at.desc(), Article.id.desc())
        .limit(page_size)
        .offset((page - 1) * page_size)
    )
    res = await session.execute(stmt)
    return Page(
        items=list(res.scalars().all()),
        total_count=total_count,
        current_page=page,
        page_size=page_size,
    )


async def list_category_articles(session: AsyncSession, category: Category) -> List[Article]:
    """Articles on a category page: published only, most recently published first."""
    stmt = (
        select(Article)
        .where(Article.category_id == category.id)
        .where(Article.status == ArticleStatus.PUBLISHED.value)
        .options(selectinload(Article.category), selectinload(Article.author))
        .order_by(Article.published_at.desc(), Article.id.desc())
    )
    res = await session.execute(stmt)
    return list(res.scalars().all())


async def latest_published(session: AsyncSession, limit: int = HOME_ARTICLES_LIMIT) -> List[Article]:
    stmt = (
        select(Article)
        .where(Article.status == ArticleStatus.PUBLISHED.value)
        .options(selectinload(Article.category), selectinload(Article.author))
        .order_by(Article.published_at.desc(), Article.id.desc())
        .limit(limit)
    )
    res = await session.execute(stmt)
    return list(res.scalars().all())
