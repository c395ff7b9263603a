# techblog/api/categories.py
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from techblog.config import CATEGORIES_PER_PAGE
from techblog.core.deps import get_current_user
from techblog.db.sa import get_session
from techblog.schemas.blog import (
    ArticleOut,
    CategoryDetail,
    CategoryOut,
    CategoryPage,
    CategoryWithCount,
)
from techblog.services import categories as svc
from techblog.services import listing

router = APIRouter(prefix="/api/categories", tags=["categories"])
manage_router = APIRouter(
    prefix="/api/manage/categories",
    tags=["manage"],
    dependencies=[Depends(get_current_user)],
)


def with_count(category, count: int) -> CategoryWithCount:
    return CategoryWithCount(
        **CategoryOut.model_validate(category).model_dump(),
        articles_count=count,
    )


@router.get("/{slug}", response_model=CategoryDetail, summary="Category page with its published articles")
async def api_show_category(slug: str, session: AsyncSession = Depends(get_session)) -> CategoryDetail:
    category = await svc.get_category_by_slug(session, slug)
    articles = await listing.list_category_articles(session, category)
    return CategoryDetail(
        category=CategoryOut.model_validate(category),
        articles=[ArticleOut.model_validate(a) for a in articles],
    )


@manage_router.get("", response_model=CategoryPage, summary="Category index with article counts")
async def api_list_categories(
    page: int = Query(1, ge=1),
    session: AsyncSession = Depends(get_session),
) -> CategoryPage:
    rows = await svc.list_with_article_count(
        session, limit=CATEGORIES_PER_PAGE, offset=(page - 1) * CATEGORIES_PER_PAGE
    )
    result = listing.Page(
        items=[with_count(c, n) for c, n in rows],
        total_count=await svc.count_categories(session),
        current_page=page,
        page_size=CATEGORIES_PER_PAGE,
    )
    return CategoryPage(
        items=result.items,
        total_count=result.total_count,
        current_page=result.current_page,
        page_size=result.page_size,
        page_count=result.page_count,
    )


@manage_router.post("", response_model=CategoryOut, status_code=201)
async def api_create_category(
    payload: Dict[str, Any] = Body(...),
    session: AsyncSession = Depends(get_session),
) -> CategoryOut:
    category = await svc.create_category(session, payload)
    return CategoryOut.model_validate(category)


@manage_router.get("/{category_id}", response_model=CategoryOut)
async def api_edit_category(category_id: int, session: AsyncSession = Depends(get_session)) -> CategoryOut:
    return CategoryOut.model_validate(await svc.get_category(session, category_id))


@manage_router.put("/{category_id}", response_model=CategoryOut)
async def api_update_category(
    category_id: int,
    payload: Dict[str, Any] = Body(...),
    session: AsyncSession = Depends(get_session),
) -> CategoryOut:
    category = await svc.update_category(session, category_id, payload)
    return CategoryOut.model_validate(category)


@manage_router.delete("/{category_id}", status_code=204)
async def api_delete_category(category_id: int, session: AsyncSession = Depends(get_session)) -> None:
    await svc.delete_category(session, category_id)
