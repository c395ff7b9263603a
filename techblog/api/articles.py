# techblog/api/articles.py
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from techblog.config import ARTICLES_PER_PAGE
from techblog.core.deps import get_current_user
from techblog.db.sa import get_session
from techblog.models.auth_models import User
from techblog.schemas.blog import (
    ArticleDetail,
    ArticleEdit,
    ArticleForm,
    ArticleListing,
    ArticleOut,
    ArticlePage,
    CategoryOut,
)
from techblog.services import articles as svc
from techblog.services import categories as cat_svc
from techblog.services import listing

router = APIRouter(prefix="/api/articles", tags=["articles"])
manage_router = APIRouter(
    prefix="/api/manage/articles",
    tags=["manage"],
    dependencies=[Depends(get_current_user)],
)


def _page_out(page: listing.Page) -> ArticlePage:
    return ArticlePage(
        items=[ArticleOut.model_validate(a) for a in page.items],
        total_count=page.total_count,
        current_page=page.current_page,
        page_size=page.page_size,
        page_count=page.page_count,
    )


# -----------------------
#  Public, slug-addressed
# -----------------------

@router.get("", response_model=ArticleListing, summary="Filtered article listing")
async def api_list_articles(
    category: Optional[str] = Query(None, description="Category slug"),
    search: Optional[str] = Query(None, description="Substring of title or content"),
    status: Optional[str] = Query(None, description="Exact status; omitted means published only"),
    page: int = Query(1, ge=1),
    session: AsyncSession = Depends(get_session),
) -> ArticleListing:
    filters = listing.filters_from_query(category=category, search=search, status=status)
    result = await listing.list_articles(session, filters, page=page, page_size=ARTICLES_PER_PAGE)
    categories = await cat_svc.list_categories(session)
    # echo what the caller sent, not the applied default
    echoed = listing.ArticleFilters(category=category, search=search, status=status).provided()
    return ArticleListing(
        articles=_page_out(result),
        categories=[CategoryOut.model_validate(c) for c in categories],
        filters=echoed,
    )


@router.get("/{slug}", response_model=ArticleDetail, summary="Read an article (counts a view)")
async def api_show_article(slug: str, session: AsyncSession = Depends(get_session)) -> ArticleDetail:
    article = await svc.view_article(session, slug)
    return ArticleDetail(article=ArticleOut.model_validate(article))


# -----------------------
#  Management, id-addressed
# -----------------------

@manage_router.get("/create", response_model=ArticleForm)
async def api_create_form(session: AsyncSession = Depends(get_session)) -> ArticleForm:
    categories = await cat_svc.list_categories(session)
    return ArticleForm(categories=[CategoryOut.model_validate(c) for c in categories])


@manage_router.post("", response_model=ArticleDetail, status_code=201)
async def api_create_article(
    payload: Dict[str, Any] = Body(...),
    current_user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ArticleDetail:
    article = await svc.create_article(session, payload, author_id=current_user.id)
    return ArticleDetail(article=ArticleOut.model_validate(article))


@manage_router.get("/{article_id}", response_model=ArticleEdit)
async def api_edit_article(article_id: int, session: AsyncSession = Depends(get_session)) -> ArticleEdit:
    article = await svc.get_article(session, article_id)
    categories = await cat_svc.list_categories(session)
    return ArticleEdit(
        article=ArticleOut.model_validate(article),
        categories=[CategoryOut.model_validate(c) for c in categories],
    )


@manage_router.put("/{article_id}", response_model=ArticleDetail)
async def api_update_article(
    article_id: int,
    payload: Dict[str, Any] = Body(...),
    session: AsyncSession = Depends(get_session),
) -> ArticleDetail:
    article = await svc.update_article(session, article_id, payload)
    return ArticleDetail(article=ArticleOut.model_validate(article))


@manage_router.delete("/{article_id}", status_code=204)
async def api_delete_article(article_id: int, session: AsyncSession = Depends(get_session)) -> None:
    await svc.delete_article(session, article_id)
