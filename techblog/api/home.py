from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from techblog.api.categories import with_count
from techblog.db.sa import get_session
from techblog.schemas.blog import ArticleOut, HomeFeed
from techblog.services import categories as cat_svc
from techblog.services import listing

router = APIRouter(tags=["home"])


@router.get("/health-check")
async def health_check() -> dict:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/api/home", response_model=HomeFeed, summary="Latest published articles and top categories")
async def api_home(session: AsyncSession = Depends(get_session)) -> HomeFeed:
    articles = await listing.latest_published(session)
    rows = await cat_svc.list_with_article_count(session, limit=listing.HOME_CATEGORIES_LIMIT)
    return HomeFeed(
        articles=[ArticleOut.model_validate(a) for a in articles],
        categories=[with_count(c, n) for c, n in rows],
    )
