from __future__ import annotations

import asyncio
import uuid

import pytest
from sqlalchemy import select

from conftest import at
from techblog.core.errors import NotFound, ReferentialIntegrityError, ValidationError
from techblog.models.blog_models import Article
from techblog.services import articles as svc
from techblog.services.publishing import UnpublishPolicy


pytestmark = pytest.mark.anyio


def _edit(article, **changes):
    payload = {
        "title": article.title,
        "excerpt": article.excerpt,
        "content": article.content,
        "featured_image": article.featured_image,
        "category_id": article.category_id,
        "status": article.status,
    }
    payload.update(changes)
    return payload


async def test_create_draft_derives_slug_and_leaves_published_at_null(make_category, make_article):
    devops = await make_category("DevOps")
    article = await make_article(devops, "CI Basics", status="draft", now=at(0))

    assert article.slug == "ci-basics"
    assert article.status == "draft"
    assert article.published_at is None
    assert article.views_count == 0
    assert article.category.slug == "devops"
    assert article.author.name == "Ada"


async def test_create_published_stamps_creation_instant(make_category, make_article):
    devops = await make_category()
    article = await make_article(devops, "Going Live", status="published", now=at(5))
    assert article.published_at == at(5)
    assert article.created_at == at(5)


async def test_create_keeps_supplied_published_at(make_category, make_article):
    devops = await make_category()
    published = await make_article(
        devops, "Backdated", status="published", now=at(10), published_at=at(-60).isoformat()
    )
    draft = await make_article(devops, "Scheduled Draft", status="draft", now=at(10), published_at=at(1))
    assert published.published_at == at(-60)
    assert draft.published_at == at(1)


async def test_reading_time_is_estimated_unless_supplied(make_category, make_article):
    devops = await make_category()
    long_read = await make_article(devops, "Long Read", content="word " * 450)
    explicit = await make_article(devops, "Quick Read", content="word " * 450, reading_time=2)
    assert long_read.reading_time == 3
    assert explicit.reading_time == 2


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"title": "x" * 256}, "title"),
        ({"title": "   "}, "title"),
        ({"excerpt": "e" * 501}, "excerpt"),
        ({"content": ""}, "content"),
        ({"status": "archived"}, "status"),
        ({"featured_image": "not a url"}, "featured_image"),
    ],
)
async def test_create_rejects_invalid_fields(session, author, make_category, overrides, field):
    devops = await make_category()
    payload = {"title": "Valid", "content": "Body", "category_id": devops.id, "status": "draft"}
    payload.update(overrides)

    with pytest.raises(ValidationError) as excinfo:
        await svc.create_article(session, payload, author_id=author.id)
    assert field in excinfo.value.errors

    res = await session.execute(select(Article))
    assert res.scalars().all() == []


async def test_create_requires_fields(session, author):
    with pytest.raises(ValidationError) as excinfo:
        await svc.create_article(session, {}, author_id=author.id)
    errors = excinfo.value.errors
    assert errors["title"] == ["Article title is required."]
    assert errors["content"] == ["Article content is required."]
    assert errors["category_id"] == ["Please select a category."]
    assert "status" in errors


async def test_create_with_unknown_category_is_referential_error(session, author):
    payload = {"title": "Orphan", "content": "Body", "category_id": 999, "status": "draft"}
    with pytest.raises(ReferentialIntegrityError) as excinfo:
        await svc.create_article(session, payload, author_id=author.id)
    assert isinstance(excinfo.value, ValidationError)
    assert excinfo.value.errors == {"category_id": ["The selected category is invalid."]}


async def test_create_with_unknown_author_is_referential_error(session, make_category):
    devops = await make_category()
    payload = {"title": "Ghost", "content": "Body", "category_id": devops.id, "status": "draft"}
    with pytest.raises(ReferentialIntegrityError):
        await svc.create_article(session, payload, author_id=uuid.uuid4())


async def test_duplicate_title_slug_is_rejected(make_category, make_article):
    devops = await make_category()
    await make_article(devops, "CI Basics")
    with pytest.raises(ValidationError) as excinfo:
        await make_article(devops, "CI basics!")
    assert "title" in excinfo.value.errors


async def test_category_removed_before_commit_is_referential_error(session, author, monkeypatch):
    check_category = svc._check_category
    calls = []

    async def check_after_first_call(session, category_id):
        # the first check passes as if the category were deleted right after it
        calls.append(category_id)
        if len(calls) > 1:
            await check_category(session, category_id)

    monkeypatch.setattr(svc, "_check_category", check_after_first_call)
    payload = {"title": "Orphan", "content": "Body", "category_id": 999, "status": "draft"}
    with pytest.raises(ReferentialIntegrityError) as excinfo:
        await svc.create_article(session, payload, author_id=author.id)
    assert excinfo.value.errors == {"category_id": ["The selected category is invalid."]}
    res = await session.execute(select(Article.id))
    assert res.scalars().all() == []


async def test_slug_from_expanding_title_fits_column(make_category, make_article):
    devops = await make_category()
    title = "a@" * 127 + "a"
    assert len(title) == 255
    article = await make_article(devops, title)
    assert 0 < len(article.slug) <= 255
    assert not article.slug.endswith("-")
    assert article.slug.startswith("a-at-a")


async def test_draft_to_published_resets_published_at(session, make_category, make_article):
    devops = await make_category()
    article = await make_article(devops, "Staged", status="draft", now=at(0), published_at=at(-500))

    updated = await svc.update_article(session, article.id, _edit(article, status="published"), now=at(30))
    assert updated.status == "published"
    assert updated.published_at == at(30)


async def test_edit_while_published_keeps_published_at(session, make_category, make_article):
    devops = await make_category()
    article = await make_article(devops, "Live", status="published", now=at(0))

    updated = await svc.update_article(
        session, article.id, _edit(article, content="Revised body"), now=at(45)
    )
    assert updated.content == "Revised body"
    assert updated.published_at == at(0)
    assert updated.updated_at == at(45)


async def test_unpublish_retains_published_at_by_default(session, make_category, make_article):
    devops = await make_category()
    article = await make_article(devops, "Retracted", status="published", now=at(0))

    updated = await svc.update_article(session, article.id, _edit(article, status="draft"), now=at(60))
    assert updated.status == "draft"
    assert updated.published_at == at(0)


async def test_unpublish_clear_policy_resets_published_at(session, make_category, make_article):
    devops = await make_category()
    article = await make_article(devops, "Pulled", status="published", now=at(0))

    updated = await svc.update_article(
        session, article.id, _edit(article, status="draft"), now=at(60), policy=UnpublishPolicy.CLEAR
    )
    assert updated.published_at is None


async def test_update_keeps_slug_and_can_move_category(session, make_category, make_article):
    devops = await make_category("DevOps")
    web = await make_category("Web Development")
    article = await make_article(devops, "CI Basics")

    updated = await svc.update_article(
        session, article.id, _edit(article, title="CI Basics, Revisited", category_id=web.id)
    )
    assert updated.slug == "ci-basics"
    assert updated.title == "CI Basics, Revisited"
    assert updated.category.slug == "web-development"


async def test_failed_update_leaves_article_untouched(session, make_category, make_article):
    devops = await make_category()
    article = await make_article(devops, "Stable", status="draft")
    article_id = article.id
    devops_id = devops.id

    with pytest.raises(ValidationError):
        await svc.update_article(session, article.id, _edit(article, status="scheduled", title="Changed"))
    with pytest.raises(ReferentialIntegrityError):
        await svc.update_article(session, article.id, _edit(article, category_id=404, title="Changed"))

    session.expire_all()
    reloaded = await svc.get_article(session, article_id)
    assert reloaded.title == "Stable"
    assert reloaded.status == "draft"
    assert reloaded.category_id == devops_id


async def test_update_and_delete_missing_article(session):
    with pytest.raises(NotFound):
        await svc.update_article(
            session, 12345, {"title": "T", "content": "C", "category_id": 1, "status": "draft"}
        )
    with pytest.raises(NotFound):
        await svc.delete_article(session, 12345)
    with pytest.raises(NotFound):
        await svc.increment_views(session, 12345)
    with pytest.raises(NotFound):
        await svc.find_by_slug(session, "missing")


async def test_delete_removes_row(session, make_category, make_article):
    devops = await make_category()
    article = await make_article(devops, "Short Lived")

    await svc.delete_article(session, article.id)
    with pytest.raises(NotFound):
        await svc.get_article(session, article.id)


async def test_view_increments_but_management_read_does_not(session, make_category, make_article):
    devops = await make_category()
    article = await make_article(devops, "Popular", status="published")

    viewed = await svc.view_article(session, "popular")
    assert viewed.views_count == 1
    await svc.get_article(session, article.id)
    viewed = await svc.view_article(session, "popular")
    assert viewed.views_count == 2


async def test_concurrent_views_do_not_lose_increments(session_factory, make_category, make_article):
    devops = await make_category()
    article = await make_article(devops, "Trending", status="published")

    async def one_view():
        async with session_factory() as s:
            await svc.increment_views(s, article.id)

    await asyncio.gather(*(one_view() for _ in range(8)))

    async with session_factory() as s:
        fresh = await svc.get_article(s, article.id)
    assert fresh.views_count == 8


async def test_publish_workflow_scenario(session, session_factory, author, make_category, make_article):
    devops = await make_category("DevOps")
    assert devops.slug == "devops"

    article = await make_article(devops, "CI Basics", status="draft", now=at(0))
    assert article.slug == "ci-basics"
    assert article.published_at is None

    published = await svc.update_article(
        session, article.id, _edit(article, status="published"), now=at(15)
    )
    assert published.published_at == at(15)

    async def one_view():
        async with session_factory() as s:
            await svc.view_article(s, "ci-basics")

    await asyncio.gather(*(one_view() for _ in range(3)))

    unpublished = await svc.update_article(
        session, article.id, _edit(published, status="draft"), now=at(30)
    )
    assert unpublished.views_count == 3
    assert unpublished.published_at == at(15)
