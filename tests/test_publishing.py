from __future__ import annotations

from datetime import datetime, timezone

import pytest

from techblog.models.blog_models import ArticleStatus
from techblog.services.publishing import (
    UnpublishPolicy,
    describe_transition,
    published_at_on_create,
    published_at_on_update,
)


NOW = datetime(2026, 5, 4, 12, 0, tzinfo=timezone.utc)
EARLIER = datetime(2025, 12, 24, 8, 30, tzinfo=timezone.utc)


def test_create_published_without_timestamp_uses_now():
    assert published_at_on_create("published", None, NOW) == NOW


def test_create_published_keeps_supplied_timestamp():
    assert published_at_on_create(ArticleStatus.PUBLISHED, EARLIER, NOW) == EARLIER


def test_create_draft_leaves_timestamp_alone():
    assert published_at_on_create("draft", None, NOW) is None
    assert published_at_on_create("draft", EARLIER, NOW) == EARLIER


@pytest.mark.parametrize("current", [None, EARLIER])
def test_going_live_always_overwrites(current):
    assert published_at_on_update("draft", "published", current, NOW) == NOW


def test_editing_published_article_keeps_timestamp():
    assert published_at_on_update("published", "published", EARLIER, NOW) == EARLIER


def test_draft_edit_keeps_timestamp():
    assert published_at_on_update("draft", "draft", None, NOW) is None
    assert published_at_on_update("draft", "draft", EARLIER, NOW) == EARLIER


def test_unpublish_follows_policy():
    assert published_at_on_update("published", "draft", EARLIER, NOW, UnpublishPolicy.RETAIN) == EARLIER
    assert published_at_on_update("published", "draft", EARLIER, NOW, UnpublishPolicy.CLEAR) is None


def test_unknown_status_is_rejected():
    with pytest.raises(ValueError):
        published_at_on_update("draft", "archived", None, NOW)


def test_describe_transition():
    assert describe_transition(None, "published") == "create->published"
    assert describe_transition("draft", "published") == "draft->published"
