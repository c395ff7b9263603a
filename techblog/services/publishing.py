"""Publish-state transitions and their effect on ``published_at``.

Only two states exist, ``draft`` and ``published``. The transition table:

    create -> draft                  published_at as supplied (usually null)
    create -> published              supplied value, else the creation instant
    update draft -> published        the update instant, overwriting any prior value
    update published -> published    untouched
    update published -> draft        decided by UnpublishPolicy
    update draft -> draft            untouched
"""
from __future__ import annotations

import enum
from datetime import datetime
from typing import Optional

from techblog.config import UNPUBLISH_POLICY
from techblog.models.blog_models import ArticleStatus


class UnpublishPolicy(str, enum.Enum):
    # keep the historical first-publish timestamp
    RETAIN = "retain"
    CLEAR = "clear"


DEFAULT_UNPUBLISH_POLICY = UnpublishPolicy(UNPUBLISH_POLICY)


def published_at_on_create(
    status: ArticleStatus | str,
    supplied: Optional[datetime],
    now: datetime,
) -> Optional[datetime]:
    if ArticleStatus(status) is ArticleStatus.PUBLISHED and supplied is None:
        return now
    return supplied


def published_at_on_update(
    previous_status: ArticleStatus | str,
    new_status: ArticleStatus | str,
    current: Optional[datetime],
    now: datetime,
    policy: UnpublishPolicy = DEFAULT_UNPUBLISH_POLICY,
) -> Optional[datetime]:
    previous = ArticleStatus(previous_status)
    new = ArticleStatus(new_status)
    if previous is ArticleStatus.DRAFT and new is ArticleStatus.PUBLISHED:
        return now
    if previous is ArticleStatus.PUBLISHED and new is ArticleStatus.DRAFT:
        return None if policy is UnpublishPolicy.CLEAR else current
    return current


def describe_transition(previous_status: Optional[str], new_status: str) -> str:
    """Short event name used in write logs, e.g. ``draft->published``."""
    return f"{previous_status or 'create'}->{new_status}"
