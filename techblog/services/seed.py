from __future__ import annotations

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from techblog.models.blog_models import Category
from techblog.services.categories import create_category
from techblog.services.utils import slugify


logger = logging.getLogger("techblog.seed")

DEFAULT_CATEGORIES = [
    {"name": "Web Development", "description": "Modern web development techniques and frameworks", "color": "#3B82F6"},
    {"name": "Mobile Development", "description": "iOS and Android app development", "color": "#10B981"},
    {"name": "DevOps", "description": "Deployment, CI/CD, and infrastructure management", "color": "#F59E0B"},
    {"name": "Machine Learning", "description": "AI and machine learning algorithms and applications", "color": "#8B5CF6"},
    {"name": "Cloud Computing", "description": "AWS, Azure, GCP and cloud-native development", "color": "#06B6D4"},
    {"name": "Backend Development", "description": "Server-side development and APIs", "color": "#EF4444"},
    {"name": "Frontend Development", "description": "UI development with modern frameworks", "color": "#EC4899"},
    {"name": "Database Management", "description": "SQL, NoSQL, and database optimization", "color": "#84CC16"},
]


async def seed_categories(session: AsyncSession) -> List[Category]:
    """Create the default categories, skipping any whose slug already exists."""
    res = await session.execute(select(Category.slug))
    existing = set(res.scalars().all())
    created: List[Category] = []
    for fields in DEFAULT_CATEGORIES:
        if slugify(fields["name"]) in existing:
            continue
        created.append(await create_category(session, fields))
    logger.info("Seeded categories", extra={"event": "seed_categories", "categories_created": len(created)})
    return created
