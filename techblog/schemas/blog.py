from __future__ import annotations

import uuid
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, HttpUrl, field_validator

from techblog.models.blog_models import ArticleStatus


# --- Write payloads (management forms) ---

class CategoryWrite(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    color: Optional[str] = Field(default=None, max_length=32)

    @field_validator("name", mode="before")
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class ArticleWrite(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    excerpt: Optional[str] = Field(default=None, max_length=500)
    content: str = Field(min_length=1)
    featured_image: Optional[HttpUrl] = None
    category_id: int
    status: ArticleStatus
    reading_time: Optional[int] = Field(default=None, ge=1)

    @field_validator("title", mode="before")
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("excerpt", "featured_image", mode="before")
    def blank_to_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("featured_image")
    def featured_image_length(cls, v):
        if v is not None and len(str(v)) > 255:
            raise ValueError("The featured image URL may not be greater than 255 characters.")
        return v


class ArticleCreate(ArticleWrite):
    # Only honoured on create; updates derive it from the status transition
    published_at: Optional[datetime] = None


# --- Read models handed to the rendering boundary ---

class CategoryOut(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    color: Optional[str] = None

    class Config:
        from_attributes = True


class CategoryWithCount(CategoryOut):
    articles_count: int = 0


class AuthorOut(BaseModel):
    id: uuid.UUID
    name: str

    class Config:
        from_attributes = True


class ArticleOut(BaseModel):
    id: int
    title: str
    slug: str
    excerpt: Optional[str] = None
    content: str
    featured_image: Optional[str] = None
    status: str
    published_at: Optional[datetime] = None
    views_count: int
    reading_time: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    category: CategoryOut
    author: AuthorOut

    class Config:
        from_attributes = True


class ArticlePage(BaseModel):
    items: List[ArticleOut]
    total_count: int
    current_page: int
    page_size: int
    page_count: int


class CategoryPage(BaseModel):
    items: List[CategoryWithCount]
    total_count: int
    current_page: int
    page_size: int
    page_count: int


class ArticleListing(BaseModel):
    articles: ArticlePage
    categories: List[CategoryOut]
    filters: Dict[str, str]


class ArticleDetail(BaseModel):
    article: ArticleOut


class ArticleEdit(BaseModel):
    article: ArticleOut
    categories: List[CategoryOut]


class ArticleForm(BaseModel):
    categories: List[CategoryOut]


class CategoryDetail(BaseModel):
    category: CategoryOut
    articles: List[ArticleOut]


class HomeFeed(BaseModel):
    articles: List[ArticleOut]
    categories: List[CategoryWithCount]
