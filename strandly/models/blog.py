"""Blog post model."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field

from strandly.models.base import CMSDocument


class PostStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class Post(CMSDocument):
    """Blog article."""

    title: str = Field(..., description="Post title")
    slug: str = Field(..., description="URL slug")
    excerpt: str | None = Field(None, description="Teaser text")
    content: Any = Field(None, description="Rich text body as stored by the CMS")
    author: str | None = Field(None, description="Author display name")
    published_at: datetime | None = Field(None, description="Publication date")
    tags: list[str] = Field(default_factory=list)
    status: PostStatus = Field(default=PostStatus.DRAFT)
