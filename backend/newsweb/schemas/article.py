"""Article schemas passed between the rewriter and storage."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ArticleInput(BaseModel):
    """Source article handed to the classifier and the rewriter."""

    title: str
    content: str = ""
    description: str | None = None
    category: str | None = None


class RewrittenArticle(BaseModel):
    """Structured output of a rewrite: three text fields."""

    title: str
    content: str
    excerpt: str


class NewArticle(BaseModel):
    """Record written to storage for a newly ingested item."""

    title: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    content: str
    excerpt: str
    image: str | None = None
    published: bool = True
    featured: bool = False
    category_id: UUID
    author_id: UUID
    source_url: str | None = None
    source_id: str | None = None
    source_name: str | None = None
    rss_guid: str | None = None
    ai_rephrased: bool = True
    raw_content: str | None = None
    published_at: datetime
