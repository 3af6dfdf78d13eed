"""Article model for published, AI-rewritten content."""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class Article(SQLModel, table=True):
    """
    Stored article - created once by the ingestion pipeline.
    Slug is unique across all rows; rss_guid is unique whenever present.
    """

    __tablename__ = "articles"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    # Content
    title: str = Field(max_length=500)
    slug: str = Field(max_length=600, unique=True, index=True)
    content: str
    excerpt: str
    image: str | None = Field(default=None, max_length=2048)

    # Publication flags
    published: bool = Field(default=True)
    featured: bool = Field(default=False)

    # References
    category_id: UUID = Field(foreign_key="categories.id", index=True)
    author_id: UUID = Field(foreign_key="users.id", index=True)

    # Source attribution
    source_url: str | None = Field(default=None, max_length=2048, index=True)
    source_id: str | None = Field(default=None, max_length=100)
    source_name: str | None = Field(default=None, max_length=200)
    rss_guid: str | None = Field(default=None, max_length=2048, unique=True)

    # Rewrite info
    ai_rephrased: bool = Field(default=False)
    raw_content: str | None = Field(default=None)

    # Timestamps
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),
        index=True,
    )
    published_at: datetime | None = Field(default=None, sa_type=DateTime(timezone=True))
