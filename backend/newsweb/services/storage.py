"""Storage interface consumed by the pipeline, plus its SQLModel implementation."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from newsweb.logging_config import create_logger
from newsweb.models import Article, Category
from newsweb.schemas.article import NewArticle

logger = create_logger(__name__)


class ConstraintViolation(Exception):
    """Raised when a write collides with an existing guid or slug."""


class ArticleStorage(Protocol):
    """Operations the pipeline needs from the article store."""

    async def find_article_by_guid(self, guid: str) -> Article | None: ...

    async def find_article_by_source_url(self, url: str) -> Article | None: ...

    async def find_recent_titles(self, since: datetime) -> list[str]: ...

    async def find_article_by_slug(self, slug: str) -> Article | None: ...

    async def find_category_by_slug(self, slug: str) -> Category | None: ...

    async def create_article(self, record: NewArticle) -> Article: ...


class SQLModelArticleStorage:
    """
    Article store backed by an async SQLAlchemy session.

    Unique constraints on ``slug`` and ``rss_guid`` are the authoritative
    duplicate guard; violations surface as ``ConstraintViolation``.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_article_by_guid(self, guid: str) -> Article | None:
        """Get an article by its original feed guid."""
        result = await self.session.execute(select(Article).where(Article.rss_guid == guid))
        return result.scalars().first()

    async def find_article_by_source_url(self, url: str) -> Article | None:
        """Get the first article ingested from a given link."""
        result = await self.session.execute(select(Article).where(Article.source_url == url))
        return result.scalars().first()

    async def find_recent_titles(self, since: datetime) -> list[str]:
        """Get titles of articles created at or after ``since``."""
        result = await self.session.execute(
            select(Article.title).where(Article.created_at >= since)
        )
        return list(result.scalars().all())

    async def find_article_by_slug(self, slug: str) -> Article | None:
        """Get an article by slug."""
        result = await self.session.execute(select(Article).where(Article.slug == slug))
        return result.scalars().first()

    async def find_category_by_slug(self, slug: str) -> Category | None:
        """Get a category by slug."""
        result = await self.session.execute(select(Category).where(Category.slug == slug))
        return result.scalars().first()

    async def create_article(self, record: NewArticle) -> Article:
        """Insert a new article, committing immediately."""
        article = Article(**record.model_dump())
        self.session.add(article)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(f"Unique constraint rejected article '{record.slug}': {e.orig}")
            raise ConstraintViolation(
                f"guid or slug already exists (slug={record.slug!r}, guid={record.rss_guid!r})"
            ) from e
        await self.session.refresh(article)
        return article
