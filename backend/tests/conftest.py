"""Shared fixtures: in-memory storage, stub generation service and feeds."""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import newsweb.models  # noqa: F401  (registers table metadata)
from newsweb.config import Settings
from newsweb.constants.categories import CATEGORY_SLUGS
from newsweb.models import Article, Category
from newsweb.schemas.article import ArticleInput, NewArticle, RewrittenArticle
from newsweb.schemas.feed import FeedItem, ParsedFeed
from newsweb.services.storage import ConstraintViolation


def make_text(length: int) -> str:
    """Plain text of exactly ``length`` characters with no trailing space."""
    base = "The city council approved the annual budget after a long debate. "
    text = (base * (length // len(base) + 1))[:length]
    return text[:-1] + "." if text.endswith(" ") else text


def make_settings(**overrides) -> Settings:
    """Settings isolated from any local .env, with instant retries."""
    values = {
        "rewrite_base_delay_seconds": 0.0,
        "rewrite_batch_pause_seconds": 0.0,
        "category_feeds": {"news": "https://feeds.example.com/news.rss"},
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class FakeStorage:
    """In-memory ArticleStorage enforcing the same uniqueness as the database."""

    def __init__(self) -> None:
        self.articles: list[Article] = []
        self.categories = {slug: Category(id=uuid4(), slug=slug, name=slug.title()) for slug in CATEGORY_SLUGS}
        self.calls: list[str] = []

    def add_existing(self, **fields) -> Article:
        defaults = {
            "title": "Existing article",
            "slug": f"existing-{len(self.articles)}",
            "content": "content",
            "excerpt": "excerpt",
            "category_id": self.categories["news"].id,
            "author_id": uuid4(),
        }
        defaults.update(fields)
        article = Article(**defaults)
        self.articles.append(article)
        return article

    async def find_article_by_guid(self, guid: str) -> Article | None:
        self.calls.append("guid")
        return next((a for a in self.articles if a.rss_guid == guid), None)

    async def find_article_by_source_url(self, url: str) -> Article | None:
        self.calls.append("source_url")
        return next((a for a in self.articles if a.source_url == url), None)

    async def find_recent_titles(self, since: datetime) -> list[str]:
        self.calls.append("recent_titles")
        return [a.title for a in self.articles if a.created_at >= since]

    async def find_article_by_slug(self, slug: str) -> Article | None:
        return next((a for a in self.articles if a.slug == slug), None)

    async def find_category_by_slug(self, slug: str) -> Category | None:
        return self.categories.get(slug)

    async def create_article(self, record: NewArticle) -> Article:
        self.calls.append("create")
        if any(a.slug == record.slug for a in self.articles):
            raise ConstraintViolation(f"slug already exists: {record.slug}")
        if record.rss_guid and any(a.rss_guid == record.rss_guid for a in self.articles):
            raise ConstraintViolation(f"guid already exists: {record.rss_guid}")
        article = Article(**record.model_dump())
        self.articles.append(article)
        return article


def expanded_rewrite(article: ArticleInput) -> RewrittenArticle:
    """Rewrite that doubles the source text."""
    body = article.content or article.description or ""
    return RewrittenArticle(
        title=f"Rewritten: {article.title}",
        content=f"{body}\n\n{body}",
        excerpt="A short excerpt long enough to pass validation.",
    )


class StubGenerator:
    """GenerationService stand-in with scripted answers."""

    def __init__(self, category: str = "technology", rewrite=expanded_rewrite, failures=None):
        self.category = category
        self.rewrite_fn = rewrite
        # Exceptions raised, in order, before rewrite_fn is used
        self.failures = list(failures or [])
        self.classify_calls: list[str] = []
        self.rewrite_calls: list[ArticleInput] = []

    async def classify(self, title: str, content: str) -> str:
        self.classify_calls.append(title)
        if isinstance(self.category, Exception):
            raise self.category
        return self.category

    async def rewrite(self, article: ArticleInput) -> RewrittenArticle:
        self.rewrite_calls.append(article)
        if self.failures:
            raise self.failures.pop(0)
        return self.rewrite_fn(article)


class StubFetcher:
    """FeedFetcher stand-in serving fixed feeds by URL."""

    def __init__(self, feeds: dict[str, ParsedFeed] | None = None):
        self.feeds = feeds or {}
        self.requested: list[str] = []

    async def fetch_feed(self, url: str) -> ParsedFeed:
        self.requested.append(url)
        return self.feeds.get(url, ParsedFeed.empty())

    async def close(self) -> None:
        pass


def make_item(title: str, text: str, guid: str = "", link: str = "", **fields) -> FeedItem:
    return FeedItem(
        title=title,
        link=link,
        guid=guid or link,
        description=f"<p>{text}</p>",
        iso_date="2025-01-06T10:00:00+00:00",
        **fields,
    )


class SleepRecorder:
    """Async sleep replacement recording requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def now() -> datetime:
    return datetime(2025, 1, 10, 12, 0, tzinfo=UTC)


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Session on a fresh in-memory SQLite database."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()
