"""Lookups a trigger needs before starting an ingestion run."""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from newsweb.constants.categories import CATEGORY_SLUGS
from newsweb.models import Category, NewsSource, User
from newsweb.schemas.source import SourceDescriptor

SYSTEM_AUTHOR_EMAIL = "editorial@newsweb.com"
SYSTEM_AUTHOR_NAME = "Editorial Team"


async def get_or_create_system_author(session: AsyncSession) -> User:
    """Get the editorial author articles are attributed to, creating it once."""
    result = await session.execute(select(User).where(User.email == SYSTEM_AUTHOR_EMAIL))
    author = result.scalars().first()
    if author:
        return author

    author = User(email=SYSTEM_AUTHOR_EMAIL, name=SYSTEM_AUTHOR_NAME, role="SYSTEM")
    session.add(author)
    await session.commit()
    await session.refresh(author)
    return author


async def ensure_categories(session: AsyncSession) -> list[Category]:
    """Create any missing category of the closed set."""
    result = await session.execute(select(Category))
    existing = {c.slug: c for c in result.scalars().all()}

    for slug in CATEGORY_SLUGS:
        if slug not in existing:
            category = Category(slug=slug, name=slug.title())
            session.add(category)
            existing[slug] = category

    await session.commit()
    return [existing[slug] for slug in CATEGORY_SLUGS]


async def load_active_sources(session: AsyncSession) -> list[SourceDescriptor]:
    """Active sources ordered by country then category."""
    result = await session.execute(
        select(NewsSource)
        .where(NewsSource.active == True)  # noqa: E712
        .order_by(NewsSource.country, NewsSource.category)
    )
    return [source.to_descriptor() for source in result.scalars().all()]
