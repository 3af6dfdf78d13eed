"""Composition root for one ingestion run, used by whatever triggers it."""

from sqlalchemy.ext.asyncio import AsyncSession

from newsweb.agents.gemini_service import GeminiService, GenerationService
from newsweb.config import Settings, get_settings
from newsweb.logging_config import create_logger
from newsweb.schemas.source import ProcessingReport
from newsweb.services.feed_fetcher import FeedFetcher
from newsweb.services.ingest_service import MultiSourceProcessor, SourceProcessor
from newsweb.services.seed_service import get_or_create_system_author, load_active_sources
from newsweb.services.storage import SQLModelArticleStorage
from newsweb.services.tiers import apply_tier_limits

logger = create_logger(__name__)


async def run_ingestion(
    session: AsyncSession,
    generator: GenerationService | None = None,
    fetcher: FeedFetcher | None = None,
    settings: Settings | None = None,
) -> ProcessingReport:
    """
    Ingest every active source with tier-weighted limits.

    The caller must hold the run lease; see ``newsweb.services.ingest_service``.
    """
    settings = settings or get_settings()
    owns_fetcher = fetcher is None
    fetcher = fetcher or FeedFetcher(settings=settings)

    try:
        author = await get_or_create_system_author(session)
        sources = apply_tier_limits(await load_active_sources(session))
        if not sources:
            logger.info("No active news sources to process")
            return ProcessingReport()

        logger.info(f"Processing {len(sources)} news sources")
        processor = MultiSourceProcessor(
            SourceProcessor.create(
                fetcher=fetcher,
                storage=SQLModelArticleStorage(session),
                generator=generator or GeminiService(settings),
                settings=settings,
            )
        )
        return await processor.process_sources(sources, author.id, settings.articles_per_source)
    finally:
        if owns_fetcher:
            await fetcher.close()
