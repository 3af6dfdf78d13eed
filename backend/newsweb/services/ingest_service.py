"""Ingestion pipeline: per-source processing and multi-source runs.

Precondition: at most one multi-source run is in flight at a time. The
trigger layer (scheduled job or manual call) is responsible for holding a
run-scoped lease; runs racing each other surface as constraint violations
recorded in the report, not as crashes.
"""

from uuid import UUID

from newsweb.agents.gemini_service import GenerationService
from newsweb.config import Settings, get_settings
from newsweb.logging_config import create_logger
from newsweb.models import Category
from newsweb.schemas.article import ArticleInput, NewArticle
from newsweb.schemas.feed import FeedItem
from newsweb.schemas.source import (
    ProcessingReport,
    SourceBreakdown,
    SourceDescriptor,
    SourceResult,
)
from newsweb.services.classifier import Classifier
from newsweb.services.content_extractor import (
    extract_image_url,
    extract_item_text,
    parse_published_at,
)
from newsweb.services.dedup import DedupGate
from newsweb.services.feed_fetcher import FeedFetcher
from newsweb.services.rewriter import Rewriter, validate_rewrite
from newsweb.services.slugs import create_unique_slug
from newsweb.services.storage import ArticleStorage, ConstraintViolation

logger = create_logger(__name__)


class ConfigurationMissing(Exception):
    """Raised when a source refers to configuration that doesn't exist."""


class SourceProcessor:
    """
    Runs the pipeline over one source.

    Items are handled strictly in feed order, one at a time: extract, skip
    short text, dedup, classify, rewrite, assign a slug and store. A failing
    item is recorded and the next item proceeds.
    """

    def __init__(
        self,
        fetcher: FeedFetcher,
        storage: ArticleStorage,
        classifier: Classifier,
        rewriter: Rewriter,
        dedup: DedupGate | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.fetcher = fetcher
        self.storage = storage
        self.classifier = classifier
        self.rewriter = rewriter
        self.dedup = dedup or DedupGate(storage, self.settings)

    @classmethod
    def create(
        cls,
        fetcher: FeedFetcher,
        storage: ArticleStorage,
        generator: GenerationService,
        settings: Settings | None = None,
    ) -> "SourceProcessor":
        """Wire a processor from a fetcher, a store and a generation service."""
        settings = settings or get_settings()
        return cls(
            fetcher=fetcher,
            storage=storage,
            classifier=Classifier(generator),
            rewriter=Rewriter(generator, settings),
            settings=settings,
        )

    async def _require_category(self, slug: str) -> Category:
        category = await self.storage.find_category_by_slug(slug)
        if category is None:
            raise ConfigurationMissing(f"Category not found: {slug}")
        return category

    async def process_source(
        self,
        source: SourceDescriptor,
        author_id: UUID,
        limit: int | None = None,
    ) -> SourceResult:
        """
        Fetch one source and store its new items.

        Returns stored/skipped counters and the error messages collected;
        never raises.
        """
        result = SourceResult()
        limit = self.settings.articles_per_source if limit is None else limit

        try:
            feed = await self.fetcher.fetch_feed(source.url)

            if not feed.items:
                result.errors.append(f"No items found in feed: {source.url}")
                return result

            try:
                await self._require_category(source.category)
            except ConfigurationMissing as e:
                logger.error(f"Skipping source {source.name}: {e}")
                result.errors.append(str(e))
                return result

            for item in feed.items[:limit]:
                await self._process_item(item, source, author_id, result)

        except Exception as e:
            logger.error(f"Error fetching feed {source.url}: {e}")
            result.errors.append(f"Error fetching feed {source.url}: {e}")

        return result

    async def _process_item(
        self,
        item: FeedItem,
        source: SourceDescriptor,
        author_id: UUID,
        result: SourceResult,
    ) -> None:
        try:
            stored = await self._ingest_item(item, source, author_id)
        except ConstraintViolation as e:
            logger.warning(f"Storage rejected duplicate article '{item.title[:50]}': {e}")
            result.errors.append(f'Duplicate rejected by storage for article "{item.title}": {e}')
            return
        except Exception as e:
            logger.error(f"Error processing article '{item.title[:50]}': {e}")
            result.errors.append(f'Error processing article "{item.title}": {e}')
            return

        if stored:
            result.stored += 1
        else:
            result.skipped += 1

    async def _ingest_item(
        self,
        item: FeedItem,
        source: SourceDescriptor,
        author_id: UUID,
    ) -> bool:
        """Run one item through the pipeline; False means it was skipped."""
        guid = item.guid or item.link
        plain_text = extract_item_text(item)

        if len(plain_text) < self.settings.min_content_length:
            return False

        if await self.dedup.is_duplicate(guid, item.title, item.link):
            return False

        classified_slug = await self.classifier.classify(item.title, plain_text)
        # Looked up per item: a storage rollback expires previously loaded rows
        final_category = await self.storage.find_category_by_slug(
            classified_slug
        ) or await self._require_category(source.category)
        logger.info(f"Article '{item.title[:50]}...' classified as: {final_category.slug}")

        original = ArticleInput(
            title=item.title,
            content=plain_text,
            description=plain_text,
            category=final_category.slug,
        )
        rewritten = await self.rewriter.rewrite(original)
        validate_rewrite(original, rewritten)

        slug = await create_unique_slug(self.storage, rewritten.title)

        await self.storage.create_article(
            NewArticle(
                title=rewritten.title,
                slug=slug,
                content=rewritten.content,
                excerpt=rewritten.excerpt,
                image=extract_image_url(item),
                published=True,
                featured=False,
                category_id=final_category.id,
                author_id=author_id,
                source_url=item.link or None,
                source_id=source.id,
                source_name=source.name,
                rss_guid=guid or None,
                ai_rephrased=True,
                raw_content=plain_text,
                published_at=parse_published_at(item),
            )
        )
        return True


class MultiSourceProcessor:
    """Runs a SourceProcessor over many sources, one after another."""

    def __init__(self, source_processor: SourceProcessor):
        self.source_processor = source_processor

    async def process_sources(
        self,
        sources: list[SourceDescriptor],
        author_id: UUID,
        per_source_limit: int | None = None,
    ) -> ProcessingReport:
        """
        Process sources sequentially in the given order.

        A descriptor's own ``article_limit`` takes precedence over
        ``per_source_limit``.
        """
        report = ProcessingReport()

        for source in sources:
            logger.info(f"Processing source: {source.name} ({source.category})")
            limit = source.article_limit or per_source_limit

            try:
                result = await self.source_processor.process_source(source, author_id, limit)
            except Exception as e:
                logger.error(f"Unexpected failure processing {source.name}: {e}")
                result = SourceResult(errors=[f"Error processing source {source.name}: {e}"])

            report.total_stored += result.stored
            report.total_skipped += result.skipped
            report.errors.extend(result.errors)
            report.source_results.append(
                SourceBreakdown(source=source.name, stored=result.stored, skipped=result.skipped)
            )

        logger.info(
            f"Run finished ({report.status}): stored={report.total_stored} "
            f"skipped={report.total_skipped} errors={len(report.errors)}"
        )
        return report
