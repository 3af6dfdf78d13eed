"""Duplicate detection for incoming feed items."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from newsweb.config import Settings, get_settings
from newsweb.logging_config import create_logger
from newsweb.services.storage import ArticleStorage

logger = create_logger(__name__)


def title_overlap(candidate: str, existing: str) -> float:
    """
    Share of common words between two titles.

    Titles are case-folded and split on whitespace; the overlap is
    |intersection| / max(|candidate|, |existing|) over the word sets.
    """
    candidate_words = set(candidate.casefold().split())
    existing_words = set(existing.casefold().split())
    longest = max(len(candidate_words), len(existing_words))
    if longest == 0:
        return 0.0
    return len(candidate_words & existing_words) / longest


class DedupGate:
    """
    Best-effort pre-filter deciding whether an item is already stored.

    Checks short-circuit in decreasing order of confidence: guid, source
    URL, then title overlap against articles created in a trailing window.
    Storage unique constraints remain the authoritative guard.
    """

    def __init__(
        self,
        storage: ArticleStorage,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ):
        settings = settings or get_settings()
        self.storage = storage
        self.window = timedelta(days=settings.dedup_window_days)
        self.threshold = settings.dedup_title_threshold
        self.clock = clock

    async def is_duplicate(self, guid: str, title: str, source_url: str | None = None) -> bool:
        """Check guid, then source URL, then recent titles."""
        if guid and await self.storage.find_article_by_guid(guid):
            logger.debug(f"Duplicate by guid: {guid}")
            return True

        if source_url and await self.storage.find_article_by_source_url(source_url):
            logger.debug(f"Duplicate by source URL: {source_url}")
            return True

        recent_titles = await self.storage.find_recent_titles(self.clock() - self.window)
        for existing in recent_titles:
            if title_overlap(title, existing) > self.threshold:
                logger.debug(f"Duplicate by title overlap: '{title}' ~ '{existing}'")
                return True

        return False
