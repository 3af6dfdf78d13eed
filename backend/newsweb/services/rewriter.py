"""Long-form rewriting of feed items with retry and graceful fallback."""

import asyncio
from collections.abc import Awaitable, Callable

from tenacity import AsyncRetrying, RetryCallState, stop_after_attempt

from newsweb.agents.gemini_service import GenerationError, GenerationService
from newsweb.config import Settings, get_settings
from newsweb.logging_config import create_logger
from newsweb.schemas.article import ArticleInput, RewrittenArticle

logger = create_logger(__name__)

FALLBACK_EXCERPT_CHARS = 200


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Wait before retrying after a failed 0-based ``attempt``."""
    return base_delay * (2**attempt)


def fallback_rewrite(article: ArticleInput) -> RewrittenArticle:
    """Degraded record used when rewriting fails: the original text as-is."""
    if article.description:
        excerpt = article.description[:FALLBACK_EXCERPT_CHARS] + "..."
    else:
        excerpt = article.title

    return RewrittenArticle(
        title=article.title,
        content=article.content or article.description or "",
        excerpt=excerpt,
    )


def validate_rewrite(original: ArticleInput, rewritten: RewrittenArticle) -> bool:
    """
    Advisory quality check of a rewrite.

    A failed check is logged and reported, never enforced: the record is
    stored either way.
    """
    original_length = len(original.content or original.description or "")
    content_length = len(rewritten.content)

    checks = {
        "has_content": content_length > 50,
        "has_title": len(rewritten.title) > 5,
        "has_excerpt": len(rewritten.excerpt) > 20,
        "not_too_short": content_length > original_length * 0.5,
        "not_too_long": content_length < original_length * 4,
    }

    passed = all(checks.values())
    if not passed:
        failed = [name for name, ok in checks.items() if not ok]
        logger.warning(
            f"Rewrite validation failed for '{original.title[:50]}' -> "
            f"'{rewritten.title[:50]}': {failed}"
        )
    return passed


class Rewriter:
    """
    Rewrites articles through the generation service.

    Each call makes up to ``rewrite_max_attempts`` attempts, waiting
    ``base * 2**attempt`` seconds between them. Exhausting every attempt
    yields the fallback record instead of an error, so a rewrite never
    blocks an item from being stored.
    """

    def __init__(
        self,
        generator: GenerationService,
        settings: Settings | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        settings = settings or get_settings()
        self.generator = generator
        self.max_attempts = max(1, settings.rewrite_max_attempts)
        self.base_delay = settings.rewrite_base_delay_seconds
        self.batch_size = max(1, settings.rewrite_batch_size)
        self.batch_pause = settings.rewrite_batch_pause_seconds
        self._sleep = sleep

    def _wait(self, retry_state: RetryCallState) -> float:
        return backoff_delay(retry_state.attempt_number - 1, self.base_delay)

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        delay = retry_state.next_action.sleep if retry_state.next_action else 0
        attempt = f"Attempt {retry_state.attempt_number}/{self.max_attempts}"

        if isinstance(error, GenerationError) and error.is_rate_limited:
            logger.warning(f"Rate limit hit. Retrying in {delay:.1f}s... ({attempt})")
        else:
            logger.warning(f"Rewrite error: {error}. Retrying in {delay:.1f}s... ({attempt})")

    async def rewrite(self, article: ArticleInput) -> RewrittenArticle:
        """Rewrite one article, falling back to the original text on failure."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self._wait,
            sleep=self._sleep,
            before_sleep=self._log_retry,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    rewritten = await self.generator.rewrite(article)
        except Exception as e:
            logger.error(
                f"Rewriting '{article.title[:50]}' failed after {self.max_attempts} attempts: {e}"
            )
            return fallback_rewrite(article)

        return rewritten

    async def rewrite_batch(self, articles: list[ArticleInput]) -> list[RewrittenArticle]:
        """
        Rewrite many articles in concurrent batches.

        Batches run one after another with a pause in between; results keep
        the input order.
        """
        results: list[RewrittenArticle] = []
        total_batches = -(-len(articles) // self.batch_size)

        for start in range(0, len(articles), self.batch_size):
            batch = articles[start : start + self.batch_size]
            batch_number = start // self.batch_size + 1
            logger.info(f"Processing batch {batch_number}/{total_batches} ({len(batch)} articles)")

            results.extend(await asyncio.gather(*(self.rewrite(a) for a in batch)))

            if start + self.batch_size < len(articles):
                await self._sleep(self.batch_pause)

        return results
