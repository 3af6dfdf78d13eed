"""Topical classification of articles via the generation service."""

from newsweb.agents.gemini_service import GenerationService
from newsweb.constants.categories import CATEGORY_SLUGS, DEFAULT_CATEGORY_SLUG
from newsweb.logging_config import create_logger

logger = create_logger(__name__)


def parse_category(response: str) -> str | None:
    """First known category slug contained in a model response."""
    text = (response or "").strip().lower()
    return next((slug for slug in CATEGORY_SLUGS if slug in text), None)


class Classifier:
    """
    Maps an article to one slug of the closed category set.

    Failures are absorbed: any error or unrecognised answer yields ``news``.
    """

    def __init__(self, generator: GenerationService):
        self.generator = generator

    async def classify(self, title: str, content: str) -> str:
        try:
            response = await self.generator.classify(title, content)
        except Exception as e:
            logger.error(f"Error classifying article category for '{title[:50]}': {e}")
            return DEFAULT_CATEGORY_SLUG

        category = parse_category(response)
        if category is None:
            logger.warning(f"Unrecognised category response {response!r}, using '{DEFAULT_CATEGORY_SLUG}'")
            return DEFAULT_CATEGORY_SLUG
        return category
