"""Gemini-backed generation service for classifying and rewriting articles."""

import json
import re
from enum import Enum
from typing import Any, Protocol

import httpx
from google import genai
from google.genai import errors, types

from newsweb.config import Settings, get_settings
from newsweb.constants.categories import CATEGORY_SLUGS
from newsweb.logging_config import create_logger
from newsweb.schemas.article import ArticleInput, RewrittenArticle

logger = create_logger(__name__)

JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")


class GenerationErrorKind(str, Enum):
    """Failure classes reported by the generation service."""

    TRANSIENT = "transient"
    RATE_LIMITED = "rate_limited"
    INVALID_RESPONSE = "invalid_response"


class GenerationError(Exception):
    """A failed generation call, tagged with its failure class."""

    def __init__(self, kind: GenerationErrorKind, message: str):
        super().__init__(message)
        self.kind = kind

    @property
    def is_rate_limited(self) -> bool:
        return self.kind is GenerationErrorKind.RATE_LIMITED


class GenerationService(Protocol):
    """Generation operations the pipeline relies on."""

    async def classify(self, title: str, content: str) -> str:
        """Return the model's category label for an article."""
        ...

    async def rewrite(self, article: ArticleInput) -> RewrittenArticle:
        """Return an expanded long-form version of an article."""
        ...


def extract_json_payload(text: str) -> dict[str, Any]:
    """
    Pull the JSON object out of a model response.

    Models often wrap the object in prose or markdown fences, so the outermost
    ``{...}`` span is located before strict parsing.
    """
    match = JSON_OBJECT_PATTERN.search(text or "")
    if not match:
        raise GenerationError(GenerationErrorKind.INVALID_RESPONSE, "No JSON object in response")

    try:
        # strict=False keeps raw newlines inside string values
        data = json.loads(match.group(0), strict=False)
    except json.JSONDecodeError as e:
        raise GenerationError(
            GenerationErrorKind.INVALID_RESPONSE, f"Invalid JSON response: {e}"
        ) from e

    if not isinstance(data, dict):
        raise GenerationError(GenerationErrorKind.INVALID_RESPONSE, "JSON payload is not an object")
    return data


def parse_rewrite_response(text: str) -> RewrittenArticle:
    """Parse a rewrite response into its three required text fields."""
    data = extract_json_payload(text)

    fields = {}
    for name in ("title", "content", "excerpt"):
        value = data.get(name)
        if not isinstance(value, str) or not value.strip():
            raise GenerationError(
                GenerationErrorKind.INVALID_RESPONSE, f"Incomplete response: missing '{name}'"
            )
        fields[name] = value.strip()

    return RewrittenArticle(**fields)


def classify_api_error(error: Exception) -> GenerationError:
    """Map a client/transport error to a GenerationError."""
    message = str(error)
    code = getattr(error, "code", None)
    status = str(getattr(error, "status", "") or "")
    lowered = message.lower()

    if code == 429 or status == "RESOURCE_EXHAUSTED" or "quota" in lowered or "rate limit" in lowered:
        return GenerationError(GenerationErrorKind.RATE_LIMITED, message)
    return GenerationError(GenerationErrorKind.TRANSIENT, message)


class GeminiService:
    """Generation service using Google's Gemini models."""

    CLASSIFY_PROMPT = """Decide which category the following article belongs to.

Title: {title}
Content: {content}

Categories:
- sports: athletes, games, tournaments, scores, teams
- business: economy, finance, markets, companies, startups
- technology: gadgets, software, AI, apps, innovation
- entertainment: movies, TV, celebrities, music, awards, the entertainment industry
- politics: government, elections, policy, politicians
- health: medicine, wellness, diseases, treatments
- world: international events and foreign affairs
- news: general news that fits none of the above

Use "news" only when no other category clearly fits.
Respond with the category slug only, one word: {slugs}"""

    REWRITE_PROMPT = """You are a professional blog writer. Turn the news article below into an engaging long-form blog post.

RULES:
1. Keep every fact from the source. Do not add, remove or change facts.
2. Expand the text to two or three times its original length with context and explanation drawn from the facts present.
3. Preserve names, dates, numbers and quotations exactly.
4. Structure: an introduction, several body paragraphs of 3-5 sentences each, and a short conclusion.
5. Write in a conversational style with smooth transitions between paragraphs.
6. Never invent information.

Original article:
Title: {title}
Content: {content}
Category: {category}

Also write a compelling title that keeps the original meaning and a 2-3 sentence excerpt.

Return ONLY a JSON object, with no markdown or extra text:
{{"title": "...", "content": "paragraphs separated by \\n\\n", "excerpt": "..."}}"""

    def __init__(self, settings: Settings | None = None, client: Any = None) -> None:
        self.settings = settings or get_settings()
        self.client = client or genai.Client(api_key=self.settings.gemini_api_key)
        self.model = self.settings.gemini_model

    async def _generate(self, prompt: str, config: types.GenerateContentConfig) -> str:
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )
        except (errors.APIError, httpx.HTTPError) as e:
            raise classify_api_error(e) from e

        return response.text or ""

    async def classify(self, title: str, content: str) -> str:
        """Ask the model for a category label (raw text)."""
        prompt = self.CLASSIFY_PROMPT.format(
            title=title, content=content, slugs=", ".join(CATEGORY_SLUGS)
        )
        return await self._generate(
            prompt,
            types.GenerateContentConfig(
                temperature=self.settings.classify_temperature,
                max_output_tokens=50,
            ),
        )

    async def rewrite(self, article: ArticleInput) -> RewrittenArticle:
        """Ask the model for a rewritten article and parse its JSON payload."""
        prompt = self.REWRITE_PROMPT.format(
            title=article.title,
            content=article.content or article.description or "",
            category=article.category or "News",
        )
        text = await self._generate(
            prompt,
            types.GenerateContentConfig(
                temperature=self.settings.rewrite_temperature,
                max_output_tokens=4096,
                top_p=0.95,
            ),
        )

        try:
            return parse_rewrite_response(text)
        except GenerationError:
            logger.error(f"Failed to parse Gemini response: {text[:500]}")
            raise
