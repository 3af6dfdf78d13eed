"""Content extraction from raw feed items.

Every function here is total: malformed or missing input degrades to an
empty or partial result instead of raising.
"""

import math
import re
from collections.abc import Mapping
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import Any

from bs4 import BeautifulSoup

from newsweb.constants.categories import DEFAULT_ITEM_CATEGORY
from newsweb.schemas.feed import FeedItem, NormalizedArticle

WORDS_PER_MINUTE = 200

TAG_PATTERN = re.compile(r"<[^>]*>")
WHITESPACE_PATTERN = re.compile(r"\s+")

# Decoded in this order
HTML_ENTITIES: tuple[tuple[str, str], ...] = (
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
)


def _url_of(value: Any) -> str | None:
    """Read a URL out of a media element in any of the shapes feeds use."""
    if not isinstance(value, Mapping):
        return None
    # feedparser exposes "url" (media) or "href" (enclosures); xml2js-style
    # payloads nest attributes under "$"
    attrs = value.get("$")
    candidates = [value.get("url"), value.get("href")]
    if isinstance(attrs, Mapping):
        candidates.append(attrs.get("url"))
    for candidate in candidates:
        if isinstance(candidate, str) and candidate:
            return candidate
    return None


def _first_url(value: Any) -> str | None:
    if isinstance(value, list) and value:
        return _url_of(value[0])
    return None


def _img_src(html: Any) -> str | None:
    """Find the first <img src> inside an HTML fragment."""
    if not isinstance(html, str) or "<img" not in html:
        return None
    img = BeautifulSoup(html, "lxml").find("img", src=True)
    if img is None:
        return None
    src = img.get("src")
    return src if isinstance(src, str) and src else None


def extract_image_url(item: FeedItem) -> str | None:
    """
    Resolve an item's image, first match wins.

    Order: media:content (single), media:content (list), enclosure,
    media:thumbnail, then an <img> embedded in content:encoded, the
    description, and the plain content field.
    """
    media_content = item.media_content
    thumbnail = item.media_thumbnail

    return (
        _url_of(media_content)
        or _first_url(media_content)
        or _url_of(item.enclosure)
        or _url_of(thumbnail)
        or _first_url(thumbnail)
        or _img_src(item.content_encoded)
        or _img_src(item.description)
        or _img_src(item.content)
    )


def extract_plain_text(html: str | None) -> str:
    """Strip tags, decode common entities and collapse whitespace."""
    if not html or not isinstance(html, str):
        return ""

    text = TAG_PATTERN.sub(" ", html)
    for entity, replacement in HTML_ENTITIES:
        text = text.replace(entity, replacement)

    return WHITESPACE_PATTERN.sub(" ", text).strip()


def extract_item_text(item: FeedItem) -> str:
    """Plain text of an item: description, then content, then content:encoded."""
    return extract_plain_text(item.description or item.content or item.content_encoded)


def calculate_read_time(text: str) -> str:
    """Estimated reading time at 200 words per minute, at least one minute."""
    words = len(text.split())
    minutes = max(1, math.ceil(words / WORDS_PER_MINUTE))
    return f"{minutes} Min"


def parse_published_at(item: FeedItem, default: datetime | None = None) -> datetime:
    """Best-effort publish timestamp; falls back to ``default`` (or now)."""
    if item.iso_date:
        try:
            parsed = datetime.fromisoformat(item.iso_date.replace("Z", "+00:00"))
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
        except ValueError:
            pass

    if item.pub_date:
        try:
            parsed = parsedate_to_datetime(item.pub_date)
            return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
        except (TypeError, ValueError, IndexError):
            pass

    return default or datetime.now(UTC)


def normalize_item(item: FeedItem, source_name: str | None = None) -> NormalizedArticle:
    """Build the display view of a feed item."""
    plain_text = extract_plain_text(item.description or item.content)

    return NormalizedArticle(
        title=item.title,
        link=item.link,
        published=item.iso_date or item.pub_date,
        description=plain_text,
        image=extract_image_url(item),
        category=item.categories[0] if item.categories else DEFAULT_ITEM_CATEGORY,
        read_time=calculate_read_time(plain_text),
        source_name=source_name,
    )
