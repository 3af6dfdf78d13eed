"""Feed fetching: download, parse and normalize syndication feeds."""

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import feedparser
import httpx

from newsweb.config import Settings, get_settings
from newsweb.logging_config import create_logger
from newsweb.schemas.feed import FeedItem, NormalizedArticle, ParsedFeed
from newsweb.services.content_extractor import normalize_item, parse_published_at

logger = create_logger(__name__)

EPOCH = datetime.fromtimestamp(0, UTC)


class FeedFetchError(Exception):
    """Raised internally when a feed can't be downloaded or parsed."""


@dataclass
class CacheEntry:
    """A cached feed snapshot."""

    feed: ParsedFeed
    stored_at: float


class FeedCache:
    """
    Category-keyed feed cache with a fixed TTL checked on read.

    Shared by concurrent fetches without locking; entries are immutable
    snapshots so the last write wins.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> ParsedFeed | None:
        """Return the cached feed if it is still fresh."""
        entry = self._entries.get(key)
        if entry and self.clock() - entry.stored_at < self.ttl_seconds:
            return entry.feed
        return None

    def get_stale(self, key: str) -> ParsedFeed | None:
        """Return the cached feed regardless of age."""
        entry = self._entries.get(key)
        return entry.feed if entry else None

    def put(self, key: str, feed: ParsedFeed) -> None:
        self._entries[key] = CacheEntry(feed=feed, stored_at=self.clock())

    def invalidate(self, key: str | None = None) -> None:
        """Drop one entry, or every entry when no key is given."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)


def _struct_to_iso(value: Any) -> str:
    try:
        return datetime(*value[:6], tzinfo=UTC).isoformat()
    except (TypeError, ValueError):
        return ""


def entry_to_item(entry: Any) -> FeedItem:
    """Map a feedparser entry to a FeedItem, tolerating missing fields."""
    link = str(entry.get("link") or "")

    # content:encoded arrives as an HTML content block
    content_encoded = ""
    content = ""
    for block in entry.get("content") or []:
        value = str(block.get("value") or "")
        if "html" in str(block.get("type", "")) and not content_encoded:
            content_encoded = value
        elif not content:
            content = value

    enclosure = None
    enclosures = entry.get("enclosures") or []
    if enclosures and enclosures[0].get("href"):
        enclosure = {"url": enclosures[0]["href"], "type": enclosures[0].get("type", "")}

    published_struct = entry.get("published_parsed") or entry.get("updated_parsed")

    return FeedItem(
        title=str(entry.get("title") or ""),
        link=link,
        pub_date=str(entry.get("published") or entry.get("updated") or ""),
        iso_date=_struct_to_iso(published_struct) if published_struct else "",
        description=str(entry.get("summary") or ""),
        content=content,
        content_encoded=content_encoded,
        guid=str(entry.get("id") or link),
        categories=[str(tag["term"]) for tag in entry.get("tags") or [] if tag.get("term")],
        media_content=entry.get("media_content"),
        media_thumbnail=entry.get("media_thumbnail"),
        enclosure=enclosure,
    )


class FeedFetcher:
    """Fetches feeds over HTTP and serves category feeds through a cache."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        cache: FeedCache | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.category_feeds = self.settings.category_feeds
        self.cache = cache or FeedCache(ttl_seconds=self.settings.feed_cache_ttl_seconds)
        self.http_client = http_client or httpx.AsyncClient(
            timeout=self.settings.http_timeout_seconds,
            follow_redirects=True,
            headers={
                "User-Agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"
            },
        )

    async def _download_and_parse(self, url: str) -> ParsedFeed:
        try:
            response = await self.http_client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise FeedFetchError(f"HTTP error fetching {url}: {e}") from e
        except (httpx.InvalidURL, ValueError) as e:
            raise FeedFetchError(f"Invalid feed URL {url!r}: {e}") from e

        parsed = feedparser.parse(response.content)
        if parsed.get("bozo") and not parsed.entries:
            raise FeedFetchError(f"Unparseable feed at {url}: {parsed.get('bozo_exception')}")

        feed_meta = parsed.get("feed", {})
        return ParsedFeed(
            items=[entry_to_item(entry) for entry in parsed.entries],
            title=str(feed_meta.get("title") or ""),
            description=str(feed_meta.get("subtitle") or feed_meta.get("description") or ""),
            link=str(feed_meta.get("link") or ""),
        )

    async def fetch_feed(self, url: str) -> ParsedFeed:
        """
        Fetch a feed by URL.

        Never raises: network and parse failures are logged and an empty
        feed is returned, which callers treat as "nothing to process".
        """
        try:
            feed = await self._download_and_parse(url)
        except FeedFetchError as e:
            logger.error(f"Error fetching RSS feed from {url}: {e}")
            return ParsedFeed.empty()

        logger.info(f"Fetched {len(feed.items)} items from {url}")
        return feed

    async def fetch_category_feed(self, category: str) -> ParsedFeed:
        """Fetch a configured category feed, serving stale cache on failure."""
        if category not in self.category_feeds:
            raise ValueError(
                f"Unknown feed category '{category}'. Available: {sorted(self.category_feeds)}"
            )

        cached = self.cache.get(category)
        if cached is not None:
            return cached

        try:
            feed = await self._download_and_parse(self.category_feeds[category])
        except FeedFetchError as e:
            logger.error(f"Error fetching RSS feed for {category}: {e}")
            stale = self.cache.get_stale(category)
            if stale is not None:
                return stale
            return ParsedFeed.empty(title=category)

        self.cache.put(category, feed)
        return feed

    async def fetch_multiple_feeds(self, categories: list[str]) -> dict[str, ParsedFeed]:
        """Fetch several category feeds concurrently."""
        feeds = await asyncio.gather(*(self.fetch_category_feed(c) for c in categories))
        return dict(zip(categories, feeds))

    async def fetch_country_feeds(
        self, urls: list[str], limit: int | None = None
    ) -> list[NormalizedArticle]:
        """
        Fetch a set of feeds concurrently and merge them newest first.

        Articles are attributed to the first feed's title.
        """
        if not urls:
            return []

        feeds = await asyncio.gather(*(self.fetch_feed(url) for url in urls))
        items = [item for feed in feeds for item in feed.items]
        items.sort(key=lambda item: parse_published_at(item, default=EPOCH), reverse=True)
        if limit is not None:
            items = items[:limit]

        source_name = feeds[0].title or None
        return [normalize_item(item, source_name) for item in items]

    async def close(self) -> None:
        """Close HTTP client."""
        await self.http_client.aclose()
