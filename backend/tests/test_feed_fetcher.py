"""Tests for feed fetching, parsing and the category cache."""

import httpx
import pytest

from conftest import make_settings
from newsweb.schemas.feed import ParsedFeed
from newsweb.services.content_extractor import extract_image_url, extract_item_text
from newsweb.services.feed_fetcher import FeedCache, FeedFetcher

SAMPLE_RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
     xmlns:media="http://search.yahoo.com/mrss/"
     xmlns:content="http://purl.org/rss/1.0/modules/content/">
  <channel>
    <title>Example News</title>
    <link>https://example.com</link>
    <description>Latest stories</description>
    <item>
      <title>First story</title>
      <link>https://example.com/first</link>
      <guid isPermaLink="false">first-guid</guid>
      <pubDate>Mon, 06 Jan 2025 10:00:00 GMT</pubDate>
      <description>&lt;p&gt;First paragraph of the story&lt;/p&gt;</description>
      <category>Politics</category>
      <media:content url="https://img.example.com/first.jpg" medium="image" />
    </item>
    <item>
      <title>Second story</title>
      <link>https://example.com/second</link>
      <description>No date and no guid</description>
      <content:encoded><![CDATA[<p>Body <img src="https://img.example.com/second.png" /></p>]]></content:encoded>
    </item>
  </channel>
</rss>
"""

OLDER_RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Other News</title>
    <item>
      <title>Older story</title>
      <link>https://other.example.com/older</link>
      <pubDate>Sun, 05 Jan 2025 10:00:00 GMT</pubDate>
      <description>Older</description>
    </item>
    <item>
      <title>Newest story</title>
      <link>https://other.example.com/newest</link>
      <pubDate>Tue, 07 Jan 2025 10:00:00 GMT</pubDate>
      <description>Newest</description>
    </item>
  </channel>
</rss>
"""


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def make_fetcher(handler, cache: FeedCache | None = None, **settings) -> FeedFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return FeedFetcher(http_client=client, cache=cache, settings=make_settings(**settings))


def serve(routes: dict[str, str], calls: list[str] | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if calls is not None:
            calls.append(url)
        if url not in routes:
            return httpx.Response(404)
        return httpx.Response(200, text=routes[url])

    return handler


class TestFetchFeed:

    @pytest.mark.asyncio
    async def test_parses_items_and_metadata(self) -> None:
        fetcher = make_fetcher(serve({"https://example.com/rss": SAMPLE_RSS}))

        feed = await fetcher.fetch_feed("https://example.com/rss")

        assert feed.title == "Example News"
        assert feed.link == "https://example.com"
        assert [item.title for item in feed.items] == ["First story", "Second story"]

        first, second = feed.items
        assert first.guid == "first-guid"
        assert first.iso_date == "2025-01-06T10:00:00+00:00"
        assert first.categories == ["Politics"]
        assert extract_image_url(first) == "https://img.example.com/first.jpg"
        assert "First paragraph" in extract_item_text(first)

        # Missing optional fields are substituted, guid falls back to link
        assert second.pub_date == ""
        assert second.iso_date == ""
        assert second.guid == "https://example.com/second"
        assert extract_image_url(second) == "https://img.example.com/second.png"
        await fetcher.close()

    @pytest.mark.asyncio
    async def test_network_failure_returns_empty_feed(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        fetcher = make_fetcher(handler)

        feed = await fetcher.fetch_feed("https://down.example.com/rss")

        assert feed.items == []
        assert feed.title == "News"

    @pytest.mark.asyncio
    async def test_http_error_returns_empty_feed(self) -> None:
        fetcher = make_fetcher(lambda request: httpx.Response(500))

        feed = await fetcher.fetch_feed("https://example.com/rss")

        assert feed.items == []

    @pytest.mark.asyncio
    async def test_unparseable_body_returns_empty_feed(self) -> None:
        fetcher = make_fetcher(lambda request: httpx.Response(200, text="this is not a feed <<<"))

        feed = await fetcher.fetch_feed("https://example.com/rss")

        assert feed.items == []

    @pytest.mark.asyncio
    async def test_malformed_url_returns_empty_feed(self) -> None:
        fetcher = make_fetcher(serve({}))

        assert (await fetcher.fetch_feed("http://example.com:abc/feed")).items == []
        assert (await fetcher.fetch_feed("")).items == []


class TestFeedCache:

    def test_ttl_expiry(self) -> None:
        clock = FakeClock()
        cache = FeedCache(ttl_seconds=60, clock=clock)
        feed = ParsedFeed(title="cached")
        cache.put("news", feed)

        clock.now += 59
        assert cache.get("news") == feed

        clock.now += 1
        assert cache.get("news") is None
        assert cache.get_stale("news") == feed

    def test_invalidate(self) -> None:
        cache = FeedCache(ttl_seconds=60, clock=FakeClock())
        cache.put("news", ParsedFeed(title="news"))
        cache.put("world", ParsedFeed(title="world"))

        cache.invalidate("news")
        assert cache.get_stale("news") is None
        assert cache.get("world") is not None

        cache.invalidate()
        assert cache.get_stale("world") is None


class TestFetchCategoryFeed:

    @pytest.mark.asyncio
    async def test_fresh_cache_avoids_network(self) -> None:
        calls: list[str] = []
        clock = FakeClock()
        fetcher = make_fetcher(
            serve({"https://feeds.example.com/news.rss": SAMPLE_RSS}, calls),
            cache=FeedCache(ttl_seconds=300, clock=clock),
        )

        first = await fetcher.fetch_category_feed("news")
        second = await fetcher.fetch_category_feed("news")

        assert len(calls) == 1
        assert second == first

        clock.now += 301
        await fetcher.fetch_category_feed("news")
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_serves_stale_entry_on_failure(self) -> None:
        clock = FakeClock()
        routes = {"https://feeds.example.com/news.rss": SAMPLE_RSS}
        fetcher = make_fetcher(serve(routes), cache=FeedCache(ttl_seconds=300, clock=clock))

        fresh = await fetcher.fetch_category_feed("news")

        routes.clear()
        clock.now += 301
        stale = await fetcher.fetch_category_feed("news")

        assert stale == fresh
        assert len(stale.items) == 2

    @pytest.mark.asyncio
    async def test_failure_without_cache_returns_empty_category_feed(self) -> None:
        fetcher = make_fetcher(lambda request: httpx.Response(503))

        feed = await fetcher.fetch_category_feed("news")

        assert feed.items == []
        assert feed.title == "news"

    @pytest.mark.asyncio
    async def test_unknown_category(self) -> None:
        fetcher = make_fetcher(serve({}))

        with pytest.raises(ValueError, match="Unknown feed category"):
            await fetcher.fetch_category_feed("gardening")

    @pytest.mark.asyncio
    async def test_fetch_multiple_feeds(self) -> None:
        fetcher = make_fetcher(
            serve(
                {
                    "https://feeds.example.com/news.rss": SAMPLE_RSS,
                    "https://feeds.example.com/world.rss": OLDER_RSS,
                }
            ),
            category_feeds={
                "news": "https://feeds.example.com/news.rss",
                "world": "https://feeds.example.com/world.rss",
            },
        )

        feeds = await fetcher.fetch_multiple_feeds(["news", "world"])

        assert set(feeds) == {"news", "world"}
        assert feeds["news"].title == "Example News"
        assert feeds["world"].title == "Other News"


class TestFetchCountryFeeds:

    @pytest.mark.asyncio
    async def test_merges_newest_first(self) -> None:
        fetcher = make_fetcher(
            serve(
                {
                    "https://example.com/rss": SAMPLE_RSS,
                    "https://other.example.com/rss": OLDER_RSS,
                }
            )
        )

        articles = await fetcher.fetch_country_feeds(
            ["https://example.com/rss", "https://other.example.com/rss"]
        )

        assert [a.title for a in articles] == [
            "Newest story",
            "First story",
            "Older story",
            "Second story",
        ]
        assert all(a.source_name == "Example News" for a in articles)

    @pytest.mark.asyncio
    async def test_limit_and_empty(self) -> None:
        fetcher = make_fetcher(serve({"https://other.example.com/rss": OLDER_RSS}))

        assert await fetcher.fetch_country_feeds([]) == []
        limited = await fetcher.fetch_country_feeds(["https://other.example.com/rss"], limit=1)
        assert [a.title for a in limited] == ["Newest story"]

    @pytest.mark.asyncio
    async def test_malformed_url_does_not_abort_the_merge(self) -> None:
        fetcher = make_fetcher(serve({"https://other.example.com/rss": OLDER_RSS}))

        articles = await fetcher.fetch_country_feeds(
            ["http://example.com:abc/feed", "https://other.example.com/rss"]
        )

        assert [a.title for a in articles] == ["Newest story", "Older story"]
