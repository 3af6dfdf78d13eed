"""Feed schemas produced by the fetcher and the content extractor."""

from typing import Any

from pydantic import BaseModel, Field


class FeedItem(BaseModel):
    """A single raw item from a syndication feed.

    Missing optional fields are substituted with empty values rather than
    failing; the media fields keep whatever shape the source used (a single
    mapping or a list of mappings).
    """

    title: str = ""
    link: str = ""
    pub_date: str = ""
    iso_date: str = ""
    description: str = ""
    content: str = ""
    content_encoded: str = ""
    guid: str = ""
    categories: list[str] = Field(default_factory=list)
    media_content: Any = None
    media_thumbnail: Any = None
    enclosure: dict[str, Any] | None = None


class ParsedFeed(BaseModel):
    """A normalized feed: ordered items plus feed-level metadata."""

    items: list[FeedItem] = Field(default_factory=list)
    title: str = ""
    description: str = ""
    link: str = ""

    @classmethod
    def empty(cls, title: str = "News") -> "ParsedFeed":
        """Fallback feed returned when fetching or parsing fails."""
        return cls(items=[], title=title, description="", link="")


class NormalizedArticle(BaseModel):
    """Display-ready view of a feed item."""

    title: str
    link: str
    published: str = ""
    description: str = ""
    image: str | None = None
    category: str
    read_time: str
    source_name: str | None = None
