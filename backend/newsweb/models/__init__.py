"""Models package - SQLModel database models."""

from newsweb.models.article import Article
from newsweb.models.category import Category
from newsweb.models.source import NewsSource
from newsweb.models.user import User

__all__ = ["Article", "Category", "NewsSource", "User"]
