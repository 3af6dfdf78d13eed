"""URL slugs for stored articles."""

import re

from newsweb.services.storage import ArticleStorage

FALLBACK_SLUG = "article"
MAX_SLUG_LENGTH = 100


def generate_slug(title: str) -> str:
    """Lowercase, drop punctuation, hyphenate whitespace, cap at MAX_SLUG_LENGTH."""
    slug = title.lower()
    slug = re.sub(r"[^\w\s-]", "", slug, flags=re.ASCII)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug).strip("-")
    slug = slug[:MAX_SLUG_LENGTH].rstrip("-")
    return slug or FALLBACK_SLUG


async def create_unique_slug(storage: ArticleStorage, title: str) -> str:
    """Slug for ``title``, suffixed -1, -2, ... until no stored article has it."""
    base = generate_slug(title)
    slug = base
    counter = 1

    while await storage.find_article_by_slug(slug):
        slug = f"{base}-{counter}"
        counter += 1

    return slug
