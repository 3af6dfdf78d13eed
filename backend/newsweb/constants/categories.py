"""Closed set of category slugs the pipeline publishes under."""

# Order matters: the classifier returns the first slug found in a response.
CATEGORY_SLUGS: tuple[str, ...] = (
    "sports",
    "business",
    "technology",
    "entertainment",
    "politics",
    "health",
    "world",
    "news",
)

DEFAULT_CATEGORY_SLUG = "news"

# Label used for normalized feed items without topic tags
DEFAULT_ITEM_CATEGORY = "News"
