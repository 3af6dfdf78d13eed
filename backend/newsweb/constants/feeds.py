"""Default feed locations and country tiers shared across the application."""

# Category-keyed feeds served through the cached fetcher
DEFAULT_CATEGORY_FEEDS: dict[str, str] = {
    "homepage": "https://www.thehindu.com/feeder/default.rss",
    "news": "https://www.thehindu.com/news/feeder/default.rss",
    "world": "https://www.thehindu.com/news/international/feeder/default.rss",
    "business": "https://www.thehindu.com/business/feeder/default.rss",
    "sports": "https://www.thehindu.com/sport/feeder/default.rss",
    "technology": "https://www.thehindu.com/sci-tech/technology/feeder/default.rss",
    "entertainment": "https://www.thehindu.com/entertainment/feeder/default.rss",
    "politics": "https://www.thehindu.com/news/national/feeder/default.rss",
}

# Article budget per country, spread across that country's sources
TIER_1_COUNTRIES: frozenset[str] = frozenset({"UNITED_STATES", "UNITED_KINGDOM", "INDIA"})
TIER_2_COUNTRIES: frozenset[str] = frozenset(
    {"CANADA", "AUSTRALIA", "GERMANY", "FRANCE", "JAPAN", "SINGAPORE"}
)

TIER_ARTICLE_LIMITS: dict[int, int] = {1: 15, 2: 10, 3: 5}
