"""Country-tier weighting of per-source article limits.

This is run configuration layered on top of the orchestrator: it only sets
``article_limit`` on the descriptors handed to ``process_sources``.
"""

import math
from itertools import groupby

from newsweb.constants.feeds import TIER_1_COUNTRIES, TIER_2_COUNTRIES, TIER_ARTICLE_LIMITS
from newsweb.schemas.source import SourceDescriptor


def country_tier(country: str) -> int:
    """Tier of a country code: 1, 2, or 3 for everything else."""
    if country in TIER_1_COUNTRIES:
        return 1
    if country in TIER_2_COUNTRIES:
        return 2
    return 3


def apply_tier_limits(sources: list[SourceDescriptor]) -> list[SourceDescriptor]:
    """
    Spread each country's tier budget across its active sources.

    Inactive sources are dropped. The result is ordered by country, then
    category, and each descriptor gets ceil(budget / sources in country).
    """
    active = sorted(
        (s for s in sources if s.active),
        key=lambda s: (s.country, s.category),
    )

    planned: list[SourceDescriptor] = []
    for country, group in groupby(active, key=lambda s: s.country):
        country_sources = list(group)
        budget = TIER_ARTICLE_LIMITS[country_tier(country)]
        per_source = math.ceil(budget / len(country_sources))
        planned.extend(s.model_copy(update={"article_limit": per_source}) for s in country_sources)

    return planned
