"""
Relevance Scorer

Assigns a 0-1 relevance score to a catalog item for a set of search filters
and explains the match in human-readable reasons.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from .schemas import CatalogItem, SearchFilters

logger = logging.getLogger(__name__)

BASE_SCORE = 0.5
EXACT_TITLE_BONUS = 1.0
TITLE_BONUS = 0.7
DESCRIPTION_BONUS = 0.3
TAG_BONUS = 0.4
CATEGORY_BONUS = 0.2
STYLE_BONUS = 0.2
RECENCY_BONUS = 0.1
RECENCY_WINDOW = timedelta(days=30)


class RelevanceScorer:
    """Scores search candidates against query text and structured filters"""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def score(self, item: CatalogItem, filters: SearchFilters, now: Optional[datetime] = None) -> float:
        """
        Calculate relevance score for a search result

        Args:
            item: Candidate catalog item
            filters: Effective search filters
            now: Reference time for the recency bonus (defaults to the clock)

        Returns:
            Score clamped to [0, 1]
        """
        score = BASE_SCORE

        query = _lower_query(filters)
        if query:
            title = (item.title or "").lower()
            if title == query:
                score += EXACT_TITLE_BONUS
            elif query in title:
                score += TITLE_BONUS

            if query in (item.description or "").lower():
                score += DESCRIPTION_BONUS

            if _tag_matches(item, query):
                score += TAG_BONUS

        if filters.categories and item.category in filters.categories:
            score += CATEGORY_BONUS

        if filters.styles and item.style in filters.styles:
            score += STYLE_BONUS

        if self._is_recent(item, now):
            score += RECENCY_BONUS

        return min(score, 1.0)

    def reasons(self, item: CatalogItem, filters: SearchFilters) -> List[str]:
        """Explain why an item was returned, in title/description/tag/category/style/color order"""
        reasons = []

        query = _lower_query(filters)
        if query:
            if query in (item.title or "").lower():
                reasons.append("Title match")
            if query in (item.description or "").lower():
                reasons.append("Description match")
            if _tag_matches(item, query):
                reasons.append("Tag match")

        if filters.categories and item.category in filters.categories:
            reasons.append(f"{item.category} category")

        if filters.styles and item.style in filters.styles:
            reasons.append(f"{item.style} style")

        if filters.colors and item.dominant_colors:
            matched_colors = [color for color in item.dominant_colors if color in filters.colors]
            if matched_colors:
                reasons.append(f"Contains {', '.join(matched_colors)} colors")

        return reasons

    def _is_recent(self, item: CatalogItem, now: Optional[datetime]) -> bool:
        reference = _as_utc(now or self.clock())
        return reference - _as_utc(item.created_at) < RECENCY_WINDOW


def _lower_query(filters: SearchFilters) -> Optional[str]:
    text = filters.text
    return text.lower() if text else None


def _tag_matches(item: CatalogItem, query: str) -> bool:
    return any(query in tag.lower() for tag in item.tags)


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps from the store are UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
