"""
Preference Profile Builder

Derives a weighted taste profile from browsing and purchase history.
Views weigh by dwell time (time_spent / 30s, clamped to [0.5, 3]); purchases
weigh quantity x 5, so a single purchase always outweighs any single view.
"""
import logging
from collections import Counter
from typing import Iterable, List, Optional, Sequence

from .schemas import HistoryEntry, PreferenceProfile, PriceRange, PurchaseEntry

logger = logging.getLogger(__name__)

VIEW_WEIGHT_SECONDS = 30
MAX_VIEW_WEIGHT = 3.0
MIN_VIEW_WEIGHT = 0.5
PURCHASE_WEIGHT = 5
TOP_ATTRIBUTES = 5
TOP_COLORS = 8
DEFAULT_PRICE_RANGE = PriceRange(min=0, max=10000)


class PreferenceProfileBuilder:
    """Builds PreferenceProfile objects from raw user history"""

    def build(
        self,
        browsing_history: Sequence[HistoryEntry],
        purchase_history: Sequence[PurchaseEntry],
        followed_artists: Optional[Iterable[str]] = None,
    ) -> PreferenceProfile:
        """
        Analyze user behavior to extract preferences

        Args:
            browsing_history: Product views, most recent first
            purchase_history: Paid order lines
            followed_artists: Artist ids the caller already resolved

        Returns:
            PreferenceProfile with ranked attribute preferences and a price band
        """
        category_count: Counter = Counter()
        style_count: Counter = Counter()
        medium_count: Counter = Counter()
        color_count: Counter = Counter()
        price_points: List[float] = []

        def process(entry, weight: float):
            if entry.category:
                category_count[entry.category] += weight
            if entry.style:
                style_count[entry.style] += weight
            if entry.medium:
                medium_count[entry.medium] += weight
            for color in entry.dominant_colors:
                color_count[color] += weight

        for view in browsing_history:
            process(view, self.view_weight(view.time_spent_seconds))
            if view.price:
                price_points.append(view.price)

        for purchase in purchase_history:
            process(purchase, self.purchase_weight(purchase.quantity))

        profile = PreferenceProfile(
            preferred_categories=_top_keys(category_count, TOP_ATTRIBUTES),
            preferred_styles=_top_keys(style_count, TOP_ATTRIBUTES),
            preferred_mediums=_top_keys(medium_count, TOP_ATTRIBUTES),
            preferred_colors=_top_keys(color_count, TOP_COLORS),
            preferred_price_range=self.price_range(price_points),
            followed_artists=list(followed_artists or []),
        )

        logger.debug(
            f"Built preference profile from {len(browsing_history)} views and "
            f"{len(purchase_history)} purchases: categories={profile.preferred_categories}"
        )
        return profile

    @staticmethod
    def view_weight(time_spent_seconds: float) -> float:
        weight = min(time_spent_seconds / VIEW_WEIGHT_SECONDS, MAX_VIEW_WEIGHT)
        return max(weight, MIN_VIEW_WEIGHT)

    @staticmethod
    def purchase_weight(quantity: int) -> float:
        return (quantity or 1) * PURCHASE_WEIGHT

    @staticmethod
    def price_range(price_points: List[float]) -> PriceRange:
        """Interquartile band widened by half the IQR on each side"""
        if not price_points:
            return DEFAULT_PRICE_RANGE

        prices = sorted(price_points)
        q25 = prices[int(len(prices) * 0.25)]
        q75 = prices[int(len(prices) * 0.75)]
        spread = (q75 - q25) * 0.5
        return PriceRange(min=max(0, q25 - spread), max=q75 + spread)


def _top_keys(counts: Counter, limit: int) -> List[str]:
    # sorted() is stable: ties keep first-seen order
    ranked = sorted(counts.items(), key=lambda pair: pair[1], reverse=True)
    return [key for key, _ in ranked[:limit]]
