"""
Recommendation Strategies

Four independent candidate generators. Every strategy degrades to an empty
list when its data is unavailable or the gateway fails; the blender makes up
the difference from the others.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from api.core.config import settings

from .errors import GatewayError
from .gateway import CatalogGateway, call_with_timeout
from .schemas import (
    Availability,
    CatalogItem,
    PreferenceProfile,
    Recommendation,
    RecommendationStrategyType,
    SearchFilters,
    SortMode,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecommendationContext:
    """Inputs shared by all strategies for one request"""

    user_id: Optional[str] = None
    profile: Optional[PreferenceProfile] = None


@dataclass
class StrategyOutcome:
    """Result of running a strategy; error is set when the gateway failed"""

    recommendations: List[Recommendation]
    error: Optional[Exception] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class RecommendationStrategy:
    """Base class: subclasses implement _generate and may raise freely"""

    strategy_type: RecommendationStrategyType

    def __init__(self, gateway: CatalogGateway, timeout_seconds: Optional[float] = None):
        self.gateway = gateway
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.gateway_timeout_seconds

    @property
    def name(self) -> str:
        return self.strategy_type.value

    async def generate(self, context: RecommendationContext, limit: int) -> List[Recommendation]:
        """Produce up to limit recommendations; never raises"""
        outcome = await self.run(context, limit)
        return outcome.recommendations

    async def run(self, context: RecommendationContext, limit: int) -> StrategyOutcome:
        if limit <= 0:
            return StrategyOutcome([])

        try:
            recommendations = await self._generate(context, limit)
            return StrategyOutcome(recommendations[:limit])
        except GatewayError as e:
            logger.warning(f"Strategy {self.name} unavailable: {e}")
            return StrategyOutcome([], error=e)
        except Exception as e:
            logger.error(f"Error in {self.name} strategy: {e}", exc_info=True)
            return StrategyOutcome([], error=e)

    async def _generate(self, context: RecommendationContext, limit: int) -> List[Recommendation]:
        raise NotImplementedError

    async def _call(self, awaitable, operation: str):
        return await call_with_timeout(awaitable, self.timeout_seconds, operation=f"{self.name}:{operation}")

    def _recommend(self, item: CatalogItem, score: float, reason: str) -> Recommendation:
        return Recommendation(item=item, score=min(max(score, 0.0), 1.0), reason=reason, strategy=self.strategy_type)


class CollaborativeStrategy(RecommendationStrategy):
    """Items liked by users with similar purchase patterns"""

    strategy_type = RecommendationStrategyType.COLLABORATIVE
    default_score = 0.7
    reason = "Users with similar taste also liked this"

    def __init__(self, gateway: CatalogGateway, timeout_seconds: Optional[float] = None, similar_users_limit: Optional[int] = None):
        super().__init__(gateway, timeout_seconds)
        self.similar_users_limit = similar_users_limit or settings.similar_users_limit

    async def _generate(self, context: RecommendationContext, limit: int) -> List[Recommendation]:
        if not context.user_id:
            return []

        similar_users = await self._call(
            self.gateway.find_similar_users(context.user_id, self.similar_users_limit), "find_similar_users"
        )
        if not similar_users:
            return []

        candidates = await self._call(
            self.gateway.get_collaborative_candidates(context.user_id, similar_users, limit),
            "get_collaborative_candidates",
        )

        return [
            self._recommend(candidate.item, candidate.score or self.default_score, self.reason)
            for candidate in candidates
        ]


class ContentBasedStrategy(RecommendationStrategy):
    """Catalog items aligned with the user's preference profile"""

    strategy_type = RecommendationStrategyType.CONTENT
    over_fetch_factor = 2

    async def _generate(self, context: RecommendationContext, limit: int) -> List[Recommendation]:
        profile = context.profile
        if profile is None:
            return []

        filters = self.build_filters(profile)
        items, _ = await self._call(
            self.gateway.query_catalog(filters, 1, limit * self.over_fetch_factor), "query_catalog"
        )

        scored = [self._recommend(item, self.score(item, profile), self.explain(item, profile)) for item in items]
        scored.sort(key=lambda rec: rec.score, reverse=True)
        return scored[:limit]

    @staticmethod
    def build_filters(profile: PreferenceProfile) -> SearchFilters:
        """Empty preference lists leave that dimension unconstrained"""
        return SearchFilters(
            categories=profile.preferred_categories or None,
            styles=profile.preferred_styles or None,
            mediums=profile.preferred_mediums or None,
            artists=profile.followed_artists or None,
            price_range=profile.preferred_price_range,
            availability=Availability.IN_STOCK,
            sort_by=SortMode.NEWEST,
        )

    @staticmethod
    def score(item: CatalogItem, profile: PreferenceProfile) -> float:
        """Preference alignment score"""
        score = 0.5

        if item.category in profile.preferred_categories:
            score += 0.2

        if item.style in profile.preferred_styles:
            score += 0.15

        if item.medium in profile.preferred_mediums:
            score += 0.1

        if item.dominant_colors:
            color_matches = len([c for c in item.dominant_colors if c in profile.preferred_colors])
            score += (color_matches / len(item.dominant_colors)) * 0.1

        if item.artist_id and item.artist_id in profile.followed_artists:
            score += 0.3

        price_range = profile.preferred_price_range
        if item.price >= price_range.min and (price_range.max is None or item.price <= price_range.max):
            score += 0.05

        return min(score, 1.0)

    @staticmethod
    def explain(item: CatalogItem, profile: PreferenceProfile) -> str:
        reasons = []

        if item.category in profile.preferred_categories:
            reasons.append(f"{item.category} artwork")

        if item.style in profile.preferred_styles:
            reasons.append(f"{item.style} style")

        if item.artist_id and item.artist_id in profile.followed_artists:
            reasons.append("from an artist you follow")

        if not reasons:
            return "Matches your preferences"

        return f"Based on your interest in {', '.join(reasons)}"


class TrendingStrategy(RecommendationStrategy):
    """Popular items over the trailing window, falling back to the newest in-stock items"""

    strategy_type = RecommendationStrategyType.TRENDING
    trending_score = 0.6
    fallback_score = 0.5

    def __init__(self, gateway: CatalogGateway, timeout_seconds: Optional[float] = None, window_days: Optional[int] = None):
        super().__init__(gateway, timeout_seconds)
        self.window_days = window_days or settings.trending_window_days

    async def _generate(self, context: RecommendationContext, limit: int) -> List[Recommendation]:
        try:
            items = await self._call(self.gateway.get_trending_items(limit, self.window_days), "get_trending_items")
        except GatewayError as e:
            logger.warning(f"Trending ranking unavailable, falling back to recent items: {e}")
            return await self._recently_added(limit)

        return [self._recommend(item, self.trending_score, "Trending now") for item in items]

    async def _recently_added(self, limit: int) -> List[Recommendation]:
        filters = SearchFilters(availability=Availability.IN_STOCK, sort_by=SortMode.NEWEST)
        items, _ = await self._call(self.gateway.query_catalog(filters, 1, limit), "query_catalog")
        return [self._recommend(item, self.fallback_score, "Recently added") for item in items]


class SimilarToRecentStrategy(RecommendationStrategy):
    """Items resembling what the user viewed most recently"""

    strategy_type = RecommendationStrategyType.SIMILAR
    similar_score = 0.65

    def __init__(self, gateway: CatalogGateway, timeout_seconds: Optional[float] = None, recent_views: Optional[int] = None):
        super().__init__(gateway, timeout_seconds)
        self.recent_views = recent_views or settings.recent_views_limit

    async def _generate(self, context: RecommendationContext, limit: int) -> List[Recommendation]:
        if not context.user_id:
            return []

        recent = await self._call(
            self.gateway.get_browsing_history(context.user_id, self.recent_views), "get_browsing_history"
        )
        if not recent:
            return []

        seed_ids = [entry.item_id for entry in recent[:self.recent_views]]
        items = await self._call(self.gateway.get_similar_items(seed_ids, limit), "get_similar_items")

        return [self._recommend(item, self.similar_score, "Similar to items you viewed") for item in items]
