"""
Recommendation Engine Core

Main orchestration class for personalized recommendations: loads the user's
preference profile, fans out to the strategies concurrently and blends the
results.
"""
import asyncio
import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

from api.core.config import settings

from .blender import ResultBlender
from .errors import GatewayError, RecommendationsUnavailableError
from .gateway import CatalogGateway, call_with_timeout
from .preference_builder import PreferenceProfileBuilder
from .schemas import PreferenceProfile, Recommendation, RecommendationStrategyType
from .strategies import (
    CollaborativeStrategy,
    ContentBasedStrategy,
    RecommendationContext,
    RecommendationStrategy,
    SimilarToRecentStrategy,
    StrategyOutcome,
    TrendingStrategy,
)

logger = logging.getLogger(__name__)

# Share of the requested limit asked from each strategy
STRATEGY_WEIGHTS: Dict[RecommendationStrategyType, float] = {
    RecommendationStrategyType.COLLABORATIVE: 0.4,
    RecommendationStrategyType.CONTENT: 0.3,
    RecommendationStrategyType.TRENDING: 0.2,
    RecommendationStrategyType.SIMILAR: 0.1,
}


class RecommendationEngine:
    """
    Main Recommendation Engine

    Orchestrates profile building, the four candidate strategies and the
    blender to generate personalized recommendations.
    """

    def __init__(
        self,
        gateway: CatalogGateway,
        builder: Optional[PreferenceProfileBuilder] = None,
        strategies: Optional[Sequence[RecommendationStrategy]] = None,
        blender: Optional[ResultBlender] = None,
        timeout_seconds: Optional[float] = None
    ):
        self.gateway = gateway
        self.builder = builder or PreferenceProfileBuilder()
        self.blender = blender or ResultBlender()
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.gateway_timeout_seconds

        if strategies is None:
            strategies = [
                CollaborativeStrategy(gateway, self.timeout_seconds),
                ContentBasedStrategy(gateway, self.timeout_seconds),
                TrendingStrategy(gateway, self.timeout_seconds),
                SimilarToRecentStrategy(gateway, self.timeout_seconds),
            ]
        self.strategies: Dict[RecommendationStrategyType, RecommendationStrategy] = {
            strategy.strategy_type: strategy for strategy in strategies
        }

        logger.info(f"RecommendationEngine initialized with strategies: {[s.value for s in self.strategies]}")

    async def load_user_preferences(self, user_id: str) -> Optional[PreferenceProfile]:
        """
        Load user preferences from browsing history, purchases and follows

        Returns:
            PreferenceProfile, or None when the history cannot be loaded
        """
        try:
            browsing, purchases, followed = await asyncio.gather(
                self._call(self.gateway.get_browsing_history(user_id, settings.browsing_history_limit), "get_browsing_history"),
                self._call(self.gateway.get_purchase_history(user_id), "get_purchase_history"),
                self._call(self.gateway.get_followed_artists(user_id), "get_followed_artists"),
            )
        except GatewayError as e:
            logger.error(f"Error loading user preferences for {user_id}: {e}")
            return None

        return self.builder.build(browsing, purchases, followed_artists=followed)

    async def get_personalized_recommendations(
        self,
        user_id: Optional[str] = None,
        limit: Optional[int] = None,
        profile: Optional[PreferenceProfile] = None
    ) -> List[Recommendation]:
        """
        Get personalized recommendations

        Args:
            user_id: Authenticated user, or None for anonymous callers
            limit: Maximum number of recommendations
            profile: Pre-built preference profile; loaded when omitted

        Returns:
            Blended recommendations, best first

        Raises:
            RecommendationsUnavailableError: if every strategy failed on the gateway
        """
        limit = limit or settings.recommendation_default_limit

        if not user_id:
            logger.info("Anonymous recommendation request, serving trending")
            return await self.get_trending_recommendations(limit)

        if profile is None:
            profile = await self.load_user_preferences(user_id)
        if profile is None:
            logger.info(f"No preference profile for {user_id}, serving trending")
            return await self.get_trending_recommendations(limit)

        context = RecommendationContext(user_id=user_id, profile=profile)
        outcomes = await self._fan_out(context, limit)

        if outcomes and all(outcome.failed for _, outcome in outcomes):
            logger.error(f"All recommendation strategies failed for {user_id}")
            raise RecommendationsUnavailableError()

        blended = self.blender.blend([outcome.recommendations for _, outcome in outcomes], limit)
        logger.info(
            f"Personalized recommendations for {user_id}: "
            + ", ".join(f"{strategy.value}={len(outcome.recommendations)}" for strategy, outcome in outcomes)
            + f" -> {len(blended)}"
        )
        return blended

    async def get_trending_recommendations(self, limit: int) -> List[Recommendation]:
        """Trending items, or the newest items when trending is unavailable"""
        strategy = self.strategies.get(RecommendationStrategyType.TRENDING)
        if strategy is None:
            return []

        outcome = await strategy.run(RecommendationContext(), limit)
        if outcome.failed:
            logger.error(f"Trending recommendations unavailable: {outcome.error}")
            raise RecommendationsUnavailableError()
        return outcome.recommendations

    @staticmethod
    def target_counts(limit: int) -> Dict[RecommendationStrategyType, int]:
        """Number of candidates requested from each strategy"""
        return {strategy: math.ceil(limit * weight) for strategy, weight in STRATEGY_WEIGHTS.items()}

    async def _fan_out(
        self,
        context: RecommendationContext,
        limit: int
    ) -> List[Tuple[RecommendationStrategyType, StrategyOutcome]]:
        targets = self.target_counts(limit)
        selected = [(strategy_type, strategy) for strategy_type, strategy in self.strategies.items()]

        results = await asyncio.gather(
            *(strategy.run(context, targets.get(strategy_type, limit)) for strategy_type, strategy in selected),
            return_exceptions=True,
        )

        outcomes = []
        for (strategy_type, _), result in zip(selected, results):
            if isinstance(result, BaseException):
                logger.error(f"Strategy {strategy_type.value} crashed: {result}")
                result = StrategyOutcome([], error=result)
            outcomes.append((strategy_type, result))
        return outcomes

    async def _call(self, awaitable, operation: str):
        return await call_with_timeout(awaitable, self.timeout_seconds, operation=operation)
