"""
Discovery Engine

Handles catalog search, natural-language query interpretation and
personalized recommendations.
"""

from .blender import ResultBlender
from .cache import SearchSessionCache
from .core import RecommendationEngine
from .errors import (
    DiscoveryError,
    GatewayError,
    GatewayTimeoutError,
    RecommendationsUnavailableError,
    SearchUnavailableError,
)
from .gateway import CatalogGateway
from .preference_builder import PreferenceProfileBuilder
from .query_interpreter import QueryInterpreter
from .relevance_scorer import RelevanceScorer
from .schemas import (
    CatalogItem,
    PreferenceProfile,
    QueryHints,
    Recommendation,
    SearchFilters,
    SearchPage,
    SearchResult,
    SearchSuggestion,
)
from .search_service import SearchService
from .session import DiscoverySession, DiscoverySessionManager
from .sql_gateway import SQLCatalogGateway

__all__ = [
    "CatalogGateway",
    "SQLCatalogGateway",
    "QueryInterpreter",
    "RelevanceScorer",
    "PreferenceProfileBuilder",
    "ResultBlender",
    "SearchSessionCache",
    "SearchService",
    "RecommendationEngine",
    "DiscoverySession",
    "DiscoverySessionManager",
    "CatalogItem",
    "PreferenceProfile",
    "QueryHints",
    "Recommendation",
    "SearchFilters",
    "SearchPage",
    "SearchResult",
    "SearchSuggestion",
    "DiscoveryError",
    "GatewayError",
    "GatewayTimeoutError",
    "SearchUnavailableError",
    "RecommendationsUnavailableError",
]
