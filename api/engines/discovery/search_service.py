"""
Search Service for Catalog Discovery

Handles free-text interpretation, catalog querying, relevance annotation,
result caching and search suggestions.
"""
import logging
from typing import List, Optional

from api.core.config import settings

from .cache import SearchSessionCache
from .errors import GatewayError, SearchUnavailableError
from .gateway import CatalogGateway, call_with_timeout
from .query_interpreter import QueryInterpreter
from .relevance_scorer import RelevanceScorer
from .schemas import SearchFilters, SearchPage, SearchResult, SearchSuggestion, SortMode, SuggestionType

logger = logging.getLogger(__name__)

MIN_SUGGESTION_LENGTH = 2
MAX_SUGGESTIONS = 10
MAX_ARTIST_SUGGESTIONS = 5
MAX_TAG_SUGGESTIONS = 5
FACET_SAMPLE_SIZE = 10


class SearchService:
    """Service for catalog search and discovery"""

    def __init__(
        self,
        gateway: CatalogGateway,
        interpreter: Optional[QueryInterpreter] = None,
        scorer: Optional[RelevanceScorer] = None,
        cache: Optional[SearchSessionCache] = None,
        timeout_seconds: Optional[float] = None
    ):
        self.gateway = gateway
        self.interpreter = interpreter or QueryInterpreter()
        self.scorer = scorer or RelevanceScorer()
        self.cache = cache if cache is not None else SearchSessionCache()
        self.timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.gateway_timeout_seconds
        logger.info("SearchService initialized")

    def effective_filters(self, filters: SearchFilters) -> SearchFilters:
        """Merge hints parsed from the free-text query into the explicit filters"""
        if not filters.text:
            return filters
        return filters.merged_with(self.interpreter.interpret(filters.text))

    async def search(self, filters: SearchFilters, page: int = 1, page_size: Optional[int] = None) -> SearchPage:
        """
        Search the catalog

        Args:
            filters: Explicit filters, optionally with free text
            page: 1-based page number
            page_size: Results per page

        Returns:
            SearchPage with relevance-annotated results

        Raises:
            SearchUnavailableError: if the catalog cannot be queried
        """
        page_size = page_size or settings.default_page_size
        cache_key = self.cache.make_key(filters, page, page_size)
        effective = self.effective_filters(filters)

        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Search cache hit for page {page}")
            return self._page(cached.results, cached.total_count, effective, page, page_size, from_cache=True)
        logger.debug(f"Search cache miss for page {page}")

        try:
            items, total_count = await call_with_timeout(
                self.gateway.query_catalog(effective, page, page_size),
                self.timeout_seconds,
                operation="query_catalog",
            )
        except GatewayError as e:
            logger.error(f"Search error: {e}")
            raise SearchUnavailableError() from e

        results = [
            SearchResult(
                item=item,
                relevance_score=self.scorer.score(item, effective),
                match_reasons=self.scorer.reasons(item, effective),
            )
            for item in items
        ]

        if effective.sort_by == SortMode.RELEVANCE and effective.text:
            results.sort(key=lambda result: result.relevance_score, reverse=True)

        self.cache.put(cache_key, results, total_count)
        logger.info(f"Search '{effective.text or 'filtered_search'}' page {page}: {len(results)} of {total_count} results")

        return self._page(results, total_count, effective, page, page_size)

    def _page(
        self,
        results: List[SearchResult],
        total_count: Optional[int],
        effective: SearchFilters,
        page: int,
        page_size: int,
        from_cache: bool = False
    ) -> SearchPage:
        return SearchPage(
            results=results,
            total_count=total_count if total_count is not None else len(results),
            page=page,
            page_size=page_size,
            has_more=len(results) == page_size,
            applied_filters=effective,
            from_cache=from_cache,
        )

    async def get_suggestions(self, text: str) -> List[SearchSuggestion]:
        """
        Get search suggestions based on partial input

        Artists first, then matching categories, styles, mediums and tags.
        """
        if not text or len(text) < MIN_SUGGESTION_LENGTH:
            return []

        needle = text.lower()

        try:
            artists = await call_with_timeout(
                self.gateway.find_artists(text, MAX_ARTIST_SUGGESTIONS), self.timeout_seconds, operation="find_artists"
            )
            items = await call_with_timeout(
                self.gateway.find_items_by_facet(text, FACET_SAMPLE_SIZE), self.timeout_seconds, operation="find_items_by_facet"
            )
        except GatewayError as e:
            logger.error(f"Error getting suggestions: {e}")
            return []

        suggestions = [
            SearchSuggestion(type=SuggestionType.ARTIST, value=artist.id, label=artist.full_name)
            for artist in artists
        ]

        categories = _distinct(item.category for item in items if item.category and needle in item.category.lower())
        styles = _distinct(item.style for item in items if item.style and needle in item.style.lower())
        mediums = _distinct(item.medium for item in items if item.medium and needle in item.medium.lower())
        tags = _distinct(tag for item in items for tag in item.tags if needle in tag.lower())

        suggestions.extend(SearchSuggestion(type=SuggestionType.CATEGORY, value=v, label=v) for v in categories)
        suggestions.extend(SearchSuggestion(type=SuggestionType.STYLE, value=v, label=v) for v in styles)
        suggestions.extend(SearchSuggestion(type=SuggestionType.MEDIUM, value=v, label=v) for v in mediums)
        suggestions.extend(SearchSuggestion(type=SuggestionType.TAG, value=v, label=v) for v in tags[:MAX_TAG_SUGGESTIONS])

        return suggestions[:MAX_SUGGESTIONS]

    def clear_cache(self):
        self.cache.clear()


def _distinct(values) -> List[str]:
    return list(dict.fromkeys(values))
