"""
Discovery sessions

Per-caller search and recommendation state. A newer request from the same
session supersedes any still in flight: the older response is discarded
instead of overwriting newer state.
"""
import logging
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from api.core.config import settings

from .core import RecommendationEngine
from .errors import DiscoveryError
from .schemas import PreferenceProfile, Recommendation, SearchFilters, SearchPage, SearchResult
from .search_service import SearchService

logger = logging.getLogger(__name__)


class RequestGeneration:
    """Monotonic counter identifying the latest request of one kind"""

    def __init__(self):
        self._current = 0

    def next(self) -> int:
        self._current += 1
        return self._current

    def is_current(self, token: int) -> bool:
        return token == self._current


class DiscoverySession:
    """Search and recommendation state for one caller"""

    def __init__(
        self,
        session_id: str,
        search_service: SearchService,
        engine: RecommendationEngine,
        user_id: Optional[str] = None
    ):
        self.session_id = session_id
        self.search_service = search_service
        self.engine = engine
        self.user_id = user_id

        self.results: List[SearchResult] = []
        self.total_results = 0
        self.current_page = 1
        self.has_more = False
        self.last_filters: Optional[SearchFilters] = None
        self.last_page_size: int = settings.default_page_size
        self.error: Optional[str] = None

        self.recommendations: List[Recommendation] = []
        self.user_preferences: Optional[PreferenceProfile] = None

        self.last_updated = datetime.now()
        self._search_generation = RequestGeneration()
        self._recommendation_generation = RequestGeneration()

    async def search(
        self,
        filters: SearchFilters,
        page: int = 1,
        page_size: Optional[int] = None
    ) -> Optional[SearchPage]:
        """
        Run a search and update session state

        Returns:
            The SearchPage, or None if a newer search superseded this one

        Raises:
            SearchUnavailableError: if this (still current) search failed
        """
        token = self._search_generation.next()
        page_size = page_size or settings.default_page_size
        self.error = None
        self.last_updated = datetime.now()

        try:
            result = await self.search_service.search(filters, page, page_size)
        except DiscoveryError as e:
            if not self._search_generation.is_current(token):
                logger.debug(f"[{self.session_id}] Discarding failure of superseded search: {e}")
                return None
            self.error = str(e)
            raise

        if not self._search_generation.is_current(token):
            logger.debug(f"[{self.session_id}] Discarding superseded search response for page {page}")
            return None

        self.results = list(result.results) if page == 1 else self.results + list(result.results)
        self.total_results = result.total_count
        self.current_page = page
        self.has_more = result.has_more
        self.last_filters = filters
        self.last_page_size = page_size
        return result

    async def load_more(self) -> Optional[SearchPage]:
        """Fetch the next page of the last search"""
        if not self.has_more or self.last_filters is None:
            return None
        return await self.search(self.last_filters, self.current_page + 1, self.last_page_size)

    async def recommend(self, limit: Optional[int] = None) -> Optional[List[Recommendation]]:
        """
        Refresh personalized recommendations

        Returns:
            The recommendations, or None if a newer request superseded this one
        """
        token = self._recommendation_generation.next()
        self.last_updated = datetime.now()

        try:
            recommendations = await self.engine.get_personalized_recommendations(self.user_id, limit)
        except DiscoveryError as e:
            if not self._recommendation_generation.is_current(token):
                return None
            self.error = str(e)
            raise

        if not self._recommendation_generation.is_current(token):
            logger.debug(f"[{self.session_id}] Discarding superseded recommendations")
            return None

        self.recommendations = recommendations
        return recommendations

    async def refresh_preferences(self) -> Optional[PreferenceProfile]:
        if not self.user_id:
            return None
        self.user_preferences = await self.engine.load_user_preferences(self.user_id)
        return self.user_preferences

    def clear(self):
        """Clear search results and the search cache"""
        self._search_generation.next()
        self.results = []
        self.total_results = 0
        self.current_page = 1
        self.has_more = False
        self.last_filters = None
        self.error = None
        self.search_service.clear_cache()


class DiscoverySessionManager:
    """Manages discovery sessions, dropping idle ones"""

    def __init__(self, search_service: SearchService, engine: RecommendationEngine, session_ttl_hours: Optional[int] = None):
        self.search_service = search_service
        self.engine = engine
        self.session_ttl = timedelta(hours=session_ttl_hours or settings.session_ttl_hours)
        self.sessions: Dict[str, DiscoverySession] = {}

        logger.info(f"Discovery session manager initialized - TTL: {self.session_ttl}")

    def get_or_create_session(self, session_id: str, user_id: Optional[str] = None) -> DiscoverySession:
        """Get existing session or create new one"""
        session = self.sessions.get(session_id)
        if session is not None:
            if datetime.now() - session.last_updated > self.session_ttl:
                logger.info(f"Session expired: {session_id}, creating new one")
                del self.sessions[session_id]
            elif session.user_id == user_id:
                return session
            else:
                logger.info(f"Identity changed for session {session_id}, creating new one")

        session = DiscoverySession(session_id, self.search_service, self.engine, user_id=user_id)
        self.sessions[session_id] = session
        self._drop_expired()
        logger.info(f"Created discovery session {session_id}")
        return session

    def _drop_expired(self):
        now = datetime.now()
        expired = [sid for sid, s in self.sessions.items() if now - s.last_updated > self.session_ttl]
        for sid in expired:
            del self.sessions[sid]
