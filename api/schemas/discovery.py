"""
Pydantic schemas for search and recommendation API endpoints
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from api.core.config import settings
from api.engines.discovery.schemas import (
    PreferenceProfile,
    Recommendation,
    SearchFilters,
    SearchPage,
    SearchResult,
    SearchSuggestion,
)


class SearchRequest(BaseModel):
    """Search request body"""
    filters: SearchFilters = Field(default_factory=SearchFilters)
    page: int = Field(default=1, ge=1)
    page_size: Optional[int] = Field(default=None, ge=1, le=settings.max_page_size)


class SearchResponse(BaseModel):
    """One page of search results for a discovery session"""
    session_id: str
    results: List[SearchResult]
    total_count: int
    page: int
    page_size: int
    has_more: bool
    applied_filters: SearchFilters
    from_cache: bool = False

    @classmethod
    def from_page(cls, session_id: str, page: SearchPage) -> "SearchResponse":
        return cls(session_id=session_id, **page.model_dump())


class SuggestionsResponse(BaseModel):
    query: str
    suggestions: List[SearchSuggestion]


class ClearSearchResponse(BaseModel):
    session_id: str
    status: str = "cleared"


class RecommendationListResponse(BaseModel):
    """Recommendations for the current caller"""
    session_id: str
    recommendations: List[Recommendation]
    total: int
    personalized: bool


class PreferenceProfileResponse(BaseModel):
    user_id: str
    profile: PreferenceProfile
