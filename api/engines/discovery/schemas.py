"""
Pydantic schemas for the Discovery Engine
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class SortMode(str, Enum):
    """Ordering applied to catalog queries"""

    RELEVANCE = "relevance"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    NEWEST = "date_newest"
    OLDEST = "date_oldest"
    POPULARITY = "popularity"


class Availability(str, Enum):
    IN_STOCK = "in_stock"
    ALL = "all"


class DimensionOperator(str, Enum):
    EXACT = "exact"
    MIN = "min"
    MAX = "max"


class RecommendationStrategyType(str, Enum):
    COLLABORATIVE = "collaborative"
    CONTENT = "content"
    TRENDING = "trending"
    SIMILAR = "similar"
    PERSONALIZED = "personalized"


class SuggestionType(str, Enum):
    CATEGORY = "category"
    ARTIST = "artist"
    STYLE = "style"
    MEDIUM = "medium"
    TAG = "tag"


# ==================== Catalog ====================


class CatalogItem(BaseModel):
    """Read-only projection of an artwork returned by the gateway"""

    id: str
    title: str
    description: Optional[str] = None
    price: float = Field(ge=0)
    currency: str = "USD"
    category: Optional[str] = None
    style: Optional[str] = None
    medium: Optional[str] = None
    dominant_colors: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    artist_id: Optional[str] = None
    artist_name: str = "Unknown Artist"
    year_created: Optional[int] = None
    width: Optional[float] = Field(default=None, description="Width in inches")
    height: Optional[float] = Field(default=None, description="Height in inches")
    image_url: Optional[str] = None
    stock_quantity: int = 0
    created_at: datetime

    class Config:
        frozen = True
        from_attributes = True


class ArtistSummary(BaseModel):
    id: str
    full_name: str

    class Config:
        frozen = True


class CollaborativeCandidate(BaseModel):
    """Item produced by the collaborative backend, optionally with its own score"""

    item: CatalogItem
    score: Optional[float] = Field(default=None, ge=0.0, le=1.0)

    class Config:
        frozen = True


# ==================== Search filters ====================


class PriceRange(BaseModel):
    """Price bounds; max of None means unbounded"""

    min: float = Field(default=0, ge=0)
    max: Optional[float] = None

    class Config:
        frozen = True


class YearRange(BaseModel):
    min: Optional[int] = None
    max: Optional[int] = None

    class Config:
        frozen = True


class DimensionFilter(BaseModel):
    """Constraint on artwork width in inches"""

    value: float = Field(gt=0)
    operator: DimensionOperator = DimensionOperator.EXACT

    class Config:
        frozen = True


class QueryHints(BaseModel):
    """Structured filters inferred from free text. Every field is optional."""

    price_range: Optional[PriceRange] = None
    colors: Optional[List[str]] = None
    styles: Optional[List[str]] = None
    mediums: Optional[List[str]] = None
    categories: Optional[List[str]] = None
    year_range: Optional[YearRange] = None
    dimensions: Optional[DimensionFilter] = None

    class Config:
        frozen = True

    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in type(self).model_fields)


class SearchFilters(BaseModel):
    """Request-scoped search filters. Never mutated; derive copies instead."""

    query: Optional[str] = None
    categories: Optional[List[str]] = None
    styles: Optional[List[str]] = None
    mediums: Optional[List[str]] = None
    artists: Optional[List[str]] = None
    colors: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    price_range: Optional[PriceRange] = None
    year_range: Optional[YearRange] = None
    dimensions: Optional[DimensionFilter] = None
    sort_by: SortMode = SortMode.RELEVANCE
    availability: Availability = Availability.ALL

    class Config:
        frozen = True

    @property
    def text(self) -> Optional[str]:
        """Stripped free-text query, or None when blank"""
        if self.query and self.query.strip():
            return self.query.strip()
        return None

    def merged_with(self, hints: QueryHints) -> "SearchFilters":
        """Return a copy with every hint that is present overriding this filter's value"""
        update = {name: getattr(hints, name) for name in type(hints).model_fields if getattr(hints, name) is not None}
        if not update:
            return self
        return self.model_copy(update=update)


# ==================== Search results ====================


class SearchResult(BaseModel):
    """Catalog item annotated by the relevance scorer"""

    item: CatalogItem
    relevance_score: float = Field(ge=0.0, le=1.0)
    match_reasons: List[str] = Field(default_factory=list)

    class Config:
        frozen = True


class SearchPage(BaseModel):
    """One page of search results"""

    results: List[SearchResult]
    total_count: int = Field(ge=0)
    page: int = Field(ge=1)
    page_size: int = Field(ge=1)
    has_more: bool
    applied_filters: SearchFilters
    from_cache: bool = False


class SearchSuggestion(BaseModel):
    type: SuggestionType
    value: str
    label: str

    class Config:
        frozen = True


# ==================== Personalization ====================


class HistoryEntry(BaseModel):
    """A single product view with the viewed product's attributes"""

    item_id: str
    time_spent_seconds: float = Field(default=0, ge=0)
    viewed_at: Optional[datetime] = None
    category: Optional[str] = None
    style: Optional[str] = None
    medium: Optional[str] = None
    price: Optional[float] = None
    dominant_colors: List[str] = Field(default_factory=list)
    artist_id: Optional[str] = None

    class Config:
        frozen = True


class PurchaseEntry(BaseModel):
    """A paid order line with the purchased product's attributes"""

    item_id: str
    quantity: int = Field(default=1, ge=0)
    price: Optional[float] = None
    category: Optional[str] = None
    style: Optional[str] = None
    medium: Optional[str] = None
    dominant_colors: List[str] = Field(default_factory=list)
    artist_id: Optional[str] = None

    class Config:
        frozen = True


class PreferenceProfile(BaseModel):
    """Weighted taste summary derived from a user's history"""

    preferred_categories: List[str] = Field(default_factory=list)
    preferred_styles: List[str] = Field(default_factory=list)
    preferred_mediums: List[str] = Field(default_factory=list)
    preferred_colors: List[str] = Field(default_factory=list)
    preferred_price_range: PriceRange = Field(default_factory=lambda: PriceRange(min=0, max=10000))
    followed_artists: List[str] = Field(default_factory=list)

    class Config:
        frozen = True


class Recommendation(BaseModel):
    """A scored candidate produced by one strategy"""

    item: CatalogItem
    score: float = Field(ge=0.0, le=1.0)
    reason: str
    strategy: RecommendationStrategyType

    class Config:
        frozen = True
