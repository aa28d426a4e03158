"""
Shared pytest fixtures and configuration for all tests
"""
import asyncio
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

# Add the parent directory to the path so we can import from api
sys.path.insert(0, str(Path(__file__).parent.parent))

# Import after path is set
from api.engines.discovery.errors import GatewayError
from api.engines.discovery.gateway import CatalogGateway
from api.engines.discovery.schemas import (
    ArtistSummary,
    Availability,
    CatalogItem,
    CollaborativeCandidate,
    HistoryEntry,
    PurchaseEntry,
    SearchFilters,
    SortMode,
)

FIXED_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
OLD_DATE = datetime(2023, 1, 1, tzinfo=timezone.utc)


def build_item(item_id: str, **overrides) -> CatalogItem:
    """Catalog item with sensible defaults; created well outside the recency window"""
    data = {
        "id": item_id,
        "title": f"Artwork {item_id}",
        "description": None,
        "price": 100.0,
        "category": "painting",
        "style": "abstract",
        "medium": "acrylic",
        "artist_id": f"artist-{item_id}",
        "stock_quantity": 1,
        "created_at": OLD_DATE,
    }
    data.update(overrides)
    return CatalogItem(**data)


class FakeCatalogGateway(CatalogGateway):
    """
    In-memory gateway. Tests populate the public attributes; operations
    listed in `failures` raise GatewayError and `delays` (seconds, keyed by
    operation or by query text) slow calls down.
    """

    def __init__(self):
        self.items: List[CatalogItem] = []
        self.similar_users: Dict[str, List[str]] = {}
        self.collaborative: Dict[str, List[CollaborativeCandidate]] = {}
        self.trending: List[CatalogItem] = []
        self.similar: List[CatalogItem] = []
        self.browsing: Dict[str, List[HistoryEntry]] = {}
        self.purchases: Dict[str, List[PurchaseEntry]] = {}
        self.follows: Dict[str, List[str]] = {}
        self.artists: List[ArtistSummary] = []
        self.failures = set()
        self.delays: Dict[str, float] = {}
        self.calls: List[Tuple[str, tuple]] = []

    async def _enter(self, operation: str, *args, delay_key: Optional[str] = None):
        self.calls.append((operation, args))
        delay = self.delays.get(delay_key or operation) or self.delays.get(operation)
        if delay:
            await asyncio.sleep(delay)
        if operation in self.failures:
            raise GatewayError(f"{operation} failed")

    def calls_to(self, operation: str) -> List[tuple]:
        return [args for name, args in self.calls if name == operation]

    async def query_catalog(self, filters: SearchFilters, page: int, page_size: int) -> Tuple[List[CatalogItem], int]:
        await self._enter("query_catalog", filters, page, page_size, delay_key=filters.text)

        matches = [item for item in self.items if self._matches(item, filters)]
        if filters.sort_by == SortMode.PRICE_ASC:
            matches.sort(key=lambda item: item.price)
        elif filters.sort_by == SortMode.PRICE_DESC:
            matches.sort(key=lambda item: item.price, reverse=True)
        elif filters.sort_by == SortMode.OLDEST:
            matches.sort(key=lambda item: item.created_at)
        elif filters.sort_by in (SortMode.NEWEST, SortMode.RELEVANCE):
            matches.sort(key=lambda item: item.created_at, reverse=True)

        start = (page - 1) * page_size
        return matches[start:start + page_size], len(matches)

    @staticmethod
    def _matches(item: CatalogItem, filters: SearchFilters) -> bool:
        text = filters.text
        if text:
            needle = text.lower()
            haystack = [item.title.lower(), (item.description or "").lower()]
            if not any(needle in value for value in haystack) and needle not in [t.lower() for t in item.tags]:
                return False
        if filters.categories and item.category not in filters.categories:
            return False
        if filters.styles and item.style not in filters.styles:
            return False
        if filters.mediums and item.medium not in filters.mediums:
            return False
        if filters.artists and item.artist_id not in filters.artists:
            return False
        if filters.price_range:
            if item.price < filters.price_range.min:
                return False
            if filters.price_range.max is not None and item.price > filters.price_range.max:
                return False
        if filters.availability == Availability.IN_STOCK and item.stock_quantity <= 0:
            return False
        return True

    async def find_similar_users(self, user_id: str, limit: int) -> List[str]:
        await self._enter("find_similar_users", user_id, limit)
        return self.similar_users.get(user_id, [])[:limit]

    async def get_collaborative_candidates(
        self, user_id: str, similar_user_ids: Sequence[str], limit: int
    ) -> List[CollaborativeCandidate]:
        await self._enter("get_collaborative_candidates", user_id, tuple(similar_user_ids), limit)
        return self.collaborative.get(user_id, [])[:limit]

    async def get_trending_items(self, limit: int, window_days: int) -> List[CatalogItem]:
        await self._enter("get_trending_items", limit, window_days)
        return self.trending[:limit]

    async def get_similar_items(self, seed_item_ids: Sequence[str], limit: int) -> List[CatalogItem]:
        await self._enter("get_similar_items", tuple(seed_item_ids), limit)
        return [item for item in self.similar if item.id not in seed_item_ids][:limit]

    async def get_browsing_history(self, user_id: str, limit: int) -> List[HistoryEntry]:
        await self._enter("get_browsing_history", user_id, limit)
        return self.browsing.get(user_id, [])[:limit]

    async def get_purchase_history(self, user_id: str) -> List[PurchaseEntry]:
        await self._enter("get_purchase_history", user_id)
        return self.purchases.get(user_id, [])

    async def get_followed_artists(self, user_id: str) -> List[str]:
        await self._enter("get_followed_artists", user_id)
        return self.follows.get(user_id, [])

    async def find_artists(self, name_query: str, limit: int) -> List[ArtistSummary]:
        await self._enter("find_artists", name_query, limit)
        needle = name_query.lower()
        return [a for a in self.artists if needle in a.full_name.lower()][:limit]

    async def find_items_by_facet(self, text: str, limit: int) -> List[CatalogItem]:
        await self._enter("find_items_by_facet", text, limit)
        needle = text.lower()
        return [
            item for item in self.items
            if any(needle in (value or "").lower() for value in (item.category, item.style, item.medium))
        ][:limit]


@pytest.fixture
def fixed_now():
    """Reference time shared by clocks in tests"""
    return FIXED_NOW


@pytest.fixture
def make_item():
    """Factory for catalog items"""
    return build_item


@pytest.fixture
def fake_gateway():
    """Empty in-memory catalog gateway"""
    return FakeCatalogGateway()
