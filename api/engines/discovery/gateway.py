"""
Data Access Gateway contract

The ranking core reaches the catalog store only through CatalogGateway.
Implementations raise GatewayError (or a subclass) on any failure.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, List, Sequence, Tuple, TypeVar

from .errors import GatewayTimeoutError
from .schemas import (
    ArtistSummary,
    CatalogItem,
    CollaborativeCandidate,
    HistoryEntry,
    PurchaseEntry,
    SearchFilters,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CatalogGateway(ABC):
    """Query and procedure contract of the backing catalog store"""

    @abstractmethod
    async def query_catalog(
        self,
        filters: SearchFilters,
        page: int,
        page_size: int
    ) -> Tuple[List[CatalogItem], int]:
        """Return one page of active items matching filters and the total match count"""

    @abstractmethod
    async def find_similar_users(self, user_id: str, limit: int) -> List[str]:
        """Users with purchase patterns similar to user_id, most similar first"""

    @abstractmethod
    async def get_collaborative_candidates(
        self,
        user_id: str,
        similar_user_ids: Sequence[str],
        limit: int
    ) -> List[CollaborativeCandidate]:
        """Items the similar users engaged with that user_id has not"""

    @abstractmethod
    async def get_trending_items(self, limit: int, window_days: int) -> List[CatalogItem]:
        """Most popular items over the trailing window"""

    @abstractmethod
    async def get_similar_items(self, seed_item_ids: Sequence[str], limit: int) -> List[CatalogItem]:
        """Items resembling the seeds, excluding the seeds themselves"""

    @abstractmethod
    async def get_browsing_history(self, user_id: str, limit: int) -> List[HistoryEntry]:
        """Most recent product views first"""

    @abstractmethod
    async def get_purchase_history(self, user_id: str) -> List[PurchaseEntry]:
        """Lines of paid orders"""

    @abstractmethod
    async def get_followed_artists(self, user_id: str) -> List[str]:
        """Ids of artists the user follows"""

    @abstractmethod
    async def find_artists(self, name_query: str, limit: int) -> List[ArtistSummary]:
        """Artists whose name contains the text, case-insensitive"""

    @abstractmethod
    async def find_items_by_facet(self, text: str, limit: int) -> List[CatalogItem]:
        """Items whose category, style or medium contains the text, case-insensitive"""


async def call_with_timeout(awaitable: Awaitable[T], timeout: float, operation: str = "gateway call") -> T:
    """
    Await a gateway call with a bounded wait

    Raises:
        GatewayTimeoutError: if the call does not finish within timeout seconds
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as e:
        logger.warning(f"{operation} timed out after {timeout:.1f}s")
        raise GatewayTimeoutError(f"{operation} timed out after {timeout:.1f}s") from e
