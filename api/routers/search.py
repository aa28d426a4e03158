"""
Search API routes
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.core.auth import get_discovery_session, get_search_service
from api.engines.discovery.errors import SearchUnavailableError
from api.engines.discovery.schemas import QueryHints
from api.engines.discovery.search_service import SearchService
from api.engines.discovery.session import DiscoverySession
from api.middleware import get_logger
from api.schemas.discovery import ClearSearchResponse, SearchRequest, SearchResponse, SuggestionsResponse

logger = get_logger(__name__)
router = APIRouter(prefix="/search", tags=["search"])

SUPERSEDED_DETAIL = "Superseded by a newer request"


@router.post("", response_model=SearchResponse)
async def search(
    request: SearchRequest,
    session: DiscoverySession = Depends(get_discovery_session),
):
    """Search the catalog with explicit filters and an optional free-text query"""
    try:
        page = await session.search(request.filters, page=request.page, page_size=request.page_size)
    except SearchUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    if page is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=SUPERSEDED_DETAIL)

    logger.info(f"Search page {page.page}: {len(page.results)} of {page.total_count}")
    return SearchResponse.from_page(session.session_id, page)


@router.post("/more", response_model=SearchResponse)
async def load_more(session: DiscoverySession = Depends(get_discovery_session)):
    """Fetch the next page of the session's last search"""
    if session.last_filters is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No active search")
    if not session.has_more:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No more results")

    try:
        page = await session.load_more()
    except SearchUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    if page is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=SUPERSEDED_DETAIL)

    return SearchResponse.from_page(session.session_id, page)


@router.get("/suggestions", response_model=SuggestionsResponse)
async def get_suggestions(
    q: str = Query("", max_length=200),
    search_service: SearchService = Depends(get_search_service),
):
    """Autocomplete suggestions for partial input"""
    suggestions = await search_service.get_suggestions(q)
    return SuggestionsResponse(query=q, suggestions=suggestions)


@router.get("/interpret", response_model=QueryHints)
async def interpret_query(
    q: str = Query("", max_length=500),
    search_service: SearchService = Depends(get_search_service),
):
    """Structured filters parsed from a free-text query"""
    return search_service.interpreter.interpret(q)


@router.delete("", response_model=ClearSearchResponse)
async def clear_search(session: DiscoverySession = Depends(get_discovery_session)):
    """Clear the session's results and the search cache"""
    session.clear()
    return ClearSearchResponse(session_id=session.session_id)
