"""
Recommendation API routes
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.core.auth import get_discovery_session, require_user_id
from api.core.config import settings
from api.engines.discovery.errors import RecommendationsUnavailableError
from api.engines.discovery.session import DiscoverySession
from api.middleware import get_logger
from api.schemas.discovery import PreferenceProfileResponse, RecommendationListResponse

logger = get_logger(__name__)
router = APIRouter(prefix="/recommendations", tags=["recommendations"])


@router.get("", response_model=RecommendationListResponse)
async def get_recommendations(
    limit: Optional[int] = Query(None, ge=1, le=settings.recommendation_max_limit),
    session: DiscoverySession = Depends(get_discovery_session),
):
    """Personalized recommendations, or trending items for anonymous callers"""
    try:
        recommendations = await session.recommend(limit)
    except RecommendationsUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    if recommendations is None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Superseded by a newer request")

    return RecommendationListResponse(
        session_id=session.session_id,
        recommendations=recommendations,
        total=len(recommendations),
        personalized=session.user_id is not None,
    )


@router.get("/preferences", response_model=PreferenceProfileResponse)
async def get_preferences(
    user_id: str = Depends(require_user_id),
    session: DiscoverySession = Depends(get_discovery_session),
):
    """The caller's preference profile derived from their history"""
    profile = await session.refresh_preferences()
    if profile is None:
        logger.warning(f"No preference profile available for {user_id}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Preference profile not available")

    return PreferenceProfileResponse(user_id=user_id, profile=profile)
