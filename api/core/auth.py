"""
Identity dependencies for FastAPI routes

Authentication happens upstream; the gateway in front of this service
forwards the authenticated user as the X-User-Id header.
"""
import logging
import uuid
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, Response, status

from api.engines.discovery.search_service import SearchService
from api.engines.discovery.session import DiscoverySession, DiscoverySessionManager
from api.middleware.logging_middleware import SESSION_ID_HEADER

logger = logging.getLogger(__name__)


async def get_optional_user_id(x_user_id: Optional[str] = Header(None)) -> Optional[str]:
    """Current user id, or None for anonymous callers"""
    return x_user_id.strip() if x_user_id and x_user_id.strip() else None


async def require_user_id(user_id: Optional[str] = Depends(get_optional_user_id)) -> str:
    """
    Dependency to get the current user id.
    Raises 401 if the caller is anonymous.
    """
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return user_id


def get_session_manager(request: Request) -> DiscoverySessionManager:
    return request.app.state.discovery_sessions


def get_search_service(request: Request) -> SearchService:
    return request.app.state.search_service


async def get_discovery_session(
    response: Response,
    user_id: Optional[str] = Depends(get_optional_user_id),
    x_session_id: Optional[str] = Header(None),
    manager: DiscoverySessionManager = Depends(get_session_manager),
) -> DiscoverySession:
    """
    Discovery session for the caller, keyed by X-Session-Id, else the user id.

    Callers with neither get a new session; its id is returned in the
    X-Session-Id response header so they can send it on later requests.
    """
    session_id = x_session_id or user_id or str(uuid.uuid4())
    response.headers[SESSION_ID_HEADER] = session_id
    return manager.get_or_create_session(session_id, user_id=user_id)
