"""
Middleware package for the API.
"""
from api.middleware.logging_middleware import (
    REQUEST_ID_HEADER,
    SESSION_ID_HEADER,
    ContextualLogger,
    RequestLoggingMiddleware,
    get_logger,
    get_request_id,
    get_session_id,
)

__all__ = [
    "REQUEST_ID_HEADER",
    "SESSION_ID_HEADER",
    "RequestLoggingMiddleware",
    "ContextualLogger",
    "get_logger",
    "get_request_id",
    "get_session_id",
]
