"""
FastAPI main application for Charted Art discovery
"""
import logging
import re
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from api.core.config import settings
from api.core.database import build_engine, build_session_factory
from api.core.logging import setup_logging
from api.engines.discovery.cache import SearchSessionCache
from api.engines.discovery.core import RecommendationEngine
from api.engines.discovery.gateway import CatalogGateway
from api.engines.discovery.search_service import SearchService
from api.engines.discovery.session import DiscoverySessionManager
from api.engines.discovery.sql_gateway import SQLCatalogGateway
from api.middleware import REQUEST_ID_HEADER, SESSION_ID_HEADER, RequestLoggingMiddleware
from api.routers import recommendations, search

setup_logging()
logger = logging.getLogger(__name__)


def install_discovery_services(app: FastAPI, gateway: CatalogGateway):
    """Build the search and recommendation services over a gateway and attach them to app.state"""
    search_service = SearchService(
        gateway,
        cache=SearchSessionCache(settings.cache_ttl, settings.search_cache_max_entries),
    )
    engine = RecommendationEngine(gateway)

    app.state.gateway = gateway
    app.state.search_service = search_service
    app.state.recommendation_engine = engine
    app.state.discovery_sessions = DiscoverySessionManager(search_service, engine, settings.session_ttl_hours)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info(f"Starting {settings.app_name} ({settings.environment})...")

    sanitized = re.sub(r":\/\/[^:]*:[^@]*@", "://***:***@", settings.database_url)
    logger.info(f"Database: {sanitized}")

    db_engine = None
    if not hasattr(app.state, "gateway"):
        db_engine = build_engine()
        install_discovery_services(app, SQLCatalogGateway(build_session_factory(db_engine)))

    logger.info("Application started")

    yield

    logger.info(f"Shutting down {settings.app_name}...")
    if db_engine is not None:
        await db_engine.dispose()
    logger.info("Application stopped")


app = FastAPI(
    title=settings.app_name,
    description="Catalog search and personalized recommendations",
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs" if settings.environment == "development" else None,
    redoc_url="/redoc" if settings.environment == "development" else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[REQUEST_ID_HEADER, SESSION_ID_HEADER],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(RequestLoggingMiddleware)


@app.get("/health")
async def health_check():
    """Health check endpoint for load balancers"""
    return {
        "status": "healthy",
        "timestamp": time.time(),
        "version": settings.version,
        "search_cache_entries": len(app.state.search_service.cache) if hasattr(app.state, "search_service") else 0,
    }


app.include_router(search.router, prefix="/api")
app.include_router(recommendations.router, prefix="/api")

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.environment == "development",
        log_config=None,  # Use our custom logging
        access_log=False,  # We handle this in middleware
    )
