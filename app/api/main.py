"""
FastAPI application main entry point.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import (
    captions_router,
    instagram_oauth_router,
    instagram_router,
)
from app.core.cache import cache
from app.core.config import settings
from app.core.database import close_db, init_db
from app.core.logging import configure_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    configure_logging()
    logger.info("Starting Snapcaption Backend", environment=settings.environment)

    # Connect to Redis (optional; only used for the style profile cache)
    try:
        await cache.connect()
        logger.info("Redis connected")
    except Exception as e:
        logger.warning("Redis connection failed", error=str(e))

    # Initialize database
    try:
        await init_db()
        logger.info("Database initialized")
    except Exception as e:
        logger.warning("Database initialization failed", error=str(e))

    # Initialize Sentry for error tracking
    try:
        from app.core.observability import init_sentry
        init_sentry()
    except Exception as e:
        logger.warning("Sentry initialization failed", error=str(e))

    yield

    # Shutdown
    logger.info("Shutting down Snapcaption Backend")
    await cache.disconnect()
    await close_db()


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Snapcaption Backend

    Instagram caption generation personalized with the user's own style:
    - Connect an Instagram account (OAuth or public username)
    - Analyze past captions into a style profile
    - Declare a style manually when no posts are available
    - Generate captions biased towards that style
    """,
    docs_url="/docs" if settings.environment != "production" else None,
    redoc_url="/redoc" if settings.environment != "production" else None,
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(instagram_router, prefix=settings.api_v1_prefix)
app.include_router(instagram_oauth_router, prefix=settings.api_v1_prefix)
app.include_router(captions_router, prefix=settings.api_v1_prefix)


# Health check endpoint
@app.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "cache": "connected" if cache.is_connected else "disabled",
    }


# Root endpoint
@app.get("/")
async def root() -> dict:
    """Root endpoint with API information."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "endpoints": {
            "instagram": f"{settings.api_v1_prefix}/instagram",
            "instagram_auth": f"{settings.api_v1_prefix}/auth/instagram",
            "captions": f"{settings.api_v1_prefix}/captions",
        },
    }
