"""
Main FastAPI application.

This file wires together all layers:
- Domain: Recipe entities and rules
- Repositories: Supabase tables, RPC and storage
- Services: Feed, search, favorites and profiles
- Routers: HTTP endpoints
"""

import time
import uuid
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from supabase import Client

from .config import settings
from .dependencies import set_services
from .logging_config import setup_logging
from .metrics import metrics_endpoint, track_request_metrics
from .repositories.supabase_repository import (
    SupabaseFavoriteRepository,
    SupabasePhotoStorage,
    SupabaseProfileRepository,
    SupabaseRecipeRepository,
)
from .routers import (
    favorites_router,
    health_router,
    profiles_router,
    recipes_router,
    search_router,
)
from .services.favorite_service import FavoriteService
from .services.profile_service import ProfileService
from .services.recipe_service import RecipeService
from .services.search_service import RecipeSearchService
from .supabase_client import get_supabase_client

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging(settings.LOG_LEVEL)
    logger.info("Starting Recetario Service...", version=settings.VERSION)

    try:
        client = get_supabase_client()
        set_services(*create_services(client))
        logger.info("Services initialized")
    except Exception as e:
        logger.error("Failed to initialize services", error=str(e))
        raise

    logger.info("Recetario Service started successfully")

    yield

    logger.info("Recetario Service shut down complete")


def create_services(client: Client):
    """
    Create and configure the services with their Supabase repositories.

    Args:
        client: Supabase client

    Returns:
        Tuple of (recipe, search, favorite, profile) services
    """
    recipe_repo = SupabaseRecipeRepository(client, rpc_name=settings.SEARCH_RPC_NAME)
    favorite_repo = SupabaseFavoriteRepository(client)
    profile_repo = SupabaseProfileRepository(client)
    storage = SupabasePhotoStorage(client)

    favorite_service = FavoriteService(favorite_repo, page_size=settings.FEED_PAGE_SIZE)
    recipe_service = RecipeService(
        recipe_repo,
        favorite_service,
        storage,
        bucket=settings.STORAGE_BUCKET,
        max_photo_bytes=settings.MAX_RECIPE_PHOTO_BYTES,
        max_photo_size=(settings.MAX_RECIPE_PHOTO_WIDTH, settings.MAX_RECIPE_PHOTO_HEIGHT),
        page_size=settings.FEED_PAGE_SIZE,
    )
    search_service = RecipeSearchService(
        recipe_repo,
        rpc_limit=settings.SEARCH_RPC_LIMIT,
        fallback_limit=settings.SEARCH_FALLBACK_LIMIT,
    )
    profile_service = ProfileService(
        profile_repo,
        recipe_repo,
        storage,
        bucket=settings.AVATAR_BUCKET,
        max_avatar_bytes=settings.MAX_AVATAR_BYTES,
        max_avatar_size=(settings.MAX_AVATAR_WIDTH, settings.MAX_AVATAR_HEIGHT),
    )
    return recipe_service, search_service, favorite_service, profile_service


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Recipe feed, typo-tolerant search, favorites and profiles on Supabase",
    version=settings.VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)


# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request ID middleware
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Bind a request id to the log context and echo it back."""
    request_id = request.headers.get("X-Request-ID") or f"req-{uuid.uuid4().hex[:12]}"

    structlog.contextvars.bind_contextvars(request_id=request_id)
    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.clear_contextvars()

    response.headers["X-Request-ID"] = request_id
    return response


# Metrics middleware
@app.middleware("http")
async def track_metrics(request: Request, call_next):
    """Track Prometheus metrics."""
    start_time = time.time()

    response = await call_next(request)

    # Route templates keep label cardinality bounded
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    track_request_metrics(request.method, endpoint, response.status_code, time.time() - start_time)

    return response


# Include routers
app.include_router(health_router.router)
app.include_router(recipes_router.router)
app.include_router(search_router.router)
app.include_router(favorites_router.router)
app.include_router(profiles_router.router)

app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], include_in_schema=False)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with service information."""
    return {
        "service": settings.APP_NAME,
        "version": settings.VERSION,
        "status": "operational",
        "docs": "/api/docs",
        "health": "/api/v1/health",
        "ready": "/api/v1/ready",
    }


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions."""
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "internal_server_error",
            "message": "An unexpected error occurred",
            "request_id": request.headers.get("X-Request-ID"),
        },
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "recetario.app:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
