"""
FastAPI application entry point for the Weekend Activity Finder backend.

This module creates the FastAPI app instance, manages the Supabase client
lifecycle and registers all routers.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from weekend_backend.config import settings
from weekend_backend.db.client import close_service_client, create_service_client
from weekend_backend.routes.admin import router as admin_router
from weekend_backend.routes.health import router as health_router
from weekend_backend.routes.history import router as history_router
from weekend_backend.routes.search import router as search_router

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


def _get_cors_origins() -> list[str]:
    """
    Get allowed CORS origins based on environment.

    - ENVIRONMENT=production: CORS_ALLOWED_ORIGINS only (none if unset)
    - Any other environment: all origins, for local development

    Returns:
        List of allowed origin URLs, or ["*"] for development.
    """
    if settings.is_production():
        if settings.CORS_ORIGINS:
            logger.info(
                f"CORS configured for production with {len(settings.CORS_ORIGINS)} allowed origins"
            )
            return settings.CORS_ORIGINS
        logger.warning(
            "CORS_ALLOWED_ORIGINS not set in production. "
            "No web origins allowed. Set CORS_ALLOWED_ORIGINS for web clients."
        )
        return []

    logger.info(f"CORS configured for {settings.ENVIRONMENT}: allowing all origins")
    return ["*"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the Supabase client at startup and close it at shutdown."""
    try:
        app.state.db_client = create_service_client()
    except ValueError as e:
        # Health reports degraded; cache-backed routes answer 503
        logger.error(f"Search cache client not created: {e}")
        app.state.db_client = None

    yield

    if app.state.db_client is not None:
        close_service_client(app.state.db_client)
        app.state.db_client = None


# Create FastAPI app
app = FastAPI(
    title="Weekend Activity Finder API",
    description="AI-curated weekend activity recommendations with a per-user search cache",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


# Custom validation error handler to log detailed errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Log validation errors and return them as a 422 JSON body.

    The request body is not logged: preferences are free text.
    """
    details = [
        {key: value for key, value in error.items() if key != "ctx"}
        for error in exc.errors()
    ]
    logger.error(f"Validation error on {request.method} {request.url.path}: {details}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "details": jsonable_encoder(details),
        }
    )


# Configure CORS with environment-based origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=_get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(health_router)
app.include_router(search_router)
app.include_router(history_router)
app.include_router(admin_router)

logger.info("FastAPI app initialized successfully")
