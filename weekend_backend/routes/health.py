"""
Health check route for the Weekend Activity Finder backend.

This endpoint is PUBLIC (no authentication required). It pings the search
cache table so load balancers see a degraded instance when the database is
unreachable.
"""

from datetime import datetime, timezone
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, Response, status
from postgrest.exceptions import APIError

from supabase import Client
from weekend_backend.config import settings
from weekend_backend.db.client import get_optional_db_client
from weekend_backend.schemas.health import DatabaseStatus, HealthResponse
from weekend_backend.services.cache_service import CACHE_TABLE
from weekend_backend.utils.logging import get_logger

logger = get_logger(__name__)

# Create router with no prefix (mounted at root level in main.py)
router = APIRouter(tags=["system"])


def _ping_database(db_client: Optional[Client]) -> DatabaseStatus:
    if db_client is None:
        return DatabaseStatus(connected=False, error="Database client not initialized")
    try:
        db_client.table(CACHE_TABLE).select("id").limit(1).execute()
    except (APIError, httpx.HTTPError) as e:
        logger.error(f"Health check database ping failed: {type(e).__name__}")
        return DatabaseStatus(connected=False, error="Database connection failed")
    return DatabaseStatus(connected=True)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check endpoint",
    description=(
        "Public health check endpoint (no authentication required). "
        "Returns 200 when the database answers, 503 otherwise."
    ),
    responses={503: {"model": HealthResponse}},
)
async def health_check(
    response: Response,
    db_client: Optional[Client] = Depends(get_optional_db_client),
) -> HealthResponse:
    """
    Public health check endpoint.

    Example response:
        {
            "status": "ok",
            "timestamp": "2025-11-01T10:00:00+00:00",
            "environment": "production",
            "database": {"connected": true, "error": null}
        }
    """
    logger.debug("Health check endpoint called")

    database = _ping_database(db_client)
    if not database.connected:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status="ok" if database.connected else "degraded",
        timestamp=datetime.now(timezone.utc).isoformat(),
        environment=settings.ENVIRONMENT,
        database=database,
    )
