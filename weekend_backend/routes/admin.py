"""
Admin routes for the search cache.

Endpoints (role claim 'admin' required):
- GET /admin/analytics: totals and a paginated list of recent searches
- DELETE /admin/cache/expired: delete expired cache rows
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from supabase import Client
from weekend_backend.auth.dependencies import AuthenticatedUser, require_admin
from weekend_backend.db.client import get_db_client
from weekend_backend.schemas.analytics import AnalyticsResponse, PurgeResponse
from weekend_backend.services.analytics_service import get_analytics
from weekend_backend.services.cache_service import purge_expired
from weekend_backend.utils.errors import StorageUnavailable
from weekend_backend.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(
    prefix="/admin",
    tags=["admin"]
)


@router.get(
    "/analytics",
    response_model=AnalyticsResponse,
    summary="Search cache analytics",
    description="Totals (searches, users, cost) and recent searches. **Admin only.**",
)
async def analytics_endpoint(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Results per page"),
    admin: AuthenticatedUser = Depends(require_admin),
    db_client: Client = Depends(get_db_client),
) -> AnalyticsResponse:
    logger.info(f"GET /admin/analytics called by user_id={admin.user_id}, page={page}")

    try:
        return await get_analytics(db_client, page=page, limit=limit)
    except StorageUnavailable as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.to_dict()
        )


@router.delete(
    "/cache/expired",
    response_model=PurgeResponse,
    summary="Purge expired cache entries",
    description="Deletes every expired search cache row. **Admin only.**",
)
async def purge_expired_endpoint(
    admin: AuthenticatedUser = Depends(require_admin),
    db_client: Client = Depends(get_db_client),
) -> PurgeResponse:
    logger.info(f"DELETE /admin/cache/expired called by user_id={admin.user_id}")

    try:
        deleted = await purge_expired(db_client)
    except StorageUnavailable as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.to_dict()
        )

    return PurgeResponse(deleted=deleted)
