"""
Search history route.

GET /history returns the authenticated user's most recent searches, newest
first, including expired ones (flagged with is_expired). Reading history does
not count as a cache access.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status

from supabase import Client
from weekend_backend.auth.dependencies import AuthenticatedUser, get_authenticated_user
from weekend_backend.config import settings
from weekend_backend.db.client import get_db_client
from weekend_backend.schemas.cache import HistoryResponse
from weekend_backend.services.cache_service import get_user_search_history
from weekend_backend.utils.errors import StorageUnavailable
from weekend_backend.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["history"])


@router.get(
    "/history",
    response_model=HistoryResponse,
    summary="Get search history",
    description="Returns the caller's recent searches. **Authentication:** Required (Bearer token)",
)
async def history_endpoint(
    limit: int = Query(
        settings.HISTORY_DEFAULT_LIMIT,
        ge=1,
        le=settings.HISTORY_MAX_LIMIT,
        description="Maximum number of entries",
    ),
    auth_user: AuthenticatedUser = Depends(get_authenticated_user),
    db_client: Client = Depends(get_db_client),
) -> HistoryResponse:
    logger.info(f"GET /history called by user_id={auth_user.user_id}, limit={limit}")

    try:
        history = await get_user_search_history(db_client, auth_user.user_id, limit)
    except StorageUnavailable as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=e.to_dict()
        )

    return HistoryResponse(history=history)
