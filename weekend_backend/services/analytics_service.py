"""
Admin analytics over the search cache.

Totals come from the search_cache_stats() Postgres function (distinct users
and summed stored cost are aggregates PostgREST cannot express directly);
the page of recent searches is a plain ordered range query.
"""

import logging
import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, cast

import httpx
from postgrest.exceptions import APIError

from supabase import Client
from weekend_backend.schemas.analytics import (
    AnalyticsResponse,
    AnalyticsSearch,
    AnalyticsStats,
    Pagination,
)
from weekend_backend.services.cache_service import CACHE_TABLE, parse_timestamp, unwrap_blob
from weekend_backend.utils.errors import StorageUnavailable

logger = logging.getLogger(__name__)

ANALYTICS_COLUMNS = (
    "id, user_id, city, date_range_start, date_range_end, attendees, preferences, "
    "created_at, access_count, agent_metadata"
)


def _to_search(row: Dict[str, Any]) -> AnalyticsSearch:
    metadata = unwrap_blob(row.get("agent_metadata")) or {}
    return AnalyticsSearch(
        id=row["id"],
        user_id=row["user_id"],
        city=row["city"],
        date_range_start=str(row["date_range_start"]),
        date_range_end=str(row["date_range_end"]),
        attendees=row["attendees"],
        preferences=row.get("preferences"),
        cost=metadata.get("estimated_cost") or 0.0,
        cost_breakdown=metadata.get("cost_breakdown"),
        execution_time_ms=metadata.get("execution_time_ms") or 0,
        model=metadata.get("model") or "unknown",
        search_count=metadata.get("search_count") or 0,
        access_count=row["access_count"],
        created_at=parse_timestamp(row["created_at"]),
    )


async def get_analytics(
    supabase_client: Client,
    page: int = 1,
    limit: int = 20,
) -> AnalyticsResponse:
    """
    Build the admin analytics payload.

    Args:
        supabase_client: Service-level Supabase client
        page: 1-based page number
        limit: Page size

    Returns:
        AnalyticsResponse with totals, one page of searches and pagination

    Raises:
        StorageUnavailable: Database unreachable or failed a query
    """
    offset = (page - 1) * limit

    try:
        stats_result = supabase_client.rpc("search_cache_stats", {}).execute()
        page_result = (
            supabase_client.table(CACHE_TABLE)
            .select(ANALYTICS_COLUMNS)
            .order("created_at", desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
    except (APIError, httpx.HTTPError) as e:
        logger.error(f"Analytics query failed: {type(e).__name__}: {e}")
        raise StorageUnavailable("Failed to fetch analytics data") from e

    stats_rows = cast(List[Dict[str, Any]], stats_result.data or [])
    stats_row = stats_rows[0] if stats_rows else {}
    total_searches = int(stats_row.get("total_searches") or 0)
    total_cost = Decimal(str(stats_row.get("total_cost") or 0)).quantize(
        Decimal("0.000001"), rounding=ROUND_HALF_UP
    )

    searches = [_to_search(row) for row in cast(List[Dict[str, Any]], page_result.data or [])]
    total_pages = math.ceil(total_searches / limit) if limit else 0

    logger.info(f"Analytics page {page}: {len(searches)} of {total_searches} searches")

    return AnalyticsResponse(
        stats=AnalyticsStats(
            total_searches=total_searches,
            total_users=int(stats_row.get("total_users") or 0),
            total_cost=float(total_cost),
        ),
        searches=searches,
        pagination=Pagination(
            page=page,
            limit=limit,
            total_pages=total_pages,
            total_results=total_searches,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
        ),
    )
