"""
Pydantic schemas for the admin analytics endpoints.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from weekend_backend.schemas.cache import CostBreakdown


class AnalyticsStats(BaseModel):
    """Totals over the whole search cache."""
    total_searches: int = Field(..., ge=0)
    total_users: int = Field(..., ge=0, description="Distinct users with at least one search")
    total_cost: float = Field(..., ge=0, description="Sum of stored costs, USD, 6 decimals")


class AnalyticsSearch(BaseModel):
    """One recent search as shown on the admin dashboard."""
    id: int
    user_id: int
    city: str
    date_range_start: str
    date_range_end: str
    attendees: str
    preferences: Optional[str] = None
    cost: float = 0.0
    cost_breakdown: Optional[CostBreakdown] = None
    execution_time_ms: int = 0
    model: str = "unknown"
    search_count: int = 0
    access_count: int
    created_at: datetime


class Pagination(BaseModel):
    """Page bookkeeping for list endpoints."""
    page: int
    limit: int
    total_pages: int
    total_results: int
    has_next_page: bool
    has_previous_page: bool


class AnalyticsResponse(BaseModel):
    """Response model for GET /admin/analytics."""
    stats: AnalyticsStats
    searches: List[AnalyticsSearch]
    pagination: Pagination


class PurgeResponse(BaseModel):
    """Response model for DELETE /admin/cache/expired."""
    deleted: int = Field(..., ge=0)
