"""
Pydantic schemas for the search cache and the telemetry stored with it.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field


class CostBreakdown(BaseModel):
    """Per-provider cost of one agent run, in USD, 6 decimal places."""
    model_cost: float = Field(..., ge=0, description="Generative model token cost")
    search_cost: float = Field(..., ge=0, description="Web search call cost")
    total: float = Field(..., ge=0, description="model_cost + search_cost")


class CacheMetadata(BaseModel):
    """
    Usage and cost telemetry of the agent run that produced a cache entry.

    Costs are a snapshot taken at storage time with the pricing table named
    in pricing_version; they are never recomputed on read.
    """
    prompt_tokens: int = Field(0, ge=0)
    completion_tokens: int = Field(0, ge=0)
    search_count: int = Field(0, ge=0)
    iterations: int = Field(0, ge=0, description="Model round-trips in the tool loop")
    model: str
    estimated_cost: float = Field(..., ge=0, description="Same as cost_breakdown.total")
    cost_breakdown: CostBreakdown
    pricing_version: str
    execution_time_ms: int = Field(0, ge=0)


class CacheEntry(BaseModel):
    """A live (non-expired) cache row returned by a lookup."""
    id: int
    cache_key: str
    user_id: int
    recommendations: Dict[str, Any]
    metadata: Optional[Dict[str, Any]] = None
    access_count: int
    created_at: datetime
    expires_at: datetime
    updated_at: Optional[datetime] = None


class HistoryEntry(BaseModel):
    """One row of a user's search history, including expired ones."""
    id: int
    city: str
    date_range_start: str
    date_range_end: str
    attendees: str
    preferences: Optional[str] = None
    created_at: datetime
    expires_at: datetime
    access_count: int
    is_expired: bool


class HistoryResponse(BaseModel):
    """Response model for GET /history."""
    history: List[HistoryEntry]


class SearchOutcome(BaseModel):
    """Final payload of a search, cached or fresh."""
    type: Literal["complete"] = "complete"
    recommendations: Dict[str, Any]
    metadata: Optional[Dict[str, Any]] = None
    cached: bool
    cache_id: Optional[int] = Field(
        None,
        description="Cache row id; None when the fresh result could not be stored"
    )
    access_count: Optional[int] = Field(
        None,
        description="Present on cache hits only"
    )
