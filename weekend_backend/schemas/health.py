"""
Health check endpoint schemas.

The health endpoint is PUBLIC (no authentication required) and reports
whether the API and its cache database are reachable.
"""

from typing import Optional

from pydantic import BaseModel, Field


class DatabaseStatus(BaseModel):
    """Connectivity of the Supabase cache database."""

    connected: bool = Field(..., description="Whether the cache table answered")
    error: Optional[str] = Field(None, description="Sanitized error when not connected")


class HealthResponse(BaseModel):
    """
    Response model for GET /health endpoint.

    Used by load balancers, monitoring systems, and deployment checks.
    """

    status: str = Field(
        default="ok",
        description="'ok' when the database answered, 'degraded' otherwise",
        examples=["ok", "degraded"]
    )
    timestamp: str = Field(..., description="Server time (ISO-8601, UTC)")
    environment: str = Field(..., examples=["development", "production"])
    database: DatabaseStatus

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "example": {
                "status": "ok",
                "timestamp": "2025-11-01T10:00:00+00:00",
                "environment": "production",
                "database": {"connected": True, "error": None}
            }
        }
