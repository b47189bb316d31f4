"""
Supabase client lifecycle for the search cache.

The search cache is written by the backend on behalf of users, so a single
service-level client (SUPABASE_SECRET_KEY) is created when the app starts,
stored on app.state, injected into routes through get_db_client() and closed
at shutdown. Ownership is enforced in code: every cache query filters by the
authenticated user's id, which is also folded into the cache key.
"""

import logging
from typing import Optional

from fastapi import HTTPException, Request, status

from supabase import Client, create_client
from weekend_backend.config import settings

logger = logging.getLogger(__name__)


def create_service_client() -> Client:
    """
    Create the service-level Supabase client.

    Returns:
        A Supabase client authenticated with the secret key

    Raises:
        ValueError: If SUPABASE_URL or SUPABASE_SECRET_KEY is missing
    """
    if not settings.SUPABASE_URL or not settings.SUPABASE_SECRET_KEY:
        raise ValueError(
            "SUPABASE_URL and SUPABASE_SECRET_KEY must be configured "
            "to create the search cache client."
        )

    client: Client = create_client(
        supabase_url=settings.SUPABASE_URL,
        supabase_key=settings.SUPABASE_SECRET_KEY,
    )
    logger.info("Created service-level Supabase client")
    return client


def close_service_client(client: Client) -> None:
    """Close the HTTP session behind the client's PostgREST connection."""
    try:
        client.postgrest.session.close()
        logger.info("Closed Supabase client session")
    except Exception as e:
        logger.warning(f"Failed to close Supabase client session: {e}")


def get_optional_db_client(request: Request) -> Optional[Client]:
    """FastAPI dependency for routes that must work without a database."""
    return getattr(request.app.state, "db_client", None)


def get_db_client(request: Request) -> Client:
    """
    FastAPI dependency returning the app-wide Supabase client.

    Raises:
        HTTPException: 503 if the client was not created at startup
    """
    client = getattr(request.app.state, "db_client", None)
    if client is None:
        logger.error("Supabase client requested but not initialized")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "storage_unavailable", "details": "Database client not initialized"}
        )
    return client
