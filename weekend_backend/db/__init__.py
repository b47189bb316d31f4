"""
Database access layer for the Weekend Activity Finder backend.

Includes:
- Service-level Supabase client creation and shutdown (app lifespan)
- get_db_client FastAPI dependency

Table layout and the touch_search_cache / search_cache_stats functions live
in supabase/migrations/.
"""

from .client import (
    close_service_client,
    create_service_client,
    get_db_client,
    get_optional_db_client,
)

__all__ = [
    "create_service_client",
    "close_service_client",
    "get_db_client",
    "get_optional_db_client",
]
