"""
Search cache service.

Stores completed agent results in the `search_cache` table under a
fingerprint of (request, user id) and serves them back for 48 hours.

Semantics:
- lookup increments access_count atomically (Postgres function
  touch_search_cache) and only returns rows with expires_at > now()
- expired rows are never revived; a later store replaces them
- recommendations and agent_metadata are stored as
  {"schema_version": 1, "payload": {...}}; rows with an unknown version are
  treated as misses and removed
- history and analytics reads never touch access_count
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, cast

import httpx
from postgrest.exceptions import APIError

from supabase import Client
from weekend_backend.config import settings
from weekend_backend.schemas.cache import CacheEntry, HistoryEntry
from weekend_backend.schemas.search import RecommendationRequest
from weekend_backend.services.fingerprint import generate_cache_key
from weekend_backend.utils.errors import DuplicateFingerprint, StorageUnavailable

logger = logging.getLogger(__name__)

CACHE_TABLE = "search_cache"
BLOB_SCHEMA_VERSION = 1

# Postgres SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"

HISTORY_COLUMNS = (
    "id, city, date_range_start, date_range_end, attendees, preferences, "
    "created_at, expires_at, access_count"
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """Parse a Supabase timestamp (ISO string or datetime), assuming UTC when naive."""
    parsed = value if isinstance(value, datetime) else datetime.fromisoformat(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def wrap_blob(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Tag a JSON payload with the current blob schema version."""
    return {"schema_version": BLOB_SCHEMA_VERSION, "payload": payload}


def unwrap_blob(blob: Any) -> Optional[Dict[str, Any]]:
    """Return the payload of a known-version blob, None otherwise."""
    if not isinstance(blob, dict) or blob.get("schema_version") != BLOB_SCHEMA_VERSION:
        return None
    payload = blob.get("payload")
    return payload if isinstance(payload, dict) else None


def format_attendees(request: RecommendationRequest) -> str:
    """Display text for the denormalized attendees column."""
    return ", ".join(f"{a.role} ({a.age} years)" for a in request.attendees)


def _storage_error(operation: str, error: Exception) -> StorageUnavailable:
    logger.error(f"search_cache {operation} failed: {type(error).__name__}: {error}")
    return StorageUnavailable(f"Search cache {operation} failed")


async def lookup_cached_search(
    supabase_client: Client,
    request: RecommendationRequest,
    user_id: int,
) -> Optional[CacheEntry]:
    """
    Return the live cache entry for this request and user, or None.

    A hit increments access_count and bumps updated_at in the same
    statement, so the returned entry already carries the new count.

    Raises:
        StorageUnavailable: Database unreachable or failed the call
    """
    cache_key = generate_cache_key(request, user_id)

    try:
        result = supabase_client.rpc(
            "touch_search_cache",
            {"p_cache_key": cache_key, "p_user_id": user_id},
        ).execute()
    except (APIError, httpx.HTTPError) as e:
        raise _storage_error("lookup", e) from e

    rows = cast(List[Dict[str, Any]], result.data or [])
    if not rows:
        logger.info(f"Cache miss for user {user_id}")
        return None

    row = rows[0]
    recommendations = unwrap_blob(row.get("recommendations"))
    if recommendations is None:
        logger.warning(
            f"Cache row {row.get('id')} has unknown blob schema version, discarding"
        )
        await _delete_row(supabase_client, row["id"])
        return None

    entry = CacheEntry(
        id=row["id"],
        cache_key=row["cache_key"],
        user_id=row["user_id"],
        recommendations=recommendations,
        metadata=unwrap_blob(row.get("agent_metadata")),
        access_count=row["access_count"],
        created_at=parse_timestamp(row["created_at"]),
        expires_at=parse_timestamp(row["expires_at"]),
        updated_at=parse_timestamp(row["updated_at"]) if row.get("updated_at") else None,
    )
    logger.info(f"Cache hit for user {user_id}: id={entry.id}, access_count={entry.access_count}")
    return entry


async def _delete_row(supabase_client: Client, row_id: int) -> None:
    try:
        supabase_client.table(CACHE_TABLE).delete().eq("id", row_id).execute()
    except (APIError, httpx.HTTPError) as e:
        raise _storage_error("delete", e) from e


async def store_search_results(
    supabase_client: Client,
    request: RecommendationRequest,
    recommendations: Dict[str, Any],
    user_id: int,
    metadata: Dict[str, Any],
) -> int:
    """
    Persist a completed search for 48 hours (CACHE_TTL_HOURS).

    An expired row holding the same fingerprint is removed first so the
    fresh result can take its key.

    Args:
        supabase_client: Service-level Supabase client
        request: The request the result answers
        recommendations: RecommendationsPayload as a dict
        user_id: Owning user
        metadata: CacheMetadata as a dict

    Returns:
        Id of the new cache row

    Raises:
        DuplicateFingerprint: A live row with the same key already exists
        StorageUnavailable: Database unreachable or failed the write
    """
    cache_key = generate_cache_key(request, user_id)
    now = _utc_now()
    expires_at = now + timedelta(hours=settings.CACHE_TTL_HOURS)

    row = {
        "user_id": user_id,
        "cache_key": cache_key,
        "city": request.city.strip(),
        "date_range_start": request.date_range_start.isoformat(),
        "date_range_end": request.date_range_end.isoformat(),
        "attendees": format_attendees(request),
        "preferences": request.preferences or None,
        "recommendations": wrap_blob(recommendations),
        "agent_metadata": wrap_blob(metadata),
        "expires_at": expires_at.isoformat(),
        "access_count": 1,
    }

    try:
        (
            supabase_client.table(CACHE_TABLE)
            .delete()
            .eq("cache_key", cache_key)
            .lte("expires_at", now.isoformat())
            .execute()
        )
        result = supabase_client.table(CACHE_TABLE).insert(row).execute()
    except APIError as e:
        if e.code == UNIQUE_VIOLATION:
            logger.info(f"Cache entry already stored for user {user_id}")
            raise DuplicateFingerprint(cache_key) from e
        raise _storage_error("store", e) from e
    except httpx.HTTPError as e:
        raise _storage_error("store", e) from e

    if not result.data:
        raise StorageUnavailable("Search cache store returned no row")

    cache_id = int(cast(Dict[str, Any], result.data[0])["id"])
    logger.info(f"Stored search results for user {user_id}: id={cache_id}")
    return cache_id


async def get_user_search_history(
    supabase_client: Client,
    user_id: int,
    limit: int = 10,
) -> List[HistoryEntry]:
    """
    Fetch a user's most recent searches, newest first.

    Expired rows are included and flagged with is_expired. Reading history
    does not count as an access.

    Raises:
        StorageUnavailable: Database unreachable or failed the read
    """
    try:
        result = (
            supabase_client.table(CACHE_TABLE)
            .select(HISTORY_COLUMNS)
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
    except (APIError, httpx.HTTPError) as e:
        raise _storage_error("history", e) from e

    now = _utc_now()
    history = []
    for row in cast(List[Dict[str, Any]], result.data or []):
        expires_at = parse_timestamp(row["expires_at"])
        history.append(
            HistoryEntry(
                id=row["id"],
                city=row["city"],
                date_range_start=str(row["date_range_start"]),
                date_range_end=str(row["date_range_end"]),
                attendees=row["attendees"],
                preferences=row.get("preferences"),
                created_at=parse_timestamp(row["created_at"]),
                expires_at=expires_at,
                access_count=row["access_count"],
                is_expired=now >= expires_at,
            )
        )

    logger.info(f"Found {len(history)} history entries for user {user_id}")
    return history


async def purge_expired(supabase_client: Client) -> int:
    """
    Delete every expired cache row.

    Returns:
        Number of deleted rows

    Raises:
        StorageUnavailable: Database unreachable or failed the delete
    """
    try:
        result = (
            supabase_client.table(CACHE_TABLE)
            .delete()
            .lte("expires_at", _utc_now().isoformat())
            .execute()
        )
    except (APIError, httpx.HTTPError) as e:
        raise _storage_error("purge", e) from e

    deleted = len(result.data or [])
    logger.info(f"Purged {deleted} expired cache entries")
    return deleted
