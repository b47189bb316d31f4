"""
Cache key generation for activity searches.

The cache key is a SHA-256 hash of the normalized request plus the owning
user's id, so identical searches from the same user share a key while two
users never share cache rows.
"""

import hashlib
import json
import re
from typing import Any, Dict

from weekend_backend.schemas.search import RecommendationRequest

_CACHE_KEY_RE = re.compile(r"^[a-f0-9]{64}$")


def _normalize_text(value: str | None) -> str:
    """Lower-case, trim and collapse inner whitespace runs."""
    return " ".join((value or "").lower().split())


def normalize_request(request: RecommendationRequest, user_id: int) -> Dict[str, Any]:
    """
    Build the canonical structure that gets hashed.

    Field order is fixed; attendees are sorted by (age, role) so the order
    the client sent them in never matters.
    """
    attendees = sorted(
        ({"age": a.age, "role": a.role.lower()} for a in request.attendees),
        key=lambda a: (a["age"], a["role"]),
    )
    return {
        "user_id": int(user_id),
        "city": _normalize_text(request.city),
        "date_range_start": request.date_range_start.isoformat(),
        "date_range_end": request.date_range_end.isoformat(),
        "attendees": attendees,
        "preferences": _normalize_text(request.preferences),
    }


def generate_cache_key(request: RecommendationRequest, user_id: int) -> str:
    """
    Generate a deterministic cache key for a request.

    Args:
        request: Validated search request
        user_id: Authenticated numeric user id

    Returns:
        64-character lowercase hex SHA-256 digest
    """
    normalized = normalize_request(request, user_id)
    serialized = json.dumps(normalized, ensure_ascii=False, separators=(",", ":"))
    return hashlib.sha256(serialized.encode("utf-8")).hexdigest()


def is_valid_cache_key(key: str) -> bool:
    """Check that key looks like a SHA-256 hex digest."""
    return bool(_CACHE_KEY_RE.match(key))
