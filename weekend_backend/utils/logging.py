"""
Logging utilities for the Weekend Activity Finder backend.

Privacy rules for every log line:
- NEVER log Supabase Auth tokens, API keys, or secrets
- NEVER log full model output or raw search provider bodies
- NEVER log free-text preferences verbatim (may contain personal details)

Acceptable: cache hit/miss, tool use, iteration counts, costs, error codes,
and request shape as produced by describe_request().
"""

import logging
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from weekend_backend.schemas.search import RecommendationRequest

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def get_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """
    Get a logger for the specified module.

    When the root logger is already configured (main.py calls basicConfig)
    records propagate to it; a stream handler is attached only for scripts
    that import a module without configuring logging.

    Usage:
        >>> from weekend_backend.utils.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Cache hit for user_id=42")
    """
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level)

    if not logger.handlers and not logging.getLogger().handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)
        logger.setLevel(level or logging.INFO)

    return logger


def describe_request(request: "RecommendationRequest") -> str:
    """One-line, log-safe summary of a search request."""
    days = (request.date_range_end - request.date_range_start).days + 1
    return (
        f"city='{' '.join(request.city.lower().split())}', days={days}, "
        f"attendees={len(request.attendees)}, "
        f"preferences={'yes' if request.preferences else 'no'}"
    )
