"""
Activity search orchestration.

Request flow:
1. Fingerprint the request and look it up in the search cache
2. Hit: return the stored result (access_count already incremented)
3. Miss: run the ActivityAgent under AGENT_TIMEOUT_SECONDS
4. Price the run's usage and build the metadata snapshot
5. Store the result; a concurrent identical store makes this a hit instead

Nothing is stored unless the agent reached DONE. A failed store never
fails the request: the fresh result is returned with cache_id=None.
"""

import asyncio
import logging
import time
from typing import Optional

from supabase import Client
from weekend_backend.agents.activity.agent import ActivityAgent, EventSink
from weekend_backend.agents.activity.types import AgentUsage
from weekend_backend.config import settings
from weekend_backend.schemas.cache import CacheEntry, CacheMetadata, SearchOutcome
from weekend_backend.schemas.search import RecommendationRequest
from weekend_backend.services.cache_service import (
    lookup_cached_search,
    store_search_results,
)
from weekend_backend.services.cost_service import CURRENT_PRICING, PricingTable, estimate_cost
from weekend_backend.utils.errors import (
    DuplicateFingerprint,
    OperationTimeout,
    StorageUnavailable,
)

logger = logging.getLogger(__name__)


def build_metadata(
    usage: AgentUsage,
    execution_time_ms: int,
    pricing: PricingTable = CURRENT_PRICING,
) -> CacheMetadata:
    """Snapshot usage counters and their cost under the given pricing table."""
    breakdown = estimate_cost(
        input_tokens=usage.input_tokens,
        output_tokens=usage.output_tokens,
        search_calls=usage.search_calls,
        model=usage.model,
        pricing=pricing,
    )
    return CacheMetadata(
        prompt_tokens=usage.input_tokens,
        completion_tokens=usage.output_tokens,
        search_count=usage.search_calls,
        iterations=usage.iterations,
        model=usage.model,
        estimated_cost=breakdown.total,
        cost_breakdown=breakdown,
        pricing_version=pricing.version,
        execution_time_ms=execution_time_ms,
    )


def _cached_outcome(entry: CacheEntry) -> SearchOutcome:
    return SearchOutcome(
        recommendations=entry.recommendations,
        metadata=entry.metadata,
        cached=True,
        cache_id=entry.id,
        access_count=entry.access_count,
    )


async def find_activities(
    supabase_client: Client,
    request: RecommendationRequest,
    user_id: int,
    agent: ActivityAgent,
    on_event: Optional[EventSink] = None,
    timeout_seconds: Optional[float] = None,
) -> SearchOutcome:
    """
    Serve a recommendation request from cache or a fresh agent run.

    Args:
        supabase_client: Service-level Supabase client
        request: Validated recommendation request
        user_id: Authenticated numeric user id
        agent: Configured ActivityAgent
        on_event: Optional progress sink forwarded to the agent
        timeout_seconds: Whole-run budget (default AGENT_TIMEOUT_SECONDS)

    Returns:
        SearchOutcome (cached or fresh)

    Raises:
        StorageUnavailable: Cache lookup failed
        OperationTimeout: The agent run exceeded its budget
        ActivitySearchError: Any other aborted agent run
    """
    logger.info(f"find_activities called for user_id={user_id}")

    cached = await lookup_cached_search(supabase_client, request, user_id)
    if cached is not None:
        return _cached_outcome(cached)

    timeout = timeout_seconds or settings.AGENT_TIMEOUT_SECONDS
    started = time.monotonic()
    try:
        result = await asyncio.wait_for(agent.run(request, on_event=on_event), timeout=timeout)
    except asyncio.TimeoutError as e:
        logger.warning(f"Agent run for user_id={user_id} exceeded {timeout}s")
        raise OperationTimeout("agent_run", timeout) from e
    execution_time_ms = int((time.monotonic() - started) * 1000)

    metadata = build_metadata(result.usage, execution_time_ms).model_dump(mode="json")
    recommendations = result.recommendations.model_dump(mode="json")
    logger.info(
        f"Agent run finished in {execution_time_ms}ms, "
        f"estimated cost ${metadata['estimated_cost']:.6f}"
    )

    try:
        cache_id = await store_search_results(
            supabase_client, request, recommendations, user_id, metadata
        )
    except DuplicateFingerprint:
        existing = await _reread_after_duplicate(supabase_client, request, user_id)
        if existing is not None:
            return _cached_outcome(existing)
        cache_id = None
    except StorageUnavailable as e:
        logger.warning(f"Returning uncached result: {e.message}")
        cache_id = None

    return SearchOutcome(
        recommendations=recommendations,
        metadata=metadata,
        cached=False,
        cache_id=cache_id,
    )


async def _reread_after_duplicate(
    supabase_client: Client,
    request: RecommendationRequest,
    user_id: int,
) -> Optional[CacheEntry]:
    """A concurrent identical request stored first; serve its row."""
    try:
        return await lookup_cached_search(supabase_client, request, user_id)
    except StorageUnavailable as e:
        logger.warning(f"Re-read after duplicate store failed: {e.message}")
        return None
