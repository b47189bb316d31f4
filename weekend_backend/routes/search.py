"""
Activity search route (Server-Sent Events).

POST /search streams progress while the agent works and ends with exactly one
terminal event:
- {"type": "complete", "recommendations": ..., "metadata": ..., "cached": ...}
- {"type": "error", "error": <code>, "message": ..., "retryable": ...}

Progress events (start, tool_use, tool_result, finalizing, done) flow through
an asyncio.Queue fed by the agent's event sink. Authentication and request
validation happen before the stream starts, so they still produce 401/422.
"""

import asyncio
import json
from functools import lru_cache
from typing import AsyncGenerator, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from supabase import Client
from weekend_backend.agents.activity import ActivityAgent, AgentEvent, GeminiModel
from weekend_backend.auth.dependencies import AuthenticatedUser, get_authenticated_user
from weekend_backend.db.client import get_db_client
from weekend_backend.schemas.cache import SearchOutcome
from weekend_backend.schemas.search import RecommendationRequest
from weekend_backend.services.activity_search_service import find_activities
from weekend_backend.services.search_service import SerperSearchClient
from weekend_backend.utils.errors import ActivitySearchError
from weekend_backend.utils.logging import describe_request, get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["search"])

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@lru_cache(maxsize=1)
def get_activity_agent() -> ActivityAgent:
    """Build the process-wide agent; run state is per call, not per agent."""
    return ActivityAgent(model=GeminiModel(), search_client=SerperSearchClient())


def format_sse(data: dict) -> str:
    """Encode one SSE data frame."""
    return f"data: {json.dumps(data, ensure_ascii=False)}\n\n"


def _error_frame(error: ActivitySearchError) -> str:
    return format_sse({"type": "error", **error.to_dict()})


@router.post(
    "/search",
    summary="Find weekend activities",
    description="""
    Finds weekend activities for a city, a date range and a party of attendees.

    **Authentication:** Required (Bearer token)

    **Response:** `text/event-stream`. Results are cached per user for 48 hours;
    a cached result is returned immediately with `cached: true`.
    """,
    response_class=StreamingResponse,
)
async def search_endpoint(
    request: RecommendationRequest,
    auth_user: AuthenticatedUser = Depends(get_authenticated_user),
    db_client: Client = Depends(get_db_client),
    agent: ActivityAgent = Depends(get_activity_agent),
) -> StreamingResponse:
    """Stream an activity search as Server-Sent Events."""
    logger.info(f"POST /search called by user_id={auth_user.user_id}, {describe_request(request)}")

    queue: asyncio.Queue[Optional[AgentEvent]] = asyncio.Queue()

    async def run_search() -> SearchOutcome:
        try:
            return await find_activities(
                supabase_client=db_client,
                request=request,
                user_id=auth_user.user_id,
                agent=agent,
                on_event=queue.put_nowait,
            )
        finally:
            queue.put_nowait(None)

    async def event_stream() -> AsyncGenerator[str, None]:
        task = asyncio.create_task(run_search())
        try:
            while (event := await queue.get()) is not None:
                # The terminal error frame is built from the exception below
                if event.type != "error":
                    yield format_sse(event.to_dict())

            outcome = await task
            logger.info(
                f"Search complete for user_id={auth_user.user_id}: "
                f"cached={outcome.cached}, cache_id={outcome.cache_id}"
            )
            yield format_sse(outcome.model_dump(mode="json"))

        except ActivitySearchError as e:
            logger.warning(f"Search failed for user_id={auth_user.user_id}: {e.code}")
            yield _error_frame(e)

        except Exception as e:
            logger.exception(f"Unexpected search failure for user_id={auth_user.user_id}: {e}")
            yield format_sse({
                "type": "error",
                "error": "internal_error",
                "message": "Unexpected error while searching for activities",
                "retryable": True,
            })

        finally:
            if not task.done():
                task.cancel()

    return StreamingResponse(event_stream(), media_type="text/event-stream", headers=SSE_HEADERS)
