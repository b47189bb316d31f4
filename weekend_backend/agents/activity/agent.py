"""
ActivityAgent Runner

Bounded tool loop: the model decides when to search, the backend executes
each web_search call and feeds the text back, until the model produces the
final JSON answer or the iteration bound is reached.

Usage:
    agent = ActivityAgent(model=GeminiModel(), search_client=SerperSearchClient())
    result = await agent.run(request, on_event=queue.put_nowait)
"""

import asyncio
import json
import logging
import re
from typing import Any, Callable, Optional, Protocol, Sequence

from pydantic import ValidationError

from weekend_backend.agents.activity.prompts import (
    ACTIVITY_SYSTEM_PROMPT,
    MAX_RECOMMENDATIONS,
    MIN_RECOMMENDATIONS,
    build_activity_user_prompt,
)
from weekend_backend.agents.activity.tools import (
    DEFAULT_NUM_RESULTS,
    WEB_SEARCH_TOOL,
    WEB_SEARCH_TOOL_NAME,
)
from weekend_backend.agents.activity.types import (
    AgentEvent,
    AgentResult,
    AgentState,
    AgentToolLoopState,
    AgentUsage,
    EmptyReply,
    ModelReply,
    TextReply,
    ToolCall,
    ToolCallReply,
    ToolCallTurn,
    ToolResult,
    ToolResultTurn,
    Turn,
    UserTurn,
)
from weekend_backend.config import settings
from weekend_backend.schemas.recommendations import RecommendationsPayload
from weekend_backend.schemas.search import RecommendationRequest
from weekend_backend.utils.errors import (
    ActivitySearchError,
    AgentLoopExceeded,
    MalformedAgentOutput,
    SearchProviderError,
)

logger = logging.getLogger(__name__)

EventSink = Callable[[AgentEvent], Any]

_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*(\{[\s\S]*\})\s*```", re.IGNORECASE)


class ModelClient(Protocol):
    model: str

    async def generate(
        self,
        system_instruction: str,
        transcript: Sequence[Turn],
        tools: list,
    ) -> ModelReply:
        ...


class SearchClient(Protocol):
    def search(self, query: str, num_results: int = DEFAULT_NUM_RESULTS) -> str:
        ...


def parse_recommendations(text: str) -> RecommendationsPayload:
    """
    Parse the model's final answer into RecommendationsPayload.

    Accepts bare JSON or JSON wrapped in a ``` / ```json fence.

    Raises:
        MalformedAgentOutput: Not JSON, not an object, or wrong shape
    """
    content = text.strip()
    fenced = _JSON_FENCE_RE.search(content)
    if fenced:
        content = fenced.group(1)

    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise MalformedAgentOutput(f"Final answer is not valid JSON: {e.msg}") from e

    if not isinstance(data, dict):
        raise MalformedAgentOutput("Final answer is not a JSON object")

    try:
        payload = RecommendationsPayload.model_validate(data)
    except ValidationError as e:
        raise MalformedAgentOutput(
            f"Final answer does not match the recommendations schema ({e.error_count()} errors)"
        ) from e

    count = len(payload.recommendations)
    if not MIN_RECOMMENDATIONS <= count <= MAX_RECOMMENDATIONS:
        logger.warning(
            f"Agent returned {count} recommendations "
            f"(expected {MIN_RECOMMENDATIONS}-{MAX_RECOMMENDATIONS})"
        )

    return payload


def _summarize_results(text: str) -> str:
    """Count the numbered entries under "Search Results:" only."""
    organic = 0
    in_results = False
    for line in text.splitlines():
        if line == "Search Results:":
            in_results = True
        elif line.endswith(":") and not line.startswith(" ") and not re.match(r"^\d+\. ", line):
            in_results = False
        elif in_results and re.match(r"^\d+\. ", line):
            organic += 1
    return f"Received {organic} search results"


class ActivityAgent:
    """Drives one activity search from the user prompt to a parsed answer."""

    def __init__(
        self,
        model: ModelClient,
        search_client: SearchClient,
        max_iterations: Optional[int] = None,
    ):
        self.model = model
        self.search_client = search_client
        self.max_iterations = max_iterations or settings.AGENT_MAX_ITERATIONS

    async def run(
        self,
        request: RecommendationRequest,
        on_event: Optional[EventSink] = None,
    ) -> AgentResult:
        """
        Run the tool loop for one request.

        Args:
            request: Validated recommendation request
            on_event: Optional progress sink, called synchronously per event

        Returns:
            AgentResult with the parsed payload and accumulated usage

        Raises:
            AgentLoopExceeded: Tool calls kept coming past max_iterations
            MalformedAgentOutput: Final answer missing or unparsable
            SearchUnavailable, OperationTimeout, ModelProviderError: Aborted run
        """
        loop = AgentToolLoopState(
            usage=AgentUsage(model=self.model.model),
            transcript=[UserTurn(text=build_activity_user_prompt(request))],
        )

        def emit(event_type: str, **data: Any) -> None:
            if on_event is None:
                return
            try:
                on_event(AgentEvent(type=event_type, data=data))
            except Exception as e:
                logger.warning(f"Progress sink failed on '{event_type}' event: {e}")

        emit("start", message="Starting activity search...")
        logger.info(f"ActivityAgent started (max_iterations={self.max_iterations})")

        try:
            return await self._loop(loop, emit)
        except ActivitySearchError as e:
            loop.state = AgentState.ABORTED
            logger.warning(
                f"ActivityAgent aborted after {loop.usage.iterations} iterations: {e.code}"
            )
            emit("error", **e.to_dict())
            raise

    async def _loop(self, loop: AgentToolLoopState, emit: Callable[..., None]) -> AgentResult:
        while loop.usage.iterations < self.max_iterations:
            loop.state = AgentState.REQUESTING
            loop.usage.iterations += 1

            reply = await self.model.generate(
                system_instruction=ACTIVITY_SYSTEM_PROMPT,
                transcript=loop.transcript,
                tools=[WEB_SEARCH_TOOL],
            )
            loop.usage.input_tokens += reply.usage.input_tokens
            loop.usage.output_tokens += reply.usage.output_tokens

            match reply:
                case ToolCallReply(calls=calls, raw=raw):
                    loop.state = AgentState.TOOL_REQUESTED
                    if loop.usage.iterations >= self.max_iterations:
                        break

                    loop.state = AgentState.TOOL_EXECUTING
                    results = []
                    for call in calls:
                        results.append(await self._execute_tool(call, loop, emit))

                    loop.transcript.append(ToolCallTurn(calls=calls, raw=raw))
                    loop.transcript.append(ToolResultTurn(results=tuple(results)))

                case TextReply(text=text):
                    loop.state = AgentState.FINALIZING
                    emit("finalizing", message="Preparing recommendations...")
                    payload = parse_recommendations(text)

                    loop.state = AgentState.DONE
                    logger.info(
                        f"ActivityAgent done: iterations={loop.usage.iterations}, "
                        f"searches={loop.usage.search_calls}, "
                        f"recommendations={len(payload.recommendations)}"
                    )
                    emit("done", message="Search complete")
                    return AgentResult(recommendations=payload, usage=loop.usage)

                case EmptyReply(reason=reason):
                    loop.state = AgentState.FINALIZING
                    raise MalformedAgentOutput(
                        f"Model returned neither text nor tool calls (reason: {reason})"
                    )

        raise AgentLoopExceeded(self.max_iterations)

    async def _execute_tool(
        self,
        call: ToolCall,
        loop: AgentToolLoopState,
        emit: Callable[..., None],
    ) -> ToolResult:
        """
        Execute one requested tool call.

        Provider errors and bad arguments come back as error results so the
        model can react; transport failures propagate and abort the run.
        """
        if call.name != WEB_SEARCH_TOOL_NAME:
            logger.warning(f"Model requested unknown tool '{call.name}'")
            return ToolResult(
                name=call.name,
                call_id=call.id,
                content=f"Unknown tool: {call.name}. Only '{WEB_SEARCH_TOOL_NAME}' is available.",
                is_error=True,
            )

        query = call.args.get("query")
        if not isinstance(query, str) or not query.strip():
            return ToolResult(
                name=call.name,
                call_id=call.id,
                content="Invalid arguments: 'query' must be a non-empty string.",
                is_error=True,
            )

        try:
            num_results = int(call.args.get("num_results") or DEFAULT_NUM_RESULTS)
        except (TypeError, ValueError):
            num_results = DEFAULT_NUM_RESULTS

        emit("tool_use", tool=call.name, input={"query": query, "num_results": num_results})
        loop.usage.search_calls += 1

        try:
            text = await asyncio.to_thread(self.search_client.search, query, num_results)
        except SearchProviderError as e:
            logger.warning(f"web_search provider error (status={e.status_code}), returned to model")
            emit("tool_result", tool=call.name, error=e.message)
            return ToolResult(
                name=call.name,
                call_id=call.id,
                content=f"Error executing search: {e.message}",
                is_error=True,
            )

        emit("tool_result", tool=call.name, result=_summarize_results(text))
        return ToolResult(name=call.name, call_id=call.id, content=text)
