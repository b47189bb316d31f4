"""
Gemini adapter for the ActivityAgent tool loop.

Translates transcript turns into google-genai Content objects and classifies
each response as a ToolCallReply, TextReply or EmptyReply. Automatic function
calling is disabled: the agent executes tools itself.
"""

import logging
from typing import List, Optional, Sequence

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from weekend_backend.agents.activity.types import (
    EmptyReply,
    ModelReply,
    TextReply,
    ToolCall,
    ToolCallReply,
    ToolCallTurn,
    ToolResultTurn,
    Turn,
    Usage,
    UserTurn,
)
from weekend_backend.config import settings
from weekend_backend.utils.errors import ModelProviderError, OperationTimeout

logger = logging.getLogger(__name__)


def _to_content(turn: Turn) -> types.Content:
    match turn:
        case UserTurn(text=text):
            return types.Content(role="user", parts=[types.Part(text=text)])
        case ToolCallTurn(raw=raw) if raw is not None:
            # Replayed verbatim so thought signatures survive the round-trip
            return raw
        case ToolCallTurn(calls=calls):
            return types.Content(
                role="model",
                parts=[
                    types.Part(
                        function_call=types.FunctionCall(id=call.id, name=call.name, args=call.args)
                    )
                    for call in calls
                ],
            )
        case ToolResultTurn(results=results):
            return types.Content(
                role="user",
                parts=[
                    types.Part(
                        function_response=types.FunctionResponse(
                            id=result.call_id,
                            name=result.name,
                            response={"error": result.content} if result.is_error else {"output": result.content},
                        )
                    )
                    for result in results
                ],
            )
    raise TypeError(f"Unsupported transcript turn: {type(turn).__name__}")


def _extract_usage(response: types.GenerateContentResponse) -> Usage:
    metadata = response.usage_metadata
    if metadata is None:
        return Usage()
    # Thinking tokens are billed as output tokens
    output_tokens = (metadata.candidates_token_count or 0) + (metadata.thoughts_token_count or 0)
    return Usage(
        input_tokens=metadata.prompt_token_count or 0,
        output_tokens=output_tokens,
    )


def _to_reply(response: types.GenerateContentResponse) -> ModelReply:
    usage = _extract_usage(response)

    if not response.candidates:
        reason = None
        if response.prompt_feedback and response.prompt_feedback.block_reason:
            reason = str(response.prompt_feedback.block_reason)
        return EmptyReply(usage=usage, reason=reason or "no candidates")

    candidate = response.candidates[0]
    parts = (candidate.content.parts if candidate.content else None) or []

    calls = tuple(
        ToolCall(
            id=part.function_call.id,
            name=part.function_call.name or "",
            args=dict(part.function_call.args or {}),
        )
        for part in parts
        if part.function_call
    )
    if calls:
        return ToolCallReply(calls=calls, usage=usage, raw=candidate.content)

    text = "".join(part.text for part in parts if part.text and not part.thought)
    if text.strip():
        return TextReply(text=text, usage=usage)

    return EmptyReply(
        usage=usage,
        reason=str(candidate.finish_reason) if candidate.finish_reason else None,
    )


class GeminiModel:
    """Async Gemini client used by ActivityAgent."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        client: Optional[genai.Client] = None,
    ):
        self.model = model or settings.GEMINI_MODEL
        self.temperature = temperature if temperature is not None else settings.MODEL_TEMPERATURE
        self.max_output_tokens = max_output_tokens or settings.MODEL_MAX_OUTPUT_TOKENS
        self.timeout_seconds = timeout_seconds or settings.MODEL_TIMEOUT_SECONDS

        if client is None:
            api_key = api_key or settings.GOOGLE_API_KEY
            if not api_key:
                raise ValueError(
                    "GOOGLE_API_KEY is not configured. "
                    "Please set it in your .env file to use the ActivityAgent."
                )
            client = genai.Client(
                api_key=api_key,
                http_options=types.HttpOptions(timeout=int(self.timeout_seconds * 1000)),
            )
        self._client = client

    async def generate(
        self,
        system_instruction: str,
        transcript: Sequence[Turn],
        tools: List[types.Tool],
    ) -> ModelReply:
        """
        Send the full transcript and return the classified reply.

        Raises:
            ModelProviderError: The API rejected or failed the request
            OperationTimeout: No answer within MODEL_TIMEOUT_SECONDS
        """
        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            temperature=self.temperature,
            max_output_tokens=self.max_output_tokens,
            tools=tools,
            automatic_function_calling=types.AutomaticFunctionCallingConfig(disable=True),
        )

        try:
            response = await self._client.aio.models.generate_content(
                model=self.model,
                contents=[_to_content(turn) for turn in transcript],
                config=config,
            )
        except genai_errors.APIError as e:
            logger.error(f"Gemini API error: code={e.code} status={e.status}")
            raise ModelProviderError(f"Gemini API error ({e.code}): {e.message}") from e
        except httpx.TimeoutException as e:
            logger.warning(f"Gemini call timed out after {self.timeout_seconds}s")
            raise OperationTimeout("model_call", self.timeout_seconds) from e
        except httpx.HTTPError as e:
            logger.error(f"Gemini transport error: {type(e).__name__}")
            raise ModelProviderError(f"Gemini unreachable: {e}") from e

        return _to_reply(response)
