"""
ActivityAgent Package

Tool-using agent that finds weekend activities for a city, a date range and
a party of attendees. The model (Gemini) decides when to call web_search
(Serper); the runner executes the calls and parses the final JSON answer.

Main Components:
- types: transcript turns, model replies, run state and result
- tools: web_search function declaration
- prompts: system prompt and user prompt builder
- model: Gemini adapter
- agent: the bounded tool loop

Usage:
    from weekend_backend.agents.activity import ActivityAgent, GeminiModel

    agent = ActivityAgent(model=GeminiModel(), search_client=SerperSearchClient())
    result = await agent.run(request)
"""

from weekend_backend.agents.activity.agent import ActivityAgent, parse_recommendations
from weekend_backend.agents.activity.model import GeminiModel
from weekend_backend.agents.activity.prompts import (
    ACTIVITY_SYSTEM_PROMPT,
    build_activity_user_prompt,
)
from weekend_backend.agents.activity.types import (
    AgentEvent,
    AgentResult,
    AgentState,
    AgentUsage,
)

__all__ = [
    # Main runner
    "ActivityAgent",
    "GeminiModel",
    "parse_recommendations",
    # Types
    "AgentEvent",
    "AgentResult",
    "AgentState",
    "AgentUsage",
    # Prompts
    "ACTIVITY_SYSTEM_PROMPT",
    "build_activity_user_prompt",
]
