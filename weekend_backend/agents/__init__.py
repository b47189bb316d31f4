"""
AI Components for the Weekend Activity Finder backend.

1. ActivityAgent (Tool Loop)
   - Gemini decides when to call the web_search tool (Serper)
   - The backend executes each call and returns plain-text results
   - The final answer is a JSON object parsed into RecommendationsPayload
   - Located in: weekend_backend/agents/activity/

Caching, cost estimation and persistence live in the service layer
(weekend_backend/services/activity_search_service.py), not in the agent.
"""

from weekend_backend.agents.activity import (
    ActivityAgent,
    AgentEvent,
    AgentResult,
    GeminiModel,
)

__all__ = [
    "ActivityAgent",
    "AgentEvent",
    "AgentResult",
    "GeminiModel",
]
