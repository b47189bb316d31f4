"""
ActivityAgent Tool Declarations

The agent has exactly one tool, web_search, backed by
weekend_backend/services/search_service.py.
"""

from google.genai import types

WEB_SEARCH_TOOL_NAME = "web_search"
DEFAULT_NUM_RESULTS = 10

WEB_SEARCH_DECLARATION = types.FunctionDeclaration(
    name=WEB_SEARCH_TOOL_NAME,
    description="""Search Google for information about weekend activities, attractions, and events.
Use this tool to find:
- Indoor play areas and activity centers
- Museums, galleries, and cultural venues
- Outdoor activities (parks, trails, playgrounds)
- Family-friendly restaurants and cafes
- Special events and workshops
- Opening hours, prices, and contact information

Best practices:
- Use specific location queries (e.g., "indoor playground Wrocław")
- Include age-appropriate keywords (e.g., "activities for 5 year old")
- Search in the local language for better local results (e.g., "sale zabaw dla dzieci Wrocław")
- Make multiple searches to get comprehensive results""",
    parameters=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "query": types.Schema(
                type=types.Type.STRING,
                description=(
                    "The search query. Can be in the local language or English. "
                    "Be specific about location and activity type."
                ),
            ),
            "num_results": types.Schema(
                type=types.Type.INTEGER,
                description="Number of results to return (default: 10, max: 100).",
            ),
        },
        required=["query"],
    ),
)

WEB_SEARCH_TOOL = types.Tool(function_declarations=[WEB_SEARCH_DECLARATION])
