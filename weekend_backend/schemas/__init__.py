"""
Pydantic schemas for the activity search API.

Requests are validated strictly before reaching the cache or the agent.
Cached payloads are stored as plain dicts and re-validated where they are read.
"""
