"""
Service layer for the Weekend Activity Finder backend.

Contains business logic orchestration that:
- Fingerprints search requests and serves them from the search cache
- Drives the ActivityAgent on cache misses and prices its usage
- Persists fresh results under the requesting user's id
- Wraps the external web-search provider used as the agent's tool

Services act as the glue between routes (HTTP layer) and agents/database.
Modules are imported directly (e.g. ``weekend_backend.services.cache_service``)
so that importing config never pulls in the whole service layer.
"""
