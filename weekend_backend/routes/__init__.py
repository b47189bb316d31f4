"""
FastAPI routers for all API endpoints.

- search: POST /search (Server-Sent Events)
- history: GET /history
- health: GET /health (public)
- admin: GET /admin/analytics, DELETE /admin/cache/expired
"""
