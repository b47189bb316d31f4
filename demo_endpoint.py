"""
Quick demo script to run the backend locally.

This script starts a local server and shows how to make requests to the endpoints.
"""

import uvicorn

if __name__ == "__main__":
    print("=" * 60)
    print("Starting Weekend Activity Finder Backend Demo")
    print("=" * 60)
    print()
    print("📌 API Endpoints:")
    print("   - Health Check:  GET  http://localhost:8000/health")
    print("   - Search (SSE):  POST http://localhost:8000/search")
    print("   - History:       GET  http://localhost:8000/history?limit=10")
    print("   - Analytics:     GET  http://localhost:8000/admin/analytics")
    print("   - API Docs:           http://localhost:8000/docs")
    print()
    print("🔐 Authentication:")
    print("   All endpoints (except /health) require:")
    print("   Authorization: Bearer <token>")
    print()
    print("📝 Test with curl:")
    print('   curl -N -X POST "http://localhost:8000/search" \\')
    print('     -H "Authorization: Bearer <token>" \\')
    print('     -H "Content-Type: application/json" \\')
    print('     -d \'{"city": "Kraków", "date_range_start": "2025-11-01", '
          '"date_range_end": "2025-11-02", '
          '"attendees": [{"age": 35, "role": "adult"}, {"age": 5, "role": "child"}], '
          '"preferences": "indoor"}\'')
    print()
    print("=" * 60)
    print("Starting server on http://localhost:8000")
    print("Press Ctrl+C to stop")
    print("=" * 60)
    print()

    uvicorn.run(
        "weekend_backend.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
