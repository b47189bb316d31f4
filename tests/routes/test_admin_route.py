"""
Tests for the /admin endpoints: role check, analytics and purge.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from weekend_backend.services.cache_service import store_search_results


def _metadata(cost: float) -> dict:
    return {
        "model": "gemini-2.5-flash",
        "estimated_cost": cost,
        "cost_breakdown": {"model_cost": cost, "search_cost": 0.0, "total": cost},
        "search_count": 2,
        "execution_time_ms": 1500,
    }


@pytest.fixture
def seeded(fake_db, activity_request, sample_payload):
    """Three searches by two users, costs 0.010 + 0.020 + 0.0015."""
    ids = []
    for user_id, city, cost in ((42, "Kraków", 0.010), (42, "Gdańsk", 0.020), (7, "Kraków", 0.0015)):
        request = activity_request.model_copy(update={"city": city})
        ids.append(asyncio.run(
            store_search_results(fake_db, request, sample_payload, user_id, _metadata(cost))
        ))
    for day, cache_id in enumerate(ids, start=1):
        fake_db.update_row(cache_id, created_at=f"2025-10-0{day}T10:00:00+00:00")
    return ids


def test_non_admin_gets_403(client, use_db, login):
    login(42)

    assert client.get("/admin/analytics").status_code == 403
    assert client.delete("/admin/cache/expired").status_code == 403


def test_missing_token_returns_401(client, use_db):
    assert client.get("/admin/analytics").status_code == 401


def test_analytics_totals_and_page(client, use_db, login, seeded):
    login(1, role="admin")

    response = client.get("/admin/analytics", params={"page": 1, "limit": 2})

    assert response.status_code == 200
    body = response.json()
    assert body["stats"] == {"total_searches": 3, "total_users": 2, "total_cost": pytest.approx(0.0315)}
    assert [s["id"] for s in body["searches"]] == [seeded[2], seeded[1]]
    newest = body["searches"][0]
    assert newest["user_id"] == 7
    assert newest["cost"] == pytest.approx(0.0015)
    assert newest["model"] == "gemini-2.5-flash"
    assert newest["search_count"] == 2
    assert body["pagination"] == {
        "page": 1,
        "limit": 2,
        "total_pages": 2,
        "total_results": 3,
        "has_next_page": True,
        "has_previous_page": False,
    }


def test_analytics_last_page(client, use_db, login, seeded):
    login(1, role="admin")

    body = client.get("/admin/analytics", params={"page": 2, "limit": 2}).json()

    assert [s["id"] for s in body["searches"]] == [seeded[0]]
    assert body["pagination"]["has_next_page"] is False
    assert body["pagination"]["has_previous_page"] is True


def test_analytics_empty_cache(client, use_db, login):
    login(1, role="admin")

    body = client.get("/admin/analytics").json()

    assert body["stats"] == {"total_searches": 0, "total_users": 0, "total_cost": 0.0}
    assert body["searches"] == []
    assert body["pagination"]["total_pages"] == 0


def test_analytics_outage_returns_503(client, use_db, login):
    login(1, role="admin")
    use_db.fail_with(httpx.ConnectError("connection refused"))

    assert client.get("/admin/analytics").status_code == 503


def test_purge_expired(client, use_db, login, seeded):
    login(1, role="admin")
    past = datetime.now(timezone.utc) - timedelta(hours=1)
    use_db.update_row(seeded[0], expires_at=past.isoformat())

    response = client.delete("/admin/cache/expired")

    assert response.status_code == 200
    assert response.json() == {"deleted": 1}
    assert sorted(row["id"] for row in use_db.rows()) == sorted(seeded[1:])
