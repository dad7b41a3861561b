import pytest

# Exercises the full FastAPI stack: login, dependency-based role checks,
# routers and the database, the way the dashboard frontend drives them.

def test_full_admin_flow(client):
    # 1. Health Check
    res = client.get("/health")
    assert res.status_code == 200

    # 2. Protected route without a token
    res = client.get("/api/creators")
    assert res.status_code == 401

    # 3. Login and verify
    res = client.post("/api/auth/login", json={"username": "admin", "password": "admin123"})
    assert res.status_code == 200
    headers = {"Authorization": f"Bearer {res.json()['token']}"}
    assert client.get("/api/auth/verify", headers=headers).json()["user"]["role"] == "super_admin"

    # 4. Register two creators, feature one
    star = client.post("/api/creators", json={"display_name": "star", "is_featured": True}, headers=headers).json()["id"]
    rookie = client.post("/api/creators", json={"display_name": "rookie"}, headers=headers).json()["id"]

    # 5. Polling agent reports both live, admin takes one offline
    res = client.post(
        "/api/creators/bulk-status",
        json={"updates": [{"id": star, "status": "live", "viewers": 40}, {"id": rookie, "status": "live", "viewers": 2}]},
        headers=headers,
    )
    assert res.json()["count"] == 2
    res = client.post(f"/api/creators/{rookie}/status", json={"status": "offline", "viewers": 0}, headers=headers)
    assert res.status_code == 200

    # 6. Dashboard reflects the writes
    stats = client.get("/api/analytics/dashboard", headers=headers).json()
    assert stats["creators"]["total_creators"] == 2
    assert stats["creators"]["live_creators"] == 1
    assert stats["creators"]["featured_creators"] == 1
    assert stats["creators"]["total_viewers"] == 40
    assert stats["recent_activity"] == [{"event_type": "status_change", "count": 1}]

    # 7. Live filter and export
    live = client.get("/api/creators", params={"status": "live"}, headers=headers).json()
    assert [c["display_name"] for c in live] == ["star"]

    exported = client.get("/api/export/creators", headers=headers).json()
    assert [c["display_name"] for c in exported] == ["star", "rookie"]

    # 8. Remove a creator
    assert client.delete(f"/api/creators/{rookie}", headers=headers).status_code == 200
    assert client.get(f"/api/creators/{rookie}", headers=headers).status_code == 404

@pytest.mark.parametrize("method,path", [
    ("post", "/api/creators"),
    ("put", "/api/creators/1"),
    ("delete", "/api/creators/1"),
    ("post", "/api/creators/1/status"),
    ("get", "/api/subscriptions"),
    ("get", "/api/settings"),
    ("put", "/api/settings"),
    ("get", "/api/export/creators"),
])
def test_admin_routes_reject_non_admin(client, agent_headers, method, path):
    res = getattr(client, method)(path, headers=agent_headers)

    assert res.status_code == 403
    assert res.json() == {"error": "Admin access required"}
