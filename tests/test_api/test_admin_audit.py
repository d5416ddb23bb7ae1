from fastapi.testclient import TestClient


def test_audit_trail_requires_admin(client: TestClient, owner_headers):
    assert client.get("/api/v1/admin/audit/", headers=owner_headers).status_code == 403
    assert client.get("/api/v1/admin/audit/").status_code == 403


def test_audit_trail_records_transitions(client: TestClient, owner_headers, admin_headers, listing_json):
    listing = client.post("/api/v1/listings/", json=listing_json, headers=owner_headers).json()
    client.post(f"/api/v1/listings/{listing['id']}/approve", headers=admin_headers)

    response = client.get("/api/v1/admin/audit/", headers=admin_headers)
    assert response.status_code == 200
    actions = [entry["action"] for entry in response.json()]
    assert "listing_created" in actions
    assert "listing_approved" in actions

    response = client.get(
        "/api/v1/admin/audit/",
        params={"entity_type": "listing", "actor_principal": "admin-1"},
        headers=admin_headers,
    )
    assert [entry["action"] for entry in response.json()] == ["listing_approved"]


def test_activity_summary(client: TestClient, owner_headers, admin_headers, listing_json):
    client.post("/api/v1/listings/", json=listing_json, headers=owner_headers)

    summary = client.get("/api/v1/admin/audit/summary", headers=admin_headers).json()
    assert summary == {
        "period_hours": 24,
        "total_actions": 1,
        "action_breakdown": {"listing_created": 1},
    }


def test_refused_operations_leave_no_entry(client: TestClient, owner_headers, admin_headers, listing_json):
    listing = client.post("/api/v1/listings/", json=listing_json, headers=owner_headers).json()
    assert client.post(f"/api/v1/listings/{listing['id']}/approve", headers=owner_headers).status_code == 403

    entries = client.get("/api/v1/admin/audit/", headers=admin_headers).json()
    assert [entry["action"] for entry in entries] == ["listing_created"]
    assert set(entries[0]) == {
        "id", "action", "actor_principal", "entity_type", "entity_id", "details", "created_at",
    }


def test_cleanup_keeps_recent_logs(client: TestClient, owner_headers, admin_headers, listing_json):
    client.post("/api/v1/listings/", json=listing_json, headers=owner_headers)

    response = client.post("/api/v1/admin/audit/cleanup", params={"days_to_keep": 30}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["deleted_count"] == 0

    actions = [entry["action"] for entry in client.get("/api/v1/admin/audit/", headers=admin_headers).json()]
    assert actions[0] == "log_cleanup"


def test_error_statistics(client: TestClient, admin_headers):
    response = client.get("/api/v1/admin/audit/errors", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["total_errors"] == 0
