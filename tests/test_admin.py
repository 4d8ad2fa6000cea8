import pytest

from modules.catalog.models import Design
from modules.favorite.models import UserFavorite


@pytest.fixture
def pending(make_user):
    return [make_user(f"pending{i}", is_approved=False) for i in range(3)]


def test_admin_routes_gate(client, user):
    assert client.get("/api/admin/users").status_code == 401
    r = client.get("/api/admin/users", headers=user["headers"])
    assert r.status_code == 403
    assert r.json()["error"] == "AUTHORIZATION_ERROR"


def test_list_users_by_status(client, admin, user, pending):
    everyone = client.get("/api/admin/users", headers=admin["headers"]).json()
    assert everyone["data"]["total"] == 5
    assert everyone["pagination"]["total"] == 5

    waiting = client.get("/api/admin/users?status=pending", headers=admin["headers"]).json()
    assert {u["username"] for u in waiting["data"]["users"]} == {"pending0", "pending1", "pending2"}

    paged = client.get("/api/admin/users?per_page=2&page=2", headers=admin["headers"]).json()
    assert len(paged["data"]["users"]) == 2
    assert paged["pagination"]["pages"] == 3

    assert client.get("/api/admin/users?status=weird", headers=admin["headers"]).status_code == 400


def test_pending_list_and_approve(client, admin, pending):
    r = client.get("/api/admin/users/pending", headers=admin["headers"])
    assert r.json()["data"]["count"] == 3

    target = pending[0]
    r = client.post(f"/api/admin/users/{target['id']}/approve", headers=admin["headers"])
    assert r.status_code == 200
    assert r.json()["data"]["user"]["is_approved"] is True

    again = client.post(f"/api/admin/users/{target['id']}/approve", headers=admin["headers"])
    assert again.status_code == 400

    login = client.post("/api/auth/login", json={"username": target["username"], "password": "secret123"})
    assert login.status_code == 200
    assert client.post("/api/admin/users/9999/approve", headers=admin["headers"]).status_code == 404


def test_reject_removes_pending_only(client, admin, user, pending):
    r = client.post(f"/api/admin/users/{pending[0]['id']}/reject", headers=admin["headers"])
    assert r.status_code == 200
    assert client.post(f"/api/admin/users/{user['id']}/reject", headers=admin["headers"]).status_code == 400
    assert client.post(f"/api/admin/users/{admin['id']}/reject", headers=admin["headers"]).status_code == 400
    remaining = client.get("/api/admin/users/pending", headers=admin["headers"]).json()["data"]["count"]
    assert remaining == 2


def test_admin_cannot_act_on_self(client, admin):
    toggle = client.post(f"/api/admin/users/{admin['id']}/toggle-admin", headers=admin["headers"])
    assert toggle.status_code == 400
    delete = client.delete(f"/api/admin/users/{admin['id']}", headers=admin["headers"])
    assert delete.status_code == 400
    assert delete.json()["message"] == "You cannot delete your own account"


def test_toggle_admin_both_ways(client, admin, user):
    url = f"/api/admin/users/{user['id']}/toggle-admin"
    assert client.post(url, headers=admin["headers"]).json()["data"]["user"]["is_admin"] is True
    assert client.get("/api/admin/stats", headers=user["headers"]).status_code == 200
    assert client.post(url, headers=admin["headers"]).json()["data"]["user"]["is_admin"] is False


def test_bulk_approve(client, admin, user, pending):
    ids = [p["id"] for p in pending[:2]] + [user["id"], 9999]
    r = client.post("/api/admin/users/bulk-approve", json={"user_ids": ids}, headers=admin["headers"])
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["approved_count"] == 2
    assert sorted(data["approved_ids"]) == sorted(p["id"] for p in pending[:2])
    assert data["not_found_ids"] == [9999]

    empty = client.post("/api/admin/users/bulk-approve", json={"user_ids": []}, headers=admin["headers"])
    assert empty.status_code == 400


def test_settings_crud(client, admin):
    listed = client.get("/api/admin/settings", headers=admin["headers"]).json()["data"]
    assert "whatsapp_message_template" in {s["key"] for s in listed}

    created = client.post(
        "/api/admin/settings", json={"key": "banner_text", "value": "Diwali sale"}, headers=admin["headers"],
    )
    assert created.status_code == 201
    duplicate = client.post(
        "/api/admin/settings", json={"key": "banner_text", "value": "x"}, headers=admin["headers"],
    )
    assert duplicate.status_code == 409

    updated = client.put("/api/admin/settings/banner_text", json={"value": "Eid sale"}, headers=admin["headers"])
    assert updated.json()["data"]["value"] == "Eid sale"
    assert client.put("/api/admin/settings/banner_text", json={}, headers=admin["headers"]).status_code == 400
    assert client.put("/api/admin/settings/missing", json={"value": "1"}, headers=admin["headers"]).status_code == 404

    assert client.delete("/api/admin/settings/banner_text", headers=admin["headers"]).status_code == 200
    assert client.delete("/api/admin/settings/banner_text", headers=admin["headers"]).status_code == 404


def test_stats(client, admin, user, pending, make_design):
    popular = make_design(title="Popular")
    quiet = make_design(title="Quiet")
    client.put(f"/api/designs/{quiet['id']}", json={"status": "draft"}, headers=admin["headers"])
    client.get(f"/api/designs/{popular['id']}", headers=user["headers"])
    client.post(f"/api/designs/{popular['id']}/favorite", headers=user["headers"])

    r = client.get("/api/admin/stats", headers=admin["headers"])
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["users"] == {"total": 5, "approved": 2, "pending": 3, "admins": 1}
    assert data["designs"]["total"] == 2
    assert data["designs"]["active"] == 1
    assert data["designs"]["draft"] == 1
    assert data["engagement"]["total_views"] == 1
    assert data["engagement"]["total_likes"] == 1
    assert data["engagement"]["total_favorites"] == 1
    assert data["top_designs"]["by_views"][0]["id"] == popular["id"]
    assert all(d["id"] != quiet["id"] for d in data["top_designs"]["by_likes"])
    assert sum(day["designs_created"] for day in data["recent_activity"]) == 2


def test_delete_user_recounts_likes(client, db, admin, user, make_user, make_design):
    design = make_design()
    bob = make_user("bob")
    for who in (user, bob):
        client.post(f"/api/designs/{design['id']}/favorite", headers=who["headers"])

    assert client.delete(f"/api/admin/users/{user['id']}", headers=admin["headers"]).status_code == 200

    db.expire_all()
    rows = db.query(UserFavorite).filter(UserFavorite.design_id == design["id"]).count()
    like_count = db.query(Design.like_count).filter(Design.id == design["id"]).scalar()
    assert rows == 1
    assert like_count == rows
