import math
from datetime import datetime, timedelta, timezone

import pytest
from bson import ObjectId

from routes import admin_users


def seed_states(make_user):
    """Two active, one blocked, one inactive, one blocked and inactive."""
    return {
        "active": [make_user(), make_user()],
        "blocked": [
            make_user(is_blocked=True, blocked_reason="Spamming restaurants"),
            make_user(is_blocked=True, is_active=False, blocked_reason="Chargeback fraud"),
        ],
        "inactive": [make_user(is_active=False)],
    }


def test_requires_admin_role(client, user_headers):
    assert client.get("/api/admin/users").status_code == 401
    response = client.get("/api/admin/users", headers=user_headers)
    assert response.status_code == 403
    assert response.json()["success"] is False


def test_list_excludes_sensitive_fields(client, admin_headers, make_user):
    make_user(password_hash="secret-hash", otp="123456")

    response = client.get("/api/admin/users", headers=admin_headers)

    assert response.status_code == 200
    for user in response.json()["data"]:
        assert "password_hash" not in user
        assert "otp" not in user
        assert "otp_expiry" not in user
        assert "_id" in user


def test_list_newest_first(client, admin_headers, db):
    now = datetime.now(timezone.utc)
    for days, name in [(3, "oldest"), (1, "newest"), (2, "middle")]:
        db["user"].insert_one({
            "name": name,
            "email": f"{name}@example.com",
            "is_active": True,
            "is_blocked": False,
            "created_at": now - timedelta(days=days),
        })

    data = client.get("/api/admin/users", headers=admin_headers).json()["data"]

    assert [u["name"] for u in data if u["name"] != "Admin"] == ["newest", "middle", "oldest"]


@pytest.mark.parametrize("limit,page", [(1, 1), (2, 2), (3, 1), (4, 2), (10, 1)])
def test_pagination(client, admin_headers, make_user, limit, page):
    for _ in range(6):
        make_user()
    # plus the admin
    total = 7

    body = client.get(
        "/api/admin/users", headers=admin_headers, params={"page": page, "limit": limit}
    ).json()

    assert body["total"] == total
    assert body["total_pages"] == math.ceil(total / limit)
    assert body["current_page"] == page
    assert body["count"] == len(body["data"]) == min(limit, total - (page - 1) * limit)


def test_page_past_end_is_empty(client, admin_headers):
    body = client.get("/api/admin/users", headers=admin_headers, params={"page": 5}).json()
    assert body["data"] == []
    assert body["count"] == 0
    assert body["current_page"] == 5


def test_invalid_pagination_rejected(client, admin_headers):
    assert client.get("/api/admin/users", headers=admin_headers, params={"page": 0}).status_code == 400
    assert client.get("/api/admin/users", headers=admin_headers, params={"limit": "x"}).status_code == 400


def test_status_filters(client, admin_headers, make_user):
    seeded = seed_states(make_user)
    blocked_and_inactive = seeded["blocked"][1]
    all_ids = {
        u["_id"] for u in client.get("/api/admin/users", headers=admin_headers, params={"limit": 100}).json()["data"]
    }

    seen = {}
    for status in ("active", "blocked", "inactive"):
        data = client.get(
            "/api/admin/users", headers=admin_headers, params={"status": status, "limit": 100}
        ).json()["data"]
        seen[status] = {u["_id"] for u in data}

    assert seen["active"].isdisjoint(seen["blocked"])
    assert seen["active"].isdisjoint(seen["inactive"])
    assert seen["blocked"] == set(seeded["blocked"])
    # inactive is "not is_active", whether or not the user is also blocked
    assert seen["inactive"] == set(seeded["inactive"]) | {blocked_and_inactive}
    assert seen["blocked"] & seen["inactive"] == {blocked_and_inactive}
    assert seen["active"] | seen["blocked"] | seen["inactive"] == all_ids


def test_unknown_status_rejected(client, admin_headers):
    assert client.get("/api/admin/users", headers=admin_headers, params={"status": "deleted"}).status_code == 400


def test_get_user(client, admin_headers, make_user):
    user_id = make_user(name="Asha")

    body = client.get(f"/api/admin/users/{user_id}", headers=admin_headers).json()

    assert body["success"] is True
    assert body["data"]["name"] == "Asha"
    assert body["data"]["status"] == "active"


@pytest.mark.parametrize("user_id", [str(ObjectId()), "not-an-id"])
def test_get_missing_user(client, admin_headers, user_id):
    response = client.get(f"/api/admin/users/{user_id}", headers=admin_headers)
    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "User not found"}


def test_block_reason_length_boundary(client, admin_headers, make_user):
    user_id = make_user()

    short = client.put(f"/api/admin/users/{user_id}/block", headers=admin_headers, json={"reason": "  123456789  "})
    assert short.status_code == 400
    assert short.json()["message"] == "Block reason must be at least 10 characters"

    ok = client.put(f"/api/admin/users/{user_id}/block", headers=admin_headers, json={"reason": "  1234567890  "})
    assert ok.status_code == 200
    assert ok.json()["message"] == "User blocked successfully"
    assert ok.json()["data"]["is_blocked"] is True
    assert ok.json()["data"]["blocked_reason"] == "1234567890"


def test_block_without_body(client, admin_headers, make_user):
    response = client.put(f"/api/admin/users/{make_user()}/block", headers=admin_headers)
    assert response.status_code == 400


def test_block_missing_user(client, admin_headers):
    response = client.put(
        f"/api/admin/users/{ObjectId()}/block", headers=admin_headers, json={"reason": "Abusive language"}
    )
    assert response.status_code == 404


def test_block_twice_rejected_and_state_unchanged(client, admin_headers, make_user, db):
    user_id = make_user()
    client.put(f"/api/admin/users/{user_id}/block", headers=admin_headers, json={"reason": "First reason given"})

    response = client.put(
        f"/api/admin/users/{user_id}/block", headers=admin_headers, json={"reason": "Second reason given"}
    )

    assert response.status_code == 400
    assert response.json()["message"] == "User is already blocked"
    stored = db["user"].find_one({"_id": ObjectId(user_id)})
    assert stored["is_blocked"] is True
    assert stored["blocked_reason"] == "First reason given"


def test_unblock(client, admin_headers, make_user):
    user_id = make_user(is_blocked=True, blocked_reason="Repeated no-shows")

    response = client.put(f"/api/admin/users/{user_id}/unblock", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["message"] == "User unblocked successfully"
    assert response.json()["data"]["is_blocked"] is False
    assert response.json()["data"]["blocked_reason"] == ""


def test_unblock_not_blocked_rejected(client, admin_headers, make_user):
    response = client.put(f"/api/admin/users/{make_user()}/unblock", headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "User is not blocked"


def test_unblock_missing_user(client, admin_headers):
    assert client.put(f"/api/admin/users/{ObjectId()}/unblock", headers=admin_headers).status_code == 404


def test_toggle_twice_restores_state(client, admin_headers, make_user):
    user_id = make_user()

    first = client.put(f"/api/admin/users/{user_id}/toggle-status", headers=admin_headers).json()
    assert first["message"] == "User deactivated successfully"
    assert first["data"]["is_active"] is False

    second = client.put(f"/api/admin/users/{user_id}/toggle-status", headers=admin_headers).json()
    assert second["message"] == "User activated successfully"
    assert second["data"]["is_active"] is True


def test_toggle_missing_user(client, admin_headers):
    assert client.put(f"/api/admin/users/{ObjectId()}/toggle-status", headers=admin_headers).status_code == 404


def test_stats_on_empty_collection(client):
    # the route guard is the only thing needing a user
    from main import app
    from auth import require_admin

    app.dependency_overrides[require_admin] = lambda: {"_id": "admin", "role": "admin"}
    try:
        body = client.get("/api/admin/users/stats").json()
    finally:
        app.dependency_overrides.clear()

    assert body == {
        "success": True,
        "data": {"total": 0, "active": 0, "blocked": 0, "inactive": 0, "new_today": 0},
    }


def test_stats_counts(client, admin_headers, make_user, db):
    seed_states(make_user)
    db["user"].insert_one({
        "name": "Old",
        "email": "old@example.com",
        "is_active": True,
        "is_blocked": False,
        "created_at": datetime.now(timezone.utc) - timedelta(days=2),
    })

    data = client.get("/api/admin/users/stats", headers=admin_headers).json()["data"]

    # admin + five seeded + one old
    assert data["total"] == 7
    assert data["active"] == 4
    assert data["blocked"] == 2
    # the blocked and inactive user is counted in both buckets
    assert data["inactive"] == 2
    assert data["new_today"] == 6
    assert data["active"] + data["blocked"] + data["inactive"] == data["total"] + 1


def test_data_layer_failure_is_500(client, admin_headers, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(admin_users, "count_documents", boom)

    response = client.get("/api/admin/users/stats", headers=admin_headers)

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Internal server error", "error": "connection reset"}


def test_limit_has_no_upper_bound(client, admin_headers, make_user):
    make_user()

    body = client.get("/api/admin/users", headers=admin_headers, params={"limit": 200}).json()

    assert body["success"] is True
    assert body["total_pages"] == 1
    assert body["count"] == 2


def test_block_and_toggle_user_without_flags(client, admin_headers, db):
    user_id = str(db["user"].insert_one({"name": "Legacy", "email": "legacy@example.com"}).inserted_id)

    blocked = client.put(
        f"/api/admin/users/{user_id}/block", headers=admin_headers, json={"reason": "Imported spam account"}
    )
    assert blocked.status_code == 200
    assert blocked.json()["data"]["is_blocked"] is True

    toggled = client.put(f"/api/admin/users/{user_id}/toggle-status", headers=admin_headers)
    assert toggled.status_code == 200
    assert toggled.json()["message"] == "User deactivated successfully"
    assert db["user"].find_one({"_id": ObjectId(user_id)})["is_active"] is False
