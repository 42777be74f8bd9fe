# tests/test_admin.py

"""
Admin user management: role registry checks, privileged roles and the
last-admin guard.
"""

import pytest

from tests.conftest import auth


NEW_USER = {
    "email": "new.tech@aquaflow.io",
    "password": "s3cret-pass",
    "full_name": "New Tech",
    "role": "technician",
}


def test_admin_lists_users_with_role_filter(client):
    response = client.get("/admin/users", params={"role": "technician"}, headers=auth("admin"))

    assert response.status_code == 200
    ids = {u["id"] for u in response.json()["users"]}
    assert ids == {"u-technician", "u-technician-2", "u-technician-off"}


def test_non_admin_roles_cannot_list_users(client):
    for role in ("service_manager", "technician", "customer"):
        assert client.get("/admin/users", headers=auth(role)).status_code == 403


def test_create_user_creates_login_and_profile(client, fake_db):
    response = client.post("/admin/users", json=NEW_USER, headers=auth("admin"))

    assert response.status_code == 201
    user = response.json()["user"]
    assert user["role"] == "technician"
    assert user["email"] == "new.tech@aquaflow.io"
    assert any(u["id"] == user["id"] for u in fake_db.rows("users"))


def test_create_user_with_unknown_role_is_400(client, fake_db):
    before = len(fake_db.rows("users"))

    response = client.post("/admin/users", json={**NEW_USER, "role": "superuser"}, headers=auth("admin"))

    assert response.status_code == 400
    assert response.json()["error"].startswith("role must be one of")
    assert len(fake_db.rows("users")) == before


def test_create_user_missing_role_is_400(client):
    body = {k: v for k, v in NEW_USER.items() if k != "role"}
    response = client.post("/admin/users", json=body, headers=auth("admin"))
    assert response.status_code == 400
    assert response.json()["error"] == "role is required"


def test_dept_head_cannot_create_admin(client):
    response = client.post("/admin/users", json={**NEW_USER, "role": "admin"}, headers=auth("dept_head"))
    assert response.status_code == 403


def test_duplicate_email_is_conflict(client):
    response = client.post(
        "/admin/users",
        json={**NEW_USER, "email": "u-technician@aquaflow.io"},
        headers=auth("admin"),
    )
    assert response.status_code == 409


def test_profile_failure_removes_login(client, fake_db):
    fake_db.fail("users", op="insert")

    response = client.post("/admin/users", json=NEW_USER, headers=auth("admin"))

    assert response.status_code == 500
    assert len(fake_db.auth.admin.deleted) == 1


def test_update_user_role(client):
    response = client.patch("/admin/users/u-technician", json={"role": "service_manager"}, headers=auth("admin"))
    assert response.status_code == 200
    assert response.json()["user"]["role"] == "service_manager"


def test_update_user_to_unknown_role_is_400(client):
    response = client.patch("/admin/users/u-technician", json={"role": "owner"}, headers=auth("admin"))
    assert response.status_code == 400


def test_update_user_with_null_role_is_400(client, fake_db):
    response = client.patch("/admin/users/u-technician", json={"role": None}, headers=auth("admin"))

    assert response.status_code == 400
    assert response.json()["error"] == "role cannot be null"
    assert {u["id"]: u for u in fake_db.rows("users")}["u-technician"]["role"] == "technician"


def test_last_admin_cannot_be_demoted(client):
    response = client.patch("/admin/users/u-admin", json={"role": "technician"}, headers=auth("admin"))
    assert response.status_code == 400
    assert "last remaining active admin" in response.json()["error"]


def test_admin_cannot_delete_self(client):
    assert client.delete("/admin/users/u-admin", headers=auth("admin")).status_code == 400


def test_delete_user_removes_login_and_profile(client, fake_db):
    response = client.delete("/admin/users/u-customer-2", headers=auth("admin"))

    assert response.status_code == 200
    assert "u-customer-2" in fake_db.auth.admin.deleted
    assert all(u["id"] != "u-customer-2" for u in fake_db.rows("users"))
    # The deleted login no longer authenticates
    assert client.get("/auth/me", headers=auth("customer-2")).status_code == 401


def test_admin_stats_overview(client, fake_db):
    fake_db.tables["services"] = [
        {"id": "s1", "service_number": "SRV2025010001", "status": "completed", "created_at": "2025-01-05T00:00:00+00:00"},
        {"id": "s2", "service_number": "SRV2025010002", "status": "pending", "created_at": "2025-01-06T00:00:00+00:00"},
    ]

    response = client.get("/admin/stats", headers=auth("admin"))

    assert response.status_code == 200
    overview = response.json()["overview"]
    assert overview["total_services"] == 2
    assert overview["completed_services"] == 1
    assert overview["completion_rate"] == 50
    assert overview["total_technicians"] == 3
    assert response.json()["status_distribution"] == {"completed": 1, "pending": 1}


@pytest.mark.parametrize("role", ["service_manager", "dept_head"])
def test_admin_stats_open_to_operations_leads(client, role):
    assert client.get("/admin/stats", headers=auth(role)).status_code == 200


@pytest.mark.parametrize("role", ["accounts_manager", "product_manager", "driver_manager", "technician", "customer"])
def test_admin_stats_closed_to_other_roles(client, role):
    response = client.get("/admin/stats", headers=auth(role))

    assert response.status_code == 403
    assert "overview" not in response.json()


def test_admin_stats_counts_past_the_row_cap(client, fake_db):
    fake_db.max_rows = 50
    fake_db.tables["services"] = [
        {"id": f"s{n:03d}", "status": "completed" if n % 3 == 0 else "pending",
         "created_at": "2025-01-05T00:00:00+00:00"}
        for n in range(120)
    ]

    response = client.get("/admin/stats", headers=auth("admin"))

    assert response.status_code == 200
    assert response.json()["status_distribution"] == {"completed": 40, "pending": 80}
    assert response.json()["overview"]["completed_services"] == 40
