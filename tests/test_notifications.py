# tests/test_notifications.py

from tests.conftest import auth


def _seed(fake_db):
    fake_db.tables["notifications"] = [
        {"id": "n-1", "user_id": "u-technician", "title": "New job", "message": "SRV2025010001",
         "is_read": False, "created_at": "2025-01-10T00:00:00+00:00"},
        {"id": "n-2", "user_id": "u-technician", "title": "Reminder", "message": "Timesheet",
         "is_read": True, "created_at": "2025-01-09T00:00:00+00:00"},
        {"id": "n-3", "user_id": "u-admin", "title": "Report", "message": "Monthly report ready",
         "is_read": False, "created_at": "2025-01-08T00:00:00+00:00"},
    ]


def test_inbox_is_scoped_to_caller(client, fake_db):
    _seed(fake_db)

    response = client.get("/notifications", headers=auth("technician"))

    assert response.status_code == 200
    body = response.json()
    assert [n["id"] for n in body["notifications"]] == ["n-1", "n-2"]
    assert body["unread_count"] == 1


def test_admin_inbox_is_also_scoped(client, fake_db):
    _seed(fake_db)
    response = client.get("/notifications", headers=auth("admin"))
    assert [n["id"] for n in response.json()["notifications"]] == ["n-3"]


def test_unread_only(client, fake_db):
    _seed(fake_db)
    response = client.get("/notifications", params={"unread_only": True}, headers=auth("technician"))
    assert [n["id"] for n in response.json()["notifications"]] == ["n-1"]


def test_mark_all_read(client, fake_db):
    _seed(fake_db)

    response = client.post("/notifications/mark-read", headers=auth("technician"))

    assert response.status_code == 200
    assert response.json()["updated_count"] == 1
    rows = {n["id"]: n for n in fake_db.rows("notifications")}
    assert rows["n-1"]["is_read"] is True
    assert rows["n-3"]["is_read"] is False


def test_mark_read_ignores_other_users_ids(client, fake_db):
    _seed(fake_db)

    response = client.post(
        "/notifications/mark-read",
        json={"notification_ids": ["n-3"]},
        headers=auth("technician"),
    )

    assert response.json()["updated_count"] == 0
    assert {n["id"]: n for n in fake_db.rows("notifications")}["n-3"]["is_read"] is False


def test_cannot_toggle_someone_elses_notification(client, fake_db):
    _seed(fake_db)
    response = client.patch("/notifications/n-3", json={"is_read": True}, headers=auth("technician"))
    assert response.status_code == 403


def test_mark_unread_clears_read_at(client, fake_db):
    _seed(fake_db)
    response = client.patch("/notifications/n-2", json={"is_read": False}, headers=auth("technician"))
    assert response.status_code == 200
    assert response.json()["notification"]["read_at"] is None


def test_service_manager_sends_notification(client, fake_db):
    response = client.post(
        "/notifications",
        json={"user_id": "u-technician", "title": "Assigned", "message": "You have a new job", "type": "assignment"},
        headers=auth("service_manager"),
    )

    assert response.status_code == 201
    assert response.json()["notification"]["is_read"] is False


def test_notification_to_unknown_user_is_404(client):
    response = client.post(
        "/notifications",
        json={"user_id": "ghost", "title": "Hi", "message": "Hello"},
        headers=auth("service_manager"),
    )
    assert response.status_code == 404


def test_customer_cannot_send_notifications(client):
    response = client.post(
        "/notifications",
        json={"user_id": "u-admin", "title": "Hi", "message": "Hello"},
        headers=auth("customer"),
    )
    assert response.status_code == 403
