# tests/test_billing.py

from core.utils import utc_now

from tests.conftest import CUSTOMER_ID, OTHER_CUSTOMER_ID, auth


def _seed_invoices(fake_db):
    this_month = utc_now().replace(day=1, hour=6).isoformat()
    fake_db.tables["invoices"] = [
        {"id": "inv-1", "customer_id": CUSTOMER_ID, "amount": 100.0, "status": "paid",
         "created_at": "2024-11-03T00:00:00+00:00"},
        {"id": "inv-2", "customer_id": CUSTOMER_ID, "amount": 250.5, "status": "pending", "created_at": this_month},
        {"id": "inv-3", "customer_id": OTHER_CUSTOMER_ID, "amount": 80.0, "status": "overdue",
         "created_at": "2024-12-20T00:00:00+00:00"},
        {"id": "inv-4", "customer_id": OTHER_CUSTOMER_ID, "amount": 19.5, "status": "cancelled", "created_at": this_month},
    ]
    fake_db.tables["payments"] = [
        {"id": "pay-1", "customer_id": CUSTOMER_ID, "amount": 100.0, "payment_date": "2024-11-10"},
        {"id": "pay-2", "customer_id": OTHER_CUSTOMER_ID, "amount": 40.0, "payment_date": "2024-12-01"},
    ]


# -------------------------------------------------
# Stats
# -------------------------------------------------
def test_admin_billing_stats_totals(client, fake_db):
    _seed_invoices(fake_db)

    response = client.get("/invoices", params={"type": "stats"}, headers=auth("admin"))

    assert response.status_code == 200
    stats = response.json()["stats"]
    assert stats["total_invoices"] == 4
    assert stats["total_amount"] == 450.0
    assert stats["monthly_invoices"] == 2
    assert stats["monthly_amount"] == 270.0
    assert stats["paid_amount"] == 100.0
    assert stats["pending_amount"] == 250.5
    assert stats["overdue_amount"] == 80.0
    assert stats["outstanding_invoices"] == 2


def test_billing_stats_sum_every_row_past_the_row_cap(client, fake_db):
    fake_db.max_rows = 1000
    fake_db.tables["invoices"] = [
        {"id": f"inv-{n:04d}", "customer_id": CUSTOMER_ID, "amount": 1.0, "status": "pending",
         "created_at": "2024-11-03T00:00:00+00:00"}
        for n in range(1500)
    ]

    stats = client.get("/invoices", params={"type": "stats"}, headers=auth("admin")).json()["stats"]

    assert stats["total_invoices"] == 1500
    assert stats["total_amount"] == 1500.0
    assert stats["pending_amount"] == 1500.0
    assert stats["outstanding_invoices"] == 1500


def test_billing_stats_on_empty_store_are_zero(client):
    response = client.get("/invoices", params={"type": "stats"}, headers=auth("accounts_manager"))
    assert response.status_code == 200
    assert response.json()["stats"]["total_amount"] == 0


def test_customer_cannot_see_billing_stats(client, fake_db):
    _seed_invoices(fake_db)
    response = client.get("/invoices", params={"type": "stats"}, headers=auth("customer"))
    assert response.status_code == 403


def test_technician_has_no_billing_access(client):
    assert client.get("/invoices", headers=auth("technician")).status_code == 403


def test_unknown_view_is_400(client):
    response = client.get("/invoices", params={"type": "ledger"}, headers=auth("admin"))
    assert response.status_code == 400


# -------------------------------------------------
# Listing
# -------------------------------------------------
def test_customer_sees_only_own_invoices(client, fake_db):
    _seed_invoices(fake_db)

    response = client.get("/invoices", headers=auth("customer"))

    assert response.status_code == 200
    assert {i["id"] for i in response.json()["invoices"]} == {"inv-1", "inv-2"}


def test_customer_sees_only_own_payments(client, fake_db):
    _seed_invoices(fake_db)

    response = client.get("/invoices", params={"type": "payments"}, headers=auth("customer"))

    assert [p["id"] for p in response.json()["payments"]] == ["pay-1"]


def test_accounts_manager_filters_by_status(client, fake_db):
    _seed_invoices(fake_db)

    response = client.get("/invoices", params={"status": "overdue"}, headers=auth("accounts_manager"))

    assert [i["id"] for i in response.json()["invoices"]] == ["inv-3"]
    assert response.json()["pagination"] == {"page": 1, "limit": 10, "total": 1, "pages": 1}


# -------------------------------------------------
# Create / update
# -------------------------------------------------
def test_create_invoice(client):
    response = client.post(
        "/invoices",
        json={"customer_id": CUSTOMER_ID, "amount": 120.75, "due_date": "2025-02-28"},
        headers=auth("accounts_manager"),
    )

    assert response.status_code == 201
    invoice = response.json()["invoice"]
    assert invoice["status"] == "pending"
    assert invoice["due_date"] == "2025-02-28"


def test_create_invoice_requires_amount(client):
    response = client.post(
        "/invoices",
        json={"customer_id": CUSTOMER_ID, "due_date": "2025-02-28"},
        headers=auth("accounts_manager"),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "amount is required"


def test_create_invoice_for_unknown_customer_is_404(client):
    response = client.post(
        "/invoices",
        json={"customer_id": "ghost", "amount": 10, "due_date": "2025-02-28"},
        headers=auth("accounts_manager"),
    )
    assert response.status_code == 404


def test_customer_cannot_create_invoice(client):
    response = client.post(
        "/invoices",
        json={"customer_id": CUSTOMER_ID, "amount": 10, "due_date": "2025-02-28"},
        headers=auth("customer"),
    )
    assert response.status_code == 403


def test_marking_paid_stamps_paid_at(client, fake_db):
    _seed_invoices(fake_db)

    response = client.patch("/invoices/inv-2", json={"status": "paid"}, headers=auth("accounts_manager"))

    assert response.status_code == 200
    assert response.json()["invoice"]["paid_at"]
