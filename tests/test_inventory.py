# tests/test_inventory.py

from tests.conftest import auth


def _seed_products(fake_db):
    fake_db.tables["products"] = [
        {"id": "p-1", "name": "Carbon filter", "category": "filters", "sku": "FLT-01",
         "unit_price": 12.5, "current_stock": 40, "min_stock_level": 10, "is_active": True},
        {"id": "p-2", "name": "RO membrane", "category": "membranes", "sku": "MEM-01",
         "unit_price": 80.0, "current_stock": 3, "min_stock_level": 5, "is_active": True},
        {"id": "p-3", "name": "Booster pump", "category": "pumps", "sku": "PMP-01",
         "unit_price": 300.0, "current_stock": 0, "min_stock_level": 1, "is_active": True},
        {"id": "p-4", "name": "Old meter", "category": "meters", "sku": "MTR-00",
         "unit_price": 20.0, "current_stock": 7, "min_stock_level": 0, "is_active": False},
    ]


# -------------------------------------------------
# Inventory views
# -------------------------------------------------
def test_stock_view_marks_levels(client, fake_db):
    _seed_products(fake_db)

    response = client.get("/inventory", headers=auth("product_manager"))

    assert response.status_code == 200
    levels = {p["id"]: p["stock_status"] for p in response.json()["products"]}
    assert levels == {"p-1": "in_stock", "p-2": "low_stock", "p-3": "out_of_stock"}


def test_inventory_stats(client, fake_db):
    _seed_products(fake_db)

    response = client.get("/inventory", params={"view": "stats"}, headers=auth("product_manager"))

    stats = response.json()["stats"]
    assert stats["total_products"] == 4
    assert stats["active_products"] == 3
    assert stats["low_stock_products"] == 1
    assert stats["out_of_stock_products"] == 1
    assert stats["total_inventory_value"] == 740.0


def test_inventory_views_cover_every_product_past_the_row_cap(client, fake_db):
    _seed_products(fake_db)
    fake_db.max_rows = 2

    stats = client.get("/inventory", params={"view": "stats"}, headers=auth("product_manager")).json()["stats"]
    assert stats["total_inventory_value"] == 740.0
    assert stats["low_stock_products"] == 1
    assert stats["out_of_stock_products"] == 1

    products = client.get("/inventory", headers=auth("product_manager")).json()["products"]
    assert [p["id"] for p in products] == ["p-3", "p-1", "p-2"]


def test_inventory_alerts_put_out_of_stock_first(client, fake_db):
    _seed_products(fake_db)

    response = client.get("/inventory", params={"view": "alerts"}, headers=auth("technician"))

    alerts = response.json()["alerts"]
    assert [a["product_id"] for a in alerts] == ["p-3", "p-2"]
    assert alerts[0]["priority"] == "high"


def test_customer_has_no_inventory_access(client):
    assert client.get("/inventory", headers=auth("customer")).status_code == 403


# -------------------------------------------------
# Stock adjustment
# -------------------------------------------------
def test_restock(client, fake_db):
    _seed_products(fake_db)

    response = client.post(
        "/inventory/adjust",
        json={"product_id": "p-2", "action": "restock", "quantity": 10},
        headers=auth("product_manager"),
    )

    assert response.status_code == 200
    assert response.json()["product"]["current_stock"] == 13


def test_restock_product_with_no_stock_level(client, fake_db):
    fake_db.tables["products"] = [
        {"id": "p-9", "name": "Pressure gauge", "category": "meters", "unit_price": 15.0,
         "current_stock": None, "min_stock_level": 2, "is_active": True},
    ]

    response = client.post(
        "/inventory/adjust",
        json={"product_id": "p-9", "action": "restock", "quantity": 6},
        headers=auth("product_manager"),
    )

    assert response.status_code == 200
    assert response.json()["product"]["current_stock"] == 6
    assert fake_db.rows("products")[0]["current_stock"] == 6


def test_concurrent_change_is_409(client, fake_db):
    _seed_products(fake_db)
    original_table = fake_db.table

    def table(name):
        # Someone else consumes stock between our read and our write
        query = original_table(name)
        original_update = query.update

        def update(data, **kwargs):
            with fake_db.lock:
                fake_db.tables["products"][0]["current_stock"] = 39
            return original_update(data, **kwargs)

        query.update = update
        return query

    fake_db.table = table

    response = client.post(
        "/inventory/adjust",
        json={"product_id": "p-1", "action": "consume", "quantity": 1},
        headers=auth("product_manager"),
    )

    assert response.status_code == 409
    assert fake_db.rows("products")[0]["current_stock"] == 39


def test_consume_more_than_available_is_400(client, fake_db):
    _seed_products(fake_db)

    response = client.post(
        "/inventory/adjust",
        json={"product_id": "p-2", "action": "consume", "quantity": 4},
        headers=auth("product_manager"),
    )

    assert response.status_code == 400
    assert response.json()["fields"] == ["quantity"]
    assert fake_db.rows("products")[1]["current_stock"] == 3


def test_non_positive_quantity_is_400(client, fake_db):
    _seed_products(fake_db)
    response = client.post(
        "/inventory/adjust",
        json={"product_id": "p-1", "action": "consume", "quantity": 0},
        headers=auth("product_manager"),
    )
    assert response.status_code == 400


def test_technician_cannot_adjust_stock(client, fake_db):
    _seed_products(fake_db)
    response = client.post(
        "/inventory/adjust",
        json={"product_id": "p-1", "action": "consume", "quantity": 1},
        headers=auth("technician"),
    )
    assert response.status_code == 403


# -------------------------------------------------
# Products
# -------------------------------------------------
def test_product_search(client, fake_db):
    _seed_products(fake_db)

    response = client.get("/products", params={"search": "membrane"}, headers=auth("service_manager"))

    assert [p["id"] for p in response.json()["products"]] == ["p-2"]


def test_create_product_requires_name(client):
    response = client.post(
        "/products",
        json={"category": "filters", "unit_price": 5},
        headers=auth("product_manager"),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "name is required"


def test_negative_price_is_400(client):
    response = client.post(
        "/products",
        json={"name": "Valve", "category": "fittings", "unit_price": -1},
        headers=auth("product_manager"),
    )
    assert response.status_code == 400


def test_delete_product_is_soft_by_default(client, fake_db):
    _seed_products(fake_db)

    response = client.delete("/products/p-1", headers=auth("product_manager"))

    assert response.status_code == 200
    assert response.json()["product"]["is_active"] is False
    assert len(fake_db.rows("products")) == 4


def test_hard_delete_product(client, fake_db):
    _seed_products(fake_db)

    response = client.delete("/products/p-1", params={"hard_delete": True}, headers=auth("admin"))

    assert response.status_code == 200
    assert len(fake_db.rows("products")) == 3


def test_service_manager_cannot_create_product(client):
    response = client.post(
        "/products",
        json={"name": "Valve", "category": "fittings", "unit_price": 3},
        headers=auth("service_manager"),
    )
    assert response.status_code == 403
