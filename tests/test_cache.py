# tests/test_cache.py

"""
Tests for caching functionality.
"""

from core.cache import SimpleCache, cache_clear, cache_get, cache_invalidate, cache_set
from tests.conftest import auth


def test_cache_set_and_get():
    """Test setting and getting values from cache."""
    cache_set("test_key", "test_value", ttl_seconds=60)
    assert cache_get("test_key") == "test_value"


def test_cache_expiration():
    """A zero TTL entry is already expired on the next read."""
    cache = SimpleCache()
    cache.set("expiring_key", "value", ttl_seconds=0)

    assert cache.get("expiring_key") is None
    assert cache.size() == 0


def test_cache_invalidate_prefix():
    cache_set("service_types:*:False", ["a"])
    cache_set("service_types:pipes:True", ["b"])
    cache_set("other:key", "kept")

    cache_invalidate("service_types:")

    assert cache_get("service_types:*:False") is None
    assert cache_get("service_types:pipes:True") is None
    assert cache_get("other:key") == "kept"


def test_cache_clear():
    """Test clearing all cache entries."""
    cache_set("key1", "value1")
    cache_set("key2", "value2")

    cache_clear()

    assert cache_get("key1") is None
    assert cache_get("key2") is None


# -------------------------------------------------
# Service type catalogue caching
# -------------------------------------------------
def test_service_type_list_is_served_from_cache(client, fake_db):
    fake_db.tables["service_types"].append({
        "id": "st-1", "type_code": "INST", "type_name": "Installation", "category": "installation", "is_active": True,
    })

    first = client.get("/service-types", headers=auth("customer"))
    assert first.status_code == 200
    assert [t["type_code"] for t in first.json()["service_types"]] == ["INST"]

    # A row written behind the API's back is not visible until invalidation
    fake_db.tables["service_types"].append({
        "id": "st-2", "type_code": "REPR", "type_name": "Repair", "category": "repair", "is_active": True,
    })
    second = client.get("/service-types", headers=auth("customer"))
    assert len(second.json()["service_types"]) == 1


def test_service_type_create_invalidates_cache(client, fake_db):
    client.get("/service-types", headers=auth("service_manager"))

    created = client.post(
        "/service-types",
        json={"type_code": "maint", "type_name": "Maintenance", "category": "maintenance"},
        headers=auth("service_manager"),
    )
    assert created.status_code == 201
    assert created.json()["service_type"]["type_code"] == "MAINT"

    listed = client.get("/service-types", headers=auth("service_manager"))
    assert [t["type_code"] for t in listed.json()["service_types"]] == ["MAINT"]


def test_service_type_duplicate_code_is_conflict(client):
    body = {"type_code": "INST", "type_name": "Installation", "category": "installation"}
    assert client.post("/service-types", json=body, headers=auth("admin")).status_code == 201

    duplicate = client.post("/service-types", json=body, headers=auth("admin"))
    assert duplicate.status_code == 409
    assert duplicate.json()["reason"] == "conflict"
