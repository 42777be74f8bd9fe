# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.

Every test runs against an in-memory Supabase double (tests/fakes.py)
seeded with one active login per role. Requests authenticate with
`Authorization: Bearer token-<role>`.
"""

from typing import Generator

import pytest
from fastapi.testclient import TestClient

from core.cache import cache_clear
from core.rate_limiter import reset_rate_limits
from core.roles import Role
from dependencies.auth import Principal
from main import create_app
from tests.fakes import FakeSupabase


# -------------------------------------------------
# Seed data
# -------------------------------------------------
CUSTOMER_ID = "cust-1"
OTHER_CUSTOMER_ID = "cust-2"
TECHNICIAN_ID = "u-technician"
OTHER_TECHNICIAN_ID = "u-technician-2"

UNIQUE_COLUMNS = {
    "complaints": ["complaint_number"],
    "services": ["service_number"],
    "service_types": ["type_code"],
    "customers": ["customer_code"],
}


def _user(role: str, user_id: str = None, **extra) -> dict:
    user_id = user_id or f"u-{role}"
    return {
        "id": user_id,
        "email": f"{user_id}@aquaflow.io",
        "full_name": user_id.replace("-", " ").title(),
        "phone": None,
        "role": role,
        "department": None,
        "is_active": True,
        "is_available": True,
        "created_at": "2025-01-01T00:00:00+00:00",
        **extra,
    }


def seed_tables() -> dict:
    users = [_user(role.value) for role in Role]
    users += [
        _user(Role.technician.value, OTHER_TECHNICIAN_ID),
        _user(Role.customer.value, "u-customer-2"),
        _user(Role.service_manager.value, "u-inactive", is_active=False),
        _user(Role.technician.value, "u-technician-off", is_active=False),
    ]

    customers = [
        {
            "id": CUSTOMER_ID,
            "user_id": "u-customer",
            "customer_code": "CUST0001",
            "business_name": "Blue Spring Cafe",
            "contact_person": "Ana Silva",
            "status": "active",
            "created_at": "2025-01-02T00:00:00+00:00",
        },
        {
            "id": OTHER_CUSTOMER_ID,
            "user_id": "u-customer-2",
            "customer_code": "CUST0002",
            "business_name": "Hilltop Bakery",
            "contact_person": "Raj Patel",
            "status": "active",
            "created_at": "2025-01-03T00:00:00+00:00",
        },
    ]

    return {
        "users": users,
        "customers": customers,
        "complaints": [],
        "services": [],
        "service_types": [],
        "products": [],
        "invoices": [],
        "payments": [],
        "notifications": [],
        "water_distributions": [],
        "vehicles": [],
        "routes": [],
    }


def make_fake_db() -> FakeSupabase:
    db = FakeSupabase(seed_tables(), unique=UNIQUE_COLUMNS)
    for user in db.tables["users"]:
        token = "token-inactive" if user["id"] == "u-inactive" else f"token-{user['id'][2:]}"
        db.auth.tokens[token] = (user["id"], user["email"])
        db.auth.passwords[user["email"]] = ("correct-horse", token)
    return db


# -------------------------------------------------
# Fixtures
# -------------------------------------------------
@pytest.fixture
def fake_db(monkeypatch) -> FakeSupabase:
    """Seeded Supabase double wired into every module that opens a client."""
    db = make_fake_db()
    for target in (
        "core.supabase_client.get_supabase_client",
        "core.supabase_helpers.get_supabase_client",
        "dependencies.auth.get_supabase_client",
    ):
        monkeypatch.setattr(target, lambda: db)
    return db


@pytest.fixture(scope="function")
def app(fake_db):
    """Create a test FastAPI application instance."""
    return create_app()


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Test client; unhandled errors come back as 500 responses."""
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


def auth(role: str) -> dict:
    """Bearer header for a seeded login, e.g. auth("technician")."""
    return {"Authorization": f"Bearer token-{role}"}


def make_principal(role: Role, **overrides) -> Principal:
    data = {
        "id": f"u-{role.value}",
        "email": f"u-{role.value}@aquaflow.io",
        "role": role,
        "is_active": True,
    }
    if role == Role.customer:
        data["customer_id"] = CUSTOMER_ID
    data.update(overrides)
    return Principal(**data)


@pytest.fixture(autouse=True)
def reset_state():
    """Reset cache and rate limit windows around each test."""
    cache_clear()
    reset_rate_limits()
    yield
    cache_clear()
    reset_rate_limits()
