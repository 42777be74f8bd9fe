# routers/customers.py

from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.errors import Forbidden, ValidationError
from core.logging_config import logger
from core.permission_helpers import ensure_authorized, is_unrestricted, requires_permission
from core.permissions import Action, Resource
from core.supabase_helpers import safe_delete, safe_insert, safe_list, safe_select_one, safe_update
from core.utils import build_pagination, envelope, page_window, sanitize, utc_now_iso
from dependencies.auth import Principal
from models.customer import CustomerCreate, CustomerUpdate
from models.enums import CustomerStatus


router = APIRouter(
    prefix="/customers",
    tags=["Customers"],
)


SEARCH_COLUMNS = ("customer_code", "business_name", "contact_person")

# What a customer may change on their own account
SELF_SERVICE_FIELDS = frozenset({"contact_person", "phone", "email", "service_address", "billing_address"})


# -----------------------------------------------------
# LIST CUSTOMERS (staff)
# -----------------------------------------------------
@router.get("", summary="List customers")
def list_customers(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    search: Optional[str] = None,
    status: Optional[CustomerStatus] = None,
    principal: Principal = Depends(requires_permission(Resource.customer, Action.list)),
):
    page, limit, start, end = page_window(page, limit)
    filters = {"status": status.value} if status else {}

    rows, total = safe_list(
        "customers",
        filters=filters,
        search=search,
        search_columns=SEARCH_COLUMNS,
        start=start,
        end=end,
        operation="Failed to fetch customers",
    )

    return envelope(customers=rows, pagination=build_pagination(page, limit, total))


# -----------------------------------------------------
# GET ONE CUSTOMER
# -----------------------------------------------------
@router.get("/{customer_id}", summary="Get customer")
def get_customer(
    customer_id: str,
    principal: Principal = Depends(requires_permission(Resource.customer, Action.read)),
):
    customer = safe_select_one("customers", customer_id)
    ensure_authorized(principal, Resource.customer, Action.read, customer)
    return envelope(customer=customer)


# -----------------------------------------------------
# CREATE CUSTOMER
# -----------------------------------------------------
@router.post("", status_code=201, summary="Create customer")
def create_customer(
    payload: CustomerCreate,
    principal: Principal = Depends(requires_permission(Resource.customer, Action.create)),
):
    now = utc_now_iso()
    data = sanitize(payload.model_dump())
    data.update({"created_by": principal.id, "created_at": now, "updated_at": now})

    customer = safe_insert("customers", data, operation="Failed to create customer")

    logger.info(f"Customer {customer.get('customer_code')} created by {principal.id}")
    return envelope(customer=customer)


# -----------------------------------------------------
# UPDATE CUSTOMER
# -----------------------------------------------------
@router.patch("/{customer_id}", summary="Update customer")
def update_customer(
    customer_id: str,
    payload: CustomerUpdate,
    principal: Principal = Depends(requires_permission(Resource.customer, Action.update)),
):
    existing = safe_select_one("customers", customer_id)
    ensure_authorized(principal, Resource.customer, Action.update, existing)

    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No fields to update")

    if not is_unrestricted(principal, Resource.customer, Action.update):
        blocked = sorted(set(changes) - SELF_SERVICE_FIELDS)
        if blocked:
            raise Forbidden(f"Cannot modify: {', '.join(blocked)}")

    data = sanitize(changes)
    data["updated_at"] = utc_now_iso()

    customer = safe_update("customers", customer_id, data, operation="Failed to update customer")

    logger.info(f"Customer {customer_id} updated by {principal.id}: {sorted(changes)}")
    return envelope(customer=customer)


# -----------------------------------------------------
# DELETE CUSTOMER
# -----------------------------------------------------
@router.delete("/{customer_id}", summary="Delete customer")
def delete_customer(
    customer_id: str,
    principal: Principal = Depends(requires_permission(Resource.customer, Action.delete)),
):
    safe_select_one("customers", customer_id)
    safe_delete("customers", customer_id, operation="Failed to delete customer")

    logger.info(f"Customer {customer_id} deleted by {principal.id}")
    return envelope(message="Customer deleted", id=customer_id)
