# routers/invoices.py

from enum import Enum
from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.errors import Forbidden, ValidationError
from core.fanout import fetch_all_rows, run_parallel
from core.logging_config import logger
from core.permission_helpers import (
    ensure_authorized,
    is_unrestricted,
    requires_permission,
    scope_filters,
)
from core.permissions import Action, Resource
from core.supabase_helpers import require_client, safe_insert, safe_list, safe_select_one, safe_update
from core.utils import build_pagination, envelope, page_window, sanitize, utc_now, utc_now_iso
from dependencies.auth import Principal, get_current_principal
from models.billing import InvoiceCreate, InvoiceUpdate
from models.enums import InvoiceStatus


router = APIRouter(
    prefix="/invoices",
    tags=["Billing"],
)


INVOICE_COLUMNS = "*, customer:customers(business_name, contact_person, customer_code)"
PAYMENT_COLUMNS = "*, customer:customers(business_name, contact_person)"


class BillingView(str, Enum):
    invoices = "invoices"
    payments = "payments"
    stats = "stats"


# -----------------------------------------------------
# Stats (parallel sums)
# -----------------------------------------------------
def _sum_amounts(client, *, status: Optional[str] = None, since: Optional[str] = None) -> dict:
    filters = {"status": status} if status else {}
    where = (lambda query: query.gte("created_at", since)) if since else None
    rows = fetch_all_rows(client, "invoices", "id, amount", where=where, **filters)

    return {
        "count": len(rows),
        "amount": round(sum(float(r.get("amount") or 0) for r in rows), 2),
    }


def billing_stats(client) -> dict:
    now = utc_now()
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0).isoformat()

    results = run_parallel({
        "all": lambda: _sum_amounts(client),
        "month": lambda: _sum_amounts(client, since=month_start),
        "pending": lambda: _sum_amounts(client, status=InvoiceStatus.pending.value),
        "overdue": lambda: _sum_amounts(client, status=InvoiceStatus.overdue.value),
        "paid": lambda: _sum_amounts(client, status=InvoiceStatus.paid.value),
    })

    return {
        "total_invoices": results["all"]["count"],
        "total_amount": results["all"]["amount"],
        "monthly_invoices": results["month"]["count"],
        "monthly_amount": results["month"]["amount"],
        "paid_amount": results["paid"]["amount"],
        "pending_amount": results["pending"]["amount"],
        "overdue_amount": results["overdue"]["amount"],
        "outstanding_invoices": results["pending"]["count"] + results["overdue"]["count"],
    }


# -----------------------------------------------------
# GET /invoices?type=invoices|payments|stats
# -----------------------------------------------------
@router.get("", summary="Invoices, payments or billing stats")
def get_billing(
    view: BillingView = Query(BillingView.invoices, alias="type"),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    status: Optional[InvoiceStatus] = None,
    customer_id: Optional[str] = None,
    principal: Principal = Depends(get_current_principal),
):
    if view == BillingView.stats:
        ensure_authorized(principal, Resource.invoice, Action.list)
        # Aggregates span every customer; owner-scoped roles never see them
        if not is_unrestricted(principal, Resource.invoice, Action.list):
            raise Forbidden()
        return envelope(stats=billing_stats(require_client()))

    resource = Resource.invoice if view == BillingView.invoices else Resource.payment
    ensure_authorized(principal, resource, Action.list)

    page, limit, start, end = page_window(page, limit)

    scope = scope_filters(principal, resource)
    if scope is None:
        return envelope(**{view.value: []}, pagination=build_pagination(page, limit, 0))

    filters = {}
    if customer_id:
        filters["customer_id"] = customer_id
    if status and resource == Resource.invoice:
        filters["status"] = status.value
    filters.update(scope)

    if resource == Resource.invoice:
        rows, total = safe_list(
            "invoices",
            columns=INVOICE_COLUMNS,
            filters=filters,
            start=start,
            end=end,
            operation="Failed to fetch invoices",
        )
    else:
        rows, total = safe_list(
            "payments",
            columns=PAYMENT_COLUMNS,
            filters=filters,
            order_by="payment_date",
            start=start,
            end=end,
            operation="Failed to fetch payments",
        )

    return envelope(**{view.value: rows}, pagination=build_pagination(page, limit, total))


# -----------------------------------------------------
# CREATE INVOICE
# -----------------------------------------------------
@router.post("", status_code=201, summary="Create invoice")
def create_invoice(
    payload: InvoiceCreate,
    principal: Principal = Depends(requires_permission(Resource.invoice, Action.create)),
):
    safe_select_one("customers", payload.customer_id, "id")

    now = utc_now_iso()
    data = sanitize(payload.model_dump())
    data.update({
        "status": InvoiceStatus.pending.value,
        "created_by": principal.id,
        "created_at": now,
        "updated_at": now,
    })

    invoice = safe_insert("invoices", data, operation="Failed to create invoice")

    logger.info(f"Invoice {invoice.get('id')} for customer {payload.customer_id} created by {principal.id}")
    return envelope(invoice=invoice)


# -----------------------------------------------------
# UPDATE INVOICE
# -----------------------------------------------------
@router.patch("/{invoice_id}", summary="Update invoice")
def update_invoice(
    invoice_id: str,
    payload: InvoiceUpdate,
    principal: Principal = Depends(requires_permission(Resource.invoice, Action.update)),
):
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No fields to update")

    existing = safe_select_one("invoices", invoice_id)
    ensure_authorized(principal, Resource.invoice, Action.update, existing)

    data = sanitize(changes)
    if data.get("status") == InvoiceStatus.paid.value and existing.get("status") != InvoiceStatus.paid.value:
        data["paid_at"] = utc_now_iso()
    data["updated_at"] = utc_now_iso()

    invoice = safe_update("invoices", invoice_id, data, operation="Failed to update invoice")
    return envelope(invoice=invoice)
