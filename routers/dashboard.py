# routers/dashboard.py

from fastapi import APIRouter, Depends

from core.fanout import count_rows, fetch_all_rows, run_parallel
from core.permission_helpers import requires_permission
from core.permissions import Action, Resource
from core.roles import Role
from core.supabase_helpers import require_client
from core.utils import envelope
from dependencies.auth import Principal
from models.enums import ComplaintStatus, InvoiceStatus, ServiceStatus


router = APIRouter(
    prefix="/dashboard",
    tags=["Dashboard"],
)


ACTIVE_SERVICE_STATUSES = {
    ServiceStatus.pending.value,
    ServiceStatus.assigned.value,
    ServiceStatus.in_progress.value,
}
PENDING_COMPLAINT_STATUSES = {
    ComplaintStatus.open.value,
    ComplaintStatus.assigned.value,
    ComplaintStatus.in_progress.value,
}


def _count_status(rows, statuses) -> int:
    if isinstance(statuses, str):
        statuses = {statuses}
    return sum(1 for row in rows if row.get("status") in statuses)


# -----------------------------------------------------
# Customer: own services, complaints, billing
# -----------------------------------------------------
def customer_stats(client, principal: Principal) -> dict:
    if not principal.customer_id:
        # Login not linked to a customer account yet: nothing to count
        return {
            "active_services": 0,
            "completed_services": 0,
            "pending_complaints": 0,
            "resolved_complaints": 0,
            "current_bill": 0.0,
            "last_payment_date": None,
        }

    cid = principal.customer_id
    results = run_parallel({
        "services": lambda: fetch_all_rows(client, "services", "id, status", customer_id=cid),
        "complaints": lambda: fetch_all_rows(client, "complaints", "id, status", customer_id=cid),
        "invoices": lambda: fetch_all_rows(client, "invoices", "id, amount, status", customer_id=cid),
        "payments": lambda: fetch_all_rows(client, "payments", "id, payment_date", customer_id=cid),
    })

    unpaid = {InvoiceStatus.pending.value, InvoiceStatus.overdue.value}
    payment_dates = [p["payment_date"] for p in results["payments"] if p.get("payment_date")]

    return {
        "active_services": _count_status(results["services"], ACTIVE_SERVICE_STATUSES),
        "completed_services": _count_status(results["services"], ServiceStatus.completed.value),
        "pending_complaints": _count_status(results["complaints"], PENDING_COMPLAINT_STATUSES),
        "resolved_complaints": _count_status(results["complaints"], ComplaintStatus.resolved.value),
        "current_bill": round(
            sum(float(i.get("amount") or 0) for i in results["invoices"] if i.get("status") in unpaid), 2
        ),
        "last_payment_date": max(payment_dates) if payment_dates else None,
    }


# -----------------------------------------------------
# Technician: own jobs
# -----------------------------------------------------
def technician_stats(client, principal: Principal) -> dict:
    results = run_parallel({
        "services": lambda: fetch_all_rows(
            client, "services", "id, status, estimated_hours, actual_hours", assigned_technician=principal.id
        ),
        "complaints": lambda: fetch_all_rows(client, "complaints", "id, status", assigned_to=principal.id),
    })
    services = results["services"]

    return {
        "assigned_jobs": _count_status(services, ServiceStatus.assigned.value),
        "in_progress_jobs": _count_status(services, ServiceStatus.in_progress.value),
        "completed_jobs": _count_status(services, ServiceStatus.completed.value),
        "total_hours": round(sum(float(s.get("actual_hours") or 0) for s in services), 2),
        "open_complaints": _count_status(results["complaints"], PENDING_COMPLAINT_STATUSES),
    }


# -----------------------------------------------------
# Staff / managers: organisation-wide counts
# -----------------------------------------------------
def staff_stats(client) -> dict:
    results = run_parallel({
        "total_users": lambda: count_rows(client, "users"),
        "active_users": lambda: count_rows(client, "users", is_active=True),
        "total_customers": lambda: count_rows(client, "customers"),
        "total_services": lambda: count_rows(client, "services"),
        "pending_services": lambda: count_rows(client, "services", status=ServiceStatus.pending.value),
        "completed_services": lambda: count_rows(client, "services", status=ServiceStatus.completed.value),
        "total_complaints": lambda: count_rows(client, "complaints"),
        "open_complaints": lambda: count_rows(client, "complaints", status=ComplaintStatus.open.value),
        "resolved_complaints": lambda: count_rows(client, "complaints", status=ComplaintStatus.resolved.value),
    })
    return dict(results)


# -----------------------------------------------------
# GET /dashboard/stats
# -----------------------------------------------------
@router.get("/stats", summary="Dashboard statistics for the caller's role")
def dashboard_stats(
    principal: Principal = Depends(requires_permission(Resource.dashboard, Action.read)),
):
    """
    Shape depends on the caller's role, never on query parameters:
    customers see their own account, technicians their own jobs, and
    everyone else the organisation-wide counts.
    """
    client = require_client()

    if principal.role == Role.customer:
        stats = customer_stats(client, principal)
    elif principal.role == Role.technician:
        stats = technician_stats(client, principal)
    else:
        stats = staff_stats(client)

    return envelope(role=principal.role.value, stats=stats)
