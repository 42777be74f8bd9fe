# routers/technicians.py

from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from core.config import settings
from core.errors import NotFoundError, ValidationError, handle_supabase_error
from core.fanout import fetch_all_rows
from core.logging_config import logger
from core.permission_helpers import ensure_authorized, requires_permission
from core.permissions import Action, Resource
from core.roles import Role
from core.supabase_helpers import require_client, safe_update
from core.utils import envelope, utc_now_iso
from dependencies.auth import Principal
from models.enums import ServiceStatus


router = APIRouter(
    prefix="/technicians",
    tags=["Technicians"],
)


TECHNICIAN_COLUMNS = "id, full_name, email, phone, department, is_active, is_available"

# Statuses that occupy a technician's day
ACTIVE_WORK_STATUSES = [ServiceStatus.assigned.value, ServiceStatus.in_progress.value]


class AvailabilityUpdate(BaseModel):
    is_available: bool


# -----------------------------------------------------
# Helper: Load technician and require it is assignable
# -----------------------------------------------------
def require_active_technician(client, technician_id: str) -> dict:
    try:
        result = (
            client.table("users")
            .select("id, full_name, role, is_active")
            .eq("id", technician_id)
            .limit(1)
            .execute()
        )
    except Exception as e:
        raise handle_supabase_error(e, "Failed to load technician") from e

    if not result.data:
        raise NotFoundError("Technician not found")

    technician = result.data[0]
    if technician.get("role") != Role.technician.value or not technician.get("is_active"):
        raise ValidationError(
            "Invalid technician or technician is not active",
            fields=["technician_id"],
        )
    return technician


def workload_for(client, technician_ids, day: date) -> dict:
    """Scheduled hours per technician for one calendar day."""
    if not technician_ids:
        return {}

    def on_day(query):
        return (
            query.in_("assigned_technician", list(technician_ids))
            .in_("status", ACTIVE_WORK_STATUSES)
            .gte("scheduled_date", f"{day.isoformat()}T00:00:00")
            .lt("scheduled_date", f"{(day + timedelta(days=1)).isoformat()}T00:00:00")
        )

    try:
        services = fetch_all_rows(client, "services", "id, assigned_technician, estimated_hours", where=on_day)
    except Exception as e:
        raise handle_supabase_error(e, "Failed to load technician workload") from e

    hours = {tech_id: 0.0 for tech_id in technician_ids}
    for service in services:
        tech_id = service.get("assigned_technician")
        if tech_id in hours:
            hours[tech_id] += float(service.get("estimated_hours") or 0)
    return hours


# -----------------------------------------------------
# LIST TECHNICIANS (optional workload for a date)
# -----------------------------------------------------
@router.get("", summary="List technicians")
def list_technicians(
    work_date: Optional[date] = Query(None, alias="date", description="YYYY-MM-DD; adds scheduled hours and availability"),
    include_inactive: bool = False,
    principal: Principal = Depends(requires_permission(Resource.technician, Action.list)),
):
    client = require_client()

    try:
        query = (
            client.table("users")
            .select(TECHNICIAN_COLUMNS)
            .eq("role", Role.technician.value)
        )
        if not include_inactive:
            query = query.eq("is_active", True)
        result = query.order("full_name").execute()
    except Exception as e:
        raise handle_supabase_error(e, "Failed to fetch technicians") from e

    technicians = result.data or []

    if work_date:
        hours = workload_for(client, [t["id"] for t in technicians], work_date)
        for tech in technicians:
            scheduled = hours.get(tech["id"], 0.0)
            tech["scheduled_hours"] = scheduled
            tech["availability"] = "available" if scheduled < settings.TECHNICIAN_WORKDAY_HOURS else "busy"

    return envelope(technicians=technicians)


# -----------------------------------------------------
# GET ONE TECHNICIAN
# -----------------------------------------------------
@router.get("/{technician_id}", summary="Get technician")
def get_technician(
    technician_id: str,
    principal: Principal = Depends(requires_permission(Resource.technician, Action.read)),
):
    client = require_client()

    try:
        result = (
            client.table("users")
            .select(TECHNICIAN_COLUMNS + ", role")
            .eq("id", technician_id)
            .eq("role", Role.technician.value)
            .limit(1)
            .execute()
        )
    except Exception as e:
        raise handle_supabase_error(e, "Failed to fetch technician") from e

    if not result.data:
        raise NotFoundError("Technician not found")

    technician = result.data[0]
    ensure_authorized(principal, Resource.technician, Action.read, technician)
    return envelope(technician=technician)


# -----------------------------------------------------
# UPDATE AVAILABILITY
# -----------------------------------------------------
@router.patch("/{technician_id}/availability", summary="Set technician availability")
def update_availability(
    technician_id: str,
    payload: AvailabilityUpdate,
    principal: Principal = Depends(requires_permission(Resource.technician, Action.update)),
):
    client = require_client()

    try:
        result = (
            client.table("users")
            .select("id, role")
            .eq("id", technician_id)
            .limit(1)
            .execute()
        )
    except Exception as e:
        raise handle_supabase_error(e, "Failed to fetch technician") from e

    if not result.data or result.data[0].get("role") != Role.technician.value:
        raise NotFoundError("Technician not found")

    ensure_authorized(principal, Resource.technician, Action.update, result.data[0])

    technician = safe_update(
        "users",
        technician_id,
        {"is_available": payload.is_available, "updated_at": utc_now_iso()},
        operation="Failed to update availability",
    )

    logger.info(f"Technician {technician_id} availability={payload.is_available} (by {principal.id})")
    return envelope(technician=technician)
