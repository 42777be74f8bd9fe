# routers/services.py

from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.errors import Forbidden, ValidationError
from core.logging_config import logger
from core.permission_helpers import (
    ensure_authorized,
    is_unrestricted,
    raise_for_decision,
    requires_permission,
    scope_filters,
)
from core.permissions import Action, Resource
from core.roles import Role
from core.sequences import SequencePrefix, insert_with_sequence
from core.supabase_helpers import (
    require_client,
    safe_delete,
    safe_list,
    safe_select_one,
    safe_update,
)
from core.transitions import WorkflowEntity, check_status_write
from core.utils import build_pagination, envelope, page_window, sanitize, utc_now_iso
from dependencies.auth import Principal
from models.enums import ServicePriority, ServiceStatus
from models.service import ServiceAssign, ServiceCreate, ServiceReassign, ServiceUpdate
from routers.technicians import require_active_technician


router = APIRouter(
    prefix="/services",
    tags=["Services"],
)


SERVICE_COLUMNS = (
    "*, customer:customers(customer_code, business_name, contact_person, billing_address), "
    "technician:users!services_assigned_technician_fkey(full_name, email, phone)"
)
SEARCH_COLUMNS = ("service_number", "service_type", "description")

_MANAGER_FIELDS = frozenset({
    "service_type",
    "description",
    "priority",
    "status",
    "scheduled_date",
    "estimated_hours",
    "assigned_technician",
    "service_notes",
})

# Fields each role may change on an existing service
SERVICE_WRITABLE_FIELDS = {
    Role.admin: _MANAGER_FIELDS | {"actual_hours", "materials_used"},
    Role.dept_head: _MANAGER_FIELDS | {"actual_hours", "materials_used"},
    Role.service_manager: _MANAGER_FIELDS,
    Role.technician: frozenset({"status", "actual_hours", "service_notes", "materials_used"}),
}


def _completion_stamp(data: dict, existing: dict) -> None:
    if data.get("status") == ServiceStatus.completed.value and existing.get("status") != ServiceStatus.completed.value:
        data["completed_date"] = utc_now_iso()


# -----------------------------------------------------
# LIST SERVICES
# -----------------------------------------------------
@router.get("", summary="List services")
def list_services(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    status: Optional[ServiceStatus] = None,
    priority: Optional[ServicePriority] = None,
    customer_id: Optional[str] = None,
    assigned_technician: Optional[str] = None,
    search: Optional[str] = None,
    principal: Principal = Depends(requires_permission(Resource.service, Action.list)),
):
    page, limit, start, end = page_window(page, limit)

    scope = scope_filters(principal, Resource.service)
    if scope is None:
        return envelope(services=[], pagination=build_pagination(page, limit, 0))

    filters = sanitize({
        "status": status,
        "priority": priority,
        "customer_id": customer_id,
        "assigned_technician": assigned_technician,
    })
    filters = {k: v for k, v in filters.items() if v is not None}
    filters.update(scope)

    rows, total = safe_list(
        "services",
        columns=SERVICE_COLUMNS,
        filters=filters,
        search=search,
        search_columns=SEARCH_COLUMNS,
        start=start,
        end=end,
        operation="Failed to fetch services",
    )

    return envelope(services=rows, pagination=build_pagination(page, limit, total))


# -----------------------------------------------------
# CREATE SERVICE
# -----------------------------------------------------
@router.post("", status_code=201, summary="Create service request")
def create_service(
    payload: ServiceCreate,
    principal: Principal = Depends(requires_permission(Resource.service, Action.create)),
):
    client = require_client()

    if not is_unrestricted(principal, Resource.service, Action.create):
        ensure_authorized(
            principal,
            Resource.service,
            Action.create,
            {"customer_id": payload.customer_id},
        )
        if payload.assigned_technician:
            raise Forbidden("Only staff may assign services")

    if payload.assigned_technician:
        require_active_technician(client, payload.assigned_technician)

    now = utc_now_iso()
    data = sanitize(payload.model_dump())
    data.update({
        "status": ServiceStatus.assigned.value if payload.assigned_technician else ServiceStatus.pending.value,
        "created_by": principal.id,
        "created_at": now,
        "updated_at": now,
    })

    service = insert_with_sequence(
        client,
        "services",
        "service_number",
        SequencePrefix.service.value,
        data,
    )

    logger.info(f"Service {service.get('service_number')} created by {principal.id} ({principal.role})")
    return envelope(service=service)


# -----------------------------------------------------
# ASSIGN SERVICE TO TECHNICIAN
# -----------------------------------------------------
# Declared before /{service_id} so "assign" is not taken as an id.
@router.post("/assign", summary="Assign service to technician")
def assign_service(
    payload: ServiceAssign,
    principal: Principal = Depends(requires_permission(Resource.assignment, Action.create)),
):
    client = require_client()

    safe_select_one("services", payload.service_id)
    require_active_technician(client, payload.technician_id)

    data = {
        "assigned_technician": payload.technician_id,
        "status": ServiceStatus.assigned.value,
        "updated_at": utc_now_iso(),
    }
    if payload.scheduled_date:
        data["scheduled_date"] = payload.scheduled_date

    service = safe_update("services", payload.service_id, data, operation="Failed to assign service")

    logger.info(f"Service {payload.service_id} assigned to {payload.technician_id} by {principal.id}")
    return envelope(service=service, message="Service assigned successfully")


@router.patch("/assign", summary="Reassign service to a different technician")
def reassign_service(
    payload: ServiceReassign,
    principal: Principal = Depends(requires_permission(Resource.assignment, Action.update)),
):
    client = require_client()

    existing = safe_select_one("services", payload.service_id)
    technician = require_active_technician(client, payload.new_technician_id)

    data = {
        "assigned_technician": payload.new_technician_id,
        "status": ServiceStatus.assigned.value,
        "updated_at": utc_now_iso(),
    }

    if payload.reason:
        note = f"[{utc_now_iso()}] Reassigned to {technician.get('full_name') or payload.new_technician_id}. Reason: {payload.reason}"
        notes = existing.get("service_notes") or ""
        data["service_notes"] = f"{notes}\n{note}" if notes else note

    service = safe_update("services", payload.service_id, data, operation="Failed to reassign service")

    logger.info(
        f"Service {payload.service_id} reassigned "
        f"{existing.get('assigned_technician')} -> {payload.new_technician_id} by {principal.id}"
    )
    return envelope(service=service, message="Service reassigned successfully")


# -----------------------------------------------------
# GET ONE SERVICE
# -----------------------------------------------------
@router.get("/{service_id}", summary="Get service")
def get_service(
    service_id: str,
    principal: Principal = Depends(requires_permission(Resource.service, Action.read)),
):
    service = safe_select_one("services", service_id, SERVICE_COLUMNS)
    ensure_authorized(principal, Resource.service, Action.read, service)
    return envelope(service=service)


# -----------------------------------------------------
# UPDATE SERVICE
# -----------------------------------------------------
@router.patch("/{service_id}", summary="Update service")
def update_service(
    service_id: str,
    payload: ServiceUpdate,
    principal: Principal = Depends(requires_permission(Resource.service, Action.update)),
):
    existing = safe_select_one("services", service_id)
    ensure_authorized(principal, Resource.service, Action.update, existing)

    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No fields to update")

    writable = SERVICE_WRITABLE_FIELDS.get(principal.role, frozenset())
    blocked = sorted(set(changes) - writable)
    if blocked:
        raise Forbidden(f"Cannot modify: {', '.join(blocked)}")

    if "status" in changes:
        raise_for_decision(
            check_status_write(principal, WorkflowEntity.service, changes["status"]),
            f"Role {principal.role} may not set service status to {changes['status']}",
        )

    data = sanitize(changes)

    if data.get("assigned_technician"):
        require_active_technician(require_client(), data["assigned_technician"])
        if "status" not in data and existing.get("status") == ServiceStatus.pending.value:
            data["status"] = ServiceStatus.assigned.value

    _completion_stamp(data, existing)
    data["updated_at"] = utc_now_iso()

    service = safe_update("services", service_id, data, operation="Failed to update service")

    logger.info(f"Service {service_id} updated by {principal.id} ({principal.role}): {sorted(changes)}")
    return envelope(service=service)


# -----------------------------------------------------
# DELETE SERVICE
# -----------------------------------------------------
@router.delete("/{service_id}", summary="Delete service")
def delete_service(
    service_id: str,
    principal: Principal = Depends(requires_permission(Resource.service, Action.delete)),
):
    existing = safe_select_one("services", service_id)
    ensure_authorized(principal, Resource.service, Action.delete, existing)

    safe_delete("services", service_id, operation="Failed to delete service")

    logger.info(f"Service {existing.get('service_number')} deleted by {principal.id}")
    return envelope(message="Service deleted", id=service_id)
