# routers/complaints.py

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
from models.complaint import ComplaintCreate, ComplaintUpdate
from models.enums import ComplaintCategory, ComplaintPriority, ComplaintStatus
from routers.technicians import require_active_technician


router = APIRouter(
    prefix="/complaints",
    tags=["Complaints"],
)


LIST_COLUMNS = "*, customer:customers(customer_code, business_name, contact_person)"
SEARCH_COLUMNS = ("complaint_number", "title", "description")

_MANAGER_FIELDS = frozenset({
    "title",
    "description",
    "category",
    "priority",
    "status",
    "assigned_to",
    "location",
    "resolution_notes",
})

# Fields each role may change on an existing complaint.
# Roles without an update grant never get this far.
COMPLAINT_WRITABLE_FIELDS = {
    Role.admin: _MANAGER_FIELDS,
    Role.dept_head: _MANAGER_FIELDS,
    Role.service_manager: _MANAGER_FIELDS,
    Role.technician: frozenset({"status", "resolution_notes"}),
    Role.customer: frozenset({"status"}),
}


# -----------------------------------------------------
# LIST COMPLAINTS
# -----------------------------------------------------
@router.get("", summary="List complaints")
def list_complaints(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    status: Optional[ComplaintStatus] = None,
    priority: Optional[ComplaintPriority] = None,
    category: Optional[ComplaintCategory] = None,
    customer_id: Optional[str] = None,
    assigned_to: Optional[str] = None,
    search: Optional[str] = None,
    principal: Principal = Depends(requires_permission(Resource.complaint, Action.list)),
):
    """
    Customers only ever see their own complaints and technicians only the
    ones assigned to them; client-supplied customer_id / assigned_to can
    narrow that but never widen it.
    """
    page, limit, start, end = page_window(page, limit)

    scope = scope_filters(principal, Resource.complaint)
    if scope is None:
        return envelope(complaints=[], pagination=build_pagination(page, limit, 0))

    filters = sanitize({
        "status": status,
        "priority": priority,
        "category": category,
        "customer_id": customer_id,
        "assigned_to": assigned_to,
    })
    filters = {k: v for k, v in filters.items() if v is not None}
    filters.update(scope)

    rows, total = safe_list(
        "complaints",
        columns=LIST_COLUMNS,
        filters=filters,
        search=search,
        search_columns=SEARCH_COLUMNS,
        start=start,
        end=end,
        operation="Failed to fetch complaints",
    )

    return envelope(complaints=rows, pagination=build_pagination(page, limit, total))


# -----------------------------------------------------
# GET ONE COMPLAINT
# -----------------------------------------------------
@router.get("/{complaint_id}", summary="Get complaint")
def get_complaint(
    complaint_id: str,
    principal: Principal = Depends(requires_permission(Resource.complaint, Action.read)),
):
    complaint = safe_select_one("complaints", complaint_id, LIST_COLUMNS)
    ensure_authorized(principal, Resource.complaint, Action.read, complaint)
    return envelope(complaint=complaint)


# -----------------------------------------------------
# CREATE COMPLAINT
# -----------------------------------------------------
@router.post("", status_code=201, summary="Create complaint")
def create_complaint(
    payload: ComplaintCreate,
    principal: Principal = Depends(requires_permission(Resource.complaint, Action.create)),
):
    client = require_client()

    # Owner-qualified creators (customers) may only file for their own account
    if not is_unrestricted(principal, Resource.complaint, Action.create):
        ensure_authorized(
            principal,
            Resource.complaint,
            Action.create,
            {"customer_id": payload.customer_id},
        )
        if payload.assigned_to:
            raise Forbidden("Only staff may assign complaints")

    if payload.assigned_to:
        require_active_technician(client, payload.assigned_to)

    now = utc_now_iso()
    data = sanitize(payload.model_dump())
    data.update({
        "status": ComplaintStatus.assigned.value if payload.assigned_to else ComplaintStatus.open.value,
        "reported_by": principal.id,
        "created_at": now,
        "updated_at": now,
    })

    complaint = insert_with_sequence(
        client,
        "complaints",
        "complaint_number",
        SequencePrefix.complaint.value,
        data,
    )

    logger.info(f"Complaint {complaint.get('complaint_number')} created by {principal.id} ({principal.role})")
    return envelope(complaint=complaint)


# -----------------------------------------------------
# UPDATE COMPLAINT
# -----------------------------------------------------
@router.patch("/{complaint_id}", summary="Update complaint")
def update_complaint(
    complaint_id: str,
    payload: ComplaintUpdate,
    principal: Principal = Depends(requires_permission(Resource.complaint, Action.update)),
):
    existing = safe_select_one("complaints", complaint_id)
    ensure_authorized(principal, Resource.complaint, Action.update, existing)

    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No fields to update")

    writable = COMPLAINT_WRITABLE_FIELDS.get(principal.role, frozenset())
    blocked = sorted(set(changes) - writable)
    if blocked:
        raise Forbidden(f"Cannot modify: {', '.join(blocked)}")

    if "status" in changes:
        raise_for_decision(
            check_status_write(principal, WorkflowEntity.complaint, changes["status"]),
            f"Role {principal.role} may not set complaint status to {changes['status']}",
        )

    data = sanitize(changes)

    if data.get("assigned_to"):
        require_active_technician(require_client(), data["assigned_to"])
        if "status" not in data and existing.get("status") == ComplaintStatus.open.value:
            data["status"] = ComplaintStatus.assigned.value

    if data.get("status") == ComplaintStatus.resolved.value and existing.get("status") != ComplaintStatus.resolved.value:
        data["resolved_at"] = utc_now_iso()

    data["updated_at"] = utc_now_iso()

    complaint = safe_update("complaints", complaint_id, data, operation="Failed to update complaint")

    logger.info(f"Complaint {complaint_id} updated by {principal.id} ({principal.role}): {sorted(changes)}")
    return envelope(complaint=complaint)


# -----------------------------------------------------
# DELETE COMPLAINT
# -----------------------------------------------------
@router.delete("/{complaint_id}", summary="Delete complaint")
def delete_complaint(
    complaint_id: str,
    principal: Principal = Depends(requires_permission(Resource.complaint, Action.delete)),
):
    existing = safe_select_one("complaints", complaint_id)
    ensure_authorized(principal, Resource.complaint, Action.delete, existing)

    safe_delete("complaints", complaint_id, operation="Failed to delete complaint")

    logger.info(f"Complaint {existing.get('complaint_number')} deleted by {principal.id}")
    return envelope(message="Complaint deleted", id=complaint_id)
