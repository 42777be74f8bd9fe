# routers/admin.py

from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.errors import (
    ConflictError,
    Forbidden,
    InfrastructureError,
    ValidationError,
    extract_supabase_error,
    handle_supabase_error,
)
from core.fanout import count_rows, fetch_all_rows, run_parallel
from core.logging_config import logger
from core.permission_helpers import requires_permission
from core.permissions import Action, Resource
from core.roles import Role, parse_role
from core.supabase_helpers import require_client, safe_insert, safe_list, safe_select_one, safe_update
from core.utils import build_pagination, envelope, page_window, sanitize, utc_now, utc_now_iso
from dependencies.auth import Principal
from models.enums import ServiceStatus
from models.user import AdminCreateUser, AdminUpdateUser


router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
)


USER_COLUMNS = "id, email, full_name, phone, role, department, is_active, created_at, updated_at"
SEARCH_COLUMNS = ("full_name", "email")

# Only an admin may hand these out
PRIVILEGED_ROLES = frozenset({Role.admin, Role.dept_head})

TREND_MONTHS = 6


# -----------------------------------------------------
# Helper: Validate role change
# -----------------------------------------------------
def validate_role_change(requestor: Principal, desired_role: Role):
    if desired_role in PRIVILEGED_ROLES and requestor.role != Role.admin:
        raise Forbidden("Only an admin may assign admin or dept_head roles")


def count_active_admins(client) -> int:
    try:
        return count_rows(client, "users", role=Role.admin.value, is_active=True)
    except Exception as e:
        raise handle_supabase_error(e, "Failed to count admins") from e


# -----------------------------------------------------
# Prevent removing the last active admin
# -----------------------------------------------------
def protect_last_admin(client, target: dict, *, new_role: Optional[Role] = None, deactivate: bool = False, deleting: bool = False):
    if target.get("role") != Role.admin.value or not target.get("is_active"):
        return

    loses_admin = deleting or deactivate or (new_role is not None and new_role != Role.admin)
    if loses_admin and count_active_admins(client) <= 1:
        raise ValidationError("Cannot remove the last remaining active admin")


def _auth_error(e: Exception, operation: str):
    status = getattr(e, "status", None)
    if status in (409, 422):
        return ConflictError("A user with this email already exists")
    if isinstance(status, int) and 400 <= status < 500:
        return ValidationError(f"{operation}: {extract_supabase_error(e)}")
    logger.error(f"{operation}: {extract_supabase_error(e)}", exc_info=e)
    return InfrastructureError(f"{operation} failed")


# -----------------------------------------------------
# LIST USERS
# -----------------------------------------------------
@router.get("/users", summary="Admin: List users")
def list_users(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    role: Optional[Role] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
    principal: Principal = Depends(requires_permission(Resource.user, Action.list)),
):
    page, limit, start, end = page_window(page, limit)

    filters = {}
    if role:
        filters["role"] = role.value
    if is_active is not None:
        filters["is_active"] = is_active

    rows, total = safe_list(
        "users",
        columns=USER_COLUMNS,
        filters=filters,
        search=search,
        search_columns=SEARCH_COLUMNS,
        start=start,
        end=end,
        operation="Failed to fetch users",
    )

    return envelope(users=rows, pagination=build_pagination(page, limit, total))


# -----------------------------------------------------
# CREATE USER (auth login + users profile row)
# -----------------------------------------------------
@router.post("/users", status_code=201, summary="Admin: Create user account")
def create_user(
    payload: AdminCreateUser,
    principal: Principal = Depends(requires_permission(Resource.user, Action.create)),
):
    role = parse_role(payload.role)
    validate_role_change(principal, role)

    client = require_client()
    email = payload.email.strip().lower()

    try:
        auth_resp = client.auth.admin.create_user({
            "email": email,
            "password": payload.password,
            "email_confirm": True,
            "user_metadata": {"full_name": payload.full_name, "role": role.value},
        })
    except Exception as e:
        raise _auth_error(e, "Failed to create login") from e

    auth_user = getattr(auth_resp, "user", None)
    if not auth_user or not auth_user.id:
        raise InfrastructureError("Identity provider returned no user")

    now = utc_now_iso()
    profile = {
        "id": auth_user.id,
        "email": email,
        "full_name": payload.full_name,
        "phone": payload.phone,
        "department": payload.department,
        "role": role.value,
        "is_active": payload.is_active,
        "created_at": now,
        "updated_at": now,
    }

    try:
        user = safe_insert("users", profile, operation="Failed to create user profile")
    except Exception:
        # No profile means the login can never resolve; remove it
        try:
            client.auth.admin.delete_user(auth_user.id)
        except Exception as cleanup_error:
            logger.error(f"Orphaned login {auth_user.id} after profile failure: {cleanup_error}")
        raise

    logger.info(f"User {user['id']} ({role}) created by {principal.id}")
    return envelope(user=user)


# -----------------------------------------------------
# UPDATE USER
# -----------------------------------------------------
@router.patch("/users/{user_id}", summary="Admin: Update user")
def update_user(
    user_id: str,
    payload: AdminUpdateUser,
    principal: Principal = Depends(requires_permission(Resource.user, Action.update)),
):
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No fields to update")

    client = require_client()
    target = safe_select_one("users", user_id, USER_COLUMNS)

    new_role = None
    if changes.get("role") is not None:
        new_role = parse_role(changes["role"])
        validate_role_change(principal, new_role)

    # Changing an existing admin/dept_head is reserved to admins too
    if target.get("role") in {r.value for r in PRIVILEGED_ROLES} and principal.role != Role.admin:
        raise Forbidden("Only an admin may modify admin or dept_head accounts")

    protect_last_admin(
        client,
        target,
        new_role=new_role,
        deactivate=changes.get("is_active") is False,
    )

    data = sanitize(changes)
    data["updated_at"] = utc_now_iso()

    user = safe_update("users", user_id, data, operation="Failed to update user")

    logger.info(f"User {user_id} updated by {principal.id}: {sorted(changes)}")
    return envelope(user=user)


# -----------------------------------------------------
# DELETE USER
# -----------------------------------------------------
@router.delete("/users/{user_id}", summary="Admin: Delete user")
def delete_user(
    user_id: str,
    principal: Principal = Depends(requires_permission(Resource.user, Action.delete)),
):
    if user_id == principal.id:
        raise ValidationError("You cannot delete your own account")

    client = require_client()
    target = safe_select_one("users", user_id, USER_COLUMNS)
    protect_last_admin(client, target, deleting=True)

    try:
        client.auth.admin.delete_user(user_id)
    except Exception as e:
        raise _auth_error(e, "Failed to delete login") from e

    try:
        client.table("users").delete().eq("id", user_id).execute()
    except Exception as e:
        raise handle_supabase_error(e, "Failed to delete user profile") from e

    logger.info(f"User {user_id} ({target.get('role')}) deleted by {principal.id}")
    return envelope(message="User deleted", id=user_id)


# -----------------------------------------------------
# ADMIN STATS
# -----------------------------------------------------
def _month_key(value: Optional[str]) -> Optional[str]:
    return value[:7] if value else None


def admin_stats(client) -> dict:
    since = (utc_now() - timedelta(days=TREND_MONTHS * 31)).isoformat()

    def recent_services():
        return (
            client.table("services")
            .select("id, service_number, status, created_at, customer:customers(business_name)")
            .order("created_at", desc=True)
            .limit(5)
            .execute()
            .data
            or []
        )

    def service_statuses():
        return fetch_all_rows(client, "services", "id, status")

    def trend_rows():
        return fetch_all_rows(client, "services", "id, created_at", where=lambda query: query.gte("created_at", since))

    results = run_parallel({
        "total_customers": lambda: count_rows(client, "customers"),
        "total_services": lambda: count_rows(client, "services"),
        "total_complaints": lambda: count_rows(client, "complaints"),
        "total_technicians": lambda: count_rows(client, "users", role=Role.technician.value),
        "pending_services": lambda: count_rows(client, "services", status=ServiceStatus.pending.value),
        "completed_services": lambda: count_rows(client, "services", status=ServiceStatus.completed.value),
        "recent": recent_services,
        "statuses": service_statuses,
        "trend": trend_rows,
    })

    total = results["total_services"]
    completed = results["completed_services"]

    distribution = {}
    for row in results["statuses"]:
        distribution[row.get("status")] = distribution.get(row.get("status"), 0) + 1

    trends = {}
    for row in results["trend"]:
        key = _month_key(row.get("created_at"))
        if key:
            trends[key] = trends.get(key, 0) + 1

    return {
        "overview": {
            "total_customers": results["total_customers"],
            "total_services": total,
            "total_complaints": results["total_complaints"],
            "total_technicians": results["total_technicians"],
            "pending_services": results["pending_services"],
            "completed_services": completed,
            "completion_rate": round(completed / total * 100) if total else 0,
        },
        "recent_activity": results["recent"],
        "status_distribution": distribution,
        "monthly_trends": dict(sorted(trends.items())),
    }


@router.get("/stats", summary="Admin: Organisation statistics")
def get_admin_stats(
    principal: Principal = Depends(requires_permission(Resource.report, Action.list)),
):
    return envelope(**admin_stats(require_client()))
