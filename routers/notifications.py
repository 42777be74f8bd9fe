# routers/notifications.py

from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.errors import handle_supabase_error
from core.logging_config import logger
from core.permission_helpers import ensure_authorized, requires_permission, scope_filters
from core.permissions import Action, Resource
from core.supabase_helpers import (
    require_client,
    safe_delete,
    safe_insert,
    safe_list,
    safe_select_one,
    safe_update,
)
from core.utils import build_pagination, envelope, page_window, sanitize, utc_now_iso
from dependencies.auth import Principal
from models.notification import MarkReadRequest, NotificationCreate, NotificationUpdate


router = APIRouter(
    prefix="/notifications",
    tags=["Notifications"],
)


def _unread_count(client, user_id: str) -> int:
    try:
        result = (
            client.table("notifications")
            .select("id", count="exact")
            .eq("user_id", user_id)
            .eq("is_read", False)
            .execute()
        )
    except Exception as e:
        raise handle_supabase_error(e, "Failed to count unread notifications") from e
    return result.count or 0


# -----------------------------------------------------
# LIST MY NOTIFICATIONS
# -----------------------------------------------------
@router.get("", summary="List the caller's notifications")
def list_notifications(
    unread_only: bool = False,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    principal: Principal = Depends(requires_permission(Resource.notification, Action.list)),
):
    page, limit, start, end = page_window(page, limit)

    # Every role's inbox is owner-scoped, admins included
    filters = dict(scope_filters(principal, Resource.notification) or {"user_id": principal.id})
    if unread_only:
        filters["is_read"] = False

    rows, total = safe_list(
        "notifications",
        filters=filters,
        start=start,
        end=end,
        operation="Failed to fetch notifications",
    )

    return envelope(
        notifications=rows,
        unread_count=_unread_count(require_client(), principal.id),
        pagination=build_pagination(page, limit, total),
    )


# -----------------------------------------------------
# CREATE NOTIFICATION (staff → user)
# -----------------------------------------------------
@router.post("", status_code=201, summary="Send a notification")
def create_notification(
    payload: NotificationCreate,
    principal: Principal = Depends(requires_permission(Resource.notification, Action.create)),
):
    safe_select_one("users", payload.user_id, "id")

    data = sanitize(payload.model_dump())
    data.update({
        "is_read": False,
        "created_by": principal.id,
        "created_at": utc_now_iso(),
    })

    notification = safe_insert("notifications", data, operation="Failed to create notification")

    logger.info(f"Notification {notification.get('id')} sent to {payload.user_id} by {principal.id}")
    return envelope(notification=notification)


# -----------------------------------------------------
# MARK READ (bulk)
# -----------------------------------------------------
@router.post("/mark-read", summary="Mark the caller's notifications as read")
def mark_read(
    payload: Optional[MarkReadRequest] = None,
    principal: Principal = Depends(requires_permission(Resource.notification, Action.update)),
):
    client = require_client()
    ids = payload.notification_ids if payload else None

    try:
        query = (
            client.table("notifications")
            .update({"is_read": True, "read_at": utc_now_iso()}, returning="representation")
            .eq("user_id", principal.id)
        )
        if ids:
            query = query.in_("id", ids)
        else:
            query = query.eq("is_read", False)
        result = query.execute()
    except Exception as e:
        raise handle_supabase_error(e, "Failed to update notifications") from e

    return envelope(updated_count=len(result.data or []))


# -----------------------------------------------------
# MARK ONE READ / UNREAD
# -----------------------------------------------------
@router.patch("/{notification_id}", summary="Mark a notification read or unread")
def update_notification(
    notification_id: str,
    payload: NotificationUpdate,
    principal: Principal = Depends(requires_permission(Resource.notification, Action.update)),
):
    existing = safe_select_one("notifications", notification_id)
    ensure_authorized(principal, Resource.notification, Action.update, existing)

    data = {
        "is_read": payload.is_read,
        "read_at": utc_now_iso() if payload.is_read else None,
    }

    notification = safe_update("notifications", notification_id, data, operation="Failed to update notification")
    return envelope(notification=notification)


# -----------------------------------------------------
# DELETE NOTIFICATION (admin)
# -----------------------------------------------------
@router.delete("/{notification_id}", summary="Delete notification")
def delete_notification(
    notification_id: str,
    principal: Principal = Depends(requires_permission(Resource.notification, Action.delete)),
):
    existing = safe_select_one("notifications", notification_id)
    ensure_authorized(principal, Resource.notification, Action.delete, existing)

    safe_delete("notifications", notification_id, operation="Failed to delete notification")

    logger.info(f"Notification {notification_id} deleted by {principal.id}")
    return envelope(message="Notification deleted", id=notification_id)
