# routers/service_types.py

from typing import Optional

from fastapi import APIRouter, Depends

from core.cache import cache_get, cache_invalidate, cache_set
from core.errors import ValidationError
from core.logging_config import logger
from core.permission_helpers import requires_permission
from core.permissions import Action, Resource
from core.supabase_helpers import safe_delete, safe_insert, safe_list, safe_select_one, safe_update
from core.utils import envelope, sanitize, utc_now_iso
from dependencies.auth import Principal
from models.service_type import ServiceTypeCreate, ServiceTypeUpdate


router = APIRouter(
    prefix="/service-types",
    tags=["Service Types"],
)


CACHE_PREFIX = "service_types:"
CACHE_TTL_SECONDS = 300


# -----------------------------------------------------
# LIST SERVICE TYPES (cached)
# -----------------------------------------------------
@router.get("", summary="List service types")
def list_service_types(
    category: Optional[str] = None,
    include_inactive: bool = False,
    principal: Principal = Depends(requires_permission(Resource.service_type, Action.list)),
):
    cache_key = f"{CACHE_PREFIX}{category or '*'}:{include_inactive}"
    cached = cache_get(cache_key)
    if cached is not None:
        return envelope(service_types=cached)

    filters = {}
    if category:
        filters["category"] = category
    if not include_inactive:
        filters["is_active"] = True

    rows, _ = safe_list(
        "service_types",
        filters=filters,
        order_by="type_name",
        desc=False,
        operation="Failed to fetch service types",
    )

    cache_set(cache_key, rows, CACHE_TTL_SECONDS)
    return envelope(service_types=rows)


# -----------------------------------------------------
# CREATE SERVICE TYPE
# -----------------------------------------------------
@router.post("", status_code=201, summary="Create service type")
def create_service_type(
    payload: ServiceTypeCreate,
    principal: Principal = Depends(requires_permission(Resource.service_type, Action.create)),
):
    now = utc_now_iso()
    data = sanitize(payload.model_dump())
    data["type_code"] = data["type_code"].upper()
    data.update({"created_at": now, "updated_at": now})

    service_type = safe_insert("service_types", data, operation="Failed to create service type")
    cache_invalidate(CACHE_PREFIX)

    logger.info(f"Service type {service_type.get('type_code')} created by {principal.id}")
    return envelope(service_type=service_type)


# -----------------------------------------------------
# UPDATE SERVICE TYPE
# -----------------------------------------------------
@router.patch("/{service_type_id}", summary="Update service type")
def update_service_type(
    service_type_id: str,
    payload: ServiceTypeUpdate,
    principal: Principal = Depends(requires_permission(Resource.service_type, Action.update)),
):
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No fields to update")

    safe_select_one("service_types", service_type_id)

    data = sanitize(changes)
    data["updated_at"] = utc_now_iso()

    service_type = safe_update("service_types", service_type_id, data, operation="Failed to update service type")
    cache_invalidate(CACHE_PREFIX)

    return envelope(service_type=service_type)


# -----------------------------------------------------
# DELETE SERVICE TYPE
# -----------------------------------------------------
@router.delete("/{service_type_id}", summary="Delete service type")
def delete_service_type(
    service_type_id: str,
    principal: Principal = Depends(requires_permission(Resource.service_type, Action.delete)),
):
    safe_select_one("service_types", service_type_id)
    safe_delete("service_types", service_type_id, operation="Failed to delete service type")
    cache_invalidate(CACHE_PREFIX)

    logger.info(f"Service type {service_type_id} deleted by {principal.id}")
    return envelope(message="Service type deleted", id=service_type_id)
