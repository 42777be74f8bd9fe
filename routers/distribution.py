# routers/distribution.py

from enum import Enum
from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.errors import ValidationError
from core.logging_config import logger
from core.permission_helpers import ensure_authorized, requires_permission
from core.permissions import Action, Resource
from core.supabase_helpers import safe_insert, safe_list, safe_select_one, safe_update
from core.utils import build_pagination, envelope, page_window, sanitize, utc_now_iso
from dependencies.auth import Principal, get_current_principal
from models.distribution import DistributionCreate, DistributionUpdate
from models.enums import DistributionStatus


router = APIRouter(
    prefix="/distribution",
    tags=["Distribution"],
)


DISTRIBUTION_TABLE = "water_distributions"
DISTRIBUTION_COLUMNS = "*, driver:users!driver_id(full_name, phone)"


class DistributionView(str, Enum):
    distributions = "distributions"
    vehicles = "vehicles"
    routes = "routes"


# view -> (resource, table, columns, order column, descending)
_VIEWS = {
    DistributionView.distributions: (Resource.distribution, DISTRIBUTION_TABLE, DISTRIBUTION_COLUMNS, "scheduled_date", True),
    DistributionView.vehicles: (Resource.vehicle, "vehicles", "*", "vehicle_number", False),
    DistributionView.routes: (Resource.route, "routes", "*", "route_name", False),
}


# -----------------------------------------------------
# GET /distribution?type=distributions|vehicles|routes
# -----------------------------------------------------
@router.get("", summary="Distributions, vehicles or routes")
def get_distribution(
    view: DistributionView = Query(DistributionView.distributions, alias="type"),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    status: Optional[DistributionStatus] = None,
    driver_id: Optional[str] = None,
    principal: Principal = Depends(get_current_principal),
):
    resource, table, columns, order_by, desc = _VIEWS[view]
    ensure_authorized(principal, resource, Action.list)

    page, limit, start, end = page_window(page, limit)

    filters = {}
    if view == DistributionView.distributions:
        if status:
            filters["status"] = status.value
        if driver_id:
            filters["driver_id"] = driver_id

    rows, total = safe_list(
        table,
        columns=columns,
        filters=filters,
        order_by=order_by,
        desc=desc,
        start=start,
        end=end,
        operation=f"Failed to fetch {view.value}",
    )

    return envelope(**{view.value: rows}, pagination=build_pagination(page, limit, total))


# -----------------------------------------------------
# CREATE DISTRIBUTION
# -----------------------------------------------------
@router.post("", status_code=201, summary="Schedule a water distribution")
def create_distribution(
    payload: DistributionCreate,
    principal: Principal = Depends(requires_permission(Resource.distribution, Action.create)),
):
    safe_select_one("vehicles", payload.vehicle_id, "id")
    safe_select_one("routes", payload.route_id, "id")

    now = utc_now_iso()
    data = sanitize(payload.model_dump())
    data.update({
        "status": DistributionStatus.scheduled.value,
        "created_by": principal.id,
        "created_at": now,
        "updated_at": now,
    })

    distribution = safe_insert(DISTRIBUTION_TABLE, data, operation="Failed to create distribution")

    logger.info(f"Distribution {distribution.get('id')} scheduled by {principal.id}")
    return envelope(distribution=distribution)


# -----------------------------------------------------
# UPDATE DISTRIBUTION
# -----------------------------------------------------
@router.patch("/{distribution_id}", summary="Update distribution")
def update_distribution(
    distribution_id: str,
    payload: DistributionUpdate,
    principal: Principal = Depends(requires_permission(Resource.distribution, Action.update)),
):
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No fields to update")

    existing = safe_select_one(DISTRIBUTION_TABLE, distribution_id, label="Distribution")

    data = sanitize(changes)
    if data.get("status") == DistributionStatus.delivered.value and existing.get("status") != DistributionStatus.delivered.value:
        data["delivered_at"] = utc_now_iso()
    data["updated_at"] = utc_now_iso()

    distribution = safe_update(DISTRIBUTION_TABLE, distribution_id, data, operation="Failed to update distribution")

    logger.info(f"Distribution {distribution_id} updated by {principal.id}: {sorted(changes)}")
    return envelope(distribution=distribution)
