# routers/inventory.py

from enum import Enum

from fastapi import APIRouter, Depends

from core.errors import ConflictError, ValidationError, handle_supabase_error
from core.fanout import count_rows, fetch_all_rows, run_parallel
from core.logging_config import logger
from core.permission_helpers import requires_permission
from core.permissions import Action, Resource
from core.supabase_helpers import require_client, safe_select_one
from core.utils import envelope, utc_now_iso
from dependencies.auth import Principal
from models.enums import StockAction
from models.product import StockAdjustment


router = APIRouter(
    prefix="/inventory",
    tags=["Inventory"],
)


STOCK_COLUMNS = "id, name, category, sku, unit_type, unit_price, current_stock, min_stock_level, is_active"


class InventoryView(str, Enum):
    stock = "stock"
    stats = "stats"
    alerts = "alerts"


def stock_status(product: dict) -> str:
    current = product.get("current_stock") or 0
    minimum = product.get("min_stock_level") or 0
    if current <= 0:
        return "out_of_stock"
    if current <= minimum:
        return "low_stock"
    return "in_stock"


def _stock_rows(client) -> list:
    return fetch_all_rows(client, "products", STOCK_COLUMNS, is_active=True)


def _stats(client) -> dict:
    results = run_parallel({
        "total": lambda: count_rows(client, "products"),
        "active": lambda: count_rows(client, "products", is_active=True),
        "stock": lambda: _stock_rows(client),
    })

    statuses = [stock_status(p) for p in results["stock"]]
    value = sum(
        (p.get("current_stock") or 0) * float(p.get("unit_price") or 0)
        for p in results["stock"]
    )

    return {
        "total_products": results["total"],
        "active_products": results["active"],
        "low_stock_products": statuses.count("low_stock"),
        "out_of_stock_products": statuses.count("out_of_stock"),
        "total_inventory_value": round(value, 2),
    }


def _alerts(rows: list) -> list:
    alerts = []
    for product in rows:
        status = stock_status(product)
        if status == "in_stock":
            continue
        alerts.append({
            "product_id": product["id"],
            "product_name": product.get("name"),
            "current_stock": product.get("current_stock") or 0,
            "min_stock_level": product.get("min_stock_level") or 0,
            "status": status,
            "priority": "high" if status == "out_of_stock" else "medium",
        })
    alerts.sort(key=lambda a: (a["priority"] != "high", a["current_stock"]))
    return alerts


# -----------------------------------------------------
# GET /inventory?view=stock|stats|alerts
# -----------------------------------------------------
@router.get("", summary="Stock levels, stats or low-stock alerts")
def get_inventory(
    view: InventoryView = InventoryView.stock,
    principal: Principal = Depends(requires_permission(Resource.inventory, Action.list)),
):
    client = require_client()

    if view == InventoryView.stats:
        return envelope(stats=_stats(client))

    try:
        rows = _stock_rows(client)
    except Exception as e:
        raise handle_supabase_error(e, "Failed to fetch inventory") from e
    rows.sort(key=lambda p: p.get("name") or "")

    if view == InventoryView.alerts:
        return envelope(alerts=_alerts(rows))

    for product in rows:
        product["stock_status"] = stock_status(product)
    return envelope(products=rows)


# -----------------------------------------------------
# POST /inventory/adjust
# -----------------------------------------------------
@router.post("/adjust", summary="Restock or consume stock")
def adjust_stock(
    payload: StockAdjustment,
    principal: Principal = Depends(requires_permission(Resource.inventory, Action.update)),
):
    client = require_client()
    product = safe_select_one("products", payload.product_id)

    stored = product.get("current_stock")
    current = stored or 0
    delta = payload.quantity if payload.action == StockAction.restock else -payload.quantity
    new_level = current + delta

    if new_level < 0:
        raise ValidationError(
            f"Insufficient stock: {current} available, {payload.quantity} requested",
            fields=["quantity"],
        )

    # Compare-and-set on the level we read; a concurrent adjustment makes this match nothing
    try:
        query = (
            client.table("products")
            .update({"current_stock": new_level, "updated_at": utc_now_iso()}, returning="representation")
            .eq("id", payload.product_id)
        )
        # NULL never equals 0 in SQL
        if stored is None:
            query = query.is_("current_stock", "null")
        else:
            query = query.eq("current_stock", stored)
        result = query.execute()
    except Exception as e:
        raise handle_supabase_error(e, "Failed to adjust stock") from e

    if not result.data:
        raise ConflictError("Stock level changed during update, please retry")

    logger.info(
        f"Stock {payload.action} {payload.quantity} on {payload.product_id}: "
        f"{current} -> {new_level} (by {principal.id})"
    )
    return envelope(
        product=result.data[0],
        message=f"{payload.action} completed for product {payload.product_id}",
    )
