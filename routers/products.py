# routers/products.py

from typing import Optional

from fastapi import APIRouter, Depends, Query

from core.errors import ValidationError
from core.logging_config import logger
from core.permission_helpers import requires_permission
from core.permissions import Action, Resource
from core.supabase_helpers import safe_delete, safe_insert, safe_list, safe_select_one, safe_update
from core.utils import build_pagination, envelope, page_window, sanitize, utc_now_iso
from dependencies.auth import Principal
from models.enums import ProductCategory
from models.product import ProductCreate, ProductUpdate


router = APIRouter(
    prefix="/products",
    tags=["Products"],
)


SEARCH_COLUMNS = ("name", "description")


# -----------------------------------------------------
# LIST PRODUCTS
# -----------------------------------------------------
@router.get("", summary="List products")
def list_products(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    search: Optional[str] = None,
    category: Optional[ProductCategory] = None,
    is_active: Optional[bool] = None,
    principal: Principal = Depends(requires_permission(Resource.product, Action.list)),
):
    page, limit, start, end = page_window(page, limit)

    filters = {}
    if category:
        filters["category"] = category.value
    if is_active is not None:
        filters["is_active"] = is_active

    rows, total = safe_list(
        "products",
        filters=filters,
        search=search,
        search_columns=SEARCH_COLUMNS,
        start=start,
        end=end,
        operation="Failed to fetch products",
    )

    return envelope(products=rows, pagination=build_pagination(page, limit, total))


# -----------------------------------------------------
# GET ONE PRODUCT
# -----------------------------------------------------
@router.get("/{product_id}", summary="Get product")
def get_product(
    product_id: str,
    principal: Principal = Depends(requires_permission(Resource.product, Action.read)),
):
    return envelope(product=safe_select_one("products", product_id))


# -----------------------------------------------------
# CREATE PRODUCT
# -----------------------------------------------------
@router.post("", status_code=201, summary="Create product")
def create_product(
    payload: ProductCreate,
    principal: Principal = Depends(requires_permission(Resource.product, Action.create)),
):
    now = utc_now_iso()
    data = sanitize(payload.model_dump())
    data.update({"created_at": now, "updated_at": now})

    product = safe_insert("products", data, operation="Failed to create product")

    logger.info(f"Product {product.get('name')} created by {principal.id}")
    return envelope(product=product)


# -----------------------------------------------------
# UPDATE PRODUCT
# -----------------------------------------------------
@router.patch("/{product_id}", summary="Update product")
def update_product(
    product_id: str,
    payload: ProductUpdate,
    principal: Principal = Depends(requires_permission(Resource.product, Action.update)),
):
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise ValidationError("No fields to update")

    safe_select_one("products", product_id)

    data = sanitize(changes)
    data["updated_at"] = utc_now_iso()

    product = safe_update("products", product_id, data, operation="Failed to update product")
    return envelope(product=product)


# -----------------------------------------------------
# DELETE PRODUCT (soft by default)
# -----------------------------------------------------
@router.delete("/{product_id}", summary="Deactivate or delete product")
def delete_product(
    product_id: str,
    hard_delete: bool = False,
    principal: Principal = Depends(requires_permission(Resource.product, Action.delete)),
):
    safe_select_one("products", product_id)

    if hard_delete:
        safe_delete("products", product_id, operation="Failed to delete product")
        logger.info(f"Product {product_id} deleted permanently by {principal.id}")
        return envelope(message="Product deleted permanently", id=product_id)

    product = safe_update(
        "products",
        product_id,
        {"is_active": False, "updated_at": utc_now_iso()},
        operation="Failed to deactivate product",
    )
    logger.info(f"Product {product_id} deactivated by {principal.id}")
    return envelope(message="Product deactivated successfully", product=product)
