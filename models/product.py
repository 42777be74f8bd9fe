from typing import Optional
from pydantic import BaseModel, Field, field_validator

from .common import RequiredStr, TrimmedStr, reject_null
from .enums import ProductCategory, StockAction, UnitType


# -------------------------------------------------
# PRODUCTS
# -------------------------------------------------
class ProductCreate(BaseModel):
    name: RequiredStr
    category: ProductCategory
    unit_price: float = Field(..., ge=0)

    description: Optional[TrimmedStr] = None
    sku: Optional[TrimmedStr] = None
    unit_type: UnitType = UnitType.piece
    current_stock: int = Field(0, ge=0)
    min_stock_level: int = Field(0, ge=0)
    is_active: bool = True


class ProductUpdate(BaseModel):
    name: Optional[RequiredStr] = None
    category: Optional[ProductCategory] = None
    unit_price: Optional[float] = Field(None, ge=0)
    description: Optional[TrimmedStr] = None
    sku: Optional[TrimmedStr] = None
    unit_type: Optional[UnitType] = None
    min_stock_level: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None

    @field_validator("name", "category", "unit_price", "unit_type", "is_active")
    def not_null(cls, v):
        return reject_null(v)


# -------------------------------------------------
# INVENTORY
# -------------------------------------------------
class StockAdjustment(BaseModel):
    """Restock or consume a quantity of one product."""
    product_id: RequiredStr
    action: StockAction
    quantity: int = Field(..., gt=0)
    notes: Optional[TrimmedStr] = None
