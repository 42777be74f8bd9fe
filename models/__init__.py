# -------------------------
# Enums
# -------------------------
# Schema modules import the role registry from core, so only the
# enums are re-exported here to keep package import side-effect free.
from .enums import (
    BaseStrEnum,
    ComplaintStatus,
    ComplaintPriority,
    ComplaintCategory,
    ServiceStatus,
    ServicePriority,
    SkillLevel,
    CustomerStatus,
    ProductCategory,
    UnitType,
    StockAction,
    InvoiceStatus,
    DistributionStatus,
    NotificationType,
)

__all__ = [
    "BaseStrEnum",
    "ComplaintStatus",
    "ComplaintPriority",
    "ComplaintCategory",
    "ServiceStatus",
    "ServicePriority",
    "SkillLevel",
    "CustomerStatus",
    "ProductCategory",
    "UnitType",
    "StockAction",
    "InvoiceStatus",
    "DistributionStatus",
    "NotificationType",
]
