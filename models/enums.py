from enum import Enum


class BaseStrEnum(str, Enum):
    """
    Base enum that serializes cleanly to a string
    and provides a .list() method for UI dropdowns.
    """

    def __str__(self):
        return str(self.value)

    @classmethod
    def list(cls):
        return [item.value for item in cls]


# -----------------------------------------------------
# COMPLAINTS
# -----------------------------------------------------
class ComplaintStatus(BaseStrEnum):
    """Lifecycle: open → assigned → in_progress → resolved → closed."""

    open = "open"
    assigned = "assigned"
    in_progress = "in_progress"
    resolved = "resolved"
    closed = "closed"
    cancelled = "cancelled"


class ComplaintPriority(BaseStrEnum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class ComplaintCategory(BaseStrEnum):
    general = "general"
    water_quality = "water_quality"
    supply = "supply"
    leakage = "leakage"
    billing = "billing"
    meter = "meter"
    equipment = "equipment"


# -----------------------------------------------------
# SERVICES
# -----------------------------------------------------
class ServiceStatus(BaseStrEnum):
    """Lifecycle: pending → assigned → in_progress → completed."""

    pending = "pending"
    assigned = "assigned"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


class ServicePriority(BaseStrEnum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


class SkillLevel(BaseStrEnum):
    basic = "basic"
    intermediate = "intermediate"
    advanced = "advanced"


# -----------------------------------------------------
# CUSTOMERS
# -----------------------------------------------------
class CustomerStatus(BaseStrEnum):
    active = "active"
    inactive = "inactive"
    suspended = "suspended"


# -----------------------------------------------------
# PRODUCTS / INVENTORY
# -----------------------------------------------------
class ProductCategory(BaseStrEnum):
    filters = "filters"
    membranes = "membranes"
    pumps = "pumps"
    pipes = "pipes"
    fittings = "fittings"
    meters = "meters"
    chemicals = "chemicals"
    spare_parts = "spare_parts"
    water_cans = "water_cans"


class UnitType(BaseStrEnum):
    piece = "piece"
    meter = "meter"
    liter = "liter"
    kilogram = "kilogram"
    box = "box"


class StockAction(BaseStrEnum):
    restock = "restock"
    consume = "consume"


# -----------------------------------------------------
# BILLING
# -----------------------------------------------------
class InvoiceStatus(BaseStrEnum):
    pending = "pending"
    paid = "paid"
    overdue = "overdue"
    cancelled = "cancelled"


# -----------------------------------------------------
# DISTRIBUTION
# -----------------------------------------------------
class DistributionStatus(BaseStrEnum):
    scheduled = "scheduled"
    in_transit = "in_transit"
    delivered = "delivered"
    cancelled = "cancelled"


# -----------------------------------------------------
# NOTIFICATIONS
# -----------------------------------------------------
class NotificationType(BaseStrEnum):
    info = "info"
    success = "success"
    warning = "warning"
    error = "error"
    assignment = "assignment"
