# core/roles.py

from typing import Any, List

from core.errors import ValidationError
from models.enums import BaseStrEnum


# ============================================
# ROLE REGISTRY
# ============================================
class Role(BaseStrEnum):
    """Closed set of roles. Wire values must match exactly."""

    admin = "admin"
    dept_head = "dept_head"
    service_manager = "service_manager"
    accounts_manager = "accounts_manager"
    product_manager = "product_manager"
    driver_manager = "driver_manager"
    technician = "technician"
    customer = "customer"


# Canonical display order (dropdowns, admin screens)
ROLE_ORDER: List[Role] = [
    Role.admin,
    Role.dept_head,
    Role.service_manager,
    Role.accounts_manager,
    Role.product_manager,
    Role.driver_manager,
    Role.technician,
    Role.customer,
]

ROLE_LABELS = {
    Role.admin: "Administrator",
    Role.dept_head: "Department Head",
    Role.service_manager: "Service Manager",
    Role.accounts_manager: "Accounts Manager",
    Role.product_manager: "Product Manager",
    Role.driver_manager: "Driver Manager",
    Role.technician: "Technician",
    Role.customer: "Customer",
}

MANAGER_ROLES = frozenset({
    Role.admin,
    Role.dept_head,
    Role.service_manager,
    Role.accounts_manager,
    Role.product_manager,
    Role.driver_manager,
})

STAFF_ROLES = MANAGER_ROLES | {Role.technician}


def is_valid_role(tag: Any) -> bool:
    """Unknown, empty or non-string tags are always invalid."""
    if not isinstance(tag, str):
        return False
    return tag in Role.list()


def parse_role(tag: Any) -> Role:
    if not is_valid_role(tag):
        raise ValidationError(
            f"role must be one of: {', '.join(Role.list())}",
            fields=["role"],
        )
    return Role(tag)


def role_options() -> List[dict]:
    """Ordered role list for display."""
    return [{"value": r.value, "label": ROLE_LABELS[r]} for r in ROLE_ORDER]
