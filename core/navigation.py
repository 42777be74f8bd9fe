# core/navigation.py

"""
Capability map served to the UI at GET /auth/permissions.

The UI only uses this to show/hide links and redirect early. Each nav item
names the grant it needs, and the answer comes from core.permissions.GRANTS,
the same table the server enforces, so the two cannot drift apart.
"""

from dataclasses import dataclass
from typing import Dict, List

from core.permission_helpers import can
from core.permissions import Action, Grant, Resource, grant_for
from core.roles import ROLE_LABELS


@dataclass(frozen=True)
class NavItem:
    path: str
    label: str
    resource: Resource
    action: Action = Action.list


NAV_ITEMS: List[NavItem] = [
    NavItem("/dashboard", "Dashboard", Resource.dashboard, Action.read),
    NavItem("/admin/users", "Users", Resource.user),
    NavItem("/customers", "Customers", Resource.customer),
    NavItem("/complaints", "Complaints", Resource.complaint),
    NavItem("/services", "Services", Resource.service),
    NavItem("/services/assignment", "Assignments", Resource.assignment),
    NavItem("/technicians", "Technicians", Resource.technician),
    NavItem("/admin/service-types", "Service Types", Resource.service_type, Action.create),
    NavItem("/products", "Products", Resource.product),
    NavItem("/inventory", "Inventory", Resource.inventory),
    NavItem("/billing", "Billing", Resource.invoice),
    NavItem("/distribution", "Distribution", Resource.distribution),
    NavItem("/reports", "Reports", Resource.report, Action.read),
    NavItem("/notifications", "Notifications", Resource.notification),
]


def visible_nav(principal) -> List[dict]:
    return [
        {"path": item.path, "label": item.label}
        for item in NAV_ITEMS
        if can(principal, item.resource, item.action)
    ]


def capabilities(principal) -> Dict[str, Dict[str, str]]:
    """
    {resource: {action: grant}} for every non-deny grant of the principal's role.
    Inactive principals get an empty map.
    """
    if principal is None or not principal.is_active:
        return {}

    result: Dict[str, Dict[str, str]] = {}
    for resource in Resource:
        for action in Action:
            grant = grant_for(principal.role, resource, action)
            if grant == Grant.deny:
                continue
            result.setdefault(resource.value, {})[action.value] = grant.value
    return result


def permissions_payload(principal) -> dict:
    return {
        "role": principal.role.value,
        "role_label": ROLE_LABELS[principal.role],
        "navigation": visible_nav(principal),
        "capabilities": capabilities(principal),
    }
