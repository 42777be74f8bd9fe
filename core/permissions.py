# ============================================
# CENTRALIZED ROLE → GRANT TABLE
# ============================================
# Single source of truth for what each role may do. The server-side
# guard (core.permission_helpers) and the navigation/capability map
# served to the UI (core.navigation) are both generated from GRANTS.
#
# Any (role, resource, action) not listed here is DENY.
# ============================================

from enum import Enum
from typing import Dict, Iterable, Tuple

from core.roles import Role
from models.enums import BaseStrEnum


class Resource(BaseStrEnum):
    user = "user"
    customer = "customer"
    complaint = "complaint"
    service = "service"
    assignment = "assignment"
    service_type = "service_type"
    technician = "technician"
    product = "product"
    inventory = "inventory"
    invoice = "invoice"
    payment = "payment"
    distribution = "distribution"
    vehicle = "vehicle"
    route = "route"
    notification = "notification"
    dashboard = "dashboard"
    # read: the caller's reports page; list: organisation-wide admin stats
    report = "report"


class Action(str, Enum):
    # Plain str enum: a "list" member would shadow BaseStrEnum.list()
    list = "list"
    read = "read"
    create = "create"
    update = "update"
    delete = "delete"

    def __str__(self):
        return str(self.value)


class Grant(BaseStrEnum):
    allow = "allow"
    allow_if_owner = "allow_if_owner"
    deny = "deny"


GrantKey = Tuple[Resource, Action]

ALL_ACTIONS = tuple(Action)
READ_ONLY = (Action.list, Action.read)
NO_DELETE = (Action.list, Action.read, Action.create, Action.update)


def _grant(resource: Resource, actions: Iterable[Action], grant: Grant = Grant.allow) -> Dict[GrantKey, Grant]:
    return {(resource, action): grant for action in actions}


def _merge(*parts: Dict[GrantKey, Grant]) -> Dict[GrantKey, Grant]:
    merged: Dict[GrantKey, Grant] = {}
    for part in parts:
        merged.update(part)
    return merged


# Every role reads its own inbox and flips read state on its own rows.
_OWN_INBOX = _grant(Resource.notification, (Action.list, Action.read, Action.update), Grant.allow_if_owner)

# Reference data every signed-in role needs for forms.
_CATALOGUE = _grant(Resource.service_type, READ_ONLY)


GRANTS: Dict[Role, Dict[GrantKey, Grant]] = {

    # =====================================================
    # ADMIN: full access
    # =====================================================
    Role.admin: _merge(
        *(_grant(resource, ALL_ACTIONS) for resource in Resource),
        _OWN_INBOX,
    ),

    # =====================================================
    # DEPARTMENT HEAD: everything but deleting users/notifications
    # =====================================================
    Role.dept_head: _merge(
        *(_grant(resource, ALL_ACTIONS) for resource in Resource),
        {(Resource.user, Action.delete): Grant.deny},
        {(Resource.notification, Action.delete): Grant.deny},
        _OWN_INBOX,
    ),

    # =====================================================
    # SERVICE MANAGER: complaints, services, field staff
    # =====================================================
    Role.service_manager: _merge(
        _grant(Resource.customer, NO_DELETE),
        _grant(Resource.complaint, NO_DELETE),
        _grant(Resource.service, NO_DELETE),
        _grant(Resource.assignment, (Action.list, Action.create, Action.update)),
        _grant(Resource.service_type, ALL_ACTIONS),
        _grant(Resource.technician, (Action.list, Action.read, Action.update)),
        _grant(Resource.product, READ_ONLY),
        _grant(Resource.inventory, READ_ONLY),
        _grant(Resource.notification, (Action.create,)),
        _grant(Resource.dashboard, (Action.read,)),
        _grant(Resource.report, (Action.list, Action.read)),
        _OWN_INBOX,
    ),

    # =====================================================
    # ACCOUNTS MANAGER: billing
    # =====================================================
    Role.accounts_manager: _merge(
        _grant(Resource.customer, READ_ONLY),
        _grant(Resource.invoice, NO_DELETE),
        _grant(Resource.payment, (Action.list, Action.read, Action.create)),
        _grant(Resource.dashboard, (Action.read,)),
        _grant(Resource.report, (Action.read,)),
        _CATALOGUE,
        _OWN_INBOX,
    ),

    # =====================================================
    # PRODUCT MANAGER: catalogue and stock
    # =====================================================
    Role.product_manager: _merge(
        _grant(Resource.product, ALL_ACTIONS),
        _grant(Resource.inventory, (Action.list, Action.read, Action.update)),
        _grant(Resource.dashboard, (Action.read,)),
        _grant(Resource.report, (Action.read,)),
        _CATALOGUE,
        _OWN_INBOX,
    ),

    # =====================================================
    # DRIVER MANAGER: fleet distribution
    # =====================================================
    Role.driver_manager: _merge(
        _grant(Resource.distribution, NO_DELETE),
        _grant(Resource.vehicle, NO_DELETE),
        _grant(Resource.route, NO_DELETE),
        _grant(Resource.dashboard, (Action.read,)),
        _grant(Resource.report, (Action.read,)),
        _CATALOGUE,
        _OWN_INBOX,
    ),

    # =====================================================
    # TECHNICIAN: only work assigned to them
    # =====================================================
    Role.technician: _merge(
        _grant(Resource.complaint, (Action.list, Action.read, Action.update), Grant.allow_if_owner),
        _grant(Resource.service, (Action.list, Action.read, Action.update), Grant.allow_if_owner),
        _grant(Resource.technician, (Action.read, Action.update), Grant.allow_if_owner),
        _grant(Resource.product, READ_ONLY),
        _grant(Resource.inventory, READ_ONLY),
        _grant(Resource.dashboard, (Action.read,)),
        _CATALOGUE,
        _OWN_INBOX,
    ),

    # =====================================================
    # CUSTOMER: own account, own requests
    # =====================================================
    Role.customer: _merge(
        _grant(Resource.customer, (Action.read, Action.update), Grant.allow_if_owner),
        _grant(Resource.complaint, (Action.list, Action.read, Action.create, Action.update), Grant.allow_if_owner),
        _grant(Resource.service, (Action.list, Action.read, Action.create), Grant.allow_if_owner),
        _grant(Resource.invoice, READ_ONLY, Grant.allow_if_owner),
        _grant(Resource.payment, READ_ONLY, Grant.allow_if_owner),
        _grant(Resource.dashboard, (Action.read,)),
        _CATALOGUE,
        _OWN_INBOX,
    ),
}


# ============================================
# OWNERSHIP RELATIONS
# ============================================
# For allow_if_owner grants: which column of the target row names the
# owner, per role. "*" applies to any role without a specific entry.
# A role holding allow_if_owner with no column here is denied.
# ============================================
OWNERSHIP_FIELDS: Dict[Resource, Dict[str, str]] = {
    Resource.complaint: {
        Role.customer.value: "customer_id",
        Role.technician.value: "assigned_to",
    },
    Resource.service: {
        Role.customer.value: "customer_id",
        Role.technician.value: "assigned_technician",
    },
    Resource.customer: {
        Role.customer.value: "user_id",
    },
    Resource.invoice: {
        Role.customer.value: "customer_id",
    },
    Resource.payment: {
        Role.customer.value: "customer_id",
    },
    Resource.technician: {
        Role.technician.value: "id",
    },
    Resource.notification: {
        "*": "user_id",
    },
}


def grant_for(role: Role, resource: Resource, action: Action) -> Grant:
    """Lookup with fail-closed default."""
    return GRANTS.get(role, {}).get((resource, action), Grant.deny)


def ownership_field(role: Role, resource: Resource):
    fields = OWNERSHIP_FIELDS.get(resource, {})
    return fields.get(role.value) or fields.get("*")
