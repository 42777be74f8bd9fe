from dataclasses import dataclass
from typing import Any, Mapping, Optional

from fastapi import Depends

from dependencies.auth import get_current_principal, Principal
from core.errors import Forbidden, InvalidTransition, NotOwner, Unauthenticated
from core.logging_config import logger
from core.permissions import Action, Grant, Resource, grant_for, ownership_field
from models.enums import BaseStrEnum


class DenyReason(BaseStrEnum):
    unauthenticated = "unauthenticated"
    forbidden = "forbidden"
    not_owner = "not_owner"
    invalid_transition = "invalid_transition"


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[DenyReason] = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def deny(reason: DenyReason) -> Decision:
    return Decision(False, reason)


_DENY_ERRORS = {
    DenyReason.unauthenticated: Unauthenticated,
    DenyReason.forbidden: Forbidden,
    DenyReason.not_owner: NotOwner,
    DenyReason.invalid_transition: InvalidTransition,
}


# -----------------------------------------------------
# Ownership
# -----------------------------------------------------
def owner_ref(principal: Principal, field: str) -> Optional[str]:
    """
    The principal's own value for an ownership column.
    customer_id columns point at the customers row linked to the user;
    every other ownership column holds the user id itself.
    """
    if field == "customer_id":
        return principal.customer_id
    return principal.id


def is_owner(principal: Principal, resource: Resource, target: Mapping[str, Any]) -> bool:
    field = ownership_field(principal.role, resource)
    if not field:
        return False

    ref = owner_ref(principal, field)
    if not ref:
        return False

    value = target.get(field)
    return value is not None and str(value) == str(ref)


# -----------------------------------------------------
# Authorization decision
# -----------------------------------------------------
def authorize(
    principal: Optional[Principal],
    resource: Resource,
    action: Action,
    target: Optional[Mapping[str, Any]] = None,
) -> Decision:
    """
    Decide allow/deny for a principal acting on a resource.

    Without a target, an allow_if_owner grant passes: this is the gate for
    list/create, and the caller must then scope the query with
    scope_filters() or check the record it is about to write.
    """
    if principal is None or not principal.is_active:
        return deny(DenyReason.unauthenticated)

    grant = grant_for(principal.role, resource, action)

    if grant == Grant.allow:
        return ALLOW

    if grant == Grant.allow_if_owner:
        if not ownership_field(principal.role, resource):
            return deny(DenyReason.forbidden)
        if target is None:
            return ALLOW
        if is_owner(principal, resource, target):
            return ALLOW
        return deny(DenyReason.not_owner)

    return deny(DenyReason.forbidden)


def raise_for_decision(decision: Decision, message: Optional[str] = None) -> None:
    if decision.allowed:
        return
    error_cls = _DENY_ERRORS[decision.reason]
    raise error_cls(message)


def ensure_authorized(
    principal: Optional[Principal],
    resource: Resource,
    action: Action,
    target: Optional[Mapping[str, Any]] = None,
) -> Principal:
    decision = authorize(principal, resource, action, target)
    if not decision.allowed:
        who = principal.id if principal else "anonymous"
        role = principal.role if principal else "-"
        logger.warning(
            f"Denied {action}:{resource} for {who} ({role}): {decision.reason}"
        )
    raise_for_decision(decision)
    return principal


def is_unrestricted(principal: Principal, resource: Resource, action: Action) -> bool:
    return grant_for(principal.role, resource, action) == Grant.allow


# -----------------------------------------------------
# Role-derived query scope
# -----------------------------------------------------
def scope_filters(principal: Principal, resource: Resource, action: Action = Action.list) -> Optional[dict]:
    """
    Filters that MUST be applied server-side for this principal.

    Returns:
        {}    unrestricted (allow grant)
        dict  column → own value, overriding any client-supplied filter
        None  owner-scoped but the principal has no owner value
                (e.g. a customer login with no customers row): empty result
    """
    if is_unrestricted(principal, resource, action):
        return {}

    field = ownership_field(principal.role, resource)
    if not field:
        raise Forbidden()

    ref = owner_ref(principal, field)
    if not ref:
        return None
    return {field: ref}


# -----------------------------------------------------
# FastAPI dependency wrapper
# -----------------------------------------------------
def requires_permission(resource: Resource, action: Action):
    """
    Usage:
        principal: Principal = Depends(requires_permission(Resource.complaint, Action.create))
    """

    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        return ensure_authorized(principal, resource, action)

    return dependency


def can(principal: Optional[Principal], resource: Resource, action: Action) -> bool:
    """Advisory check (no target), used for UI capability maps."""
    return authorize(principal, resource, action).allowed
