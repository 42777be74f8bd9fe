# core/transitions.py

"""
Which status values each role may write, per workflow entity.

STATUS_WRITES is total: every role has an explicit True/False for every
status of every entity, so an unlisted combination can never slip
through as an implicit allow.
"""

from typing import Dict, FrozenSet, Iterable, Optional

from core.errors import ValidationError
from core.permission_helpers import ALLOW, Decision, DenyReason, deny
from core.roles import Role
from models.enums import BaseStrEnum, ComplaintStatus, ServiceStatus


class WorkflowEntity(BaseStrEnum):
    complaint = "complaint"
    service = "service"


ENTITY_STATUSES: Dict[WorkflowEntity, FrozenSet[str]] = {
    WorkflowEntity.complaint: frozenset(ComplaintStatus.list()),
    WorkflowEntity.service: frozenset(ServiceStatus.list()),
}

_SUPERVISORS = (Role.admin, Role.dept_head, Role.service_manager)

# Sparse rules; anything a role is not given here is False.
_WRITABLE: Dict[WorkflowEntity, Dict[Role, Iterable[str]]] = {
    WorkflowEntity.complaint: {
        **{role: ComplaintStatus.list() for role in _SUPERVISORS},
        Role.technician: [
            ComplaintStatus.assigned.value,
            ComplaintStatus.in_progress.value,
            ComplaintStatus.resolved.value,
        ],
        Role.customer: [ComplaintStatus.cancelled.value],
    },
    WorkflowEntity.service: {
        **{role: ServiceStatus.list() for role in _SUPERVISORS},
        Role.technician: [
            ServiceStatus.assigned.value,
            ServiceStatus.in_progress.value,
            ServiceStatus.completed.value,
        ],
    },
}


def _build_table() -> Dict[WorkflowEntity, Dict[Role, Dict[str, bool]]]:
    table: Dict[WorkflowEntity, Dict[Role, Dict[str, bool]]] = {}
    for entity, statuses in ENTITY_STATUSES.items():
        rules = _WRITABLE.get(entity, {})
        table[entity] = {}
        for role in Role:
            writable = set(rules.get(role, ()))
            unknown = writable - statuses
            if unknown:
                raise RuntimeError(f"Unknown {entity} statuses in rules for {role}: {sorted(unknown)}")
            table[entity][role] = {status: status in writable for status in sorted(statuses)}
    return table


STATUS_WRITES = _build_table()


def writable_statuses(role: Role, entity: WorkflowEntity) -> FrozenSet[str]:
    row = STATUS_WRITES[entity][role]
    return frozenset(status for status, allowed in row.items() if allowed)


def check_status_write(principal, entity: WorkflowEntity, status: Optional[str]) -> Decision:
    """
    Decide whether the principal may set `status` on an entity.

    Raises ValidationError for a value outside the entity's status set;
    returns Deny(invalid_transition) for a known value the role may not write.
    """
    if principal is None or not principal.is_active:
        return deny(DenyReason.unauthenticated)

    status = str(status) if status is not None else None
    if status not in ENTITY_STATUSES[entity]:
        raise ValidationError(
            f"status must be one of: {', '.join(sorted(ENTITY_STATUSES[entity]))}",
            fields=["status"],
        )

    if STATUS_WRITES[entity][principal.role][status]:
        return ALLOW
    return deny(DenyReason.invalid_transition)
