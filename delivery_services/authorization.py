"""
delivery_services.authorization -- Role policy checked at the façade boundary.

Responsibility:
    Decide whether an actor (identity and role supplied by the calling
    layer) may perform an action, optionally on a record owned by a given
    customer.

Architecture position:
    Services layer.  Passed into FulfillmentService; the ledger and the
    packing builder stay authorization-agnostic.

Invariants:
    - Admins may do everything.
    - Customers may only read their own payments, invoices and credits.
    - Packers and drivers may only read and print packing lists.
    - Unknown roles are denied (fail closed).
"""

from __future__ import annotations

from enum import Enum
from typing import Mapping
from uuid import UUID

from delivery_kernel.domain.context import Actor, Role
from delivery_kernel.exceptions import AccessDeniedError
from delivery_kernel.logging_config import get_logger

logger = get_logger("services.authorization")


class Action(str, Enum):
    """Operations the façade exposes, named as permission strings."""

    VIEW_PACKING_LIST = "packing_list.view"
    RENDER_PACKING_LIST = "packing_list.render"
    RECORD_PAYMENT = "payment.record"
    VIEW_PAYMENTS = "payment.view"
    RECORD_SHORT_DELIVERY = "credit.short_delivery"
    APPLY_CREDIT = "credit.apply"
    VIEW_CREDITS = "credit.view"
    GENERATE_INVOICE = "invoice.generate"
    VIEW_INVOICES = "invoice.view"
    VIEW_OVERDUE = "invoice.overdue"


ROLE_PERMISSIONS: dict[Role, frozenset[Action]] = {
    Role.ADMIN: frozenset(Action),
    Role.PACKER: frozenset({Action.VIEW_PACKING_LIST, Action.RENDER_PACKING_LIST}),
    Role.DRIVER: frozenset({Action.VIEW_PACKING_LIST, Action.RENDER_PACKING_LIST}),
    Role.CUSTOMER: frozenset({
        Action.VIEW_PAYMENTS,
        Action.VIEW_CREDITS,
        Action.VIEW_INVOICES,
    }),
}

# Roles limited to records they own
OWNER_SCOPED_ROLES: frozenset[Role] = frozenset({Role.CUSTOMER})


def check_access(
    role_permissions: Mapping[Role, frozenset[Action]],
    actor: Actor,
    action: Action,
    owner_id: UUID | None = None,
) -> tuple[bool, str]:
    """Check whether the actor may perform ``action``.

    Args:
        role_permissions: Role -> granted actions.
        actor: Authenticated caller.
        action: Requested action.
        owner_id: Customer who owns the record, when the action targets one.

    Returns:
        (allowed, reason).  reason is empty when allowed.
    """
    granted = role_permissions.get(actor.role, frozenset())
    if action not in granted:
        return (False, f"role '{actor.role.value}' lacks permission '{action.value}'")

    if actor.role in OWNER_SCOPED_ROLES:
        if owner_id is None:
            return (False, f"role '{actor.role.value}' may only access its own records")
        if owner_id != actor.id:
            return (False, "record belongs to another customer")

    return (True, "")


class AuthorizationPolicy:
    """
    Role-based policy object.

    Contract:
        ``require()`` returns None when allowed and raises
        AccessDeniedError otherwise; ``allows()`` never raises.
    """

    def __init__(self, role_permissions: Mapping[Role, frozenset[Action]] | None = None):
        self._role_permissions = dict(role_permissions or ROLE_PERMISSIONS)

    def allows(self, actor: Actor, action: Action, owner_id: UUID | None = None) -> bool:
        return check_access(self._role_permissions, actor, action, owner_id)[0]

    def require(self, actor: Actor, action: Action, owner_id: UUID | None = None) -> None:
        allowed, reason = check_access(self._role_permissions, actor, action, owner_id)
        if not allowed:
            logger.warning("access_denied", extra={
                "actor_id": str(actor.id),
                "role": actor.role.value,
                "action": action.value,
                "reason": reason,
            })
            raise AccessDeniedError(str(actor.id), action.value, reason)


class AllowAllPolicy(AuthorizationPolicy):
    """Policy for trusted internal callers (scripts, scheduler)."""

    def require(self, actor: Actor, action: Action, owner_id: UUID | None = None) -> None:
        return None

    def allows(self, actor: Actor, action: Action, owner_id: UUID | None = None) -> bool:
        return True
