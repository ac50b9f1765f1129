"""Ownership policy: decide whether a principal may edit or delete a resource.

The rule is the same for every owned resource type:

1. principals holding the ``Admin`` role are always allowed;
2. otherwise the principal must be the resource's owner;
3. everyone else, including anonymous callers, is denied.

``authorize`` is pure apart from one audit record per decision on the
``access_control.audit`` logger.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol, runtime_checkable

ADMIN_ROLE = "Admin"
USER_ROLE = "User"

audit_logger = logging.getLogger("access_control.audit")


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


class Action(str, Enum):
    """Kind of mutation being authorized. Recorded for auditing only."""

    EDIT = "edit"
    DELETE = "delete"


@runtime_checkable
class Ownable(Protocol):
    """Anything that records the id of the principal that created it."""

    pk: Any
    owner_id: Any


@dataclass(frozen=True)
class Principal:
    """Authenticated actor for the duration of one request."""

    id: str
    roles: frozenset[str] = field(default_factory=frozenset)
    is_authenticated: bool = True

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and ADMIN_ROLE in self.roles

    @classmethod
    def from_user(cls, user) -> "Principal":
        """Resolve a Django user (or ``None``/``AnonymousUser``) into a principal."""
        if user is None or not getattr(user, "is_authenticated", False):
            return ANONYMOUS
        roles = frozenset(role.name for role in user.roles.all())
        return cls(id=str(user.pk), roles=roles)


ANONYMOUS = Principal(id="", roles=frozenset(), is_authenticated=False)


def authorize(principal: Principal, resource: Ownable | None, action: Action) -> Decision:
    """Return ALLOW if ``principal`` may perform ``action`` on ``resource``.

    ``resource`` must be a loaded instance; a missing resource is a not-found
    condition for the caller to resolve before asking for a decision.
    """

    if resource is None:
        raise ValueError("authorize() requires a loaded resource")

    if not principal.is_authenticated:
        decision = Decision.DENY
    elif ADMIN_ROLE in principal.roles:
        decision = Decision.ALLOW
    elif resource.owner_id is not None and str(resource.owner_id) == principal.id:
        decision = Decision.ALLOW
    else:
        decision = Decision.DENY

    _audit(principal, resource, action, decision)
    return decision


def _audit(principal: Principal, resource: Ownable, action: Action, decision: Decision) -> None:
    kind = type(resource).__name__
    level = logging.INFO if decision is Decision.ALLOW else logging.WARNING
    audit_logger.log(
        level,
        "%s %s on %s %s for principal %s",
        decision.value,
        action.value,
        kind,
        resource.pk,
        principal.id or "<anonymous>",
        extra={
            "principal_id": principal.id,
            "resource_id": resource.pk,
            "resource_kind": kind,
            "action": action.value,
            "decision": decision.value,
        },
    )


__all__ = [
    "ADMIN_ROLE",
    "USER_ROLE",
    "ANONYMOUS",
    "Action",
    "Decision",
    "Ownable",
    "Principal",
    "authorize",
]
