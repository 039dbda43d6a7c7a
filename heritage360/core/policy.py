"""Access policy: one function decides every (subject, action, resource).

Route handlers never inspect roles themselves.  They declare the action
through the `require_permission` dependency, and this module answers
allow/deny.  Adding a rule means adding one entry to `_RULES`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from heritage360.models.principal import Principal

logger = logging.getLogger(__name__)

STAFF_ROLES = {"admin", "instructor"}


@dataclass(frozen=True, slots=True)
class Resource:
    """What is being acted on.

    kind: progress|certificate|analytics
    owner_id: learner that owns the resource, when it has one
    """

    kind: str
    owner_id: str | None = None


@dataclass(frozen=True, slots=True)
class Decision:
    allowed: bool
    reason: str


def _owner(subject: Principal, resource: Resource) -> bool:
    return resource.owner_id is not None and resource.owner_id == subject.user_id


def _owner_or_staff(subject: Principal, resource: Resource) -> bool:
    return _owner(subject, resource) or subject.has_any_role(STAFF_ROLES)


def _staff(subject: Principal, resource: Resource) -> bool:
    return subject.has_any_role(STAFF_ROLES)


def _admin(subject: Principal, resource: Resource) -> bool:
    return subject.is_admin()


_RULES: dict[str, Callable[[Principal, Resource], bool]] = {
    "progress:read": _owner_or_staff,
    "progress:write": _owner,
    "certificate:issue": _owner,
    "certificate:revoke": _admin,
    "analytics:read": _staff,
}


def evaluate(subject: Principal, action: str, resource: Resource) -> Decision:
    rule = _RULES.get(action)
    if rule is None:
        # Unknown actions are denied rather than raising.
        return Decision(allowed=False, reason=f"unknown action {action!r}")
    if rule(subject, resource):
        return Decision(allowed=True, reason="ok")
    logger.debug(
        "Policy denied user=%s action=%s kind=%s owner=%s",
        subject.user_id,
        action,
        resource.kind,
        resource.owner_id,
    )
    return Decision(allowed=False, reason="insufficient permissions")
