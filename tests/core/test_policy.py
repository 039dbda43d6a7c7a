"""Table-driven policy tests: (roles, action, owner) -> allowed."""

from __future__ import annotations

import pytest

from heritage360.core import policy
from heritage360.core.policy import Resource
from heritage360.models.principal import Principal


def _subject(*roles: str, user_id: str = "alice") -> Principal:
    return Principal(user_id=user_id, roles=frozenset(roles))


CASES = [
    # (roles, action, owner_id, expected)
    (("learner",), "progress:read", "alice", True),
    (("learner",), "progress:read", "bob", False),
    (("instructor",), "progress:read", "bob", True),
    (("admin",), "progress:read", "bob", True),
    (("learner",), "progress:write", "alice", True),
    (("admin",), "progress:write", "bob", False),
    (("learner",), "certificate:issue", "alice", True),
    (("instructor",), "certificate:issue", "bob", False),
    (("learner",), "certificate:revoke", "alice", False),
    (("instructor",), "certificate:revoke", "alice", False),
    (("admin",), "certificate:revoke", "alice", True),
    (("learner",), "analytics:read", None, False),
    (("instructor",), "analytics:read", None, True),
    (("admin",), "analytics:read", None, True),
]


@pytest.mark.parametrize(("roles", "action", "owner", "expected"), CASES)
def test_policy_table(
    roles: tuple[str, ...], action: str, owner: str | None, expected: bool
) -> None:
    decision = policy.evaluate(_subject(*roles), action, Resource("progress", owner))
    assert decision.allowed is expected


def test_unknown_action_is_denied() -> None:
    decision = policy.evaluate(_subject("admin"), "progress:delete", Resource("progress"))
    assert decision.allowed is False
    assert "unknown action" in decision.reason


def test_resource_without_owner_is_not_owned_by_anyone() -> None:
    decision = policy.evaluate(_subject("learner"), "progress:write", Resource("progress"))
    assert decision.allowed is False
