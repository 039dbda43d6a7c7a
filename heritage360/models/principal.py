from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated learner identity extracted from a validated JWT.

    The auth layer has already verified the token; the learning service
    trusts `user_id` and never re-authenticates.

        user_id: subject from the JWT (the learner id)
        roles: platform roles (learner, instructor, admin)
    """

    user_id: str
    roles: frozenset[str]

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def has_any_role(self, roles: set[str]) -> bool:
        return bool(self.roles & roles)

    def is_admin(self) -> bool:
        return "admin" in self.roles
