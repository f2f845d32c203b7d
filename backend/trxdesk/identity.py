# Overview: Verified caller identity handed to every service operation.

from __future__ import annotations

from dataclasses import dataclass

from .models.auth import ROLE_ADMIN, ROLE_SUPERVISOR


@dataclass(frozen=True)
class Requester:
    """
    The (user id, role) pair supplied by the authentication layer.

    Services never re-authenticate; they only make authorization decisions
    from this value.
    """
    id: int
    role: str

    @classmethod
    def from_user(cls, user) -> "Requester":
        return cls(id=user.id, role=user.role)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @property
    def is_manager(self) -> bool:
        """Admins and supervisors see every transaction."""
        return self.role in (ROLE_ADMIN, ROLE_SUPERVISOR)
