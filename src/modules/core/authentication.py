"""Authenticated actor identity.

Token issuance and verification belong to the upstream auth layer
(SimpleJWT is configured as the DRF authentication class).  The domain
only needs a narrow view of whoever is calling: ``Actor(id, email, role)``.
``role == "admin"`` grants the elevated permissions of the order
lifecycle; staff and superusers are admins.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

ADMIN_ROLE = "admin"
USER_ROLE = "user"


@dataclass(frozen=True)
class Actor:
    """Identity of the caller, supplied by the auth layer."""

    id: str
    email: str
    role: str = USER_ROLE

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    @classmethod
    def from_user(cls, user: Any) -> Actor:
        """Build an actor from an authenticated Django user."""
        is_admin = bool(getattr(user, "is_staff", False)) or bool(
            getattr(user, "is_superuser", False)
        )
        return cls(
            id=str(user.pk),
            email=getattr(user, "email", "") or "",
            role=ADMIN_ROLE if is_admin else USER_ROLE,
        )
