"""DRF permission classes built on ``Actor``."""

from __future__ import annotations

from rest_framework.permissions import BasePermission

from modules.core.authentication import Actor


class IsAdminActor(BasePermission):
    """Allows access only to authenticated admins (staff or superuser)."""

    message = "Administrator privileges are required."

    def has_permission(self, request, view) -> bool:
        user = request.user
        if not (user and user.is_authenticated):
            return False
        return Actor.from_user(user).is_admin
