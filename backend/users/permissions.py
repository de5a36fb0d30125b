from rest_framework import permissions
from .models import User


class IsAdmin(permissions.BasePermission):
    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.role in [
            User.ROLE_SUPERADMIN,
            User.ROLE_ADMIN,
        ]


class CanManageRoster(permissions.BasePermission):
    """Any signed-in user can read; only manager roles can write."""

    message = "No tienes permisos para modificar registros."

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False
        if request.method in permissions.SAFE_METHODS:
            return True
        return bool(getattr(user, "can_manage_roster", False))


class IsOwnerOrAdmin(permissions.BasePermission):
    """
    Owners can see/edit themselves.
    Admins can edit anything.
    """

    def has_object_permission(self, request, view, obj):
        if request.user.role in [User.ROLE_SUPERADMIN, User.ROLE_ADMIN]:
            return True
        return obj == request.user
