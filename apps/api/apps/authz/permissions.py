"""
Role-based permissions.

Roles come from ``auth_user_role``; a check passes when the user holds at
least one of the allowed roles. Failures raise ``AuthorizationError`` so
the response lists required and current roles.
"""
from rest_framework import permissions

from apps.authz.models import RoleChoices, STAFF_ROLES
from apps.core.exceptions import AuthorizationError
from apps.core.observability.correlation import bind_user


class HasAnyRole(permissions.BasePermission):
    """
    Allow users holding any role in ``allowed_roles``.

    Unauthenticated requests return False so DRF answers 401.
    """
    allowed_roles = frozenset()

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False

        bind_user(request.user)
        user_roles = set(request.user.role_names())

        if user_roles & self.allowed_roles:
            return True
        raise AuthorizationError(required=self.allowed_roles, current=user_roles)


class IsAdmin(HasAnyRole):
    """Admin role only (audit log access)."""
    allowed_roles = frozenset({RoleChoices.ADMIN.value})


class IsStaff(HasAnyRole):
    """Admin or clinic staff (booking administration, patients, reports)."""
    allowed_roles = STAFF_ROLES
