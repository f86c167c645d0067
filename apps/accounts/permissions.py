"""Role checks shared by every admin endpoint."""

from rest_framework import permissions


class IsSiteAdmin(permissions.BasePermission):
    """Signed-in team accounts holding the admin role."""

    message = "Admin access required."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_admin)
