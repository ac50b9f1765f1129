"""DRF permission gate for views over owned resources."""

from rest_framework import permissions


class OwnershipPermission(permissions.BasePermission):
    """Require an authenticated caller on views over owned resources.

    Reads are open to every authenticated user. Edits and deletes are decided
    per object by ``access_control.policy.authorize`` inside the blog service
    layer, after the resource has been loaded, so this gate only rejects
    anonymous requests (401).

    Views using this permission must declare ``owned_model``; see
    ``access_control.checks``.
    """

    message = "You do not have permission to perform this action on this resource."

    def has_permission(self, request, view) -> bool:
        user = getattr(request, "user", None)
        return bool(user and getattr(user, "is_authenticated", False))


__all__ = ["OwnershipPermission"]
