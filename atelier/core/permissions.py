from rest_framework.permissions import BasePermission


def is_owner_user(user):
    """
    Check if user may manage shop configuration.
    Returns True for superusers and for staff with the 'owner' role.
    """
    if not user or not user.is_authenticated:
        return False
    return user.is_superuser or getattr(user, 'role', None) == 'owner'


class IsOwner(BasePermission):
    """Allows access only to shop owners"""
    message = 'Only the shop owner can perform this action.'

    def has_permission(self, request, view):
        return is_owner_user(request.user)
