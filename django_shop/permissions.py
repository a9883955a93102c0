from rest_framework import permissions


class IsSellerOrAdmin(permissions.BasePermission):
    """Staff users and users with the SELLER role manage products and orders."""

    message = "Seller or admin access required"

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return bool(user.is_staff or getattr(user, "is_seller", False))
