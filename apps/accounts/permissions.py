from rest_framework.permissions import BasePermission


class IsTenantUser(BasePermission):
    """Authenticated user of an active tenant (never a Super Admin)."""

    def has_permission(self, request, view):
        u = request.user
        return bool(
            u and u.is_authenticated
            and not getattr(u, "is_super_admin", False)
            and getattr(u, "tenant_id", None) is not None
            and getattr(getattr(u, "tenant", None), "is_active", False)
        )


class IsTenantAdmin(IsTenantUser):
    def has_permission(self, request, view):
        return bool(super().has_permission(request, view) and getattr(request.user, "role", None) == "admin")


class IsSchoolManager(IsTenantUser):
    """Admins and office staff."""

    def has_permission(self, request, view):
        return bool(super().has_permission(request, view) and getattr(request.user, "role", None) in ("admin", "staff"))
