"""
Explicit, immutable request context for the scheduling core.

Every service call receives a ``TenantContext`` describing which tenant the
caller acts in and who the caller is. Nothing is read from ambient state.
"""

from dataclasses import dataclass
from typing import Optional

from django.core.exceptions import PermissionDenied


@dataclass(frozen=True)
class Principal:
    """An already-authenticated caller."""

    id: int
    role: str
    tenant_id: Optional[int]

    @property
    def is_trainer(self) -> bool:
        from apps.accounts.models import User
        return self.role == User.ROLE_TRAINER

    @property
    def is_student(self) -> bool:
        from apps.accounts.models import User
        return self.role == User.ROLE_STUDENT

    @property
    def is_manager(self) -> bool:
        """Admins and office staff manage the whole tenant."""
        from apps.accounts.models import User
        return self.role in (User.ROLE_ADMIN, User.ROLE_STAFF)


@dataclass(frozen=True)
class TenantContext:
    tenant_id: int
    principal: Principal

    def __post_init__(self):
        if self.principal.tenant_id != self.tenant_id:
            raise PermissionDenied("Principal does not belong to this tenant.")

    @classmethod
    def for_user(cls, user) -> 'TenantContext':
        """
        Build the context for an authenticated tenant user.

        Raises:
            PermissionDenied: super admins, users without a tenant, and users
                of inactive tenants have no scheduling context.
        """
        if getattr(user, 'is_super_admin', False):
            raise PermissionDenied("Super Admin users have no tenant context.")
        tenant = getattr(user, 'tenant', None)
        if tenant is None:
            raise PermissionDenied("User must be assigned to a tenant.")
        if not tenant.is_active or tenant.is_deleted:
            raise PermissionDenied("Your organization's account is not active.")
        principal = Principal(id=user.pk, role=user.role, tenant_id=tenant.pk)
        return cls(tenant_id=tenant.pk, principal=principal)
