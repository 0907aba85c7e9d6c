"""
Tenant-aware querysets and managers.

Every store read or write in the scheduling core goes through ``for_tenant``
so no query can cross tenants.
"""

from django.db import models


class TenantAwareQuerySet(models.QuerySet):
    """
    QuerySet with tenant-aware filtering.
    """

    def for_tenant(self, tenant):
        """Filter for a tenant, given either a Tenant instance or its id."""
        if not tenant:
            return self.none()
        tenant_id = getattr(tenant, 'pk', tenant)
        return self.filter(tenant_id=tenant_id)


class TenantAwareManager(models.Manager.from_queryset(TenantAwareQuerySet)):
    """
    Manager exposing ``for_tenant`` on the default manager.
    """
