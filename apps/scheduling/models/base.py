"""
Base abstract models for the scheduling engine.

These models provide common functionality for all domain models:
- Tenant awareness
- Audit tracking (who created/modified)
- Timestamps
"""

from django.db import models
from django.conf import settings
from apps.tenants.managers import TenantAwareManager


class TenantAwareModel(models.Model):
    """
    Abstract base model for tenant-scoped entities.

    Every row belongs to exactly one driving school. The tenant is always
    assigned explicitly from the caller's ``TenantContext``.
    """

    tenant = models.ForeignKey(
        'tenants.Tenant',
        on_delete=models.PROTECT,  # Prevent deletion of tenant with data
        related_name='%(class)s_set',
        db_index=True,
        help_text="Driving school this record belongs to"
    )

    objects = TenantAwareManager()

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if not self.tenant_id:
            raise ValueError(
                f"Cannot save {self.__class__.__name__} without a tenant. "
                f"Assign the tenant from the request context explicitly."
            )
        super().save(*args, **kwargs)


class AuditableModel(models.Model):
    """
    Abstract base model for audit tracking.

    **Tracks:**
    - Who created the record
    - When it was created
    - Who last modified it
    - When it was last modified
    """

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='%(class)s_created_set',
        help_text="User who created this record"
    )

    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='%(class)s_updated_set',
        help_text="User who last updated this record"
    )

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class BaseModel(TenantAwareModel, AuditableModel):
    """
    Base model combining tenant isolation and audit tracking.

    **Usage:**
    ```python
    class Vehicle(BaseModel):
        name = models.CharField(max_length=100)
    ```
    """

    class Meta:
        abstract = True
