"""
Tenant model for multi-tenancy support.

A tenant is a driving school using the platform. Each tenant is completely
isolated from others at the data level.
"""

from django.db import models
from django.utils import timezone
from django.utils.text import slugify
from auditlog.registry import auditlog

DEFAULT_MODULES = {
    'payments': True,
    'bookings': True,
    'reporting': False,
}


class Tenant(models.Model):
    """
    Represents a driving school (tenant) in the multi-tenant system.

    **Key Design Decisions:**
    - Uses 'slug' for URL-safe tenant identification
    - Stores tenant-specific settings as JSON, including the enabled modules
    - Soft delete via 'deleted_at' field
    """

    name = models.CharField(
        max_length=255,
        unique=True,
        help_text="Official name of the driving school"
    )

    slug = models.SlugField(
        max_length=255,
        unique=True,
        db_index=True,
        help_text="URL-safe identifier for the tenant"
    )

    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Whether this tenant can access the system"
    )

    settings = models.JSONField(
        default=dict,
        blank=True,
        help_text="Tenant-specific configuration (e.g., modules: {payments, bookings, reporting})"
    )

    contact_email = models.EmailField(
        blank=True,
        help_text="Primary contact email for this tenant"
    )

    contact_phone = models.CharField(
        max_length=20,
        blank=True,
        help_text="Primary contact phone number"
    )

    deleted_at = models.DateTimeField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Timestamp when tenant was soft-deleted"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        verbose_name = 'Tenant'
        verbose_name_plural = 'Tenants'
        indexes = [
            models.Index(fields=['slug', 'is_active'], name='tenant_slug_active_idx'),
        ]

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        """
        Override save to auto-generate slug from name if not provided.
        """
        if not self.slug:
            self.slug = slugify(self.name)
        super().save(*args, **kwargs)

    def soft_delete(self):
        """
        Soft delete this tenant.
        Sets deleted_at timestamp and deactivates the tenant.
        """
        self.deleted_at = timezone.now()
        self.is_active = False
        self.save(update_fields=['deleted_at', 'is_active', 'updated_at'])

    def activate(self):
        """Activate this tenant."""
        self.is_active = True
        self.save(update_fields=['is_active', 'updated_at'])

    def deactivate(self):
        """Deactivate this tenant (without soft deleting)."""
        self.is_active = False
        self.save(update_fields=['is_active', 'updated_at'])

    @property
    def is_deleted(self):
        """Check if tenant is soft-deleted."""
        return self.deleted_at is not None

    def get_setting(self, key, default=None):
        return (self.settings or {}).get(key, default)

    def module_enabled(self, name):
        """
        Whether an optional module (payments, bookings, reporting) is switched on.

        Tenants without a ``modules`` entry fall back to ``DEFAULT_MODULES``.
        """
        modules = {**DEFAULT_MODULES, **(self.get_setting('modules') or {})}
        return bool(modules.get(name, False))


# Register for audit logging
auditlog.register(Tenant)
