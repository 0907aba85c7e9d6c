"""
Custom User model with multi-tenancy support.

This is the central authentication model for the system, supporting tenant
users (Admin, Staff, Trainer, Student) and Super Admin (platform owner).
Trainers and students double as the bookable people resources of the
scheduling engine.
"""

from django.contrib.auth.models import AbstractUser, UserManager as BaseUserManager
from django.db import models
from django.core.exceptions import ValidationError
from auditlog.registry import auditlog

from apps.tenants.managers import TenantAwareQuerySet


class UserQuerySet(TenantAwareQuerySet):
    def trainers(self):
        return self.filter(role=User.ROLE_TRAINER)

    def students(self):
        return self.filter(role=User.ROLE_STUDENT)


class UserManager(BaseUserManager.from_queryset(UserQuerySet)):
    pass


class User(AbstractUser):
    """
    Custom User model extending Django's AbstractUser.

    **Business Rules:**
    - Super Admin: is_super_admin=True AND tenant=NULL AND role=NULL
    - Regular User: is_super_admin=False AND tenant=NOT NULL AND role=NOT NULL
    - A user CANNOT be both Super Admin and have a tenant
    """

    # Role choices for tenant users
    ROLE_ADMIN = 'admin'
    ROLE_STAFF = 'staff'
    ROLE_TRAINER = 'trainer'
    ROLE_STUDENT = 'student'

    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Admin'),
        (ROLE_STAFF, 'Office Staff'),
        (ROLE_TRAINER, 'Trainer'),
        (ROLE_STUDENT, 'Student'),
    ]

    # Multi-tenancy relationship
    tenant = models.ForeignKey(
        'tenants.Tenant',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='users',
        help_text="Driving school this user belongs to (NULL for Super Admin)"
    )

    is_super_admin = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Platform owner with access to all tenants (tenant must be NULL)"
    )

    role = models.CharField(
        max_length=20,
        choices=ROLE_CHOICES,
        null=True,
        blank=True,
        help_text="Role within the driving school (required for tenant users)"
    )

    phone_number = models.CharField(
        max_length=20,
        blank=True,
        help_text="Contact phone number"
    )

    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Designates whether this user should be treated as active"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    class Meta:
        ordering = ['username']
        verbose_name = 'User'
        verbose_name_plural = 'Users'
        indexes = [
            models.Index(fields=['tenant', 'role', 'is_active'], name='user_tenant_role_idx'),
        ]
        constraints = [
            # Ensure Super Admin has no tenant
            models.CheckConstraint(
                condition=(
                    models.Q(is_super_admin=True, tenant__isnull=True) |
                    models.Q(is_super_admin=False)
                ),
                name='super_admin_no_tenant'
            ),
            # Ensure tenant users have a role
            models.CheckConstraint(
                condition=(
                    models.Q(tenant__isnull=False, role__isnull=False) |
                    models.Q(tenant__isnull=True)
                ),
                name='tenant_user_has_role'
            ),
        ]

    def __str__(self):
        if self.is_super_admin:
            return f"{self.display_name} (Super Admin)"
        return f"{self.display_name} ({self.get_role_display() or 'No Role'})"

    @property
    def display_name(self):
        return self.get_full_name() or self.username

    def clean(self):
        super().clean()

        # Rule 1: Super Admin must have tenant=NULL
        if self.is_super_admin and self.tenant_id:
            raise ValidationError({
                'tenant': 'Super Admin cannot be assigned to a tenant.'
            })

        # Rule 2: Tenant users must have a tenant
        if not self.is_super_admin and not self.tenant_id:
            raise ValidationError({
                'tenant': 'Regular users must be assigned to a tenant.'
            })

        # Rule 3: Tenant users must have a role
        if self.tenant_id and not self.role:
            raise ValidationError({
                'role': 'Tenant users must have a role assigned.'
            })

        # Rule 4: Super Admin should not have a role
        if self.is_super_admin and self.role:
            raise ValidationError({
                'role': 'Super Admin should not have a tenant role.'
            })

    def save(self, *args, **kwargs):
        """
        Override save to enforce business rules.
        """
        self.full_clean()
        super().save(*args, **kwargs)

    @property
    def is_tenant_admin(self):
        return bool(self.tenant_id) and self.role == self.ROLE_ADMIN

    @property
    def is_trainer(self):
        return bool(self.tenant_id) and self.role == self.ROLE_TRAINER

    @property
    def is_student(self):
        return bool(self.tenant_id) and self.role == self.ROLE_STUDENT

    @property
    def can_manage_school(self):
        """Admins and office staff run enrollments, payments and the fleet."""
        return bool(self.tenant_id) and self.role in (self.ROLE_ADMIN, self.ROLE_STAFF)


auditlog.register(User, exclude_fields=['password', 'last_login'])
