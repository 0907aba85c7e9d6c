"""
Admin configuration for User model.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.contrib.auth.forms import UserCreationForm as DjangoUserCreationForm, UserChangeForm as DjangoUserChangeForm
from .models import User


class CustomUserCreationForm(DjangoUserCreationForm):
    class Meta(DjangoUserCreationForm.Meta):
        model = User
        fields = (
            'username', 'email', 'is_super_admin', 'tenant', 'role', 'is_staff', 'is_active'
        )

    def clean(self):
        cleaned = super().clean()
        is_super_admin = cleaned.get('is_super_admin')
        tenant = cleaned.get('tenant')
        role = cleaned.get('role')
        if is_super_admin:
            if tenant is not None:
                self.add_error('tenant', 'Super Admin must not have a tenant.')
            if role:
                self.add_error('role', 'Super Admin must not have a role.')
        else:
            if tenant is None:
                self.add_error('tenant', 'Regular users must be assigned to a tenant.')
            if not role:
                self.add_error('role', 'Tenant users must have a role.')
        return cleaned


class CustomUserChangeForm(DjangoUserChangeForm):
    class Meta(DjangoUserChangeForm.Meta):
        model = User
        fields = '__all__'


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = [
        'username', 'email', 'get_full_name', 'tenant', 'role',
        'is_super_admin', 'is_active', 'created_at'
    ]
    list_filter = [
        'is_super_admin', 'is_active', 'role', 'tenant', 'created_at'
    ]
    search_fields = ['username', 'email', 'first_name', 'last_name', 'phone_number']
    ordering = ['-created_at']
    add_form = CustomUserCreationForm
    form = CustomUserChangeForm

    fieldsets = BaseUserAdmin.fieldsets + (
        ('Tenant Information', {
            'fields': ('tenant', 'is_super_admin', 'role')
        }),
        ('Additional Information', {
            'fields': ('phone_number',)
        }),
        ('Important Dates', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': (
                'username', 'email', 'password1', 'password2',
                'is_super_admin', 'tenant', 'role', 'is_staff', 'is_active'
            ),
        }),
    )

    readonly_fields = ['created_at', 'updated_at']

    def get_queryset(self, request):
        qs = super().get_queryset(request)

        if request.user.is_super_admin or request.user.is_superuser:
            return qs

        # Tenant Admin sees only their tenant's users
        if request.user.tenant_id:
            return qs.for_tenant(request.user.tenant_id)

        return qs.none()

    actions = ['activate_users', 'deactivate_users']

    @admin.action(description='Activate selected users')
    def activate_users(self, request, queryset):
        count = queryset.update(is_active=True)
        self.message_user(request, f'{count} user(s) activated.')

    @admin.action(description='Deactivate selected users')
    def deactivate_users(self, request, queryset):
        count = queryset.update(is_active=False)
        self.message_user(request, f'{count} user(s) deactivated.')
