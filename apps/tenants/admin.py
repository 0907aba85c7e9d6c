"""
Admin configuration for Tenant model.
"""

from django.contrib import admin
from .models import Tenant


@admin.register(Tenant)
class TenantAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'is_active', 'contact_email', 'created_at']
    list_filter = ['is_active', 'created_at']
    search_fields = ['name', 'slug', 'contact_email']
    readonly_fields = ['created_at', 'updated_at', 'deleted_at']

    fieldsets = (
        ('Basic Information', {
            'fields': ('name', 'slug')
        }),
        ('Contact', {
            'fields': ('contact_email', 'contact_phone')
        }),
        ('Status', {
            'fields': ('is_active', 'deleted_at')
        }),
        ('Modules', {
            'fields': ('settings',),
            'classes': ('collapse',),
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    actions = ['activate_tenants', 'deactivate_tenants']

    @admin.action(description='Activate selected tenants')
    def activate_tenants(self, request, queryset):
        count = queryset.update(is_active=True)
        self.message_user(request, f'{count} tenant(s) activated.')

    @admin.action(description='Deactivate selected tenants')
    def deactivate_tenants(self, request, queryset):
        count = queryset.update(is_active=False)
        self.message_user(request, f'{count} tenant(s) deactivated.')
