"""
Admin configuration for scheduling models.

Session status and counters are only changed through the services, so the
admin shows them read-only.
"""

from django.contrib import admin
from .models import AttendanceEvent, Enrollment, LessonSession, Payment, Vehicle


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = ['name', 'plate_number', 'tenant', 'is_active', 'created_at']
    list_filter = ['is_active', 'tenant']
    search_fields = ['name', 'plate_number']
    readonly_fields = ['created_by', 'updated_by', 'created_at', 'updated_at']


class LessonSessionInline(admin.TabularInline):
    model = LessonSession
    fk_name = 'enrollment'
    extra = 0
    can_delete = False
    fields = ['date', 'start_time', 'end_time', 'status', 'makeup_for', 'notes']
    readonly_fields = fields


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = [
        'id', 'student', 'trainer', 'vehicle', 'plan_days', 'completed_days',
        'start_date', 'status', 'tenant',
    ]
    list_filter = ['status', 'skip_sundays', 'tenant']
    search_fields = ['student__username', 'student__first_name', 'trainer__username', 'vehicle__plate_number']
    readonly_fields = [
        'completed_days', 'status', 'cancelled_at',
        'created_by', 'updated_by', 'created_at', 'updated_at',
    ]
    inlines = [LessonSessionInline]


@admin.register(LessonSession)
class LessonSessionAdmin(admin.ModelAdmin):
    list_display = ['date', 'start_time', 'end_time', 'trainer', 'student', 'vehicle', 'status', 'tenant']
    list_filter = ['status', 'date', 'tenant']
    search_fields = ['student__username', 'trainer__username', 'vehicle__plate_number']
    readonly_fields = ['status', 'makeup_for', 'created_by', 'updated_by', 'created_at', 'updated_at']
    date_hierarchy = 'date'


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['id', 'enrollment', 'amount', 'method', 'paid_at', 'recorded_by', 'tenant']
    list_filter = ['method', 'tenant']

    def has_delete_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(AttendanceEvent)
class AttendanceEventAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'action', 'from_status', 'to_status', 'session', 'enrollment', 'actor']
    list_filter = ['action', 'tenant']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
