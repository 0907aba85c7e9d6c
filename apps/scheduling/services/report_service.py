"""
Read-only reporting over enrollments, sessions and payments.

Nothing here writes; every query is scoped with ``for_tenant``.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import List

from django.contrib.auth import get_user_model
from django.core.exceptions import PermissionDenied
from django.db.models import Count, Q, Sum
from django.utils import timezone

from apps.scheduling.models import Enrollment, LessonSession, Payment, Vehicle
from apps.tenants.models import Tenant

UPCOMING_LIMIT = 10


@dataclass
class EnrollmentProgress:
    enrollment: Enrollment
    sessions: List[LessonSession] = field(default_factory=list)
    payments: List[Payment] = field(default_factory=list)
    total_paid: Decimal = Decimal('0.00')
    balance: Decimal = Decimal('0.00')
    present_count: int = 0
    absent_count: int = 0
    pending_count: int = 0


def enrollment_progress(context, enrollment_id) -> EnrollmentProgress:
    """
    Sessions, payments and balance of one enrollment.

    Trainers may only open their own enrollments and students their own.
    """
    enrollment = (
        Enrollment.objects.for_tenant(context.tenant_id)
        .select_related('student', 'trainer', 'vehicle')
        .get(pk=enrollment_id)
    )
    principal = context.principal
    if principal.is_trainer and enrollment.trainer_id != principal.id:
        raise PermissionDenied("This enrollment belongs to another trainer.")
    if principal.is_student and enrollment.student_id != principal.id:
        raise PermissionDenied("This enrollment belongs to another student.")

    sessions = list(
        LessonSession.objects.for_tenant(context.tenant_id)
        .filter(enrollment_id=enrollment.pk)
        .order_by('date', 'start_time', 'pk')
    )
    payments = list(
        Payment.objects.for_tenant(context.tenant_id)
        .filter(enrollment_id=enrollment.pk)
        .order_by('-paid_at')
    )
    total_paid = sum((p.amount for p in payments), Decimal('0.00'))

    return EnrollmentProgress(
        enrollment=enrollment,
        sessions=sessions,
        payments=payments,
        total_paid=total_paid,
        balance=enrollment.total_price - total_paid,
        present_count=sum(1 for s in sessions if s.status == LessonSession.STATUS_PRESENT),
        absent_count=sum(1 for s in sessions if s.status == LessonSession.STATUS_ABSENT),
        pending_count=sum(1 for s in sessions if s.status == LessonSession.STATUS_PENDING),
    )


def dashboard_summary(context, today=None) -> dict:
    """Headline numbers for the school office."""
    if not context.principal.is_manager:
        raise PermissionDenied("The school dashboard is for admins and office staff.")
    today = today or timezone.localdate()
    User = get_user_model()

    users = User.objects.for_tenant(context.tenant_id).filter(is_active=True)
    sessions = LessonSession.objects.for_tenant(context.tenant_id)
    pending = sessions.filter(status=LessonSession.STATUS_PENDING)

    return {
        'students': users.students().count(),
        'trainers': users.trainers().count(),
        'active_vehicles': Vehicle.objects.for_tenant(context.tenant_id).filter(is_active=True).count(),
        'active_enrollments': Enrollment.objects.for_tenant(context.tenant_id).active().count(),
        'sessions_today': sessions.not_cancelled().filter(date=today).count(),
        'overdue_pending': pending.filter(date__lt=today).count(),
        'upcoming': list(
            pending.filter(date__gte=today)
            .select_related('student', 'trainer', 'vehicle')
            .order_by('date', 'start_time', 'pk')[:UPCOMING_LIMIT]
        ),
    }


def attendance_report(context) -> dict:
    """
    Attendance totals and per-trainer breakdown.

    Only available to schools that have the reporting module switched on.
    """
    if not context.principal.is_manager:
        raise PermissionDenied("Reports are for admins and office staff.")
    tenant = Tenant.objects.get(pk=context.tenant_id)
    if not tenant.module_enabled('reporting'):
        raise PermissionDenied("The reporting module is not enabled for this driving school.")

    sessions = LessonSession.objects.for_tenant(context.tenant_id).not_cancelled()
    present_q = Q(status=LessonSession.STATUS_PRESENT)
    absent_q = Q(status=LessonSession.STATUS_ABSENT)

    totals = sessions.aggregate(
        total=Count('pk'),
        present=Count('pk', filter=present_q),
        absent=Count('pk', filter=absent_q),
    )
    total = totals['total']
    completion_rate = round(totals['present'] / total * 100, 1) if total else 0.0

    per_trainer = [
        {
            'trainer_id': row['trainer_id'],
            'trainer_name': f"{row['trainer__first_name']} {row['trainer__last_name']}".strip()
                            or row['trainer__username'],
            'total': row['total'],
            'present': row['present'],
            'absent': row['absent'],
        }
        for row in sessions.values(
            'trainer_id', 'trainer__first_name', 'trainer__last_name', 'trainer__username'
        ).annotate(
            total=Count('pk'),
            present=Count('pk', filter=present_q),
            absent=Count('pk', filter=absent_q),
        ).order_by('trainer_id')
    ]

    revenue = Payment.objects.for_tenant(context.tenant_id).aggregate(total=Sum('amount'))['total']

    return {
        'total_sessions': total,
        'present': totals['present'],
        'absent': totals['absent'],
        'completion_rate': completion_rate,
        'per_trainer': per_trainer,
        'total_collected': revenue or Decimal('0.00'),
    }


def trainer_dashboard(context, today=None) -> dict:
    """A trainer's lessons for today and lessons taught this month."""
    principal = context.principal
    if not principal.is_trainer:
        raise PermissionDenied("The trainer dashboard is only for trainers.")
    today = today or timezone.localdate()
    month_start = today.replace(day=1)

    sessions = LessonSession.objects.for_tenant(context.tenant_id).filter(trainer_id=principal.id)
    return {
        'today': list(
            sessions.not_cancelled().filter(date=today)
            .select_related('student', 'vehicle')
            .order_by('start_time', 'pk')
        ),
        'completed_this_month': sessions.filter(
            status=LessonSession.STATUS_PRESENT,
            date__gte=month_start,
            date__lte=today,
        ).count(),
    }
