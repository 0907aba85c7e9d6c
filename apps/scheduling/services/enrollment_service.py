"""
Enrollment creation and cancellation.

An enrollment and all of its sessions are written in one transaction that
also holds row locks on the trainer, student and vehicle, so two
overlapping plans can never both be booked.
"""

import logging
from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_time

from apps.scheduling.exceptions import InvalidTransition, SchedulingConflict
from apps.scheduling.models import AttendanceEvent, Enrollment, LessonSession
from apps.scheduling.services.calendar_service import coerce_date, generate_dates
from apps.scheduling.services.conflict_service import find_conflict, lock_resources
from apps.tenants.models import Tenant

logger = logging.getLogger(__name__)

# Enrollment.total_price is DecimalField(max_digits=10, decimal_places=2)
MAX_PRICE = Decimal('100000000')


def _positive_int(value):
    if isinstance(value, bool):
        raise ValueError
    if isinstance(value, str):
        value = value.strip()
    number = int(value)
    if isinstance(value, float) and value != number:
        raise ValueError
    if number < 1:
        raise ValueError
    return number


def _coerce_time(value):
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    if isinstance(value, str):
        try:
            parsed = parse_time(value.strip())
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed.replace(second=0, microsecond=0)
    raise ValueError


@dataclass(frozen=True)
class EnrollmentRequest:
    """A validated enrollment request. Build it with ``from_raw``."""

    student_id: int
    trainer_id: int
    vehicle_id: int
    plan_days: int
    start_date: date
    start_time: time
    end_time: time
    skip_sundays: bool
    total_price: Decimal

    @classmethod
    def from_raw(cls, *, student_id, trainer_id, vehicle_id, plan_days, start_date,
                 start_time, end_time, skip_sundays=True, total_price):
        """
        Validate loosely typed input, reporting every bad field at once.

        Raises:
            ValidationError: with a dict of field errors.
        """
        errors = {}
        cleaned = {}

        for field, value in (('student_id', student_id), ('trainer_id', trainer_id), ('vehicle_id', vehicle_id)):
            try:
                cleaned[field] = _positive_int(value)
            except (TypeError, ValueError):
                errors[field] = 'A valid identifier is required.'

        max_days = settings.SCHEDULING_MAX_PLAN_DAYS
        try:
            cleaned['plan_days'] = _positive_int(plan_days)
        except (TypeError, ValueError):
            errors['plan_days'] = 'Plan length must be a positive whole number of days.'
        else:
            if cleaned['plan_days'] > max_days:
                errors['plan_days'] = f'Plan length cannot exceed {max_days} days.'

        try:
            cleaned['start_date'] = coerce_date(start_date)
        except ValidationError:
            errors['start_date'] = 'Enter a valid date (YYYY-MM-DD).'

        for field, value in (('start_time', start_time), ('end_time', end_time)):
            try:
                cleaned[field] = _coerce_time(value)
            except (TypeError, ValueError):
                errors[field] = 'Enter a valid time (HH:MM).'
        if 'start_time' in cleaned and 'end_time' in cleaned and cleaned['start_time'] >= cleaned['end_time']:
            errors['end_time'] = 'End time must be after start time.'

        if not isinstance(skip_sundays, bool):
            errors['skip_sundays'] = 'Must be true or false.'

        try:
            price = Decimal(str(total_price).strip())
            if not price.is_finite() or price <= 0 or price >= MAX_PRICE:
                raise ValueError
        except (InvalidOperation, TypeError, ValueError):
            errors['total_price'] = 'Total price must be a positive amount.'
        else:
            cleaned['total_price'] = price.quantize(Decimal('0.01'))

        if errors:
            raise ValidationError(errors)

        return cls(skip_sundays=skip_sundays, **cleaned)


def _check_resources(request, users, vehicle):
    User = get_user_model()
    errors = {}

    trainer = users.get(request.trainer_id)
    if trainer is None or trainer.role != User.ROLE_TRAINER:
        errors['trainer_id'] = 'Trainer not found in this driving school.'
    elif not trainer.is_active:
        errors['trainer_id'] = 'Trainer is inactive.'

    student = users.get(request.student_id)
    if student is None or student.role != User.ROLE_STUDENT:
        errors['student_id'] = 'Student not found in this driving school.'
    elif not student.is_active:
        errors['student_id'] = 'Student is inactive.'

    if vehicle is None:
        errors['vehicle_id'] = 'Vehicle not found in this driving school.'
    elif not vehicle.is_active:
        errors['vehicle_id'] = 'Vehicle is inactive.'

    if errors:
        raise ValidationError(errors)


def create_enrollment(*, context, student_id, trainer_id, vehicle_id, plan_days, start_date,
                      start_time, end_time, skip_sundays=True, total_price) -> Enrollment:
    """
    Book a lesson plan: one enrollment plus ``plan_days`` PENDING sessions.

    Raises:
        PermissionDenied: the caller is not admin or office staff, or the
            school has the bookings module switched off.
        ValidationError: bad input or unusable trainer/student/vehicle.
        SchedulingConflict: a session would collide with an existing one.
    """
    if not context.principal.is_manager:
        raise PermissionDenied("Only admins and office staff can create enrollments.")
    if not Tenant.objects.get(pk=context.tenant_id).module_enabled('bookings'):
        raise PermissionDenied("The bookings module is not enabled for this driving school.")

    request = EnrollmentRequest.from_raw(
        student_id=student_id,
        trainer_id=trainer_id,
        vehicle_id=vehicle_id,
        plan_days=plan_days,
        start_date=start_date,
        start_time=start_time,
        end_time=end_time,
        skip_sundays=skip_sundays,
        total_price=total_price,
    )
    dates = generate_dates(request.start_date, request.plan_days, request.skip_sundays)

    with transaction.atomic():
        users, vehicle = lock_resources(
            context.tenant_id,
            trainer_id=request.trainer_id,
            student_id=request.student_id,
            vehicle_id=request.vehicle_id,
        )
        _check_resources(request, users, vehicle)

        conflict = find_conflict(
            context.tenant_id,
            dates,
            request.start_time,
            request.end_time,
            trainer_id=request.trainer_id,
            vehicle_id=request.vehicle_id,
            student_id=request.student_id,
        )
        if conflict is not None:
            logger.info(
                f"Enrollment rejected for tenant {context.tenant_id}: "
                f"{conflict.resource} {conflict.resource_id} busy on {conflict.date}"
            )
            raise SchedulingConflict(conflict)

        enrollment = Enrollment.objects.create(
            tenant_id=context.tenant_id,
            student_id=request.student_id,
            trainer_id=request.trainer_id,
            vehicle_id=request.vehicle_id,
            plan_days=request.plan_days,
            start_date=request.start_date,
            start_time=request.start_time,
            end_time=request.end_time,
            skip_sundays=request.skip_sundays,
            total_price=request.total_price,
            created_by_id=context.principal.id,
            updated_by_id=context.principal.id,
        )
        LessonSession.objects.bulk_create([
            LessonSession(
                tenant_id=context.tenant_id,
                enrollment=enrollment,
                student_id=request.student_id,
                trainer_id=request.trainer_id,
                vehicle_id=request.vehicle_id,
                date=day,
                start_time=request.start_time,
                end_time=request.end_time,
                status=LessonSession.STATUS_PENDING,
                created_by_id=context.principal.id,
            )
            for day in dates
        ])

    logger.info(
        f"Enrollment {enrollment.pk} created for tenant {context.tenant_id}: "
        f"{len(dates)} sessions {dates[0]}..{dates[-1]}"
    )
    return enrollment


@transaction.atomic
def cancel_enrollment(*, context, enrollment_id) -> Enrollment:
    """
    Cancel an active plan and every lesson that has not happened yet.

    Attended and missed sessions keep their status. Cancelled sessions no
    longer block their trainer, vehicle or student.
    """
    if not context.principal.is_manager:
        raise PermissionDenied("Only admins and office staff can cancel enrollments.")

    # Session rows first, then the enrollment row
    list(
        LessonSession.objects.for_tenant(context.tenant_id)
        .filter(enrollment_id=enrollment_id)
        .order_by('pk')
        .select_for_update()
        .values_list('pk', flat=True)
    )
    enrollment = Enrollment.objects.for_tenant(context.tenant_id).select_for_update().get(pk=enrollment_id)
    if enrollment.status != Enrollment.STATUS_ACTIVE:
        raise InvalidTransition(
            f"Only active enrollments can be cancelled (this one is {enrollment.status}).",
            current_status=enrollment.status,
        )

    cancelled = (
        LessonSession.objects.for_tenant(context.tenant_id)
        .filter(enrollment_id=enrollment.pk, status=LessonSession.STATUS_PENDING)
        .update(status=LessonSession.STATUS_CANCELLED, updated_at=timezone.now(),
                updated_by_id=context.principal.id)
    )

    enrollment.status = Enrollment.STATUS_CANCELLED
    enrollment.cancelled_at = timezone.now()
    enrollment.updated_by_id = context.principal.id
    enrollment.save(update_fields=['status', 'cancelled_at', 'updated_by', 'updated_at'])

    AttendanceEvent.objects.create(
        tenant_id=context.tenant_id,
        enrollment=enrollment,
        action=AttendanceEvent.ACTION_CANCEL,
        from_status=Enrollment.STATUS_ACTIVE,
        to_status=Enrollment.STATUS_CANCELLED,
        actor_id=context.principal.id,
        notes=f"{cancelled} pending sessions cancelled",
    )
    logger.info(f"Enrollment {enrollment.pk} cancelled for tenant {context.tenant_id} ({cancelled} sessions)")
    return enrollment
