from datetime import date, time
from decimal import Decimal
from unittest import mock

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import connection
from django.test import override_settings

from apps.scheduling.exceptions import InvalidTransition, SchedulingConflict
from apps.scheduling.models import AttendanceEvent, Enrollment, LessonSession
from apps.scheduling.services import enrollment_service
from apps.scheduling.services.enrollment_service import (
    EnrollmentRequest,
    cancel_enrollment,
    create_enrollment,
)
from apps.tenants.services import set_module
from tests.factories import StaffFactory, StudentFactory, TenantIsolationTestCase, VehicleFactory


class EnrollmentRequestTests(TenantIsolationTestCase):
    def raw(self, **overrides):
        params = {
            'student_id': 1,
            'trainer_id': 2,
            'vehicle_id': 3,
            'plan_days': 10,
            'start_date': '2024-01-05',
            'start_time': '09:00',
            'end_time': '09:30',
            'skip_sundays': True,
            'total_price': '4500',
        }
        params.update(overrides)
        return params

    def test_valid_input_is_normalized(self):
        request = EnrollmentRequest.from_raw(**self.raw(plan_days='10'))
        self.assertEqual(request.plan_days, 10)
        self.assertEqual(request.start_date, date(2024, 1, 5))
        self.assertEqual(request.start_time, time(9, 0))
        self.assertEqual(request.total_price, Decimal('4500.00'))

    def test_all_bad_fields_reported_together(self):
        with self.assertRaises(ValidationError) as cm:
            EnrollmentRequest.from_raw(**self.raw(
                student_id=None,
                plan_days=0,
                start_date='05/01/2024',
                total_price='-1',
            ))
        self.assertEqual(
            set(cm.exception.message_dict),
            {'student_id', 'plan_days', 'start_date', 'total_price'},
        )

    def test_time_window_must_be_ordered(self):
        for start, end in (('10:00', '09:00'), ('09:00', '09:00')):
            with self.assertRaises(ValidationError) as cm:
                EnrollmentRequest.from_raw(**self.raw(start_time=start, end_time=end))
            self.assertIn('end_time', cm.exception.message_dict)

    def test_malformed_time_rejected(self):
        with self.assertRaises(ValidationError) as cm:
            EnrollmentRequest.from_raw(**self.raw(start_time='9am'))
        self.assertIn('start_time', cm.exception.message_dict)

    @override_settings(SCHEDULING_MAX_PLAN_DAYS=30)
    def test_plan_length_capped_by_setting(self):
        with self.assertRaises(ValidationError) as cm:
            EnrollmentRequest.from_raw(**self.raw(plan_days=31))
        self.assertIn('plan_days', cm.exception.message_dict)
        self.assertEqual(EnrollmentRequest.from_raw(**self.raw(plan_days=30)).plan_days, 30)

    def test_boolean_plan_length_rejected(self):
        with self.assertRaises(ValidationError):
            EnrollmentRequest.from_raw(**self.raw(plan_days=True))


class CreateEnrollmentTests(TenantIsolationTestCase):
    def test_creates_enrollment_with_all_sessions(self):
        enrollment = self.book(plan_days=3)

        self.assertEqual(enrollment.status, Enrollment.STATUS_ACTIVE)
        self.assertEqual(enrollment.completed_days, 0)
        self.assertEqual(enrollment.tenant_id, self.tenant.pk)
        self.assertEqual(enrollment.created_by_id, self.admin.pk)

        sessions = self.sessions_of(enrollment)
        self.assertEqual([s.date for s in sessions], [date(2024, 1, 5), date(2024, 1, 6), date(2024, 1, 8)])
        for s in sessions:
            self.assertEqual(s.status, LessonSession.STATUS_PENDING)
            self.assertEqual((s.trainer_id, s.student_id, s.vehicle_id),
                             (self.trainer.pk, self.student.pk, self.vehicle.pk))
            self.assertEqual((s.start_time, s.end_time), (time(9, 0), time(9, 30)))
            self.assertEqual(s.tenant_id, self.tenant.pk)
            self.assertIsNone(s.makeup_for_id)

    def test_staff_can_book(self):
        staff = StaffFactory(tenant=self.tenant)
        enrollment = self.book(context=self.context_for(staff))
        self.assertEqual(enrollment.created_by_id, staff.pk)

    def test_trainer_and_student_cannot_book(self):
        for user in (self.trainer, self.student):
            with self.assertRaises(PermissionDenied):
                self.book(context=self.context_for(user))
        self.assertFalse(Enrollment.objects.exists())

    def test_conflict_writes_nothing(self):
        self.book(plan_days=3)
        other_student = StudentFactory(tenant=self.tenant)
        other_vehicle = VehicleFactory(tenant=self.tenant)

        with self.assertRaises(SchedulingConflict) as cm:
            self.book(
                student_id=other_student.pk,
                vehicle_id=other_vehicle.pk,
                plan_days=10,
                start_date='2024-01-02',
                start_time='09:15',
                end_time='09:45',
            )

        conflict = cm.exception.conflict
        self.assertEqual(conflict.resource, 'trainer')
        self.assertEqual(conflict.date, date(2024, 1, 5))
        self.assertEqual(Enrollment.objects.count(), 1)
        self.assertEqual(LessonSession.objects.count(), 3)

    def test_second_identical_request_is_rejected(self):
        self.book(plan_days=4)
        with self.assertRaises(SchedulingConflict):
            self.book(plan_days=4)
        self.assertEqual(Enrollment.objects.count(), 1)
        self.assertEqual(LessonSession.objects.count(), 4)

    def test_resources_locked_before_conflict_read_in_one_transaction(self):
        calls = []
        lock = enrollment_service.lock_resources
        find = enrollment_service.find_conflict

        def recording_lock(*args, **kwargs):
            calls.append(('lock_resources', tuple(connection.savepoint_ids)))
            return lock(*args, **kwargs)

        def recording_find(*args, **kwargs):
            calls.append(('find_conflict', tuple(connection.savepoint_ids)))
            return find(*args, **kwargs)

        outer = tuple(connection.savepoint_ids)
        with mock.patch.object(enrollment_service, 'lock_resources', new=recording_lock), \
                mock.patch.object(enrollment_service, 'find_conflict', new=recording_find):
            self.book()

        self.assertEqual([name for name, _ in calls], ['lock_resources', 'find_conflict'])
        # Same atomic block, opened by the booking service itself
        self.assertEqual(calls[0][1], calls[1][1])
        self.assertGreater(len(calls[0][1]), len(outer))

    def test_bookings_module_switched_off(self):
        set_module(tenant=self.tenant, module='bookings', enabled=False)
        with self.assertRaises(PermissionDenied):
            self.book()
        self.assertFalse(Enrollment.objects.exists())

        set_module(tenant=self.tenant, module='bookings', enabled=True)
        self.assertEqual(self.book().status, Enrollment.STATUS_ACTIVE)

    def test_adjacent_window_is_bookable(self):
        self.book()
        second = self.book(
            student_id=StudentFactory(tenant=self.tenant).pk,
            start_time='09:30',
            end_time='10:00',
        )
        self.assertEqual(len(self.sessions_of(second)), 3)

    def test_validation_error_writes_nothing(self):
        with self.assertRaises(ValidationError):
            self.book(plan_days=0)
        with self.assertRaises(ValidationError):
            self.book(start_time='10:00', end_time='09:00')
        self.assertFalse(Enrollment.objects.exists())
        self.assertFalse(LessonSession.objects.exists())

    def test_foreign_tenant_resources_are_rejected(self):
        with self.assertRaises(ValidationError) as cm:
            self.book(trainer_id=self.trainer2.pk, vehicle_id=self.vehicle2.pk)
        self.assertEqual(set(cm.exception.message_dict), {'trainer_id', 'vehicle_id'})

    def test_wrong_role_rejected(self):
        with self.assertRaises(ValidationError) as cm:
            self.book(student_id=self.trainer.pk)
        self.assertIn('student_id', cm.exception.message_dict)

    def test_inactive_resources_rejected(self):
        self.vehicle.is_active = False
        self.vehicle.save()
        with self.assertRaises(ValidationError) as cm:
            self.book()
        self.assertIn('vehicle_id', cm.exception.message_dict)

    def test_missing_resource_rejected(self):
        with self.assertRaises(ValidationError) as cm:
            self.book(vehicle_id=999999)
        self.assertIn('vehicle_id', cm.exception.message_dict)

    def test_other_tenant_bookings_do_not_conflict(self):
        self.book()
        enrollment = create_enrollment(
            context=self.admin2_context,
            student_id=self.student2.pk,
            trainer_id=self.trainer2.pk,
            vehicle_id=self.vehicle2.pk,
            plan_days=3,
            start_date='2024-01-05',
            start_time='09:00',
            end_time='09:30',
            total_price='3000',
        )
        self.assertEqual(enrollment.tenant_id, self.tenant2.pk)


class CancelEnrollmentTests(TenantIsolationTestCase):
    def test_cancel_releases_pending_sessions(self):
        enrollment = self.book(plan_days=3)
        first = self.sessions_of(enrollment)[0]
        LessonSession.objects.filter(pk=first.pk).update(status=LessonSession.STATUS_PRESENT)

        cancelled = cancel_enrollment(context=self.admin_context, enrollment_id=enrollment.pk)

        self.assertEqual(cancelled.status, Enrollment.STATUS_CANCELLED)
        self.assertIsNotNone(cancelled.cancelled_at)
        statuses = [s.status for s in self.sessions_of(enrollment)]
        self.assertEqual(statuses, [
            LessonSession.STATUS_PRESENT,
            LessonSession.STATUS_CANCELLED,
            LessonSession.STATUS_CANCELLED,
        ])
        event = AttendanceEvent.objects.get(enrollment=enrollment)
        self.assertEqual(event.action, AttendanceEvent.ACTION_CANCEL)

        # The freed slots can be booked again
        again = self.book(plan_days=3)
        self.assertEqual(len(self.sessions_of(again)), 3)

    def test_only_active_enrollments_can_be_cancelled(self):
        enrollment = self.book()
        cancel_enrollment(context=self.admin_context, enrollment_id=enrollment.pk)
        with self.assertRaises(InvalidTransition):
            cancel_enrollment(context=self.admin_context, enrollment_id=enrollment.pk)

    def test_trainer_cannot_cancel(self):
        enrollment = self.book()
        with self.assertRaises(PermissionDenied):
            cancel_enrollment(context=self.trainer_context, enrollment_id=enrollment.pk)

    def test_other_tenant_enrollment_not_found(self):
        enrollment = self.book()
        with self.assertRaises(Enrollment.DoesNotExist):
            cancel_enrollment(context=self.admin2_context, enrollment_id=enrollment.pk)
