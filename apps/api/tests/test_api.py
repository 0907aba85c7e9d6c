from unittest import mock

from django.db import DatabaseError
from rest_framework.test import APIClient

from apps.scheduling.models import Enrollment, LessonSession, Payment
from apps.tenants.services import set_module
from tests.factories import StaffFactory, StudentFactory, TenantIsolationTestCase, TrainerFactory, VehicleFactory


class ApiTestCase(TenantIsolationTestCase):
    def setUp(self):
        super().setUp()
        self.client = APIClient()

    def login(self, user):
        self.client.force_login(user)

    def enrollment_payload(self, **overrides):
        payload = {
            'student_id': self.student.pk,
            'trainer_id': self.trainer.pk,
            'vehicle_id': self.vehicle.pk,
            'plan_days': 3,
            'start_date': '2024-01-05',
            'start_time': '09:00',
            'end_time': '09:30',
            'skip_sundays': True,
            'total_price': '3000.00',
        }
        payload.update(overrides)
        return payload


class AuthenticationTests(ApiTestCase):
    def test_anonymous_is_refused(self):
        response = self.client.get('/api/v1/sessions/')
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()['status_code'], 403)

    def test_inactive_tenant_is_refused(self):
        self.tenant.deactivate()
        self.login(self.admin)
        response = self.client.get('/api/v1/enrollments/')
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()['code'], 'permission_denied')


class EnrollmentApiTests(ApiTestCase):
    def test_create_and_list(self):
        self.login(self.admin)
        response = self.client.post('/api/v1/enrollments/', self.enrollment_payload(), format='json')
        self.assertEqual(response.status_code, 201, response.content)
        body = response.json()
        self.assertEqual(body['status'], Enrollment.STATUS_ACTIVE)
        self.assertEqual(body['trainer_name'], "Ravi Kumar")
        self.assertEqual(body['remaining_days'], 3)

        listing = self.client.get('/api/v1/enrollments/').json()
        self.assertEqual(listing['count'], 1)

    def test_conflict_returns_409_with_details(self):
        self.login(self.admin)
        self.client.post('/api/v1/enrollments/', self.enrollment_payload(), format='json')
        response = self.client.post(
            '/api/v1/enrollments/',
            self.enrollment_payload(student_id=StudentFactory(tenant=self.tenant).pk,
                                    vehicle_id=VehicleFactory(tenant=self.tenant).pk,
                                    start_time='09:15', end_time='09:45'),
            format='json',
        )
        self.assertEqual(response.status_code, 409)
        body = response.json()
        self.assertEqual(body['code'], 'scheduling_conflict')
        self.assertEqual(body['conflict']['resource'], 'trainer')
        self.assertEqual(body['conflict']['date'], '2024-01-05')
        self.assertEqual(Enrollment.objects.count(), 1)

    def test_validation_error_returns_400(self):
        self.login(self.admin)
        response = self.client.post(
            '/api/v1/enrollments/',
            self.enrollment_payload(plan_days=0, start_time='10:00', end_time='09:00'),
            format='json',
        )
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertEqual(body['code'], 'invalid')
        self.assertIn('plan_days', body['details'])
        self.assertIn('end_time', body['details'])

    def test_malformed_payload_returns_400(self):
        self.login(self.admin)
        response = self.client.post('/api/v1/enrollments/', {'plan_days': 'ten'}, format='json')
        self.assertEqual(response.status_code, 400)
        self.assertIn('plan_days', response.json()['details'])

    def test_trainer_cannot_create(self):
        self.login(self.trainer)
        response = self.client.post('/api/v1/enrollments/', self.enrollment_payload(), format='json')
        self.assertEqual(response.status_code, 403)

    def test_cancel_twice_returns_409(self):
        enrollment = self.book()
        self.login(self.admin)
        url = f'/api/v1/enrollments/{enrollment.pk}/cancel/'
        self.assertEqual(self.client.post(url).status_code, 200)
        response = self.client.post(url)
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['code'], 'invalid_transition')

    def test_other_tenant_enrollment_is_404(self):
        enrollment = self.book()
        self.login(self.admin2)
        self.assertEqual(self.client.get(f'/api/v1/enrollments/{enrollment.pk}/').status_code, 404)
        self.assertEqual(self.client.post(f'/api/v1/enrollments/{enrollment.pk}/cancel/').status_code, 404)

    def test_progress(self):
        enrollment = self.book()
        self.login(self.student)
        response = self.client.get(f'/api/v1/enrollments/{enrollment.pk}/progress/')
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(len(body['sessions']), 3)
        self.assertEqual(body['balance'], '3000.00')

    def test_student_lists_only_own_enrollments(self):
        self.book()
        self.book(student_id=StudentFactory(tenant=self.tenant).pk, start_date='2024-02-05')
        self.login(self.student)
        self.assertEqual(self.client.get('/api/v1/enrollments/').json()['count'], 1)


class SessionApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.enrollment = self.book()
        self.sessions = self.sessions_of(self.enrollment)

    def test_trainer_marks_and_resets(self):
        self.login(self.trainer)
        session = self.sessions[0]

        response = self.client.post(f'/api/v1/sessions/{session.pk}/mark/',
                                    {'status': 'ABSENT', 'notes': 'Sick'}, format='json')
        self.assertEqual(response.status_code, 200, response.content)
        self.assertEqual(response.json()['status'], 'ABSENT')
        self.assertEqual(LessonSession.objects.filter(enrollment=self.enrollment).count(), 4)

        response = self.client.post(f'/api/v1/sessions/{session.pk}/reset/')
        self.assertEqual(response.json()['status'], 'PENDING')
        self.assertEqual(LessonSession.objects.filter(enrollment=self.enrollment).count(), 3)

    def test_second_mark_is_409(self):
        self.login(self.trainer)
        url = f'/api/v1/sessions/{self.sessions[0].pk}/mark/'
        self.client.post(url, {'status': 'PRESENT'}, format='json')
        response = self.client.post(url, {'status': 'PRESENT'}, format='json')
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['current_status'], 'PRESENT')

    def test_bad_status_is_400(self):
        self.login(self.trainer)
        response = self.client.post(f'/api/v1/sessions/{self.sessions[0].pk}/mark/',
                                    {'status': 'LATE'}, format='json')
        self.assertEqual(response.status_code, 400)

    def test_other_trainer_is_403(self):
        self.login(TrainerFactory(tenant=self.tenant))
        response = self.client.post(f'/api/v1/sessions/{self.sessions[0].pk}/mark/',
                                    {'status': 'PRESENT'}, format='json')
        self.assertEqual(response.status_code, 403)

    def test_list_filters(self):
        self.login(self.admin)
        body = self.client.get('/api/v1/sessions/', {'date_from': '2024-01-06', 'date_to': '2024-01-08'}).json()
        self.assertEqual(body['count'], 2)
        self.assertEqual(self.client.get('/api/v1/sessions/', {'trainer': 'abc'}).status_code, 400)
        self.assertEqual(
            self.client.get('/api/v1/sessions/', {'date_from': '2024-01-08', 'date_to': '2024-01-05'}).status_code,
            400,
        )

    def test_trainer_only_sees_own_sessions(self):
        other = TrainerFactory(tenant=self.tenant)
        self.login(other)
        self.assertEqual(self.client.get('/api/v1/sessions/').json()['count'], 0)

    def test_day_view(self):
        self.login(self.trainer)
        response = self.client.get('/api/v1/sessions/today/', {'date': '2024-01-06'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(len(response.json()), 1)

    def test_database_error_is_generic_500(self):
        self.login(self.trainer)
        with mock.patch(
            'apps.scheduling.services.attendance_service.mark_attendance',
            side_effect=DatabaseError("disk I/O error"),
        ):
            response = self.client.post(f'/api/v1/sessions/{self.sessions[0].pk}/mark/',
                                        {'status': 'PRESENT'}, format='json')
        self.assertEqual(response.status_code, 500)
        self.assertNotIn('disk', response.json()['error'])


class VehicleAndPaymentApiTests(ApiTestCase):
    def test_vehicle_lifecycle(self):
        self.login(self.admin)
        response = self.client.post('/api/v1/vehicles/', {'name': 'Alto', 'plate_number': 'ka02cd0002'},
                                    format='json')
        self.assertEqual(response.status_code, 201, response.content)
        vehicle_id = response.json()['id']
        self.assertEqual(response.json()['plate_number'], 'KA02CD0002')

        response = self.client.patch(f'/api/v1/vehicles/{vehicle_id}/', {'name': 'Alto K10'}, format='json')
        self.assertEqual(response.json()['name'], 'Alto K10')

        response = self.client.post(f'/api/v1/vehicles/{vehicle_id}/toggle/')
        self.assertFalse(response.json()['is_active'])

        duplicate = self.client.post('/api/v1/vehicles/', {'name': 'Copy', 'plate_number': 'KA02CD0002'},
                                     format='json')
        self.assertEqual(duplicate.status_code, 400)

    def test_payments(self):
        enrollment = self.book()
        self.login(self.admin)
        response = self.client.post('/api/v1/payments/', {'enrollment_id': enrollment.pk, 'amount': '750.00'},
                                    format='json')
        self.assertEqual(response.status_code, 201, response.content)
        self.assertEqual(Payment.objects.get().method, Payment.METHOD_CASH)
        self.assertEqual(self.client.get('/api/v1/payments/').json()['count'], 1)

    def test_trainer_cannot_see_payments(self):
        self.login(self.trainer)
        self.assertEqual(self.client.get('/api/v1/payments/').status_code, 403)


class UserAndReportApiTests(ApiTestCase):
    def test_admin_creates_trainer(self):
        self.login(self.admin)
        response = self.client.post('/api/v1/users/', {'username': 'coach', 'role': 'trainer'}, format='json')
        self.assertEqual(response.status_code, 201, response.content)
        self.assertTrue(response.json()['temporary_password'])

    def test_staff_cannot_create_users(self):
        self.login(StaffFactory(tenant=self.tenant))
        response = self.client.post('/api/v1/users/', {'username': 'coach', 'role': 'trainer'}, format='json')
        self.assertEqual(response.status_code, 403)

    def test_list_trainers(self):
        self.login(self.admin)
        body = self.client.get('/api/v1/users/', {'role': 'trainer'}).json()
        self.assertEqual([u['id'] for u in body['results']], [self.trainer.pk])

    def test_dashboard(self):
        self.book()
        self.login(self.admin)
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['active_enrollments'], 1)

    def test_attendance_report_requires_module(self):
        self.login(self.admin)
        self.assertEqual(self.client.get('/api/v1/reports/attendance/').status_code, 403)
        set_module(tenant=self.tenant, module='reporting', enabled=True)
        response = self.client.get('/api/v1/reports/attendance/')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['total_sessions'], 0)

    def test_trainer_dashboard(self):
        self.login(self.trainer)
        response = self.client.get('/api/v1/reports/trainer/')
        self.assertEqual(response.status_code, 200)
        self.assertIn('completed_this_month', response.json())
