from decimal import Decimal

from django.core.exceptions import PermissionDenied, ValidationError

from apps.scheduling.models import Enrollment, Payment, Vehicle
from apps.scheduling.services.payment_service import record_payment
from apps.scheduling.services.vehicle_service import create_vehicle, toggle_vehicle, update_vehicle
from apps.tenants.services import set_module
from tests.factories import TenantIsolationTestCase


class RecordPaymentTests(TenantIsolationTestCase):
    def setUp(self):
        super().setUp()
        self.enrollment = self.book()

    def test_records_payment(self):
        payment = record_payment(
            context=self.admin_context,
            enrollment_id=self.enrollment.pk,
            amount='1500.5',
            method=Payment.METHOD_ONLINE,
            notes=" first instalment ",
        )
        self.assertEqual(payment.amount, Decimal('1500.50'))
        self.assertEqual(payment.method, Payment.METHOD_ONLINE)
        self.assertEqual(payment.notes, "first instalment")
        self.assertEqual(payment.recorded_by_id, self.admin.pk)
        self.assertEqual(payment.tenant_id, self.tenant.pk)
        self.assertIsNotNone(payment.paid_at)

    def test_rejects_bad_amounts(self):
        for amount in ('0', '-10', 'abc', None, 'NaN', '100000000'):
            with self.assertRaises(ValidationError):
                record_payment(context=self.admin_context, enrollment_id=self.enrollment.pk, amount=amount)
        self.assertFalse(Payment.objects.exists())

    def test_rejects_unknown_method(self):
        with self.assertRaises(ValidationError):
            record_payment(context=self.admin_context, enrollment_id=self.enrollment.pk,
                           amount='100', method='barter')

    def test_trainer_cannot_record(self):
        with self.assertRaises(PermissionDenied):
            record_payment(context=self.trainer_context, enrollment_id=self.enrollment.pk, amount='100')

    def test_other_tenant_enrollment_not_found(self):
        with self.assertRaises(Enrollment.DoesNotExist):
            record_payment(context=self.admin2_context, enrollment_id=self.enrollment.pk, amount='100')

    def test_payments_module_switched_off(self):
        set_module(tenant=self.tenant, module='payments', enabled=False)
        with self.assertRaises(PermissionDenied):
            record_payment(context=self.admin_context, enrollment_id=self.enrollment.pk, amount='100')
        self.assertFalse(Payment.objects.exists())

    def test_payments_cannot_be_deleted(self):
        payment = record_payment(context=self.admin_context, enrollment_id=self.enrollment.pk, amount='100')
        with self.assertRaises(ValidationError):
            payment.delete()
        self.assertTrue(Payment.objects.filter(pk=payment.pk).exists())


class VehicleServiceTests(TenantIsolationTestCase):
    def test_create_normalizes_plate(self):
        vehicle = create_vehicle(context=self.admin_context, name=" Swift Dzire ", plate_number=" ka05mn4321 ")
        self.assertEqual(vehicle.name, "Swift Dzire")
        self.assertEqual(vehicle.plate_number, "KA05MN4321")
        self.assertTrue(vehicle.is_active)
        self.assertEqual(vehicle.tenant_id, self.tenant.pk)

    def test_plate_unique_within_tenant_only(self):
        with self.assertRaises(ValidationError):
            create_vehicle(context=self.admin_context, name="Duplicate", plate_number="ka01ab1234")
        other = create_vehicle(context=self.admin2_context, name="Same plate elsewhere", plate_number="KA01AB1234")
        self.assertEqual(other.tenant_id, self.tenant2.pk)

    def test_name_and_plate_required(self):
        with self.assertRaises(ValidationError):
            create_vehicle(context=self.admin_context, name="", plate_number="KA09ZZ0001")
        with self.assertRaises(ValidationError):
            create_vehicle(context=self.admin_context, name="Alto", plate_number="  ")

    def test_update_keeps_own_plate(self):
        vehicle = update_vehicle(
            context=self.admin_context,
            vehicle_id=self.vehicle.pk,
            name="Renamed",
            plate_number="KA01AB1234",
        )
        self.assertEqual(vehicle.name, "Renamed")
        self.assertEqual(vehicle.updated_by_id, self.admin.pk)

    def test_toggle_retires_and_restores(self):
        self.book()
        vehicle = toggle_vehicle(context=self.admin_context, vehicle_id=self.vehicle.pk)
        self.assertFalse(vehicle.is_active)
        with self.assertRaises(ValidationError):
            self.book(start_date='2024-02-05')
        self.assertEqual(Vehicle.objects.get(pk=self.vehicle.pk).sessions.count(), 3)

        vehicle = toggle_vehicle(context=self.admin_context, vehicle_id=self.vehicle.pk)
        self.assertTrue(vehicle.is_active)

    def test_only_managers_manage_vehicles(self):
        with self.assertRaises(PermissionDenied):
            create_vehicle(context=self.trainer_context, name="Alto", plate_number="KA09ZZ0001")
        with self.assertRaises(PermissionDenied):
            toggle_vehicle(context=self.trainer_context, vehicle_id=self.vehicle.pk)

    def test_other_tenant_vehicle_not_found(self):
        with self.assertRaises(Vehicle.DoesNotExist):
            toggle_vehicle(context=self.admin2_context, vehicle_id=self.vehicle.pk)
