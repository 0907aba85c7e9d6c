from django.contrib.auth.models import AnonymousUser
from django.core.exceptions import PermissionDenied, ValidationError
from django.http import HttpResponse
from django.test import RequestFactory, TestCase

from apps.scheduling.models import Vehicle
from apps.tenants.context import Principal, TenantContext
from apps.tenants.middleware import TenantMiddleware
from apps.tenants.models import Tenant
from apps.tenants.services import create_tenant, set_module, soft_delete_tenant
from tests.factories import SuperAdminUserFactory, TenantFactory, TenantIsolationTestCase, UserFactory


class TenantModelTests(TestCase):
    def test_slug_generated_from_name(self):
        tenant = Tenant.objects.create(name="Sunrise Driving School")
        self.assertEqual(tenant.slug, "sunrise-driving-school")

    def test_soft_delete_deactivates(self):
        tenant = TenantFactory()
        soft_delete_tenant(tenant)
        tenant.refresh_from_db()
        self.assertTrue(tenant.is_deleted)
        self.assertFalse(tenant.is_active)

    def test_modules_default_when_unset(self):
        tenant = TenantFactory(settings={})
        self.assertTrue(tenant.module_enabled('payments'))
        self.assertTrue(tenant.module_enabled('bookings'))
        self.assertFalse(tenant.module_enabled('reporting'))
        self.assertFalse(tenant.module_enabled('unknown'))


class TenantServiceTests(TestCase):
    def test_create_tenant_seeds_modules(self):
        tenant = create_tenant(name=" Metro Motor School ", contact_email="office@metro.test")
        self.assertEqual(tenant.name, "Metro Motor School")
        self.assertEqual(tenant.slug, "metro-motor-school")
        self.assertEqual(tenant.settings['modules'], {'payments': True, 'bookings': True, 'reporting': False})

    def test_set_module_keeps_other_settings(self):
        tenant = create_tenant(name="Metro", settings={'currency': 'INR'})
        set_module(tenant=tenant, module='reporting', enabled=True)
        tenant.refresh_from_db()
        self.assertTrue(tenant.module_enabled('reporting'))
        self.assertTrue(tenant.module_enabled('payments'))
        self.assertEqual(tenant.get_setting('currency'), 'INR')

    def test_set_module_rejects_unknown_module(self):
        tenant = create_tenant(name="Metro")
        with self.assertRaises(ValidationError):
            set_module(tenant=tenant, module='payroll', enabled=True)


class TenantContextTests(TestCase):
    def test_for_user_builds_principal(self):
        user = UserFactory()
        context = TenantContext.for_user(user)
        self.assertEqual(context.tenant_id, user.tenant_id)
        self.assertEqual(context.principal, Principal(id=user.pk, role='admin', tenant_id=user.tenant_id))
        self.assertTrue(context.principal.is_manager)
        self.assertFalse(context.principal.is_trainer)

    def test_super_admin_has_no_context(self):
        with self.assertRaises(PermissionDenied):
            TenantContext.for_user(SuperAdminUserFactory())

    def test_inactive_tenant_has_no_context(self):
        user = UserFactory()
        user.tenant.deactivate()
        with self.assertRaises(PermissionDenied):
            TenantContext.for_user(user)

    def test_principal_must_belong_to_tenant(self):
        with self.assertRaises(PermissionDenied):
            TenantContext(tenant_id=1, principal=Principal(id=5, role='admin', tenant_id=2))

    def test_context_is_immutable(self):
        context = TenantContext.for_user(UserFactory())
        with self.assertRaises(AttributeError):
            context.tenant_id = 99


class TenantMiddlewareTests(TestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.middleware = TenantMiddleware(lambda request: HttpResponse("ok"))

    def request_for(self, user, path='/api/v1/sessions/'):
        request = self.factory.get(path)
        request.user = user
        return request

    def test_attaches_context_for_tenant_user(self):
        user = UserFactory()
        request = self.request_for(user)
        response = self.middleware(request)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(request.tenant, user.tenant)
        self.assertEqual(request.tenant_context.principal.id, user.pk)

    def test_anonymous_and_super_admin_pass_without_context(self):
        for user in (AnonymousUser(), SuperAdminUserFactory()):
            request = self.request_for(user)
            self.assertEqual(self.middleware(request).status_code, 200)
            self.assertIsNone(request.tenant_context)

    def test_inactive_tenant_refused(self):
        user = UserFactory()
        user.tenant.deactivate()
        response = self.middleware(self.request_for(user))
        self.assertEqual(response.status_code, 403)
        self.assertIn(b'permission_denied', response.content)

    def test_admin_site_is_skipped(self):
        user = UserFactory()
        user.tenant.deactivate()
        request = self.request_for(user, path='/admin/')
        self.assertEqual(self.middleware(request).status_code, 200)
        self.assertIsNone(request.tenant)


class TenantAwareQuerySetTests(TenantIsolationTestCase):
    def test_for_tenant_accepts_instance_or_id(self):
        by_instance = Vehicle.objects.for_tenant(self.tenant)
        by_id = Vehicle.objects.for_tenant(self.tenant.pk)
        self.assertEqual(list(by_instance), list(by_id))
        self.assert_tenant_isolation(by_instance, self.tenant)
        self.assert_tenant_isolation(Vehicle.objects.for_tenant(self.tenant2), self.tenant2)

    def test_missing_tenant_returns_nothing(self):
        self.assertFalse(Vehicle.objects.for_tenant(None).exists())

    def test_save_without_tenant_fails(self):
        with self.assertRaises(ValueError):
            Vehicle(name="Orphan", plate_number="XX00XX0000").save()
