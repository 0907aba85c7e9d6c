"""
RESTful API for the Driving School Scheduler.

Views are thin: they shape the request, call the scheduling services with
the caller's ``TenantContext`` and serialize the result. Errors raised by
the services are turned into JSON by ``apps.api.exceptions``.
"""

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import filters, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response

from apps.accounts.permissions import IsSchoolManager, IsTenantAdmin, IsTenantUser
from apps.accounts.services.user_service import create_tenant_user, set_user_active
from apps.scheduling.models import Enrollment, Payment, Vehicle
from apps.scheduling.services import (
    attendance_service,
    enrollment_service,
    payment_service,
    report_service,
    session_service,
    vehicle_service,
)
from apps.tenants.context import TenantContext

from .serializers import (
    EnrollmentCreateSerializer,
    EnrollmentProgressSerializer,
    EnrollmentSerializer,
    LessonSessionSerializer,
    MarkAttendanceSerializer,
    PaymentCreateSerializer,
    PaymentSerializer,
    UserCreateSerializer,
    UserSerializer,
    VehicleSerializer,
)

User = get_user_model()


class TenantAwarePagination(PageNumberPagination):
    """Custom pagination with tenant-aware page sizes."""
    page_size = 25
    page_size_query_param = 'page_size'
    max_page_size = 100


class TenantPermission(IsTenantUser):
    """Permission class ensuring tenant isolation."""

    def has_object_permission(self, request, view, obj):
        return getattr(obj, 'tenant_id', None) == request.user.tenant_id


class TenantContextMixin:
    """Gives views the caller's ``TenantContext``."""

    def get_tenant_context(self):
        context = getattr(self.request, 'tenant_context', None)
        if context is None:
            # Token or forced authentication happens after the middleware ran
            context = TenantContext.for_user(self.request.user)
        return context


def _int_param(params, name):
    value = params.get(name)
    if value in (None, ''):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError({name: f"'{value}' is not a valid identifier."})


class UserViewSet(TenantContextMixin, mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Staff, trainers and students of the caller's driving school."""

    serializer_class = UserSerializer
    permission_classes = [TenantPermission, IsSchoolManager]
    pagination_class = TenantAwarePagination
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['role', 'is_active']
    search_fields = ['username', 'first_name', 'last_name', 'phone_number']
    ordering_fields = ['username', 'created_at']
    ordering = ['username']

    def get_queryset(self):
        return User.objects.for_tenant(self.get_tenant_context().tenant_id)

    def get_permissions(self):
        if self.action in ('create', 'set_active'):
            return [TenantPermission(), IsTenantAdmin()]
        return super().get_permissions()

    def create(self, request):
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = create_tenant_user(created_by=request.user, **serializer.validated_data)
        data = UserSerializer(user).data
        # Shown once; only the hash is stored
        data['temporary_password'] = user._raw_password
        return Response(data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def set_active(self, request, pk=None):
        """Activate or deactivate a user."""
        is_active = request.data.get('is_active')
        if not isinstance(is_active, bool):
            raise ValidationError({'is_active': 'Must be true or false.'})
        user = set_user_active(changed_by=request.user, user_id=pk, is_active=is_active)
        return Response(UserSerializer(user).data)


class VehicleViewSet(TenantContextMixin, mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """ViewSet for the school's fleet."""

    serializer_class = VehicleSerializer
    permission_classes = [TenantPermission]
    pagination_class = TenantAwarePagination
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['is_active']
    search_fields = ['name', 'plate_number']
    ordering_fields = ['name', 'plate_number', 'created_at']
    ordering = ['name']

    def get_queryset(self):
        return Vehicle.objects.for_tenant(self.get_tenant_context().tenant_id)

    def create(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        vehicle = vehicle_service.create_vehicle(context=self.get_tenant_context(), **serializer.validated_data)
        return Response(self.get_serializer(vehicle).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        serializer = self.get_serializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        vehicle = vehicle_service.update_vehicle(
            context=self.get_tenant_context(),
            vehicle_id=pk,
            **serializer.validated_data,
        )
        return Response(self.get_serializer(vehicle).data)

    @action(detail=True, methods=['post'])
    def toggle(self, request, pk=None):
        """Retire a vehicle or bring it back into service."""
        vehicle = vehicle_service.toggle_vehicle(context=self.get_tenant_context(), vehicle_id=pk)
        return Response(self.get_serializer(vehicle).data)


class EnrollmentViewSet(TenantContextMixin, mixins.ListModelMixin, mixins.RetrieveModelMixin,
                        viewsets.GenericViewSet):
    """Lesson plans. Trainers and students only see their own."""

    serializer_class = EnrollmentSerializer
    permission_classes = [TenantPermission]
    pagination_class = TenantAwarePagination
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ['status', 'trainer', 'student', 'vehicle']
    ordering_fields = ['start_date', 'created_at']
    ordering = ['-created_at']

    def get_queryset(self):
        context = self.get_tenant_context()
        qs = Enrollment.objects.for_tenant(context.tenant_id).select_related('student', 'trainer', 'vehicle')
        if context.principal.is_trainer:
            qs = qs.filter(trainer_id=context.principal.id)
        elif context.principal.is_student:
            qs = qs.filter(student_id=context.principal.id)
        return qs

    def create(self, request):
        serializer = EnrollmentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        enrollment = enrollment_service.create_enrollment(
            context=self.get_tenant_context(),
            **serializer.validated_data,
        )
        return Response(EnrollmentSerializer(enrollment).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """Cancel the plan and its pending lessons."""
        enrollment = enrollment_service.cancel_enrollment(context=self.get_tenant_context(), enrollment_id=pk)
        return Response(EnrollmentSerializer(enrollment).data)

    @action(detail=True, methods=['get'])
    def progress(self, request, pk=None):
        """Sessions, payments and balance of the plan."""
        progress = report_service.enrollment_progress(self.get_tenant_context(), pk)
        return Response(EnrollmentProgressSerializer(progress).data)


class LessonSessionViewSet(TenantContextMixin, mixins.ListModelMixin, mixins.RetrieveModelMixin,
                           viewsets.GenericViewSet):
    """
    Lesson sessions and attendance marking.

    Query parameters: ``date_from``, ``date_to``, ``trainer``, ``student``,
    ``enrollment``, ``status``.
    """

    serializer_class = LessonSessionSerializer
    permission_classes = [TenantPermission]
    pagination_class = TenantAwarePagination

    def get_queryset(self):
        params = self.request.query_params
        return session_service.list_sessions(
            context=self.get_tenant_context(),
            date_from=params.get('date_from') or None,
            date_to=params.get('date_to') or None,
            trainer_id=_int_param(params, 'trainer'),
            student_id=_int_param(params, 'student'),
            enrollment_id=_int_param(params, 'enrollment'),
            status=params.get('status') or None,
        )

    @action(detail=False, methods=['get'])
    def today(self, request):
        """The day's lessons, or those of ``?date=YYYY-MM-DD``."""
        sessions = session_service.daily_schedule(
            context=self.get_tenant_context(),
            day=request.query_params.get('date') or None,
            trainer_id=_int_param(request.query_params, 'trainer'),
        )
        return Response(self.get_serializer(sessions, many=True).data)

    @action(detail=True, methods=['post'])
    def mark(self, request, pk=None):
        """Mark a pending lesson PRESENT or ABSENT."""
        serializer = MarkAttendanceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        session = attendance_service.mark_attendance(
            context=self.get_tenant_context(),
            session_id=pk,
            status=serializer.validated_data['status'],
            notes=serializer.validated_data['notes'],
        )
        return Response(self.get_serializer(session).data)

    @action(detail=True, methods=['post'])
    def reset(self, request, pk=None):
        """Put a marked lesson back to PENDING."""
        session = attendance_service.reset_attendance(context=self.get_tenant_context(), session_id=pk)
        return Response(self.get_serializer(session).data)


class PaymentViewSet(TenantContextMixin, mixins.ListModelMixin, viewsets.GenericViewSet):
    """Payments received. Append-only."""

    serializer_class = PaymentSerializer
    permission_classes = [TenantPermission, IsSchoolManager]
    pagination_class = TenantAwarePagination
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_fields = ['enrollment', 'method']
    ordering_fields = ['paid_at', 'amount']
    ordering = ['-paid_at']

    def get_queryset(self):
        return Payment.objects.for_tenant(self.get_tenant_context().tenant_id).select_related('enrollment')

    def create(self, request):
        serializer = PaymentCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        payment = payment_service.record_payment(context=self.get_tenant_context(), **serializer.validated_data)
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)


class ReportViewSet(TenantContextMixin, viewsets.ViewSet):
    """Dashboards and attendance reports."""

    permission_classes = [TenantPermission]

    @action(detail=False, methods=['get'])
    def dashboard(self, request):
        summary = report_service.dashboard_summary(self.get_tenant_context())
        summary['upcoming'] = LessonSessionSerializer(summary['upcoming'], many=True).data
        return Response(summary)

    @action(detail=False, methods=['get'])
    def attendance(self, request):
        report = report_service.attendance_report(self.get_tenant_context())
        report['total_collected'] = str(report['total_collected'])
        return Response(report)

    @action(detail=False, methods=['get'])
    def trainer(self, request):
        board = report_service.trainer_dashboard(self.get_tenant_context())
        board['today'] = LessonSessionSerializer(board['today'], many=True).data
        return Response(board)
