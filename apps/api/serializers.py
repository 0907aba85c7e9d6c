"""
Serializers for the scheduling API.

Output serializers are plain ``ModelSerializer``s. Input serializers only
shape the request; business validation stays in the services.
"""

from django.contrib.auth import get_user_model
from rest_framework import serializers

from apps.scheduling.models import Enrollment, LessonSession, Payment, Vehicle

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'username', 'first_name', 'last_name', 'display_name',
            'email', 'phone_number', 'role', 'is_active', 'created_at'
        ]
        read_only_fields = fields


class UserCreateSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    role = serializers.ChoiceField(choices=[User.ROLE_STAFF, User.ROLE_TRAINER, User.ROLE_STUDENT])
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    first_name = serializers.CharField(required=False, allow_blank=True, default="")
    last_name = serializers.CharField(required=False, allow_blank=True, default="")
    phone_number = serializers.CharField(required=False, allow_blank=True, default="")


class VehicleSerializer(serializers.ModelSerializer):
    class Meta:
        model = Vehicle
        fields = ['id', 'name', 'plate_number', 'is_active', 'notes', 'created_at', 'updated_at']
        read_only_fields = ['id', 'is_active', 'created_at', 'updated_at']
        # Plate uniqueness is checked per tenant by the vehicle service
        validators = []


class EnrollmentSerializer(serializers.ModelSerializer):
    student_name = serializers.CharField(source='student.display_name', read_only=True)
    trainer_name = serializers.CharField(source='trainer.display_name', read_only=True)
    vehicle_plate = serializers.CharField(source='vehicle.plate_number', read_only=True)
    remaining_days = serializers.IntegerField(read_only=True)

    class Meta:
        model = Enrollment
        fields = [
            'id', 'student', 'student_name', 'trainer', 'trainer_name', 'vehicle', 'vehicle_plate',
            'plan_days', 'completed_days', 'remaining_days', 'start_date', 'start_time', 'end_time',
            'skip_sundays', 'total_price', 'status', 'cancelled_at', 'created_at'
        ]
        read_only_fields = fields


class EnrollmentCreateSerializer(serializers.Serializer):
    student_id = serializers.IntegerField()
    trainer_id = serializers.IntegerField()
    vehicle_id = serializers.IntegerField()
    plan_days = serializers.IntegerField()
    start_date = serializers.DateField()
    start_time = serializers.TimeField()
    end_time = serializers.TimeField()
    skip_sundays = serializers.BooleanField(default=True)
    total_price = serializers.DecimalField(max_digits=12, decimal_places=2)


class LessonSessionSerializer(serializers.ModelSerializer):
    student_name = serializers.CharField(source='student.display_name', read_only=True)
    trainer_name = serializers.CharField(source='trainer.display_name', read_only=True)
    vehicle_plate = serializers.CharField(source='vehicle.plate_number', read_only=True)
    is_makeup = serializers.BooleanField(read_only=True)

    class Meta:
        model = LessonSession
        fields = [
            'id', 'enrollment', 'student', 'student_name', 'trainer', 'trainer_name',
            'vehicle', 'vehicle_plate', 'date', 'start_time', 'end_time', 'status',
            'notes', 'makeup_for', 'is_makeup', 'updated_at'
        ]
        read_only_fields = fields


class MarkAttendanceSerializer(serializers.Serializer):
    status = serializers.CharField()
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = ['id', 'enrollment', 'amount', 'method', 'paid_at', 'notes', 'recorded_by', 'created_at']
        read_only_fields = fields


class PaymentCreateSerializer(serializers.Serializer):
    enrollment_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    method = serializers.CharField(required=False, default=Payment.METHOD_CASH)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    paid_at = serializers.DateTimeField(required=False, allow_null=True, default=None)


class EnrollmentProgressSerializer(serializers.Serializer):
    enrollment = EnrollmentSerializer()
    sessions = LessonSessionSerializer(many=True)
    payments = PaymentSerializer(many=True)
    total_paid = serializers.DecimalField(max_digits=12, decimal_places=2)
    balance = serializers.DecimalField(max_digits=12, decimal_places=2)
    present_count = serializers.IntegerField()
    absent_count = serializers.IntegerField()
    pending_count = serializers.IntegerField()
