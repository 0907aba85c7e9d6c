"""
Enrollment model for the scheduling engine.

An enrollment is a lesson plan: a fixed number of recurring daily sessions
between one student, one trainer and one vehicle.
"""

from django.db import models
from django.db.models import F
from auditlog.registry import auditlog

from apps.tenants.managers import TenantAwareQuerySet
from .base import BaseModel


class EnrollmentQuerySet(TenantAwareQuerySet):

    def active(self):
        return self.filter(status=Enrollment.STATUS_ACTIVE)

    def increment_completed(self, pk):
        """
        Count one more attended lesson and complete the plan when it is full.

        Both statements are single-row conditional UPDATEs; no value is read
        back into Python in between.
        """
        updated = self.filter(pk=pk).update(completed_days=F('completed_days') + 1)
        self.filter(
            pk=pk,
            status=Enrollment.STATUS_ACTIVE,
            completed_days__gte=F('plan_days'),
        ).update(status=Enrollment.STATUS_COMPLETED)
        return updated

    def decrement_completed(self, pk):
        """Undo one attended lesson, reopening a completed plan."""
        updated = self.filter(pk=pk, completed_days__gt=0).update(
            completed_days=F('completed_days') - 1
        )
        self.filter(
            pk=pk,
            status=Enrollment.STATUS_COMPLETED,
            completed_days__lt=F('plan_days'),
        ).update(status=Enrollment.STATUS_ACTIVE)
        return updated


class Enrollment(BaseModel):
    """
    A student's lesson plan.

    **Business Rules:**
    - Created once, atomically, together with all of its sessions
    - ``completed_days`` equals the number of PRESENT sessions
    - Becomes COMPLETED when ``completed_days`` reaches ``plan_days``
    - Cancelling releases the trainer, vehicle and student for the
      remaining pending dates
    """

    STATUS_ACTIVE = 'ACTIVE'
    STATUS_COMPLETED = 'COMPLETED'
    STATUS_CANCELLED = 'CANCELLED'

    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    student = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='student_enrollments',
        help_text="Student taking the lessons"
    )

    trainer = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='trainer_enrollments',
        help_text="Trainer giving the lessons"
    )

    vehicle = models.ForeignKey(
        'scheduling.Vehicle',
        on_delete=models.PROTECT,
        related_name='enrollments',
        help_text="Vehicle used for the lessons"
    )

    plan_days = models.PositiveIntegerField(
        help_text="Number of lesson days in the plan"
    )

    completed_days = models.PositiveIntegerField(
        default=0,
        help_text="Number of sessions marked present"
    )

    start_date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()

    skip_sundays = models.BooleanField(
        default=True,
        help_text="Sundays are not counted toward the plan"
    )

    total_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Agreed price of the whole plan"
    )

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_ACTIVE,
        db_index=True,
    )

    cancelled_at = models.DateTimeField(null=True, blank=True)

    objects = EnrollmentQuerySet.as_manager()

    class Meta:
        verbose_name = 'Enrollment'
        verbose_name_plural = 'Enrollments'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['tenant', 'status'], name='sched_enr_ten_status_idx'),
            models.Index(fields=['tenant', 'trainer'], name='sched_enr_ten_trainer_idx'),
            models.Index(fields=['tenant', 'student'], name='sched_enr_ten_student_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(plan_days__gte=1),
                name='enrollment_plan_days_positive'
            ),
            models.CheckConstraint(
                condition=models.Q(completed_days__gte=0),
                name='enrollment_completed_days_non_negative'
            ),
            models.CheckConstraint(
                condition=models.Q(start_time__lt=F('end_time')),
                name='enrollment_time_window_ordered'
            ),
            models.CheckConstraint(
                condition=models.Q(total_price__gt=0),
                name='enrollment_total_price_positive'
            ),
        ]

    def __str__(self):
        return f"Enrollment {self.pk} - {self.student} with {self.trainer} ({self.plan_days} days)"

    @property
    def remaining_days(self):
        return max(self.plan_days - self.completed_days, 0)


# Register for audit logging
auditlog.register(Enrollment)
