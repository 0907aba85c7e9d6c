"""
Lesson session model for the scheduling engine.

One dated, timed lesson of an enrollment. Sessions book three resources at
once (trainer, vehicle, student) and carry the attendance status.
"""

from django.db import models
from django.db.models import F
from django.utils import timezone

from apps.tenants.managers import TenantAwareQuerySet
from .base import BaseModel


class LessonSessionQuerySet(TenantAwareQuerySet):

    def not_cancelled(self):
        return self.exclude(status=LessonSession.STATUS_CANCELLED)

    def overlapping(self, start_time, end_time):
        """Sessions whose half-open window [start, end) intersects the given one."""
        return self.filter(start_time__lt=end_time, end_time__gt=start_time)

    def for_resources(self, *, trainer_id=None, vehicle_id=None, student_id=None):
        q = models.Q()
        if trainer_id is not None:
            q |= models.Q(trainer_id=trainer_id)
        if vehicle_id is not None:
            q |= models.Q(vehicle_id=vehicle_id)
        if student_id is not None:
            q |= models.Q(student_id=student_id)
        if not q:
            return self.none()
        return self.filter(q)

    def compare_and_set_status(self, pk, *, expected, new, **fields):
        """
        Move one session from ``expected`` to ``new`` status.

        Single conditional UPDATE; returns the number of rows changed (0 or 1).
        A 0 means another caller already moved the session.
        """
        return self.filter(pk=pk, status=expected).update(
            status=new,
            updated_at=timezone.now(),
            **fields,
        )


class LessonSession(BaseModel):
    """
    A single lesson occurrence.

    **Business Rules:**
    - For one tenant and one resource, no two non-cancelled sessions on the
      same date may have overlapping windows
    - Status moves PENDING -> PRESENT | ABSENT, back to PENDING on reset,
      and PENDING -> CANCELLED when the enrollment is cancelled
    - A makeup session points at the ABSENT session that spawned it
    """

    STATUS_PENDING = 'PENDING'
    STATUS_PRESENT = 'PRESENT'
    STATUS_ABSENT = 'ABSENT'
    STATUS_CANCELLED = 'CANCELLED'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_PRESENT, 'Present'),
        (STATUS_ABSENT, 'Absent'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    MARKABLE_STATUSES = (STATUS_PRESENT, STATUS_ABSENT)

    enrollment = models.ForeignKey(
        'scheduling.Enrollment',
        on_delete=models.CASCADE,
        related_name='sessions',
    )

    # Resources are copied from the enrollment when the session is created
    student = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='student_sessions',
    )

    trainer = models.ForeignKey(
        'accounts.User',
        on_delete=models.PROTECT,
        related_name='trainer_sessions',
    )

    vehicle = models.ForeignKey(
        'scheduling.Vehicle',
        on_delete=models.PROTECT,
        related_name='sessions',
    )

    date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField()

    status = models.CharField(
        max_length=20,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING,
        db_index=True,
    )

    notes = models.TextField(blank=True)

    makeup_for = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='makeups',
        help_text="Absent session this makeup compensates for"
    )

    objects = LessonSessionQuerySet.as_manager()

    class Meta:
        verbose_name = 'Lesson Session'
        verbose_name_plural = 'Lesson Sessions'
        ordering = ['date', 'start_time', 'pk']
        indexes = [
            models.Index(fields=['tenant', 'date', 'trainer'], name='sched_sess_ten_date_trn_idx'),
            models.Index(fields=['tenant', 'date', 'vehicle'], name='sched_sess_ten_date_veh_idx'),
            models.Index(fields=['tenant', 'date', 'student'], name='sched_sess_ten_date_stu_idx'),
            models.Index(fields=['enrollment', 'date'], name='sched_sess_enr_date_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(start_time__lt=F('end_time')),
                name='session_time_window_ordered'
            ),
        ]

    def __str__(self):
        return f"{self.date} {self.start_time:%H:%M}-{self.end_time:%H:%M} ({self.status})"

    @property
    def is_makeup(self):
        return self.makeup_for_id is not None
