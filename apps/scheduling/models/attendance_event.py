"""
Append-only ledger of attendance transitions.

Session status changes go through conditional UPDATEs that bypass model
signals, so every mark, reset and cancellation writes one explicit row here.
"""

from django.core.exceptions import ValidationError
from django.db import models
from .base import TenantAwareModel


class AttendanceEvent(TenantAwareModel):
    ACTION_MARK = 'mark'
    ACTION_RESET = 'reset'
    ACTION_CANCEL = 'cancel'

    ACTION_CHOICES = [
        (ACTION_MARK, 'Mark'),
        (ACTION_RESET, 'Reset'),
        (ACTION_CANCEL, 'Cancel'),
    ]

    enrollment = models.ForeignKey(
        'scheduling.Enrollment',
        on_delete=models.CASCADE,
        related_name='attendance_events',
    )

    # Kept when the session is a makeup that gets removed by a reset
    session = models.ForeignKey(
        'scheduling.LessonSession',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='attendance_events',
    )

    action = models.CharField(max_length=10, choices=ACTION_CHOICES)
    from_status = models.CharField(max_length=20)
    to_status = models.CharField(max_length=20)

    makeup_session_id = models.BigIntegerField(
        null=True,
        blank=True,
        help_text="Makeup session created (mark absent) or removed (reset)"
    )

    actor = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='attendance_events',
    )

    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        verbose_name = 'Attendance Event'
        verbose_name_plural = 'Attendance Events'
        ordering = ['created_at', 'pk']
        indexes = [
            models.Index(fields=['tenant', 'enrollment'], name='sched_evt_ten_enr_idx'),
        ]

    def __str__(self):
        return f"{self.action} {self.from_status}->{self.to_status} (session {self.session_id})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("Attendance events are append-only.")
        super().save(*args, **kwargs)
