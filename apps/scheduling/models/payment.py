"""
Payment model for the scheduling engine.

Records money received against an enrollment. No processing happens here.
"""

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone
from auditlog.registry import auditlog
from .base import TenantAwareModel


class Payment(TenantAwareModel):
    """
    Payment received for an enrollment.

    **Business Rules:**
    - Partial payments are allowed; the balance is derived
    - All payments are immutable (cannot be deleted)
    """

    METHOD_CASH = 'cash'
    METHOD_ONLINE = 'online'
    METHOD_BANK_TRANSFER = 'bank_transfer'
    METHOD_CHEQUE = 'cheque'

    METHOD_CHOICES = [
        (METHOD_CASH, 'Cash'),
        (METHOD_ONLINE, 'Online'),
        (METHOD_BANK_TRANSFER, 'Bank Transfer'),
        (METHOD_CHEQUE, 'Cheque'),
    ]

    enrollment = models.ForeignKey(
        'scheduling.Enrollment',
        on_delete=models.PROTECT,
        related_name='payments',
        help_text="Enrollment this payment is for"
    )

    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Payment amount"
    )

    method = models.CharField(
        max_length=20,
        choices=METHOD_CHOICES,
        default=METHOD_CASH,
        help_text="Method of payment"
    )

    paid_at = models.DateTimeField(
        default=timezone.now,
        help_text="When payment was made"
    )

    notes = models.TextField(blank=True)

    recorded_by = models.ForeignKey(
        'accounts.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='recorded_payments',
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = 'Payment'
        verbose_name_plural = 'Payments'
        ordering = ['-paid_at']
        indexes = [
            models.Index(fields=['tenant', 'enrollment'], name='sched_pay_ten_enr_idx'),
            models.Index(fields=['tenant', 'paid_at'], name='sched_pay_ten_paid_idx'),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gt=0),
                name='payment_amount_positive'
            ),
        ]

    def __str__(self):
        return f"Payment {self.pk} - {self.amount} for enrollment {self.enrollment_id}"

    def delete(self, *args, **kwargs):
        raise ValidationError("Payments are append-only and cannot be deleted.")


# Register for audit logging
auditlog.register(Payment)
