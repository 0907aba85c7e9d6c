import logging
from decimal import Decimal, InvalidOperation

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.utils import timezone

from apps.scheduling.models import Enrollment, Payment
from apps.tenants.models import Tenant

logger = logging.getLogger(__name__)


@transaction.atomic
def record_payment(*, context, enrollment_id, amount, method=Payment.METHOD_CASH, notes="", paid_at=None) -> Payment:
    """Record money received against an enrollment. Payments are never edited or deleted."""
    if not context.principal.is_manager:
        raise PermissionDenied("Only admins and office staff can record payments.")
    if not Tenant.objects.get(pk=context.tenant_id).module_enabled('payments'):
        raise PermissionDenied("The payments module is not enabled for this driving school.")

    try:
        amount = Decimal(str(amount).strip())
        if not amount.is_finite() or amount <= 0 or amount >= Decimal('100000000'):
            raise ValueError
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError({'amount': 'Amount must be a positive number.'})

    if method not in dict(Payment.METHOD_CHOICES):
        raise ValidationError({'method': f"Unknown payment method '{method}'."})

    enrollment = Enrollment.objects.for_tenant(context.tenant_id).get(pk=enrollment_id)

    payment = Payment.objects.create(
        tenant_id=context.tenant_id,
        enrollment=enrollment,
        amount=amount.quantize(Decimal('0.01')),
        method=method,
        notes=(notes or '').strip(),
        paid_at=paid_at or timezone.now(),
        recorded_by_id=context.principal.id,
    )
    logger.info(f"Payment {payment.pk} of {payment.amount} recorded for enrollment {enrollment.pk}")
    return payment
