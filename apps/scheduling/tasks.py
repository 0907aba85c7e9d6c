import logging

from celery import shared_task

from apps.tenants.models import Tenant
from apps.scheduling.services.conflict_service import find_double_bookings

logger = logging.getLogger(__name__)


@shared_task(bind=True, ignore_result=True)
def audit_double_bookings(self):
    """Log every pair of overlapping sessions on a shared resource, per active tenant."""
    found = 0
    tenants = Tenant.objects.filter(is_active=True, deleted_at__isnull=True)

    for tenant in tenants:
        for booking in find_double_bookings(tenant.pk):
            found += 1
            logger.error(
                f"Double booking in tenant {tenant.slug}: {booking.resource} {booking.resource_id} "
                f"on {booking.date} (sessions {booking.first_session_id} and {booking.second_session_id})"
            )

    if not found:
        logger.info("Double-booking audit found no overlaps")
    return found
