"""
Double-booking detection.

``find_conflict`` is a read; it only protects against races when called
inside the transaction that holds the resource row locks taken by
``lock_resources``.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, time
from typing import Dict, Iterable, List, Optional, Tuple

from django.contrib.auth import get_user_model

from apps.scheduling.models import LessonSession, Vehicle

RESOURCE_TRAINER = 'trainer'
RESOURCE_VEHICLE = 'vehicle'
RESOURCE_STUDENT = 'student'

# When one session collides on several resources, report the first of these
RESOURCE_PRECEDENCE = (RESOURCE_TRAINER, RESOURCE_VEHICLE, RESOURCE_STUDENT)


@dataclass(frozen=True)
class Conflict:
    resource: str
    resource_id: int
    resource_label: str
    date: date
    start_time: time
    end_time: time
    session_id: int

    @property
    def message(self) -> str:
        return (
            f"{self.resource.capitalize()} {self.resource_label} is already booked on "
            f"{self.date:%Y-%m-%d} from {self.start_time:%H:%M} to {self.end_time:%H:%M}."
        )

    def as_dict(self) -> dict:
        return {
            'resource': self.resource,
            'resource_id': self.resource_id,
            'resource_label': self.resource_label,
            'date': self.date.isoformat(),
            'start_time': self.start_time.strftime('%H:%M'),
            'end_time': self.end_time.strftime('%H:%M'),
            'session_id': self.session_id,
        }


@dataclass(frozen=True)
class DoubleBooking:
    resource: str
    resource_id: int
    date: date
    first_session_id: int
    second_session_id: int


def _label(session, resource):
    if resource == RESOURCE_VEHICLE:
        return session.vehicle.plate_number
    return getattr(session, resource).display_name


def lock_resources(tenant_id, *, trainer_id, student_id, vehicle_id) -> Tuple[Dict[int, object], Optional[Vehicle]]:
    """
    Take row locks on the people and the vehicle a booking needs.

    Always users ordered by pk first, then the vehicle, so two bookings
    that share resources queue up instead of deadlocking. Returns the
    locked users keyed by pk and the locked vehicle (``None`` when it is
    not in the tenant).
    """
    User = get_user_model()
    user_ids = sorted({pk for pk in (trainer_id, student_id) if pk is not None})
    users = {
        u.pk: u
        for u in User.objects.for_tenant(tenant_id).filter(pk__in=user_ids).order_by('pk').select_for_update()
    }
    vehicle = None
    if vehicle_id is not None:
        vehicle = Vehicle.objects.for_tenant(tenant_id).select_for_update().filter(pk=vehicle_id).first()
    return users, vehicle


def find_conflict(tenant_id, candidate_dates: Iterable[date], start_time: time, end_time: time, *,
                  trainer_id=None, vehicle_id=None, student_id=None,
                  exclude_enrollment_id=None) -> Optional[Conflict]:
    """
    Return the first existing session that would collide with the candidate
    dates and window, or ``None``.

    Only same-tenant, non-cancelled sessions on one of the candidate dates
    that share at least one resource and overlap the half-open window
    ``[start_time, end_time)`` count. The earliest one wins (date, then
    start time, then id).
    """
    candidate_dates = list(candidate_dates)
    if not candidate_dates:
        return None

    qs = (
        LessonSession.objects.for_tenant(tenant_id)
        .not_cancelled()
        .filter(date__in=candidate_dates)
        .overlapping(start_time, end_time)
        .for_resources(trainer_id=trainer_id, vehicle_id=vehicle_id, student_id=student_id)
    )
    if exclude_enrollment_id is not None:
        qs = qs.exclude(enrollment_id=exclude_enrollment_id)

    session = qs.select_related('trainer', 'vehicle', 'student').order_by('date', 'start_time', 'pk').first()
    if session is None:
        return None

    wanted = {
        RESOURCE_TRAINER: trainer_id,
        RESOURCE_VEHICLE: vehicle_id,
        RESOURCE_STUDENT: student_id,
    }
    for resource in RESOURCE_PRECEDENCE:
        resource_id = wanted[resource]
        if resource_id is not None and getattr(session, f'{resource}_id') == resource_id:
            return Conflict(
                resource=resource,
                resource_id=resource_id,
                resource_label=_label(session, resource),
                date=session.date,
                start_time=session.start_time,
                end_time=session.end_time,
                session_id=session.pk,
            )
    return None


def find_double_bookings(tenant_id) -> List[DoubleBooking]:
    """
    Scan a tenant's non-cancelled sessions for pairs that overlap on the
    same date and resource. Used by the periodic audit.
    """
    rows = list(
        LessonSession.objects.for_tenant(tenant_id)
        .not_cancelled()
        .order_by('date', 'start_time', 'pk')
        .values('pk', 'date', 'start_time', 'end_time', 'trainer_id', 'vehicle_id', 'student_id')
    )

    found = []
    for resource in RESOURCE_PRECEDENCE:
        groups = defaultdict(list)
        for row in rows:
            groups[(row[f'{resource}_id'], row['date'])].append(row)

        for (resource_id, day), sessions in groups.items():
            # Rows are sorted by start time, so later rows can only overlap
            # an earlier one while they start before it ends
            for i, first in enumerate(sessions):
                for second in sessions[i + 1:]:
                    if second['start_time'] >= first['end_time']:
                        break
                    found.append(DoubleBooking(
                        resource=resource,
                        resource_id=resource_id,
                        date=day,
                        first_session_id=first['pk'],
                        second_session_id=second['pk'],
                    ))
    return found
