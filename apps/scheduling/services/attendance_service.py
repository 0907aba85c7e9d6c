"""
Attendance state machine for lesson sessions.

Transitions::

    PENDING -> PRESENT | ABSENT     mark_attendance
    PRESENT | ABSENT -> PENDING     reset_attendance
    PENDING -> CANCELLED            enrollment_service.cancel_enrollment

Every status write is a compare-and-swap on the expected prior status, so
two callers racing on one session cannot both apply side effects. The
enrollment row is locked before any session of the plan is written, so
mark and reset on one plan (and on its makeups) queue up in one order.
"""

import logging

from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.db.models import Max

from apps.scheduling.exceptions import InvalidTransition, SchedulingConflict
from apps.scheduling.models import AttendanceEvent, Enrollment, LessonSession
from apps.scheduling.services.calendar_service import next_makeup_date
from apps.scheduling.services.conflict_service import find_conflict, lock_resources

logger = logging.getLogger(__name__)


def _authorize(principal, session):
    if principal.is_student:
        raise PermissionDenied("Students cannot change attendance.")
    if principal.is_trainer and session.trainer_id != principal.id:
        raise PermissionDenied("You can only mark attendance for your own sessions.")


def _load_session(context, session_id) -> LessonSession:
    # Another tenant's session is reported as missing, never as forbidden
    session = (
        LessonSession.objects.for_tenant(context.tenant_id)
        .select_related('enrollment')
        .get(pk=session_id)
    )
    _authorize(context.principal, session)
    return session


def _ensure_enrollment_open(session, enrollment):
    if enrollment.status == Enrollment.STATUS_CANCELLED:
        raise InvalidTransition(
            "The enrollment of this session has been cancelled.",
            current_status=session.status,
        )


def _lock_enrollment(context, enrollment_id) -> Enrollment:
    return Enrollment.objects.for_tenant(context.tenant_id).select_for_update().get(pk=enrollment_id)


def _append_makeup(context, session, enrollment) -> LessonSession:
    """
    Add one PENDING lesson after the plan's last date to replace ``session``.

    ``enrollment`` must already be locked by the caller, which serializes
    concurrent absences on one plan so each gets its own tail date.
    """
    latest = (
        LessonSession.objects.for_tenant(context.tenant_id)
        .filter(enrollment_id=enrollment.pk)
        .aggregate(latest=Max('date'))['latest']
    )
    makeup_date = next_makeup_date(latest, enrollment.skip_sundays)

    lock_resources(
        context.tenant_id,
        trainer_id=enrollment.trainer_id,
        student_id=enrollment.student_id,
        vehicle_id=enrollment.vehicle_id,
    )
    conflict = find_conflict(
        context.tenant_id,
        [makeup_date],
        enrollment.start_time,
        enrollment.end_time,
        trainer_id=enrollment.trainer_id,
        vehicle_id=enrollment.vehicle_id,
        student_id=enrollment.student_id,
        exclude_enrollment_id=enrollment.pk,
    )
    if conflict is not None:
        logger.info(
            f"Makeup for session {session.pk} rejected: "
            f"{conflict.resource} {conflict.resource_id} busy on {conflict.date}"
        )
        raise SchedulingConflict(conflict)

    return LessonSession.objects.create(
        tenant_id=context.tenant_id,
        enrollment=enrollment,
        student_id=enrollment.student_id,
        trainer_id=enrollment.trainer_id,
        vehicle_id=enrollment.vehicle_id,
        date=makeup_date,
        start_time=enrollment.start_time,
        end_time=enrollment.end_time,
        status=LessonSession.STATUS_PENDING,
        makeup_for=session,
        created_by_id=context.principal.id,
    )


def _find_makeup(sessions, session):
    """
    The makeup lesson spawned by ``session``, or ``None``.

    Uses the ``makeup_for`` link. Rows written before the link existed fall
    back to the plan's latest-dated unlinked PENDING session.
    """
    makeup = sessions.filter(makeup_for=session).order_by('-date', '-pk').first()
    if makeup is not None:
        return makeup
    return (
        sessions.filter(status=LessonSession.STATUS_PENDING, makeup_for__isnull=True)
        .exclude(pk=session.pk)
        .order_by('-date', '-pk')
        .first()
    )


def _remove_makeup(context, session):
    """
    Delete the makeup lesson spawned by ``session`` and return its id.

    The delete only matches a makeup that is still PENDING, so one marked
    after it was looked up is never removed. Callers hold the enrollment lock.
    """
    sessions = LessonSession.objects.for_tenant(context.tenant_id).filter(enrollment_id=session.enrollment_id)

    makeup = _find_makeup(sessions, session)
    if makeup is None:
        logger.warning(f"No pending session left to remove when resetting absent session {session.pk}")
        return None

    if makeup.status == LessonSession.STATUS_PENDING:
        deleted, _ = sessions.filter(pk=makeup.pk, status=LessonSession.STATUS_PENDING).delete()
    else:
        deleted = 0
    if not deleted:
        raise InvalidTransition(
            f"The makeup lesson on {makeup.date} has been marked already; reset it first.",
            current_status=session.status,
        )
    return makeup.pk


@transaction.atomic
def mark_attendance(*, context, session_id, status, notes="") -> LessonSession:
    """
    Mark a PENDING session PRESENT or ABSENT.

    PRESENT counts one more completed day (completing the plan when full).
    ABSENT appends a makeup lesson after the plan's last date.

    Raises:
        ValidationError: ``status`` is not PRESENT or ABSENT.
        LessonSession.DoesNotExist: no such session in the caller's tenant.
        PermissionDenied: a student, or a trainer on someone else's session.
        InvalidTransition: the session is no longer PENDING.
        SchedulingConflict: the makeup date is taken by another booking.
            An absence whose makeup cannot be placed is rejected on purpose
            rather than leaving the plan one lesson short.
    """
    if status not in LessonSession.MARKABLE_STATUSES:
        raise ValidationError({'status': 'Status must be PRESENT or ABSENT.'})
    notes = (notes or '').strip()

    session = _load_session(context, session_id)
    if session.status != LessonSession.STATUS_PENDING:
        raise InvalidTransition(
            f"Session is already {session.status}; reset it before marking again.",
            current_status=session.status,
        )
    enrollment = _lock_enrollment(context, session.enrollment_id)
    _ensure_enrollment_open(session, enrollment)

    updated = LessonSession.objects.for_tenant(context.tenant_id).compare_and_set_status(
        session.pk,
        expected=LessonSession.STATUS_PENDING,
        new=status,
        notes=notes,
        updated_by_id=context.principal.id,
    )
    if not updated:
        raise InvalidTransition("Session was marked by someone else in the meantime.")

    makeup = None
    if status == LessonSession.STATUS_PRESENT:
        Enrollment.objects.for_tenant(context.tenant_id).increment_completed(enrollment.pk)
    else:
        makeup = _append_makeup(context, session, enrollment)

    AttendanceEvent.objects.create(
        tenant_id=context.tenant_id,
        enrollment_id=session.enrollment_id,
        session=session,
        action=AttendanceEvent.ACTION_MARK,
        from_status=LessonSession.STATUS_PENDING,
        to_status=status,
        makeup_session_id=makeup.pk if makeup else None,
        actor_id=context.principal.id,
        notes=notes,
    )
    logger.info(
        f"Session {session.pk} marked {status} by user {context.principal.id}"
        + (f", makeup {makeup.pk} on {makeup.date}" if makeup else "")
    )

    session.refresh_from_db()
    return session


@transaction.atomic
def reset_attendance(*, context, session_id) -> LessonSession:
    """
    Return a PRESENT or ABSENT session to PENDING, undoing its side effects.

    Raises:
        LessonSession.DoesNotExist: no such session in the caller's tenant.
        PermissionDenied: a student, or a trainer on someone else's session.
        InvalidTransition: nothing to reset, or the makeup lesson of an
            absence has been marked already.
    """
    session = _load_session(context, session_id)
    previous = session.status
    if previous == LessonSession.STATUS_PENDING:
        raise InvalidTransition("Session is already PENDING; nothing to reset.", current_status=previous)
    if previous == LessonSession.STATUS_CANCELLED:
        raise InvalidTransition("Cancelled sessions cannot be reset.", current_status=previous)
    enrollment = _lock_enrollment(context, session.enrollment_id)
    _ensure_enrollment_open(session, enrollment)

    updated = LessonSession.objects.for_tenant(context.tenant_id).compare_and_set_status(
        session.pk,
        expected=previous,
        new=LessonSession.STATUS_PENDING,
        updated_by_id=context.principal.id,
    )
    if not updated:
        raise InvalidTransition("Session was changed by someone else in the meantime.")

    removed_id = None
    if previous == LessonSession.STATUS_PRESENT:
        Enrollment.objects.for_tenant(context.tenant_id).decrement_completed(enrollment.pk)
    else:
        removed_id = _remove_makeup(context, session)

    AttendanceEvent.objects.create(
        tenant_id=context.tenant_id,
        enrollment_id=session.enrollment_id,
        session=session,
        action=AttendanceEvent.ACTION_RESET,
        from_status=previous,
        to_status=LessonSession.STATUS_PENDING,
        makeup_session_id=removed_id,
        actor_id=context.principal.id,
    )
    logger.info(f"Session {session.pk} reset from {previous} by user {context.principal.id}")

    session.refresh_from_db()
    return session
