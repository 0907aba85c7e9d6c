from django.core.exceptions import ValidationError
from django.utils import timezone

from apps.scheduling.models import LessonSession
from apps.scheduling.services.calendar_service import coerce_date


def list_sessions(*, context, date_from=None, date_to=None, trainer_id=None, student_id=None,
                  enrollment_id=None, status=None):
    """
    Sessions of the caller's tenant, ordered by date, start time, id.

    Trainers only ever see their own sessions and students their own
    lessons, whatever filter they pass.
    """
    principal = context.principal
    if principal.is_trainer:
        trainer_id = principal.id
    elif principal.is_student:
        student_id = principal.id

    qs = (
        LessonSession.objects.for_tenant(context.tenant_id)
        .select_related('enrollment', 'student', 'trainer', 'vehicle')
        .order_by('date', 'start_time', 'pk')
    )

    if date_from is not None:
        date_from = coerce_date(date_from, field='date_from')
        qs = qs.filter(date__gte=date_from)
    if date_to is not None:
        date_to = coerce_date(date_to, field='date_to')
        qs = qs.filter(date__lte=date_to)
    if date_from is not None and date_to is not None and date_from > date_to:
        raise ValidationError({'date_to': 'End of range must not be before its start.'})

    if trainer_id is not None:
        qs = qs.filter(trainer_id=trainer_id)
    if student_id is not None:
        qs = qs.filter(student_id=student_id)
    if enrollment_id is not None:
        qs = qs.filter(enrollment_id=enrollment_id)
    if status is not None:
        if status not in dict(LessonSession.STATUS_CHOICES):
            raise ValidationError({'status': f"Unknown session status '{status}'."})
        qs = qs.filter(status=status)
    return qs


def daily_schedule(*, context, day=None, trainer_id=None):
    """One day's lessons; today by default."""
    day = coerce_date(day, field='date') if day is not None else timezone.localdate()
    return list_sessions(context=context, date_from=day, date_to=day, trainer_id=trainer_id)
