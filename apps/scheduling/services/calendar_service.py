"""
Calendar generation for lesson plans.

Pure functions: no database access, no clock.
"""

from datetime import date, datetime, timedelta
from typing import List

from django.core.exceptions import ValidationError
from django.utils.dateparse import parse_date

SUNDAY = 6


def is_sunday(day: date) -> bool:
    return day.weekday() == SUNDAY


def coerce_date(value, field='start_date') -> date:
    """Accept a ``date`` or an ISO ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            parsed = parse_date(value.strip())
        except ValueError:
            parsed = None
        if parsed is not None:
            return parsed
    raise ValidationError({field: f"'{value}' is not a valid date (expected YYYY-MM-DD)."})


def generate_dates(start_date, plan_days, skip_sundays=True) -> List[date]:
    """
    Return the lesson dates of a plan.

    Walks forward one day at a time from ``start_date`` and keeps every day,
    except Sundays when ``skip_sundays`` is set, until ``plan_days`` days
    have been kept. Skipped Sundays do not count toward the plan.

    >>> generate_dates(date(2024, 1, 5), 3, True)
    [datetime.date(2024, 1, 5), datetime.date(2024, 1, 6), datetime.date(2024, 1, 8)]
    """
    if isinstance(plan_days, bool) or not isinstance(plan_days, int) or plan_days < 1:
        raise ValidationError({'plan_days': 'Plan length must be a positive whole number of days.'})
    current = coerce_date(start_date)

    dates = []
    while len(dates) < plan_days:
        if not (skip_sundays and is_sunday(current)):
            dates.append(current)
        current += timedelta(days=1)
    return dates


def next_makeup_date(latest_date, skip_sundays=True) -> date:
    """Day after the plan's last lesson, pushed past a Sunday when those are skipped."""
    candidate = coerce_date(latest_date, field='date') + timedelta(days=1)
    if skip_sundays and is_sunday(candidate):
        candidate += timedelta(days=1)
    return candidate
