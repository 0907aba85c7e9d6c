"""
Scheduling error types.

Both are ``ValidationError`` subclasses so callers that only know Django's
validation error still treat them as client errors. The API layer maps them
to 409 Conflict.

Other failures use Django's own exceptions:
- malformed input: ``ValidationError``
- entity missing or in another tenant: ``Model.DoesNotExist``
- role or ownership mismatch: ``PermissionDenied``
- store failures: ``DatabaseError`` propagates untouched
"""

from django.core.exceptions import ValidationError


class SchedulingConflict(ValidationError):
    """A resource would be double-booked. Carries the ``Conflict`` found."""

    def __init__(self, conflict):
        self.conflict = conflict
        super().__init__(conflict.message, code='scheduling_conflict')


class InvalidTransition(ValidationError):
    """The session or enrollment is not in a state that allows the operation."""

    def __init__(self, message, *, current_status=None):
        self.current_status = current_status
        super().__init__(message, code='invalid_transition')
