"""
JSON error bodies for the REST API.

Every error response has the shape ``{"error", "code", "status_code", ...}``
like the project's other JSON error handlers. Scheduling errors coming out
of the services are mapped here so views can call services directly.
"""

import logging

from django.core.exceptions import ObjectDoesNotExist, PermissionDenied, ValidationError as DjangoValidationError
from django.db import DatabaseError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler, set_rollback

from apps.scheduling.exceptions import InvalidTransition, SchedulingConflict

logger = logging.getLogger(__name__)


def _error(message, code, status_code, **extra):
    body = {'error': message, 'code': code, 'status_code': status_code}
    body.update(extra)
    return Response(body, status=status_code)


def _validation_details(exc):
    if hasattr(exc, 'error_dict'):
        return exc.message_dict
    return {'non_field_errors': exc.messages}


def api_exception_handler(exc, context):
    request = context.get('request')
    path = request.path if request is not None else ''

    # Both scheduling errors subclass ValidationError; check them first
    if isinstance(exc, SchedulingConflict):
        set_rollback()
        return _error(exc.messages[0], 'scheduling_conflict', status.HTTP_409_CONFLICT,
                      conflict=exc.conflict.as_dict())

    if isinstance(exc, InvalidTransition):
        set_rollback()
        return _error(exc.messages[0], 'invalid_transition', status.HTTP_409_CONFLICT,
                      current_status=exc.current_status)

    if isinstance(exc, DjangoValidationError):
        set_rollback()
        return _error('Invalid input.', 'invalid', status.HTTP_400_BAD_REQUEST,
                      details=_validation_details(exc))

    if isinstance(exc, ObjectDoesNotExist):
        set_rollback()
        return _error('Resource not found', 'not_found', status.HTTP_404_NOT_FOUND)

    if isinstance(exc, PermissionDenied):
        set_rollback()
        logger.warning(f"403 for {path}: {exc}")
        return _error(str(exc) or 'Access forbidden', 'permission_denied', status.HTTP_403_FORBIDDEN)

    response = exception_handler(exc, context)
    if response is not None:
        detail = response.data
        if isinstance(detail, dict) and set(detail) == {'detail'}:
            message, details = str(detail['detail']), None
        else:
            message, details = 'Invalid input.', detail
        code = getattr(exc, 'default_code', 'error')
        response.data = {'error': message, 'code': code, 'status_code': response.status_code}
        if details is not None:
            response.data['details'] = details
        return response

    if isinstance(exc, DatabaseError):
        set_rollback()
        logger.exception(f"Database error for {path}")
        return _error('Internal server error', 'server_error', status.HTTP_500_INTERNAL_SERVER_ERROR,
                      message='An unexpected error occurred. Please try again later.')

    return None
