"""
Scheduling domain models package.
"""

from .base import (
    BaseModel,
    TenantAwareModel,
    AuditableModel,
)

# Note: These imports must be after base imports to avoid circular dependency
from .vehicle import Vehicle
from .enrollment import Enrollment
from .lesson_session import LessonSession
from .payment import Payment
from .attendance_event import AttendanceEvent

__all__ = [
    'BaseModel',
    'TenantAwareModel',
    'AuditableModel',
    'Vehicle',
    'Enrollment',
    'LessonSession',
    'Payment',
    'AttendanceEvent',
]
