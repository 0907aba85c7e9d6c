"""
Vehicle model for the scheduling engine.

Represents the training cars of a driving school. A vehicle is one of the
three resources a lesson session books, next to the trainer and the student.
"""

from django.db import models
from auditlog.registry import auditlog
from .base import BaseModel


class Vehicle(BaseModel):
    """
    Training vehicle owned by a driving school.

    **Business Rules:**
    - Plate number is stored upper-cased and must be unique per tenant
    - Inactive vehicles cannot be booked into new enrollments
    - Existing sessions keep their vehicle when it is deactivated
    """

    name = models.CharField(
        max_length=100,
        help_text="Display name (e.g., Swift Dzire - Manual)"
    )

    plate_number = models.CharField(
        max_length=20,
        help_text="Registration plate, stored upper-cased"
    )

    is_active = models.BooleanField(
        default=True,
        db_index=True,
        help_text="Whether this vehicle can be booked"
    )

    notes = models.TextField(
        blank=True,
        help_text="Additional notes about the vehicle"
    )

    class Meta:
        verbose_name = 'Vehicle'
        verbose_name_plural = 'Vehicles'
        ordering = ['name']
        indexes = [
            models.Index(fields=['tenant', 'is_active'], name='sched_vehicle_ten_active_idx'),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=['tenant', 'plate_number'],
                name='unique_plate_per_tenant'
            ),
        ]

    def __str__(self):
        return f"{self.name} ({self.plate_number})"

    def save(self, *args, **kwargs):
        self.plate_number = (self.plate_number or '').strip().upper()
        super().save(*args, **kwargs)


# Register for audit logging
auditlog.register(Vehicle)
