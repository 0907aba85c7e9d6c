from django.core.exceptions import PermissionDenied, ValidationError
from django.db import transaction

from apps.scheduling.models import Vehicle


def _require_manager(context):
    if not context.principal.is_manager:
        raise PermissionDenied("Only admins and office staff can manage vehicles.")


def _clean_plate(tenant_id, plate_number, exclude_pk=None):
    plate = (plate_number or '').strip().upper()
    if not plate:
        raise ValidationError({'plate_number': 'Plate number is required.'})
    qs = Vehicle.objects.for_tenant(tenant_id).filter(plate_number=plate)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    if qs.exists():
        raise ValidationError({'plate_number': 'A vehicle with this plate number already exists.'})
    return plate


@transaction.atomic
def create_vehicle(*, context, name, plate_number, notes="") -> Vehicle:
    _require_manager(context)
    name = (name or '').strip()
    if not name:
        raise ValidationError({'name': 'Vehicle name is required.'})
    plate = _clean_plate(context.tenant_id, plate_number)
    return Vehicle.objects.create(
        tenant_id=context.tenant_id,
        name=name,
        plate_number=plate,
        notes=(notes or '').strip(),
        created_by_id=context.principal.id,
        updated_by_id=context.principal.id,
    )


@transaction.atomic
def update_vehicle(*, context, vehicle_id, name=None, plate_number=None, notes=None) -> Vehicle:
    _require_manager(context)
    vehicle = Vehicle.objects.for_tenant(context.tenant_id).select_for_update().get(pk=vehicle_id)
    if name is not None:
        name = name.strip()
        if not name:
            raise ValidationError({'name': 'Vehicle name is required.'})
        vehicle.name = name
    if plate_number is not None:
        vehicle.plate_number = _clean_plate(context.tenant_id, plate_number, exclude_pk=vehicle.pk)
    if notes is not None:
        vehicle.notes = notes.strip()
    vehicle.updated_by_id = context.principal.id
    vehicle.save()
    return vehicle


@transaction.atomic
def toggle_vehicle(*, context, vehicle_id) -> Vehicle:
    """Flip a vehicle between bookable and retired. Booked sessions are kept."""
    _require_manager(context)
    vehicle = Vehicle.objects.for_tenant(context.tenant_id).select_for_update().get(pk=vehicle_id)
    vehicle.is_active = not vehicle.is_active
    vehicle.updated_by_id = context.principal.id
    vehicle.save(update_fields=['is_active', 'updated_by', 'updated_at'])
    return vehicle
